"""Supabase access for link-processing jobs."""

import asyncio
import json
import logging
from typing import Any, Dict, Optional

from supabase import Client, create_client

from config import SUPABASE_URL, SUPABASE_KEY
from constants import (
    PROCESSED_LINKS_TABLE,
    AUTOMATION_RESULTS_TABLE,
    LINK_PROCESSOR_FUNCTION,
)
from jobs.errors import JobSubmissionError
from jobs.models import AsyncJob

logger = logging.getLogger(__name__)


def create_supabase_client(url: Optional[str] = SUPABASE_URL, key: Optional[str] = SUPABASE_KEY) -> Client:
    """Create a Supabase client from configuration."""
    if not url or not key:
        raise ValueError("SUPABASE_URL and a Supabase key are required")
    return create_client(url, key)


def decode_function_response(raw: Any) -> Dict[str, Any]:
    """Edge function responses arrive as bytes or str; decode them to a dict."""
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        raw = json.loads(raw) if raw else {}
    if not isinstance(raw, dict):
        raise ValueError(f"Unexpected function response: {raw!r}")
    return raw


class JobStore:
    """
    Processed-link rows, their automation result rows, and the function that
    starts processing. The blocking Supabase calls run in worker threads.
    """

    def __init__(self, client: Client) -> None:
        self.client = client

    def _create_link(self, url: str, assignment_id: Optional[str]) -> str:
        response = (
            self.client.table(PROCESSED_LINKS_TABLE)
            .insert({"url": url, "assignment_id": assignment_id, "status": "pending"})
            .execute()
        )
        rows = response.data or []
        if not rows:
            raise JobSubmissionError(f"No row returned when creating processed link for {url}")
        return str(rows[0]["id"])

    def _invoke_processor(self, link_id: str, url: str, job_type: str) -> Dict[str, Any]:
        raw = self.client.functions.invoke(
            LINK_PROCESSOR_FUNCTION,
            invoke_options={"body": {"url": url, "type": job_type, "processedLinkId": link_id}},
        )
        return decode_function_response(raw)

    def _fetch_latest_result(self, link_id: str) -> Optional[Dict[str, Any]]:
        rows = (
            self.client.table(AUTOMATION_RESULTS_TABLE)
            .select("*")
            .eq("processed_link_id", link_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        ).data
        return rows[0] if rows else None

    def _update_link(self, link_id: str, fields: Dict[str, Any]) -> None:
        self.client.table(PROCESSED_LINKS_TABLE).update(fields).eq("id", link_id).execute()

    async def create_link(self, url: str, assignment_id: Optional[str] = None) -> str:
        """Insert a processed-link row and return its id (the job reference)."""
        try:
            return await asyncio.to_thread(self._create_link, url, assignment_id)
        except JobSubmissionError:
            raise
        except Exception as e:
            raise JobSubmissionError(f"Could not record link {url}: {e}") from e

    async def start_processing(self, link_id: str, url: str, job_type: str) -> Dict[str, Any]:
        """Invoke the link processor. Progress is observed through fetch_job."""
        try:
            response = await asyncio.to_thread(self._invoke_processor, link_id, url, job_type)
        except Exception as e:
            raise JobSubmissionError(f"Could not start processing for {url}: {e}") from e
        if response.get("error"):
            logger.warning("Link processor reported an error for %s: %s", link_id, response["error"])
        return response

    async def fetch_job(self, link_id: str) -> Optional[AsyncJob]:
        """
        Latest automation result for a link, or None if none exists yet.

        A failed read is logged and also reported as None, so the poller
        checks again on its next attempt instead of abandoning the job.
        """
        try:
            row = await asyncio.to_thread(self._fetch_latest_result, link_id)
        except Exception as e:
            logger.warning("Could not read job status for %s: %s", link_id, e)
            return None
        return AsyncJob.from_row(row) if row else None

    async def update_link_status(
        self,
        link_id: str,
        status: str,
        content: Optional[str] = None,
        error: Optional[str] = None,
    ) -> None:
        fields: Dict[str, Any] = {"status": status, "error": error}
        if content is not None:
            fields["content"] = content
        await asyncio.to_thread(self._update_link, link_id, fields)
