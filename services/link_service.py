"""Link processing: submit a URL for remote processing and wait for the result."""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from constants import LINK_JOB_TYPES
from datasync.poller import JobPoller
from jobs.errors import JobFailedError
from jobs.store import JobStore

logger = logging.getLogger(__name__)


@dataclass
class ProcessedLink:
    link_id: str
    url: str
    status: str
    content: Optional[str] = None
    error: Optional[str] = None


def result_to_content(result: Any) -> str:
    """Render a job result payload as text for display and storage."""
    if result is None:
        return ""
    if isinstance(result, str):
        return result
    if isinstance(result, dict):
        for key in ("content", "text", "summary"):
            if isinstance(result.get(key), str):
                return result[key]
    return str(result)


class LinkProcessingService:
    """
    Creates the processed-link record, starts the remote processor, polls the
    automation result and writes the final status back to the link record.
    """

    def __init__(self, store: JobStore, poller: Optional[JobPoller] = None) -> None:
        self.store = store
        self.poller = poller or JobPoller(store.fetch_job)

    async def _mark_failed(self, link_id: str, error: str) -> None:
        try:
            await self.store.update_link_status(link_id, "failed", error=error)
        except Exception as e:
            # the caller re-raises the original error
            logger.error("Could not record failure for %s: %s", link_id, e)

    async def submit(self, url: str, job_type: str = "assignment", assignment_id: Optional[str] = None) -> str:
        """Create the job and start processing. Returns the job reference."""
        if job_type not in LINK_JOB_TYPES:
            raise ValueError(f"Unknown job type {job_type!r}; expected one of {', '.join(LINK_JOB_TYPES)}")
        link_id = await self.store.create_link(url, assignment_id)
        try:
            await self.store.update_link_status(link_id, "processing")
            await self.store.start_processing(link_id, url, job_type)
        except Exception as e:
            await self._mark_failed(link_id, str(e))
            raise
        logger.info("Submitted %s for %s processing as %s", url, job_type, link_id)
        return link_id

    async def process(self, url: str, job_type: str = "assignment", assignment_id: Optional[str] = None) -> ProcessedLink:
        """
        Submit and wait. Any failure after the link record exists is persisted
        on that record as "failed" and then re-raised for the caller to report.
        """
        link_id = await self.submit(url, job_type, assignment_id)

        try:
            result = await self.poller.wait(link_id)
        except JobFailedError as e:
            await self._mark_failed(link_id, e.message)
            raise
        except Exception as e:
            await self._mark_failed(link_id, str(e))
            raise

        content = result_to_content(result)
        await self.store.update_link_status(link_id, "completed", content=content)
        return ProcessedLink(link_id=link_id, url=url, status="completed", content=content)
