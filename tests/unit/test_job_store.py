"""
Unit tests for the Supabase job store.
Tests link creation, processor invocation and status reads against a mocked client.
"""

import json
import unittest
from unittest.mock import AsyncMock, MagicMock, Mock, patch
from datasync.poller import JobPoller
from constants import AUTOMATION_RESULTS_TABLE, LINK_PROCESSOR_FUNCTION, PROCESSED_LINKS_TABLE
from jobs.errors import JobSubmissionError
from jobs.models import AsyncJob, JobStatus
from jobs.store import JobStore, create_supabase_client, decode_function_response


def results_query(client):
    """The chained automation_results query mock."""
    return (
        client.table.return_value
        .select.return_value
        .eq.return_value
        .order.return_value
        .limit.return_value
        .execute
    )


class TestDecodeFunctionResponse(unittest.TestCase):
    """Test suite for edge function response decoding."""

    def test_bytes(self):
        self.assertEqual(decode_function_response(b'{"result": "ok"}'), {"result": "ok"})

    def test_str(self):
        self.assertEqual(decode_function_response('{"a": 1}'), {"a": 1})

    def test_empty(self):
        self.assertEqual(decode_function_response(b""), {})

    def test_dict_passthrough(self):
        self.assertEqual(decode_function_response({"a": 1}), {"a": 1})

    def test_non_object_rejected(self):
        """Test that a JSON list is not accepted as a response."""
        with self.assertRaises(ValueError):
            decode_function_response("[1, 2]")


class TestCreateSupabaseClient(unittest.TestCase):
    """Test suite for client construction."""

    def test_missing_settings(self):
        """Test that missing configuration is rejected."""
        with self.assertRaises(ValueError):
            create_supabase_client(url=None, key="key")
        with self.assertRaises(ValueError):
            create_supabase_client(url="https://x.supabase.co", key="")

    @patch('jobs.store.create_client')
    def test_creates_client(self, mock_create):
        """Test that configured settings are passed through."""
        create_supabase_client(url="https://x.supabase.co", key="key")

        mock_create.assert_called_once_with("https://x.supabase.co", "key")


class TestAsyncJob(unittest.TestCase):
    """Test suite for job rows."""

    def test_from_row(self):
        job = AsyncJob.from_row({"id": 7, "status": "completed", "result": {"content": "x"}})

        self.assertEqual(job.id, "7")
        self.assertIs(job.status, JobStatus.COMPLETED)
        self.assertTrue(job.status.is_terminal)

    def test_unknown_status_reads_as_processing(self):
        job = AsyncJob.from_row({"id": 7, "status": "queued"})

        self.assertIs(job.status, JobStatus.PROCESSING)
        self.assertFalse(job.status.is_terminal)


class TestJobStore(unittest.IsolatedAsyncioTestCase):
    """Test suite for JobStore."""

    def setUp(self):
        self.client = MagicMock()
        self.store = JobStore(self.client)

    async def test_create_link_returns_row_id(self):
        """Test that a pending processed-link row is inserted."""
        insert = self.client.table.return_value.insert
        insert.return_value.execute.return_value = Mock(data=[{"id": 42}])

        link_id = await self.store.create_link("https://example.com/syllabus", "a-1")

        self.assertEqual(link_id, "42")
        self.client.table.assert_called_with(PROCESSED_LINKS_TABLE)
        insert.assert_called_once_with(
            {"url": "https://example.com/syllabus", "assignment_id": "a-1", "status": "pending"}
        )

    async def test_create_link_without_row(self):
        """Test that an empty insert response is a submission error."""
        self.client.table.return_value.insert.return_value.execute.return_value = Mock(data=[])

        with self.assertRaises(JobSubmissionError):
            await self.store.create_link("https://example.com")

    async def test_create_link_wraps_client_errors(self):
        """Test that client exceptions become submission errors."""
        self.client.table.return_value.insert.return_value.execute.side_effect = RuntimeError("network")

        with self.assertRaises(JobSubmissionError) as ctx:
            await self.store.create_link("https://example.com")
        self.assertIsInstance(ctx.exception.__cause__, RuntimeError)

    async def test_start_processing_invokes_function(self):
        """Test the processor invocation body."""
        self.client.functions.invoke.return_value = json.dumps({"success": True}).encode()

        response = await self.store.start_processing("42", "https://example.com", "reading")

        self.assertEqual(response, {"success": True})
        self.client.functions.invoke.assert_called_once_with(
            LINK_PROCESSOR_FUNCTION,
            invoke_options={"body": {"url": "https://example.com", "type": "reading", "processedLinkId": "42"}},
        )

    async def test_start_processing_failure(self):
        """Test that an invocation failure is a submission error."""
        self.client.functions.invoke.side_effect = RuntimeError("502")

        with self.assertRaises(JobSubmissionError):
            await self.store.start_processing("42", "https://example.com", "assignment")

    async def test_fetch_job_reads_latest_result(self):
        """Test that the newest automation result row is read."""
        results_query(self.client).return_value = Mock(data=[{"id": 9, "status": "processing"}])

        job = await self.store.fetch_job("42")

        self.assertIs(job.status, JobStatus.PROCESSING)
        self.client.table.assert_called_with(AUTOMATION_RESULTS_TABLE)
        table = self.client.table.return_value
        table.select.return_value.eq.assert_called_once_with("processed_link_id", "42")
        table.select.return_value.eq.return_value.order.assert_called_once_with("created_at", desc=True)

    async def test_fetch_job_missing_row(self):
        """Test that no row yet reads as None."""
        results_query(self.client).return_value = Mock(data=[])

        self.assertIsNone(await self.store.fetch_job("42"))

    async def test_fetch_job_read_error_reads_as_missing(self):
        """Test that a failed status read is reported as no row yet."""
        results_query(self.client).side_effect = ConnectionError("blip")

        self.assertIsNone(await self.store.fetch_job("42"))

    async def test_polling_survives_read_error(self):
        """Test that one failed read does not end the wait for a job that later completes."""
        results_query(self.client).side_effect = [
            Mock(data=[{"id": 9, "status": "processing"}]),
            ConnectionError("blip"),
            Mock(data=[{"id": 9, "status": "processing"}]),
            Mock(data=[{"id": 9, "status": "completed", "result": {"content": "Done"}}]),
        ]
        poller = JobPoller(self.store.fetch_job, sleep=AsyncMock())

        result = await poller.wait("42")

        self.assertEqual(result, {"content": "Done"})
        self.assertEqual(results_query(self.client).call_count, 4)

    async def test_update_link_status(self):
        """Test that the final status is written to the link row."""
        update = self.client.table.return_value.update

        await self.store.update_link_status("42", "completed", content="Summary")

        update.assert_called_once_with({"status": "completed", "error": None, "content": "Summary"})
        update.return_value.eq.assert_called_once_with("id", "42")


if __name__ == "__main__":
    unittest.main()
