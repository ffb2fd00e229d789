"""Remote link-processing jobs tracked in Supabase."""

from .errors import JobError, JobSubmissionError, JobFailedError, JobTimeoutError
from .models import AsyncJob, JobStatus
from .store import JobStore, create_supabase_client, decode_function_response

__all__ = [
    'JobError',
    'JobSubmissionError',
    'JobFailedError',
    'JobTimeoutError',
    'AsyncJob',
    'JobStatus',
    'JobStore',
    'create_supabase_client',
    'decode_function_response',
]
