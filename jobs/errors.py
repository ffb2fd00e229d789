"""Exceptions raised by job submission and polling."""


class JobError(Exception):
    """Base class for remote job errors."""
    pass


class JobSubmissionError(JobError):
    """The job could not be created or started."""
    pass


class JobFailedError(JobError):
    """The job reached the failed state."""

    def __init__(self, job_id: str, message: str) -> None:
        super().__init__(message)
        self.job_id = job_id
        self.message = message


class JobTimeoutError(JobError):
    """The job did not reach a terminal state within the polling budget."""

    def __init__(self, job_id: str, attempts: int) -> None:
        super().__init__(f"Processing timed out for job {job_id} after {attempts} attempts")
        self.job_id = job_id
        self.attempts = attempts
