"""Fixed-interval polling of a remote job until it reaches a terminal state."""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

from constants import JOB_POLL_INTERVAL, JOB_POLL_MAX_ATTEMPTS
from jobs.errors import JobFailedError, JobTimeoutError
from jobs.models import AsyncJob, JobStatus

logger = logging.getLogger(__name__)

JobFetch = Callable[[str], Awaitable[Optional[AsyncJob]]]


class PollPhase(enum.Enum):
    CHECKING = "checking"
    COMPLETED = "completed"
    FAILED = "failed"
    TIMED_OUT = "timed_out"


@dataclass
class PollState:
    """Progress of one wait: the attempt counter lives here, not on the stack."""

    job_id: str
    attempts: int = 0
    phase: PollPhase = PollPhase.CHECKING
    result: Any = None
    error: Optional[str] = None

    @property
    def done(self) -> bool:
        return self.phase is not PollPhase.CHECKING


class JobPoller:
    """
    Poll a job status row every `interval` seconds, at most `max_attempts` times.

    A missing row is treated the same as a job still processing. The worst
    case wait is max_attempts * interval.
    """

    def __init__(
        self,
        fetch_job: JobFetch,
        max_attempts: int = JOB_POLL_MAX_ATTEMPTS,
        interval: float = JOB_POLL_INTERVAL,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts must be positive")
        self.fetch_job = fetch_job
        self.max_attempts = max_attempts
        self.interval = interval
        self._sleep = sleep

    async def step(self, state: PollState) -> PollState:
        """Perform one status check and advance the state."""
        if state.done:
            return state

        job = await self.fetch_job(state.job_id)
        state.attempts += 1

        if job is not None and job.status is JobStatus.COMPLETED:
            state.phase = PollPhase.COMPLETED
            state.result = job.result
        elif job is not None and job.status is JobStatus.FAILED:
            state.phase = PollPhase.FAILED
            state.error = job.error or "Job failed"
        elif state.attempts >= self.max_attempts:
            state.phase = PollPhase.TIMED_OUT
            state.error = f"Processing timed out after {state.attempts} attempts"

        return state

    async def wait(self, job_id: str) -> Any:
        """Drive the state machine to a terminal phase and return the job result."""
        state = PollState(job_id=job_id)

        while True:
            await self.step(state)
            if state.done:
                break
            logger.debug("Job %s still processing (attempt %d)", job_id, state.attempts)
            await self._sleep(self.interval)

        if state.phase is PollPhase.COMPLETED:
            logger.info("Job %s completed after %d attempts", job_id, state.attempts)
            return state.result
        if state.phase is PollPhase.FAILED:
            raise JobFailedError(job_id, state.error)
        raise JobTimeoutError(job_id, state.attempts)
