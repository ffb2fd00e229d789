"""Job status records read from the automation results table."""

import enum
from dataclasses import dataclass
from typing import Any, Dict, Optional


class JobStatus(enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass(frozen=True)
class AsyncJob:
    id: str
    status: JobStatus
    result: Any = None
    error: Optional[str] = None

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "AsyncJob":
        """Build a job from a table row. Unknown statuses read as processing."""
        try:
            status = JobStatus(row.get("status"))
        except ValueError:
            status = JobStatus.PROCESSING
        return cls(
            id=str(row.get("id")),
            status=status,
            result=row.get("result"),
            error=row.get("error"),
        )
