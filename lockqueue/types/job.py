"""
Job-related type definitions for internal use.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from pydantic import BaseModel

from lockqueue.constants import JobState

# Zero-argument asynchronous unit of work
JobAction = Callable[[], Awaitable[Any]]


@dataclass(frozen=True)
class Job:
    """
    A uniquely identified unit of asynchronous work.
    Owned by the work queue until dequeued, then by the processor.
    """

    id: str
    action: JobAction = field(compare=False, repr=False)


@dataclass
class JobContext:
    """
    Context passed to registered job handlers during execution.
    """

    job_id: str
    data: dict[str, Any] = field(default_factory=dict)


class JobStatusRecord(BaseModel):
    """
    Lifecycle status of one job.
    Owned by the status tracker; callers only ever see copies.
    """

    id: str
    state: JobState = JobState.PENDING
    started_at: datetime | None = None
    completed_at: datetime | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        """Check if the job reached COMPLETED or FAILED."""
        return self.state in (JobState.COMPLETED, JobState.FAILED)
