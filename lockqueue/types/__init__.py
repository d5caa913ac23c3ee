"""
Type definitions for the lock queue.
Contains input/output type definitions grouped by module.
"""

from lockqueue.types.api import (
    EnqueueJobRequest,
    EnqueueJobResponse,
    HealthResponse,
    JobStatusListResponse,
    JobStatusResponse,
)
from lockqueue.types.job import (
    Job,
    JobAction,
    JobContext,
    JobStatusRecord,
)
from lockqueue.types.lock import (
    LockLease,
    LockResult,
)

__all__ = [
    # API types
    "EnqueueJobRequest",
    "EnqueueJobResponse",
    "JobStatusResponse",
    "JobStatusListResponse",
    "HealthResponse",
    # Job types
    "Job",
    "JobAction",
    "JobContext",
    "JobStatusRecord",
    # Lock types
    "LockLease",
    "LockResult",
]
