"""
API request and response type definitions.
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from lockqueue.constants import JobState, ProcessorState


class EnqueueJobRequest(BaseModel):
    """Request body for submitting a job by handler type."""

    id: str = Field(..., min_length=1, description="Unique job identifier")
    job_type: str = Field(..., min_length=1, description="Registered handler name")
    data: dict[str, Any] = Field(default_factory=dict, description="Handler input")


class EnqueueJobResponse(BaseModel):
    """Response body after submitting a job."""

    id: str
    enqueued: bool
    message: str


class JobStatusResponse(BaseModel):
    """Status of a single job."""

    id: str
    state: JobState
    started_at: datetime | None
    completed_at: datetime | None
    error: str | None


class JobStatusListResponse(BaseModel):
    """Snapshot of all tracked jobs."""

    jobs: list[JobStatusResponse]
    total: int
    queued: int


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    processor: ProcessorState
    lock_backend: str
    abandoned_actions: int
    timestamp: datetime
