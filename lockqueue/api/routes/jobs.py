"""
Job submission and status routes.
"""

import logging

from fastapi import APIRouter, Depends, HTTPException, Query, status

from lockqueue.api.dependencies import get_runtime
from lockqueue.constants import JobState
from lockqueue.runtime import Runtime
from lockqueue.types.api import (
    EnqueueJobRequest,
    EnqueueJobResponse,
    JobStatusListResponse,
    JobStatusResponse,
)
from lockqueue.types.job import JobStatusRecord
from lockqueue.worker.handlers import build_job, list_handlers

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/jobs", tags=["Jobs"])


def _to_response(record: JobStatusRecord) -> JobStatusResponse:
    return JobStatusResponse(
        id=record.id,
        state=record.state,
        started_at=record.started_at,
        completed_at=record.completed_at,
        error=record.error,
    )


@router.post(
    "",
    response_model=EnqueueJobResponse,
    status_code=status.HTTP_202_ACCEPTED,
    summary="Submit a job",
    description="Enqueue a job for a registered handler. Duplicate ids are ignored.",
)
async def enqueue_job(
    request: EnqueueJobRequest,
    runtime: Runtime = Depends(get_runtime),
) -> EnqueueJobResponse:
    """
    Submit a job by handler type.

    Raises:
        HTTPException: 422 if no handler is registered for the job type.
    """
    job = build_job(request.id, request.job_type, request.data)
    if job is None:
        raise HTTPException(
            status_code=422,
            detail={
                "message": f"Unknown job type: {request.job_type}",
                "available": list_handlers(),
            },
        )

    enqueued = runtime.queue.enqueue(job)

    runtime.metrics.record_enqueue(enqueued)
    runtime.metrics.update_queue_depth(len(runtime.queue))

    logger.info(
        "Job submitted",
        extra={"job_id": job.id, "job_type": request.job_type, "enqueued": enqueued},
    )

    return EnqueueJobResponse(
        id=job.id,
        enqueued=enqueued,
        message="Job enqueued" if enqueued else "Job already queued",
    )


@router.get(
    "",
    response_model=JobStatusListResponse,
    summary="List job statuses",
    description="Point-in-time snapshot of every tracked job.",
)
async def list_jobs(
    state: JobState | None = Query(default=None, description="Filter by state"),
    runtime: Runtime = Depends(get_runtime),
) -> JobStatusListResponse:
    """List tracked jobs, optionally filtered by state."""
    records = runtime.tracker.get_all()
    if state is not None:
        records = [record for record in records if record.state == state]

    return JobStatusListResponse(
        jobs=[_to_response(record) for record in records],
        total=len(records),
        queued=len(runtime.queue),
    )


@router.get(
    "/{job_id}",
    response_model=JobStatusResponse,
    summary="Get job status",
)
async def get_job(
    job_id: str,
    runtime: Runtime = Depends(get_runtime),
) -> JobStatusResponse:
    """
    Get the status of a single job.

    Raises:
        HTTPException: 404 if the job has never been started.
    """
    for record in runtime.tracker.get_all():
        if record.id == job_id:
            return _to_response(record)

    raise HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=f"Job {job_id} not found",
    )
