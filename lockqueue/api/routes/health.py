"""
Health check routes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from lockqueue import __version__
from lockqueue.api.dependencies import get_runtime
from lockqueue.constants import ProcessorState
from lockqueue.runtime import Runtime
from lockqueue.types.api import HealthResponse

router = APIRouter(tags=["Health"])


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    description="Report processor state and the lock backend in use.",
)
async def health_check(runtime: Runtime = Depends(get_runtime)) -> HealthResponse:
    """
    Perform a health check.

    The service is degraded when the processor has stopped.
    """
    state = runtime.processor.state
    return HealthResponse(
        status="degraded" if state == ProcessorState.STOPPED else "healthy",
        version=__version__,
        processor=state,
        lock_backend=runtime.backend.name,
        abandoned_actions=runtime.coordinator.abandoned_count,
        timestamp=datetime.now(timezone.utc),
    )


@router.get(
    "/live",
    summary="Liveness check",
    description="Check if the service is alive.",
)
async def liveness_check() -> dict:
    """Kubernetes liveness probe endpoint."""
    return {"alive": True}


@router.get(
    "/metrics",
    summary="Prometheus metrics",
    description="Expose Prometheus metrics.",
)
async def metrics(runtime: Runtime = Depends(get_runtime)) -> Response:
    """Expose Prometheus metrics."""
    metrics_collector = runtime.metrics
    return Response(
        content=metrics_collector.get_metrics(),
        media_type=metrics_collector.get_content_type(),
    )
