"""
FastAPI application entry point.

The application hosts one job processor; its lifespan starts the
processor loop and stops it cooperatively on shutdown.
"""

import logging
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from lockqueue import __version__
from lockqueue.api.routes import health_router, jobs_router
from lockqueue.config import get_settings
from lockqueue.observability.logging import setup_logging
from lockqueue.observability.metrics import setup_metrics
from lockqueue.observability.tracing import instrument_fastapi, setup_tracing
from lockqueue.runtime import Runtime, build_runtime

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.

    Handles startup and shutdown events.
    """
    runtime: Runtime = app.state.runtime
    await runtime.start()

    logger.info(
        "Application started",
        extra={"processor_id": runtime.processor.processor_id},
    )

    yield

    await runtime.shutdown()
    logger.info("Application shutdown")


def create_app(runtime: Runtime | None = None) -> FastAPI:
    """
    Create and configure the FastAPI application.

    Args:
        runtime: Runtime to serve. Built from settings when omitted.

    Returns:
        FastAPI: The configured application instance.
    """
    app = FastAPI(
        title="Lock Queue API",
        description="Job submission and status for a distributed-lock job processor",
        version=__version__,
        lifespan=lifespan,
        docs_url="/docs",
        redoc_url="/redoc",
    )

    app.state.runtime = runtime or build_runtime()

    app.include_router(health_router)
    app.include_router(jobs_router)

    instrument_fastapi(app)

    return app


def run() -> None:
    """Run the API server together with its job processor."""
    settings = get_settings()

    setup_logging()
    setup_metrics()
    setup_tracing()

    app = create_app()

    uvicorn.run(
        app,
        host=settings.api_host,
        port=settings.api_port,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    run()
