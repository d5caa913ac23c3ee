"""
Job handlers registry and implementations.

Handlers let producers that cannot pass a callable (for example HTTP
clients) submit jobs by type name. Handlers run under a per-job lock but
may still overlap with a timed-out earlier run, so they should be
idempotent.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from functools import partial
from typing import Any

from lockqueue.types.job import Job, JobContext

logger = logging.getLogger(__name__)

# Type alias for job handler functions
JobHandler = Callable[[JobContext], Awaitable[Any]]

# Handler registry
_handlers: dict[str, JobHandler] = {}


def register_handler(job_type: str) -> Callable[[JobHandler], JobHandler]:
    """
    Decorator to register a job handler.

    Args:
        job_type: The job type this handler processes.

    Returns:
        Decorator function.

    Example:
        @register_handler("send_email")
        async def handle_send_email(context: JobContext) -> None:
            ...
    """
    def decorator(handler: JobHandler) -> JobHandler:
        _handlers[job_type] = handler
        logger.debug(f"Registered handler for job type: {job_type}")
        return handler
    return decorator


def get_handler(job_type: str) -> JobHandler | None:
    """
    Get the handler for a job type.

    Args:
        job_type: The job type.

    Returns:
        The handler function or None if not found.
    """
    return _handlers.get(job_type)


def list_handlers() -> list[str]:
    """List all registered job types."""
    return list(_handlers.keys())


def build_job(job_id: str, job_type: str, data: dict[str, Any] | None = None) -> Job | None:
    """
    Bind a registered handler and its input into a queueable job.

    Args:
        job_id: Unique job identifier.
        job_type: Registered handler name.
        data: Handler input.

    Returns:
        The job, or None if no handler is registered for the type.
    """
    handler = get_handler(job_type)
    if handler is None:
        return None
    context = JobContext(job_id=job_id, data=dict(data or {}))
    return Job(id=job_id, action=partial(handler, context))


# ============================================================================
# Built-in job handlers
# ============================================================================


@register_handler("echo")
async def handle_echo(context: JobContext) -> dict[str, Any]:
    """Log and return the input data."""
    logger.info("Echo job executing", extra={"job_id": context.job_id, "data": context.data})
    return {"echo": context.data}


@register_handler("sleep")
async def handle_sleep(context: JobContext) -> dict[str, Any]:
    """
    Sleep handler for testing delays.

    Data should contain:
    - duration_seconds: How long to sleep
    """
    duration = context.data.get("duration_seconds", 1)
    await asyncio.sleep(duration)
    return {"slept_for": duration}


@register_handler("failing_job")
async def handle_failing_job(context: JobContext) -> None:
    """Handler that always fails."""
    message = context.data.get("message", "Intentional failure")
    raise RuntimeError(message)
