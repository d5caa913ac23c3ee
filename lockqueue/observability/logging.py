"""
Structured logging setup using structlog.

Modules log through the standard library (``logging.getLogger(__name__)``
with ``extra`` fields). Records are rendered by structlog, which also merges
the job context bound by the processor, so log lines emitted anywhere inside
a locked section carry the job id.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import structlog
from opentelemetry import trace

from lockqueue import __version__
from lockqueue.config import get_settings

# Keys bound for the duration of one job
JOB_CONTEXT_KEYS = ("job_id", "processor_id")


def add_trace_context(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Add the current OpenTelemetry trace and span ids, if a span is recording."""
    span = trace.get_current_span()
    if span and span.is_recording():
        ctx = span.get_span_context()
        event_dict["trace_id"] = format(ctx.trace_id, "032x")
        event_dict["span_id"] = format(ctx.span_id, "016x")
    return event_dict


def add_service_info(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """Tag each record with the service name and version."""
    event_dict.setdefault("service", get_settings().otel_service_name)
    event_dict.setdefault("version", __version__)
    return event_dict


def shared_processors() -> list[Any]:
    """Processors applied to both structlog and standard library records."""
    return [
        structlog.contextvars.merge_contextvars,
        add_trace_context,
        add_service_info,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.stdlib.ExtraAdder(),
    ]


def build_formatter(log_format: str) -> structlog.stdlib.ProcessorFormatter:
    """
    Build the formatter that renders standard library records.

    Args:
        log_format: ``json`` for machine-readable output, anything else for
            colored console output.

    Returns:
        A formatter to attach to a logging handler.
    """
    if log_format == "json":
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.dev.ConsoleRenderer(colors=True)

    return structlog.stdlib.ProcessorFormatter(
        foreign_pre_chain=shared_processors(),
        processors=[
            structlog.stdlib.ProcessorFormatter.remove_processors_meta,
            renderer,
        ],
    )


def setup_logging() -> None:
    """Route all logging through structlog at the configured level and format."""
    settings = get_settings()

    log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

    structlog.configure(
        processors=[
            *shared_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(build_formatter(settings.log_format))

    root_logger = logging.getLogger()
    root_logger.handlers = [handler]
    root_logger.setLevel(log_level)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("redis").setLevel(logging.WARNING)


def bind_context(**kwargs: Any) -> None:
    """
    Bind context variables to all subsequent log messages.

    Args:
        **kwargs: Key-value pairs to add to log context.
    """
    structlog.contextvars.bind_contextvars(**kwargs)


def unbind_context(*keys: str) -> None:
    """Remove context variables bound with ``bind_context``."""
    structlog.contextvars.unbind_contextvars(*keys)


@contextmanager
def job_log_context(job_id: str, processor_id: str) -> Iterator[None]:
    """
    Bind the job and processor ids while a job is processed.

    Tasks created inside the block (such as the job's action) copy the
    context, so their log lines keep the ids even after the block exits.
    """
    bind_context(job_id=job_id, processor_id=processor_id)
    try:
        yield
    finally:
        unbind_context(*JOB_CONTEXT_KEYS)
