"""
Worker module.
Contains the job processor and the job handler registry.
"""

from lockqueue.worker.handlers import (
    build_job,
    get_handler,
    list_handlers,
    register_handler,
)
from lockqueue.worker.main import JobProcessor

__all__ = [
    "JobProcessor",
    "build_job",
    "get_handler",
    "list_handlers",
    "register_handler",
]
