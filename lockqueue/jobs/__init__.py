"""
Jobs module.
Contains the work queue and the status tracker.
"""

from lockqueue.jobs.queue import WorkQueue
from lockqueue.jobs.status import StatusTracker

__all__ = ["WorkQueue", "StatusTracker"]
