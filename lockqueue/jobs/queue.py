"""
In-process deduplicating work queue.
"""

import logging
import threading
from collections import deque

from lockqueue.types.job import Job

logger = logging.getLogger(__name__)


class WorkQueue:
    """
    FIFO holding area for pending jobs with id-based deduplication.

    A job id is present in the membership set exactly when a job with that
    id is in the queue. All operations are atomic with respect to each other,
    so producers on other threads and the processor loop can share an instance.
    """

    def __init__(self) -> None:
        self._jobs: deque[Job] = deque()
        self._job_ids: set[str] = set()
        self._lock = threading.Lock()

    def enqueue(self, job: Job) -> bool:
        """
        Append a job unless one with the same id is already queued.

        Args:
            job: The job to add.

        Returns:
            True if the job was added, False if it was a duplicate.
        """
        with self._lock:
            if job.id in self._job_ids:
                logger.debug("Duplicate job ignored", extra={"job_id": job.id})
                return False
            self._jobs.append(job)
            self._job_ids.add(job.id)
            return True

    def try_dequeue(self) -> Job | None:
        """Remove and return the oldest job, or None if the queue is empty."""
        with self._lock:
            if not self._jobs:
                return None
            job = self._jobs.popleft()
            self._job_ids.discard(job.id)
            return job

    def contains(self, job_id: str) -> bool:
        """Check whether a job id is currently queued."""
        with self._lock:
            return job_id in self._job_ids

    def __len__(self) -> int:
        with self._lock:
            return len(self._jobs)
