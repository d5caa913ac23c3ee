"""
Job status tracking.
"""

import logging
import threading
from datetime import datetime, timezone

from lockqueue.constants import JobState
from lockqueue.types.job import JobStatusRecord

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class StatusTracker:
    """
    Concurrent store mapping job ids to their lifecycle status.

    Transitions are monotonic: ``start`` puts a job in RUNNING, and exactly
    one of ``complete``/``fail`` may follow. Terminal states are never
    overwritten except by a fresh ``start`` for the same id. Entries are
    never deleted.
    """

    def __init__(self) -> None:
        self._statuses: dict[str, JobStatusRecord] = {}
        self._lock = threading.Lock()

    def start(self, job_id: str) -> None:
        """Create or overwrite the entry for a job as RUNNING."""
        with self._lock:
            self._statuses[job_id] = JobStatusRecord(
                id=job_id,
                state=JobState.RUNNING,
                started_at=_utcnow(),
            )

    def complete(self, job_id: str) -> None:
        """Mark a running job as COMPLETED. Unknown ids are ignored."""
        self._finish(job_id, JobState.COMPLETED, error=None)

    def fail(self, job_id: str, error: str) -> None:
        """Mark a running job as FAILED with an error message. Unknown ids are ignored."""
        self._finish(job_id, JobState.FAILED, error=error)

    def get_all(self) -> list[JobStatusRecord]:
        """
        Get a point-in-time snapshot of every tracked job.

        Returns:
            Copies of the status entries; later updates do not affect them.
        """
        with self._lock:
            return [status.model_copy() for status in self._statuses.values()]

    def _finish(self, job_id: str, state: JobState, error: str | None) -> None:
        with self._lock:
            status = self._statuses.get(job_id)
            if status is None:
                return
            if status.state != JobState.RUNNING:
                logger.warning(
                    "Ignoring transition from terminal state",
                    extra={
                        "job_id": job_id,
                        "current_state": status.state.value,
                        "requested_state": state.value,
                    },
                )
                return

            completed_at = _utcnow()
            if status.started_at is not None and completed_at < status.started_at:
                completed_at = status.started_at

            status.state = state
            status.completed_at = completed_at
            status.error = error
