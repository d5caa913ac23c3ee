"""
Unit tests for the job status tracker.
"""

from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

from lockqueue.constants import JobState
from lockqueue.jobs import StatusTracker


class TestStatusTracker:
    """Tests for StatusTracker."""

    def test_start_sets_running(self):
        """Test start creates a RUNNING entry."""
        tracker = StatusTracker()

        tracker.start("test-job")

        status = tracker.get_all()[0]
        assert status.id == "test-job"
        assert status.state == JobState.RUNNING
        assert status.started_at is not None
        assert status.completed_at is None
        assert status.error is None

    def test_complete_updates_status(self):
        """Test complete moves a running job to COMPLETED."""
        tracker = StatusTracker()
        tracker.start("test-job")

        tracker.complete("test-job")

        status = tracker.get_all()[0]
        assert status.state == JobState.COMPLETED
        assert status.completed_at is not None
        assert status.error is None

    def test_fail_updates_status_with_error(self):
        """Test fail records the error message."""
        tracker = StatusTracker()
        tracker.start("test-job")

        tracker.fail("test-job", "Test error")

        status = tracker.get_all()[0]
        assert status.state == JobState.FAILED
        assert status.error == "Test error"
        assert status.completed_at is not None

    def test_complete_unknown_job_is_noop(self):
        """Test complete on an unknown id neither raises nor creates an entry."""
        tracker = StatusTracker()

        tracker.complete("non-existent")

        assert tracker.get_all() == []

    def test_fail_unknown_job_is_noop(self):
        """Test fail on an unknown id neither raises nor creates an entry."""
        tracker = StatusTracker()

        tracker.fail("non-existent", "error")

        assert tracker.get_all() == []

    def test_get_all_returns_all_jobs(self):
        """Test get_all includes every tracked job."""
        tracker = StatusTracker()
        tracker.start("job1")
        tracker.start("job2")
        tracker.complete("job1")
        tracker.fail("job2", "error")

        statuses = {status.id: status for status in tracker.get_all()}

        assert len(statuses) == 2
        assert statuses["job1"].state == JobState.COMPLETED
        assert statuses["job2"].state == JobState.FAILED

    def test_tracks_time(self):
        """Test started_at <= completed_at and both fall inside the call window."""
        tracker = StatusTracker()
        before = datetime.now(timezone.utc)

        tracker.start("test-job")
        tracker.complete("test-job")
        after = datetime.now(timezone.utc)

        status = tracker.get_all()[0]
        assert before <= status.started_at <= status.completed_at <= after

    def test_get_all_is_a_snapshot(self):
        """Test later updates do not change a previously returned snapshot."""
        tracker = StatusTracker()
        tracker.start("test-job")

        snapshot = tracker.get_all()
        tracker.complete("test-job")
        tracker.start("other-job")

        assert len(snapshot) == 1
        assert snapshot[0].state == JobState.RUNNING
        assert snapshot[0].completed_at is None

    def test_terminal_state_is_not_overwritten(self):
        """Test a completed job cannot be failed afterwards, and vice versa."""
        tracker = StatusTracker()
        tracker.start("done")
        tracker.start("broken")

        tracker.complete("done")
        tracker.fail("done", "late error")
        tracker.fail("broken", "first error")
        tracker.complete("broken")
        tracker.fail("broken", "second error")

        statuses = {status.id: status for status in tracker.get_all()}
        assert statuses["done"].state == JobState.COMPLETED
        assert statuses["done"].error is None
        assert statuses["broken"].state == JobState.FAILED
        assert statuses["broken"].error == "first error"

    def test_start_overwrites_previous_run(self):
        """Test starting a finished job again resets its entry."""
        tracker = StatusTracker()
        tracker.start("job1")
        tracker.fail("job1", "error")

        tracker.start("job1")

        status = tracker.get_all()[0]
        assert status.state == JobState.RUNNING
        assert status.completed_at is None
        assert status.error is None

    def test_concurrent_updates(self):
        """Test concurrent start/complete calls from many threads."""
        tracker = StatusTracker()
        ids = [f"job-{i}" for i in range(500)]

        def run(job_id: str) -> None:
            tracker.start(job_id)
            tracker.complete(job_id)

        with ThreadPoolExecutor(max_workers=8) as pool:
            list(pool.map(run, ids))

        statuses = tracker.get_all()
        assert len(statuses) == len(ids)
        assert all(status.state == JobState.COMPLETED for status in statuses)
