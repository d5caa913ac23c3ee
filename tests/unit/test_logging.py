"""
Unit tests for structured logging.
"""

import json
import logging

import structlog

from lockqueue import __version__
from lockqueue.observability.logging import build_formatter, job_log_context


def render(message: str, **extra) -> dict:
    record = logging.LogRecord(
        name="lockqueue.test",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg=message,
        args=None,
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return json.loads(build_formatter("json").format(record))


class TestJobLogContext:
    """Tests for binding job ids to log records."""

    def test_ids_rendered_inside_block(self):
        """Test records emitted inside the block carry the job and processor ids."""
        with job_log_context("job-1", "p1"):
            payload = render("Executing job")

        assert payload["event"] == "Executing job"
        assert payload["job_id"] == "job-1"
        assert payload["processor_id"] == "p1"
        assert payload["level"] == "info"
        assert payload["version"] == __version__
        assert "service" in payload

    def test_ids_removed_after_block(self):
        """Test the ids are unbound once the block exits."""
        with job_log_context("job-1", "p1"):
            pass

        payload = render("Idle")

        assert "job_id" not in payload
        assert "processor_id" not in payload
        assert "job_id" not in structlog.contextvars.get_contextvars()

    def test_ids_removed_when_block_raises(self):
        """Test the ids are unbound even if processing raises."""
        try:
            with job_log_context("job-1", "p1"):
                raise RuntimeError("boom")
        except RuntimeError:
            pass

        assert "job_id" not in structlog.contextvars.get_contextvars()

    def test_extra_fields_rendered(self):
        """Test ``extra`` fields from standard library calls are kept."""
        payload = render("Job failed", outcome="timeout")

        assert payload["outcome"] == "timeout"
