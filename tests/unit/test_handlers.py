"""
Unit tests for job handlers.
"""

import pytest

from lockqueue.types.job import JobContext
from lockqueue.worker.handlers import (
    build_job,
    get_handler,
    handle_echo,
    handle_failing_job,
    handle_sleep,
    list_handlers,
    register_handler,
)


class TestJobHandlers:
    """Tests for job handlers."""

    @pytest.fixture
    def job_context(self) -> JobContext:
        """Create a test job context."""
        return JobContext(job_id="job-1", data={"message": "test"})

    def test_list_handlers(self):
        """Test listing registered handlers."""
        handlers = list_handlers()

        assert "echo" in handlers
        assert "sleep" in handlers
        assert "failing_job" in handlers

    def test_get_handler_exists(self):
        """Test getting an existing handler."""
        assert get_handler("echo") == handle_echo

    def test_get_handler_not_exists(self):
        """Test getting a non-existent handler."""
        assert get_handler("nonexistent") is None

    def test_register_handler(self):
        """Test the decorator adds a handler to the registry."""
        @register_handler("test_custom")
        async def handle_custom(context: JobContext) -> None:
            return None

        assert get_handler("test_custom") is handle_custom

    @pytest.mark.asyncio
    async def test_echo_handler(self, job_context: JobContext):
        """Test the echo handler."""
        result = await handle_echo(job_context)

        assert result == {"echo": {"message": "test"}}

    @pytest.mark.asyncio
    async def test_sleep_handler(self):
        """Test the sleep handler reports its duration."""
        result = await handle_sleep(JobContext(job_id="job-1", data={"duration_seconds": 0.01}))

        assert result == {"slept_for": 0.01}

    @pytest.mark.asyncio
    async def test_failing_handler(self):
        """Test the failing job handler."""
        with pytest.raises(RuntimeError, match="Intentional failure"):
            await handle_failing_job(JobContext(job_id="job-1"))

    @pytest.mark.asyncio
    async def test_build_job(self):
        """Test build_job binds the handler into a zero-argument action."""
        job = build_job("job-1", "echo", {"message": "hi"})

        assert job is not None
        assert job.id == "job-1"
        assert await job.action() == {"echo": {"message": "hi"}}

    def test_build_job_unknown_type(self):
        """Test build_job returns None for an unregistered type."""
        assert build_job("job-1", "nonexistent") is None

    @pytest.mark.asyncio
    async def test_build_job_copies_data(self):
        """Test later changes to the input dict do not reach the job."""
        data = {"message": "before"}
        job = build_job("job-1", "echo", data)
        data["message"] = "after"

        assert await job.action() == {"echo": {"message": "before"}}
