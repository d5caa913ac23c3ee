"""
Job processor.

The processor pulls jobs from the work queue one at a time, runs each
under a lock keyed by the job id, and records the outcome in the status
tracker. Several processors (in one or many processes) may share a lock
backend; the per-job lock keeps them from running the same job at once.
"""

import asyncio
import logging
import os
import time

from lockqueue.config import get_settings
from lockqueue.constants import (
    JOB_LOCK_PREFIX,
    REASON_LOCK_NOT_ACQUIRED,
    SPAN_PROCESS_JOB,
    JobState,
    LockOutcome,
    ProcessorState,
)
from lockqueue.jobs.queue import WorkQueue
from lockqueue.jobs.status import StatusTracker
from lockqueue.lock.coordinator import LockCoordinator
from lockqueue.observability.logging import job_log_context
from lockqueue.observability.metrics import MetricsCollector, get_metrics
from lockqueue.observability.tracing import get_tracer
from lockqueue.types.job import Job
from lockqueue.types.lock import LockResult

logger = logging.getLogger(__name__)


class JobProcessor:
    """
    Single polling loop that executes queued jobs under a distributed lock.

    Lifecycle is IDLE -> RUNNING -> STOPPED. ``stop()`` sets a cancellation
    event that is observed at the top of each iteration and during the
    poll sleep; a job already inside the lock runs to completion first.
    Only one job is in flight per processor.
    """

    def __init__(
        self,
        queue: WorkQueue,
        tracker: StatusTracker,
        coordinator: LockCoordinator,
        processor_id: str | None = None,
        poll_interval: float | None = None,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the processor.

        Args:
            queue: Source of jobs.
            tracker: Where job status is recorded.
            coordinator: Lock coordinator used to bracket each job.
            processor_id: Identifier used in logs. Defaults to hostname + PID.
            poll_interval: Seconds to sleep between iterations.
            metrics: Metrics collector. Defaults to the global collector.
        """
        settings = get_settings()

        self.processor_id = (
            processor_id
            or settings.processor_id
            or f"{os.uname().nodename}-{os.getpid()}"
        )
        self.poll_interval = (
            settings.processor_poll_interval_seconds if poll_interval is None else poll_interval
        )

        self._queue = queue
        self._tracker = tracker
        self._coordinator = coordinator
        self._metrics = metrics or get_metrics()
        self._stop_event = asyncio.Event()
        self._state = ProcessorState.IDLE

    @property
    def state(self) -> ProcessorState:
        return self._state

    async def start(self) -> None:
        """
        Run the polling loop until ``stop()`` is called.

        Raises:
            RuntimeError: If the processor is already running or has stopped.
        """
        if self._state != ProcessorState.IDLE:
            raise RuntimeError(f"Processor cannot start from state {self._state.value}")

        self._state = ProcessorState.RUNNING
        logger.info("Job processor started", extra={"processor_id": self.processor_id})

        try:
            while not self._stop_event.is_set():
                try:
                    await self.run_once()
                except Exception as e:
                    logger.exception(
                        f"Error processing job: {e}",
                        extra={"processor_id": self.processor_id},
                    )

                if await self._wait_for_stop(self.poll_interval):
                    break
        finally:
            self._state = ProcessorState.STOPPED
            logger.info("Job processor stopped", extra={"processor_id": self.processor_id})

    async def stop(self) -> None:
        """Signal the loop to exit after the current iteration."""
        logger.info("Job processor stopping", extra={"processor_id": self.processor_id})
        self._stop_event.set()
        if self._state == ProcessorState.IDLE:
            self._state = ProcessorState.STOPPED

    async def run_once(self) -> bool:
        """
        Run one loop body without sleeping.

        Returns:
            True if a job was dequeued and processed.
        """
        job = self._queue.try_dequeue()
        self._metrics.update_queue_depth(len(self._queue))
        if job is None:
            return False

        await self._process(job)
        return True

    async def _process(self, job: Job) -> None:
        start_time = time.monotonic()
        self._tracker.start(job.id)

        with job_log_context(job.id, self.processor_id):
            logger.info("Executing job")

            try:
                with get_tracer().start_as_current_span(SPAN_PROCESS_JOB) as span:
                    span.set_attribute("job_id", job.id)
                    span.set_attribute("processor_id", self.processor_id)

                    result = await self._coordinator.execute(f"{JOB_LOCK_PREFIX}{job.id}", job.action)
                    span.set_attribute("outcome", result.outcome.value)

                state = self._record(job, result)
            except Exception as e:
                # Every started job must end in a terminal state
                self._tracker.fail(job.id, str(e) or type(e).__name__)
                self._metrics.record_job_finished(JobState.FAILED.value, time.monotonic() - start_time)
                raise

            self._metrics.record_job_finished(state.value, time.monotonic() - start_time)

    def _record(self, job: Job, result: LockResult) -> JobState:
        if result.success:
            self._tracker.complete(job.id)
            logger.info("Job completed")
            return JobState.COMPLETED

        if result.outcome == LockOutcome.ACQUISITION_FAILURE:
            reason = REASON_LOCK_NOT_ACQUIRED
        else:
            reason = result.message or result.outcome.value

        self._tracker.fail(job.id, reason)
        logger.warning(
            "Job failed",
            extra={"outcome": result.outcome.value, "error": reason},
        )
        return JobState.FAILED

    async def _wait_for_stop(self, timeout: float) -> bool:
        """Sleep for ``timeout`` seconds; return True early if stop was requested."""
        try:
            await asyncio.wait_for(self._stop_event.wait(), timeout=timeout)
        except TimeoutError:
            return False
        return True
