"""
Runtime container wiring one queue, tracker, coordinator and processor.

The queue and tracker are owned by the runtime, so their lifetime is the
processor's run rather than the process.
"""

import asyncio
import logging
from dataclasses import dataclass, field

from lockqueue.config import Settings, get_settings
from lockqueue.jobs.queue import WorkQueue
from lockqueue.jobs.status import StatusTracker
from lockqueue.lock.backends import LockBackend, create_lock_backend
from lockqueue.lock.coordinator import LockCoordinator
from lockqueue.observability.metrics import MetricsCollector, get_metrics
from lockqueue.worker.main import JobProcessor

logger = logging.getLogger(__name__)


@dataclass
class Runtime:
    """Components that make up one running processor."""

    queue: WorkQueue
    tracker: StatusTracker
    backend: LockBackend
    coordinator: LockCoordinator
    processor: JobProcessor
    metrics: MetricsCollector
    shutdown_grace_period: float = 5.0
    _task: asyncio.Task | None = field(default=None, repr=False)

    async def start(self) -> None:
        """Start the processor loop in a background task."""
        if self._task is not None:
            return
        self._task = asyncio.create_task(self.processor.start())

    async def shutdown(self) -> None:
        """
        Stop the processor, wait for the in-flight job, and close the backend.

        Actions abandoned after a timeout get ``shutdown_grace_period`` seconds
        to finish; any still running after that are cancelled so the backend
        is not closed underneath them.
        """
        await self.processor.stop()
        if self._task is not None:
            try:
                await self._task
            except Exception:
                logger.exception("Processor task exited with an error")
            self._task = None

        remaining = await self.coordinator.drain_abandoned(self.shutdown_grace_period)
        if remaining:
            logger.warning(
                "Cancelling abandoned actions at shutdown",
                extra={"count": remaining},
            )
            self.coordinator.cancel_abandoned()

        await self.backend.close()


def build_runtime(
    settings: Settings | None = None,
    backend: LockBackend | None = None,
    metrics: MetricsCollector | None = None,
) -> Runtime:
    """
    Build a runtime from settings.

    Args:
        settings: Application settings. Defaults to the cached settings.
        backend: Lock backend override. Defaults to one built from settings.
        metrics: Metrics collector. Defaults to the global collector.

    Returns:
        A runtime whose processor has not been started.
    """
    settings = settings or get_settings()
    metrics = metrics or get_metrics()
    backend = backend or create_lock_backend(settings)

    queue = WorkQueue()
    tracker = StatusTracker()
    coordinator = LockCoordinator.from_settings(backend, settings, metrics=metrics)
    processor = JobProcessor(
        queue,
        tracker,
        coordinator,
        processor_id=settings.processor_id,
        poll_interval=settings.processor_poll_interval_seconds,
        metrics=metrics,
    )

    return Runtime(
        queue=queue,
        tracker=tracker,
        backend=backend,
        coordinator=coordinator,
        processor=processor,
        metrics=metrics,
        shutdown_grace_period=settings.shutdown_grace_period_seconds,
    )
