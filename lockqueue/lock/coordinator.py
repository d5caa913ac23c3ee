"""
Run actions while holding an exclusive lease on a named resource.
"""

import asyncio
import logging
from functools import partial
from typing import Any

from lockqueue.config import Settings
from lockqueue.constants import (
    DEFAULT_LOCK_EXPIRY_SECONDS,
    DEFAULT_LOCK_RETRY_INTERVAL_SECONDS,
    DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS,
    SPAN_ACQUIRE_LOCK,
    SPAN_EXECUTE_ACTION,
    SPAN_RELEASE_LOCK,
)
from lockqueue.lock.backends import LockBackend
from lockqueue.observability.metrics import MetricsCollector, get_metrics
from lockqueue.observability.tracing import get_tracer
from lockqueue.types.job import JobAction
from lockqueue.types.lock import LockLease, LockResult

logger = logging.getLogger(__name__)


class LockValidationError(ValueError):
    """Raised for an empty resource name or a missing action."""


class LockCoordinator:
    """
    Brackets an action with acquire/release of a distributed lease.

    The action is raced against a deadline equal to the lease expiry.
    When the deadline wins the call reports a timeout, but the action is
    not cancelled: it keeps running after the lease is released, so a
    second holder of the same resource may overlap with its tail. Job
    actions that must not overlap should finish well within the expiry.
    """

    def __init__(
        self,
        backend: LockBackend,
        expiry: float = DEFAULT_LOCK_EXPIRY_SECONDS,
        wait_timeout: float = DEFAULT_LOCK_WAIT_TIMEOUT_SECONDS,
        retry_interval: float = DEFAULT_LOCK_RETRY_INTERVAL_SECONDS,
        metrics: MetricsCollector | None = None,
    ):
        """
        Initialize the coordinator.

        Args:
            backend: The lock backend used for every call.
            expiry: Default lease expiry and action deadline, in seconds.
            wait_timeout: Default time to keep retrying acquisition, in seconds.
            retry_interval: Default delay between acquisition attempts, in seconds.
            metrics: Metrics collector. Defaults to the global collector.
        """
        self._backend = backend
        self.expiry = expiry
        self.wait_timeout = wait_timeout
        self.retry_interval = retry_interval
        self._metrics = metrics or get_metrics()
        self._abandoned: set[asyncio.Task] = set()

    @classmethod
    def from_settings(
        cls,
        backend: LockBackend,
        settings: Settings,
        metrics: MetricsCollector | None = None,
    ) -> "LockCoordinator":
        return cls(
            backend,
            expiry=settings.lock_expiry_seconds,
            wait_timeout=settings.lock_wait_timeout_seconds,
            retry_interval=settings.lock_retry_interval_seconds,
            metrics=metrics,
        )

    @property
    def abandoned_count(self) -> int:
        """Number of timed-out actions that are still running."""
        return len(self._abandoned)

    async def drain_abandoned(self, timeout: float) -> int:
        """
        Wait up to ``timeout`` seconds for timed-out actions that are still running.

        Returns:
            Number of actions still running afterwards.
        """
        if not self._abandoned:
            return 0

        logger.info("Waiting for abandoned actions", extra={"count": len(self._abandoned)})
        await asyncio.wait(set(self._abandoned), timeout=timeout)
        return len(self._abandoned)

    def cancel_abandoned(self) -> int:
        """Cancel every abandoned action. Returns how many were cancelled."""
        tasks = list(self._abandoned)
        for task in tasks:
            task.cancel()
        return len(tasks)

    async def execute_with_lock(
        self,
        resource: str,
        action: JobAction,
        expiry: float | None = None,
        wait_timeout: float | None = None,
        retry_interval: float | None = None,
    ) -> bool:
        """
        Run an action under an exclusive lease.

        Returns:
            True only if the lease was acquired and the action finished
            without error before the expiry.

        Raises:
            LockValidationError: If the resource is empty or the action is missing.
        """
        result = await self.execute(resource, action, expiry, wait_timeout, retry_interval)
        return result.success

    async def execute(
        self,
        resource: str,
        action: JobAction,
        expiry: float | None = None,
        wait_timeout: float | None = None,
        retry_interval: float | None = None,
    ) -> LockResult:
        """
        Run an action under an exclusive lease and describe the outcome.

        Args:
            resource: Name of the resource to lock.
            action: Zero-argument coroutine function to run while holding the lease.
            expiry: Lease expiry and action deadline. Defaults to the coordinator's.
            wait_timeout: How long to keep retrying acquisition.
            retry_interval: Delay between acquisition attempts.

        Returns:
            LockResult with the outcome. Action errors are reported here and
            never raised.

        Raises:
            LockValidationError: If the resource is empty or the action is missing.
        """
        if not resource:
            raise LockValidationError("Resource cannot be empty")
        if action is None or not callable(action):
            raise LockValidationError("Action must be a callable")

        expiry = self.expiry if expiry is None else expiry
        wait_timeout = self.wait_timeout if wait_timeout is None else wait_timeout
        retry_interval = self.retry_interval if retry_interval is None else retry_interval

        lease = await self._acquire(resource, expiry, wait_timeout, retry_interval)
        if lease is None:
            logger.warning("Could not acquire lock", extra={"resource": resource})
            result = LockResult.not_acquired(resource)
        else:
            try:
                result = await self._run(lease, action)
            finally:
                await self._release(lease)

        self._metrics.record_lock_outcome(result.outcome.value)
        return result

    async def _acquire(
        self,
        resource: str,
        expiry: float,
        wait_timeout: float,
        retry_interval: float,
    ) -> LockLease | None:
        with get_tracer().start_as_current_span(SPAN_ACQUIRE_LOCK) as span:
            span.set_attribute("resource", resource)
            span.set_attribute("lock.backend", self._backend.name)
            try:
                lease = await self._backend.acquire(resource, expiry, wait_timeout, retry_interval)
            except Exception:
                logger.exception("Lock backend failed to acquire", extra={"resource": resource})
                lease = None
            span.set_attribute("acquired", lease is not None)
            return lease

    async def _run(self, lease: LockLease, action: JobAction) -> LockResult:
        try:
            task = asyncio.ensure_future(action())
        except Exception as e:
            logger.warning(
                "Lock action failed",
                extra={"resource": lease.resource, "error": str(e)},
            )
            return LockResult.failed(lease, e)

        with get_tracer().start_as_current_span(SPAN_EXECUTE_ACTION) as span:
            span.set_attribute("resource", lease.resource)
            try:
                done, _ = await asyncio.wait({task}, timeout=lease.expiry)
            except asyncio.CancelledError:
                self._abandon(task, lease)
                raise

            if task not in done:
                span.set_attribute("timed_out", True)
                logger.warning(
                    "Action execution timed out",
                    extra={"resource": lease.resource, "expiry": lease.expiry},
                )
                self._abandon(task, lease)
                return LockResult.timed_out(lease)

        if task.cancelled():
            return LockResult.failed(lease, asyncio.CancelledError())

        error = task.exception()
        if error is not None:
            logger.warning(
                "Lock action failed",
                extra={"resource": lease.resource, "error": str(error)},
            )
            return LockResult.failed(lease, error)

        return LockResult.succeeded(lease)

    async def _release(self, lease: LockLease) -> None:
        with get_tracer().start_as_current_span(SPAN_RELEASE_LOCK) as span:
            span.set_attribute("resource", lease.resource)
            try:
                await self._backend.release(lease)
            except Exception:
                # Lease still lapses on its own at expiry
                logger.exception("Failed to release lock", extra={"resource": lease.resource})

    def _abandon(self, task: asyncio.Task, lease: LockLease) -> None:
        self._abandoned.add(task)
        task.add_done_callback(partial(self._on_abandoned_done, lease.resource))

    def _on_abandoned_done(self, resource: str, task: "asyncio.Task[Any]") -> None:
        self._abandoned.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.error(
                "Abandoned action failed after its lock was released",
                extra={"resource": resource},
                exc_info=error,
            )
        else:
            logger.warning(
                "Abandoned action finished after its lock was released",
                extra={"resource": resource},
            )
