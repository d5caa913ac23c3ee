"""
Pytest configuration and shared fixtures.
"""

from collections.abc import AsyncGenerator

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from prometheus_client import CollectorRegistry

from lockqueue.api.main import create_app
from lockqueue.config import Settings
from lockqueue.jobs import StatusTracker, WorkQueue
from lockqueue.lock import InMemoryLockBackend, LockCoordinator
from lockqueue.observability.metrics import MetricsCollector
from lockqueue.runtime import Runtime, build_runtime
from lockqueue.worker import JobProcessor


@pytest.fixture
def test_settings() -> Settings:
    """Create test settings with short timings."""
    return Settings(
        lock_servers=[],
        lock_expiry_seconds=1.0,
        lock_wait_timeout_seconds=0.5,
        lock_retry_interval_seconds=0.02,
        processor_id="test-processor",
        processor_poll_interval_seconds=0.05,
        shutdown_grace_period_seconds=1.0,
        log_level="DEBUG",
        log_format="console",
    )


@pytest.fixture
def registry() -> CollectorRegistry:
    """Isolated Prometheus registry per test."""
    return CollectorRegistry()


@pytest.fixture
def metrics(registry: CollectorRegistry) -> MetricsCollector:
    """Metrics collector bound to the per-test registry."""
    return MetricsCollector(registry=registry)


@pytest.fixture
def backend() -> InMemoryLockBackend:
    """In-memory lock backend."""
    return InMemoryLockBackend()


@pytest.fixture
def coordinator(backend: InMemoryLockBackend, metrics: MetricsCollector) -> LockCoordinator:
    """Lock coordinator with short timings."""
    return LockCoordinator(
        backend,
        expiry=1.0,
        wait_timeout=0.5,
        retry_interval=0.02,
        metrics=metrics,
    )


@pytest.fixture
def queue() -> WorkQueue:
    return WorkQueue()


@pytest.fixture
def tracker() -> StatusTracker:
    return StatusTracker()


@pytest.fixture
def processor(
    queue: WorkQueue,
    tracker: StatusTracker,
    coordinator: LockCoordinator,
    metrics: MetricsCollector,
) -> JobProcessor:
    """Job processor with a short poll interval."""
    return JobProcessor(
        queue,
        tracker,
        coordinator,
        processor_id="test-processor",
        poll_interval=0.05,
        metrics=metrics,
    )


@pytest.fixture
def runtime(test_settings: Settings, metrics: MetricsCollector) -> Runtime:
    """Runtime built from test settings with an in-memory lock."""
    return build_runtime(test_settings, backend=InMemoryLockBackend(), metrics=metrics)


@pytest.fixture
def app(runtime: Runtime) -> FastAPI:
    """FastAPI app serving the test runtime. The lifespan is not run."""
    return create_app(runtime)


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Create an async HTTP client for testing."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
