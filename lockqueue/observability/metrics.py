"""
Prometheus metrics collection.
"""

from prometheus_client import (
    CONTENT_TYPE_LATEST,
    REGISTRY,
    CollectorRegistry,
    Counter,
    Gauge,
    Histogram,
    generate_latest,
)

from lockqueue.constants import (
    METRIC_JOB_DURATION,
    METRIC_JOBS_ENQUEUED,
    METRIC_JOBS_FINISHED,
    METRIC_LOCK_ATTEMPTS,
    METRIC_QUEUE_DEPTH,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the lock queue.

    Collects metrics for:
    - Queue depth
    - Job submissions and terminal states
    - Job execution duration
    - Lock acquisition outcomes
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.queue_depth = Gauge(
            METRIC_QUEUE_DEPTH,
            "Number of jobs waiting in the queue",
            registry=self._registry,
        )

        # result: accepted or duplicate
        self.jobs_enqueued = Counter(
            METRIC_JOBS_ENQUEUED,
            "Total number of enqueue requests",
            ["result"],
            registry=self._registry,
        )

        self.jobs_finished = Counter(
            METRIC_JOBS_FINISHED,
            "Total number of jobs that reached a terminal state",
            ["state"],
            registry=self._registry,
        )

        self.job_duration = Histogram(
            METRIC_JOB_DURATION,
            "Job processing duration in seconds, including lock wait",
            ["state"],
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0),
            registry=self._registry,
        )

        self.lock_attempts = Counter(
            METRIC_LOCK_ATTEMPTS,
            "Total number of execute-under-lock calls by outcome",
            ["outcome"],
            registry=self._registry,
        )

    def record_enqueue(self, accepted: bool) -> None:
        """Record an enqueue request."""
        self.jobs_enqueued.labels(result="accepted" if accepted else "duplicate").inc()

    def record_job_finished(self, state: str, duration_seconds: float) -> None:
        """Record a job reaching a terminal state."""
        self.jobs_finished.labels(state=state).inc()
        self.job_duration.labels(state=state).observe(duration_seconds)

    def record_lock_outcome(self, outcome: str) -> None:
        """Record the outcome of an execute-under-lock call."""
        self.lock_attempts.labels(outcome=outcome).inc()

    def update_queue_depth(self, depth: int) -> None:
        """Update the current queue depth."""
        self.queue_depth.set(depth)

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)

    def get_content_type(self) -> str:
        """Get the content type for metrics response."""
        return CONTENT_TYPE_LATEST


def setup_metrics() -> MetricsCollector:
    """
    Set up and return the metrics collector.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    global _metrics
    if _metrics is None:
        _metrics = MetricsCollector()
    return _metrics


def get_metrics() -> MetricsCollector:
    """
    Get the metrics collector instance, creating it on first use.

    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
