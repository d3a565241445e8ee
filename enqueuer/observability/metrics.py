"""
Prometheus metrics collection.
"""

from prometheus_client import (
    REGISTRY,
    CollectorRegistry,
    Counter,
    Histogram,
)

from enqueuer.constants import (
    METRIC_ENQUEUE_FAILURES,
    METRIC_ENQUEUE_LATENCY,
    METRIC_JOBS_ENQUEUED,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for the enqueuer.

    Collects metrics for:
    - Jobs enqueued, by queue and destination
    - Enqueue failures, by reason
    - Dispatch latency
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        """
        Initialize the metrics collector.

        Args:
            registry: Optional custom registry. Uses default if not provided.
        """
        self._registry = registry or REGISTRY

        self.jobs_enqueued = Counter(
            METRIC_JOBS_ENQUEUED,
            "Total number of jobs enqueued",
            ["queue", "destination"],
            registry=self._registry,
        )

        self.enqueue_failures = Counter(
            METRIC_ENQUEUE_FAILURES,
            "Total number of failed enqueue attempts",
            ["reason"],
            registry=self._registry,
        )

        self.enqueue_latency = Histogram(
            METRIC_ENQUEUE_LATENCY,
            "Time spent writing a job to Redis in seconds",
            ["destination"],
            buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0),
            registry=self._registry,
        )

    def record_job_enqueued(
        self,
        queue: str,
        destination: str,
        duration_seconds: float,
    ) -> None:
        """Record a successful dispatch."""
        self.jobs_enqueued.labels(queue=queue, destination=destination).inc()
        self.enqueue_latency.labels(destination=destination).observe(duration_seconds)

    def record_enqueue_failure(self, reason: str) -> None:
        """Record a failed enqueue attempt."""
        self.enqueue_failures.labels(reason=reason).inc()


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
