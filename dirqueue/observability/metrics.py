"""
Prometheus metrics collection.
"""

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    generate_latest,
    REGISTRY,
)

from dirqueue.constants import (
    METRIC_JOBS_ENQUEUED,
    METRIC_ENQUEUE_FAILURES,
    METRIC_LINK_COLLISIONS,
    METRIC_WARNINGS,
    METRIC_ENQUEUE_DURATION,
    METRIC_PAYLOAD_BYTES,
)

# Global metrics instance
_metrics: "MetricsCollector | None" = None


class MetricsCollector:
    """
    Prometheus metrics collector for queue producers.
    
    Collects metrics for:
    - Enqueued jobs and enqueue failures
    - Filename collisions during publish
    - Non-fatal warnings
    - Enqueue duration and payload size
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
            ["priority"],
            registry=self._registry,
        )

        self.enqueue_failures = Counter(
            METRIC_ENQUEUE_FAILURES,
            "Total number of failed enqueue calls",
            ["reason"],
            registry=self._registry,
        )

        self.link_collisions = Counter(
            METRIC_LINK_COLLISIONS,
            "Total number of failed hard-link attempts",
            ["stage"],
            registry=self._registry,
        )

        self.warnings = Counter(
            METRIC_WARNINGS,
            "Total number of non-fatal enqueue warnings",
            ["kind"],
            registry=self._registry,
        )

        self.enqueue_duration = Histogram(
            METRIC_ENQUEUE_DURATION,
            "Enqueue duration in seconds",
            buckets=(0.0005, 0.001, 0.005, 0.01, 0.05, 0.1, 0.5, 1.0, 5.0),
            registry=self._registry,
        )

        self.payload_bytes = Histogram(
            METRIC_PAYLOAD_BYTES,
            "Size of enqueued payloads in bytes",
            buckets=(0, 64, 1024, 16384, 262144, 1048576, 16777216, 268435456),
            registry=self._registry,
        )

    def record_job_enqueued(self, priority: int, size: int, duration_seconds: float) -> None:
        """Record a successful enqueue."""
        self.jobs_enqueued.labels(priority=f"{priority:02d}").inc()
        self.payload_bytes.observe(size)
        self.enqueue_duration.observe(duration_seconds)

    def record_enqueue_failure(self, reason: str) -> None:
        """Record a failed enqueue."""
        self.enqueue_failures.labels(reason=reason).inc()

    def record_link_collision(self, stage: str) -> None:
        """Record a failed link attempt."""
        self.link_collisions.labels(stage=stage).inc()

    def record_warning(self, kind: str) -> None:
        """Record a non-fatal warning."""
        self.warnings.labels(kind=kind).inc()

    def get_metrics(self) -> bytes:
        """Get all metrics in Prometheus format."""
        return generate_latest(self._registry)


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
    Get the metrics collector instance.
    
    Returns:
        MetricsCollector: The metrics collector instance.
    """
    if _metrics is None:
        return setup_metrics()
    return _metrics
