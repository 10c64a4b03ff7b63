"""
Prometheus metrics for store operations.

Quick Start:
    >>> from chainstore.monitoring.prometheus import StoreMetrics, start_metrics_server
    >>>
    >>> metrics = StoreMetrics()
    >>> start_metrics_server(port=8000, registry=metrics.registry)
    >>>
    >>> service = create_redis_service(config, metrics=metrics)

Exposed metrics (default prefix "chainstore"):
    - chainstore_operations_total{operation,status}
    - chainstore_operation_duration_seconds{operation}
    - chainstore_retries_total{error_type}
    - chainstore_errors_total{error_type}
    - chainstore_healthy
"""

from prometheus_client import REGISTRY, CollectorRegistry, Counter, Gauge, Histogram, start_http_server

from chainstore.store.errors import RedisErrorType
from chainstore.store.health import RedisHealthStatus


class StoreMetrics:
    """Prometheus collectors for the Redis facade, retry loop and health probe."""

    def __init__(self, prefix: str = "chainstore", registry: CollectorRegistry | None = None):
        """
        Args:
            prefix: Metric name prefix
            registry: Registry to register collectors in; a private one is created
                if omitted, so several instances can coexist (e.g. in tests)
        """
        self.registry = registry or CollectorRegistry()
        self._prefix = prefix

        self._operations_total = Counter(
            f"{prefix}_operations_total",
            "Store operations by outcome",
            ["operation", "status"],
            registry=self.registry,
        )
        self._operation_duration = Histogram(
            f"{prefix}_operation_duration_seconds",
            "Store operation duration including retries",
            ["operation"],
            buckets=[0.0005, 0.001, 0.0025, 0.005, 0.01, 0.025, 0.05, 0.1, 0.5, 1.0, 5.0],
            registry=self.registry,
        )
        self._retries_total = Counter(
            f"{prefix}_retries_total",
            "Retries scheduled by the retry policy",
            ["error_type"],
            registry=self.registry,
        )
        self._errors_total = Counter(
            f"{prefix}_errors_total",
            "Operations that failed after retries",
            ["error_type"],
            registry=self.registry,
        )
        self._healthy = Gauge(
            f"{prefix}_healthy",
            "1 if the last health probe succeeded, 0 otherwise",
            registry=self.registry,
        )

    def record_operation(self, operation: str, duration_seconds: float, success: bool) -> None:
        status = "success" if success else "failure"
        self._operations_total.labels(operation=operation, status=status).inc()
        self._operation_duration.labels(operation=operation).observe(duration_seconds)

    def record_retry(self, error_type: RedisErrorType) -> None:
        self._retries_total.labels(error_type=error_type.value).inc()

    def record_error(self, error_type: RedisErrorType) -> None:
        self._errors_total.labels(error_type=error_type.value).inc()

    def record_health(self, report: RedisHealthStatus) -> None:
        self._healthy.set(1 if report.is_healthy else 0)

    def sample(self, name: str, labels: dict[str, str] | None = None) -> float | None:
        """Read the current value of one sample (``name`` without the prefix)."""
        return self.registry.get_sample_value(f"{self._prefix}_{name}", labels or {})


def start_metrics_server(port: int = 8000, registry: CollectorRegistry | None = None) -> None:
    """Expose metrics over HTTP on ``port``."""
    start_http_server(port, registry=registry or REGISTRY)
