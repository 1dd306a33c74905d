"""Prometheus metrics for remote sync operations."""

from prometheus_client import Counter, Histogram

sync_latency_ms = Histogram(
    "sync_latency_ms",
    "Adventure sync operation latency in milliseconds",
    ["operation", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000, 8000],
)

sync_errors_total = Counter(
    "sync_errors_total",
    "Total adventure sync errors",
    ["operation", "reason"],
)

sync_partial_total = Counter(
    "sync_partial_total",
    "Writes that left a parent row with an incomplete child collection",
    ["collection"],
)


class PrometheusSyncMetrics:
    """Prometheus-based sync metrics implementation."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record sync operation latency."""
        sync_latency_ms.labels(operation=operation, outcome=outcome).observe(latency_ms)

    def inc_error(self, operation: str, reason: str) -> None:
        """Increment error counter."""
        sync_errors_total.labels(operation=operation, reason=reason).inc()

    def inc_partial(self, collection: str) -> None:
        """Increment partial-sync counter."""
        sync_partial_total.labels(collection=collection).inc()
