"""Prometheus metrics for external generation calls."""

from prometheus_client import Counter, Histogram

generation_latency_ms = Histogram(
    "generation_latency_ms",
    "External generation call latency in milliseconds",
    ["operation", "outcome"],
    buckets=[50, 100, 250, 500, 1000, 2500, 5000, 10000, 30000, 60000],
)

generation_requests_total = Counter(
    "generation_requests_total",
    "Total generation requests by outcome",
    ["operation", "outcome"],
)

generation_fallbacks_total = Counter(
    "generation_fallbacks_total",
    "Total generation requests resolved by the local fallback",
    ["operation", "reason"],
)


class PrometheusGenerationMetrics:
    """Prometheus-based generation metrics implementation."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record generation latency."""
        generation_latency_ms.labels(operation=operation, outcome=outcome).observe(latency_ms)

    def inc_request(self, operation: str, outcome: str) -> None:
        """Increment request counter."""
        generation_requests_total.labels(operation=operation, outcome=outcome).inc()

    def inc_fallback(self, operation: str, reason: str) -> None:
        """Increment fallback counter."""
        generation_fallbacks_total.labels(operation=operation, reason=reason).inc()
