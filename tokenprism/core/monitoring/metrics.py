"""Prometheus metrics helpers for TokenPrism services."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Gauge, Histogram, generate_latest


class MetricsCollector:
    """Collects and exposes the aggregation and fan-out metrics."""

    def __init__(self, *, registry: CollectorRegistry | None = None) -> None:
        self.registry = registry or CollectorRegistry()
        self.merges_total = Counter(
            "tokenprism_merges_total",
            "Total count of observations merged into canonical records.",
            ("outcome",),
            registry=self.registry,
        )
        self.notifications_total = Counter(
            "tokenprism_notifications_total",
            "Notifications published to subscribers, grouped by event type.",
            ("event",),
            registry=self.registry,
        )
        self.dropped_notifications_total = Counter(
            "tokenprism_dropped_notifications_total",
            "Notifications dropped because a subscriber queue was full.",
            registry=self.registry,
        )
        self.source_failures_total = Counter(
            "tokenprism_source_failures_total",
            "Upstream source failures that removed a source from a poll cycle.",
            ("source",),
            registry=self.registry,
        )
        self.cycle_duration_seconds = Histogram(
            "tokenprism_cycle_duration_seconds",
            "Wall time of one poll cycle.",
            buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, float("inf")),
            registry=self.registry,
        )
        self.tracked_tokens = Gauge(
            "tokenprism_tracked_tokens",
            "Number of addresses in the volume index.",
            registry=self.registry,
        )
        self.subscribers = Gauge(
            "tokenprism_subscribers",
            "Number of live notification subscriptions.",
            registry=self.registry,
        )

    def record_merge(self, *, success: bool = True) -> None:
        self.merges_total.labels(outcome="ok" if success else "failed").inc()

    def record_notification(self, event: str) -> None:
        self.notifications_total.labels(event=event).inc()

    def record_dropped_notification(self) -> None:
        self.dropped_notifications_total.inc()

    def increment_source_failure(self, source: str) -> None:
        self.source_failures_total.labels(source=source).inc()

    def observe_cycle(self, duration_seconds: float, tracked: int | None = None) -> None:
        """Record a finished poll cycle and, when known, the index size."""

        self.cycle_duration_seconds.observe(duration_seconds)
        if tracked is not None:
            self.tracked_tokens.set(tracked)

    def set_subscribers(self, count: int) -> None:
        self.subscribers.set(count)

    def render(self) -> bytes:
        """Render metrics in Prometheus exposition format."""

        return generate_latest(self.registry)


_DEFAULT_COLLECTOR: MetricsCollector | None = None


def get_metrics_collector() -> MetricsCollector:
    """Return the global metrics collector instance."""

    global _DEFAULT_COLLECTOR
    if _DEFAULT_COLLECTOR is None:
        _DEFAULT_COLLECTOR = MetricsCollector()
    return _DEFAULT_COLLECTOR


def configure_metrics_collector(collector: MetricsCollector | None) -> None:
    """Override the global metrics collector for application wiring or tests."""

    global _DEFAULT_COLLECTOR
    _DEFAULT_COLLECTOR = collector
