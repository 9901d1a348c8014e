"""Tests for the Prometheus metrics collector."""

from prometheus_client import CollectorRegistry

from tokenprism.core.monitoring import MetricsCollector, configure_metrics_collector, get_metrics_collector


def test_counters_and_gauges_update() -> None:
    registry = CollectorRegistry()
    collector = MetricsCollector(registry=registry)

    collector.record_merge()
    collector.record_merge(success=False)
    collector.record_notification("volume_spike")
    collector.record_dropped_notification()
    collector.increment_source_failure("jupiter")
    collector.observe_cycle(0.5, tracked=12)
    collector.set_subscribers(3)

    assert registry.get_sample_value("tokenprism_merges_total", {"outcome": "ok"}) == 1.0
    assert registry.get_sample_value("tokenprism_merges_total", {"outcome": "failed"}) == 1.0
    assert registry.get_sample_value("tokenprism_notifications_total", {"event": "volume_spike"}) == 1.0
    assert registry.get_sample_value("tokenprism_dropped_notifications_total") == 1.0
    assert registry.get_sample_value("tokenprism_source_failures_total", {"source": "jupiter"}) == 1.0
    assert registry.get_sample_value("tokenprism_cycle_duration_seconds_sum") == 0.5
    assert registry.get_sample_value("tokenprism_tracked_tokens") == 12.0
    assert registry.get_sample_value("tokenprism_subscribers") == 3.0


def test_render_produces_exposition_text() -> None:
    collector = MetricsCollector(registry=CollectorRegistry())
    collector.record_merge()

    rendered = collector.render().decode("utf-8")

    assert "tokenprism_merges_total" in rendered


def test_global_collector_can_be_replaced() -> None:
    replacement = MetricsCollector(registry=CollectorRegistry())
    configure_metrics_collector(replacement)

    assert get_metrics_collector() is replacement
