"""Tests for Prometheus metrics helpers."""

from prometheus_client import REGISTRY

from contentsync.observability.metrics import (
    get_metrics,
    record_cache_hit,
    record_event_dropped,
    record_quota_usage,
    record_sync_pass,
)


def sample(name: str, labels: dict[str, str] | None = None) -> float:
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


class TestMetrics:
    """Test metric recording."""

    def test_registry_initializes_once(self) -> None:
        assert get_metrics() is get_metrics()

    def test_sync_pass_counter(self) -> None:
        before = sample("contentsync_sync_passes_total", {"outcome": "completed"})
        record_sync_pass("completed", 0.2)
        after = sample("contentsync_sync_passes_total", {"outcome": "completed"})
        assert after == before + 1

    def test_cache_hit_counter(self) -> None:
        before = sample("contentsync_cache_hits_total", {"operation": "list"})
        record_cache_hit("list")
        assert sample("contentsync_cache_hits_total", {"operation": "list"}) == before + 1

    def test_quota_gauge(self) -> None:
        record_quota_usage(123)
        assert sample("contentsync_provider_quota_used") == 123

    def test_dropped_events(self) -> None:
        before = sample("contentsync_events_dropped_total", {"reason": "queue_full"})
        record_event_dropped("queue_full")
        assert sample("contentsync_events_dropped_total", {"reason": "queue_full"}) == before + 1

    def test_exposition(self) -> None:
        get_metrics()
        assert b"contentsync_sync_passes_total" in get_metrics().generate_latest()
