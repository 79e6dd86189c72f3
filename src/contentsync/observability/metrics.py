"""Prometheus metrics for contentsync.

Provides metrics collection and exposure:
- Sync pass metrics (outcomes, per-item outcomes, duration)
- Provider quota usage
- Discovery cache metrics (hits, misses per operation class)
- Event bus metrics (published, dropped, invalidations handled)

Usage:
    from contentsync.observability.metrics import get_metrics

    metrics = get_metrics()
    metrics.sync_passes_total.labels(outcome="completed").inc()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from contentsync.config import settings

logger = logging.getLogger(__name__)


@dataclass
class MetricsRegistry:
    """Registry for Prometheus metrics."""

    # Sync metrics
    sync_passes_total: Any = None
    sync_items_total: Any = None
    sync_duration_seconds: Any = None

    # Provider metrics
    provider_quota_used: Any = None
    provider_quota_warnings_total: Any = None

    # Cache metrics
    cache_hits_total: Any = None
    cache_misses_total: Any = None
    cache_errors_total: Any = None

    # Event metrics
    events_published_total: Any = None
    events_dropped_total: Any = None
    invalidations_total: Any = None

    _initialized: bool = field(default=False, repr=False)
    _registry: Any = field(default=None, repr=False)

    def initialize(self) -> None:
        """Initialize Prometheus metrics."""
        if self._initialized:
            return

        if not settings.enable_metrics:
            logger.info("Metrics are disabled")
            self._initialized = True
            return

        try:
            from prometheus_client import (
                REGISTRY,
                Counter,
                Gauge,
                Histogram,
            )

            self._registry = REGISTRY

            self.sync_passes_total = Counter(
                "contentsync_sync_passes_total",
                "Sync passes by outcome",
                ["outcome"],
            )

            self.sync_items_total = Counter(
                "contentsync_sync_items_total",
                "Items reconciled by outcome",
                ["outcome"],
            )

            self.sync_duration_seconds = Histogram(
                "contentsync_sync_duration_seconds",
                "Sync pass duration in seconds",
                buckets=(0.1, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0, 60.0, 120.0, 300.0),
            )

            self.provider_quota_used = Gauge(
                "contentsync_provider_quota_used",
                "Provider quota units used today",
            )

            self.provider_quota_warnings_total = Counter(
                "contentsync_provider_quota_warnings_total",
                "Times provider quota usage crossed the warning threshold",
            )

            self.cache_hits_total = Counter(
                "contentsync_cache_hits_total",
                "Discovery cache hits",
                ["operation"],
            )

            self.cache_misses_total = Counter(
                "contentsync_cache_misses_total",
                "Discovery cache misses",
                ["operation"],
            )

            self.cache_errors_total = Counter(
                "contentsync_cache_errors_total",
                "Swallowed cache backend errors",
                ["operation"],
            )

            self.events_published_total = Counter(
                "contentsync_events_published_total",
                "Events handed to the bus transport",
                ["kind"],
            )

            self.events_dropped_total = Counter(
                "contentsync_events_dropped_total",
                "Events dropped before reaching the transport",
                ["reason"],
            )

            self.invalidations_total = Counter(
                "contentsync_invalidations_total",
                "Invalidation events handled by the subscriber",
                ["kind"],
            )

            self._initialized = True
            logger.info("Prometheus metrics initialized")

        except ImportError:
            logger.warning("prometheus_client not installed, metrics disabled")
            self._initialized = True

    def generate_latest(self) -> bytes:
        """Generate Prometheus metrics in exposition format."""
        if not settings.enable_metrics or self._registry is None:
            return b"# Metrics disabled\n"

        from prometheus_client import generate_latest

        return generate_latest(self._registry)


metrics_registry = MetricsRegistry()


def get_metrics() -> MetricsRegistry:
    """Get the global metrics registry.

    Initializes metrics on first access.
    """
    if not metrics_registry._initialized:
        metrics_registry.initialize()
    return metrics_registry


def record_sync_pass(outcome: str, duration: float | None = None) -> None:
    """Record the outcome of a sync pass (completed, partial, failed, rejected)."""
    metrics = get_metrics()
    if metrics.sync_passes_total:
        metrics.sync_passes_total.labels(outcome=outcome).inc()
    if duration is not None and metrics.sync_duration_seconds:
        metrics.sync_duration_seconds.observe(duration)


def record_sync_item(outcome: str) -> None:
    """Record one reconciled item (created, updated, skipped, failed)."""
    metrics = get_metrics()
    if metrics.sync_items_total:
        metrics.sync_items_total.labels(outcome=outcome).inc()


def record_quota_usage(used: int, warning: bool = False) -> None:
    """Record current provider quota usage."""
    metrics = get_metrics()
    if metrics.provider_quota_used:
        metrics.provider_quota_used.set(used)
    if warning and metrics.provider_quota_warnings_total:
        metrics.provider_quota_warnings_total.inc()


def record_cache_hit(operation: str) -> None:
    """Record cache hit."""
    metrics = get_metrics()
    if metrics.cache_hits_total:
        metrics.cache_hits_total.labels(operation=operation).inc()


def record_cache_miss(operation: str) -> None:
    """Record cache miss."""
    metrics = get_metrics()
    if metrics.cache_misses_total:
        metrics.cache_misses_total.labels(operation=operation).inc()


def record_cache_error(operation: str) -> None:
    """Record a swallowed cache backend error."""
    metrics = get_metrics()
    if metrics.cache_errors_total:
        metrics.cache_errors_total.labels(operation=operation).inc()


def record_event_published(kind: str) -> None:
    """Record event publication."""
    metrics = get_metrics()
    if metrics.events_published_total:
        metrics.events_published_total.labels(kind=kind).inc()


def record_event_dropped(reason: str) -> None:
    """Record an event that never reached the transport."""
    metrics = get_metrics()
    if metrics.events_dropped_total:
        metrics.events_dropped_total.labels(reason=reason).inc()


def record_invalidation(kind: str) -> None:
    """Record an invalidation event handled by the subscriber."""
    metrics = get_metrics()
    if metrics.invalidations_total:
        metrics.invalidations_total.labels(kind=kind).inc()
