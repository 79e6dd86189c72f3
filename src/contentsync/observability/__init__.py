"""Observability module for contentsync.

Provides metrics and structured logging:
- Prometheus metrics for sync passes, quota, cache and events
- JSON structured logging with request and sync-run correlation
"""

from contentsync.observability.logging import (
    LogContext,
    configure_logging,
    request_id_var,
    sync_run_id_var,
)
from contentsync.observability.metrics import get_metrics, metrics_registry

__all__ = [
    # Logging
    "configure_logging",
    "LogContext",
    "request_id_var",
    "sync_run_id_var",
    # Metrics
    "metrics_registry",
    "get_metrics",
]
