"""Ingestion of external video metadata into the canonical store.

Components:
- VideoProvider / YouTubeDataProvider: external metadata source
- QuotaTracker: daily request budget with a one-time warning
- Reconciler: idempotent create/skip/update per item
- IngestionEngine: single-flight pass orchestration with watermarks
- SyncScheduler: interval trigger
"""

from contentsync.ingestion.engine import IngestionEngine
from contentsync.ingestion.models import (
    ReconcileAction,
    ReconcileOutcome,
    SyncConfiguration,
    SyncResult,
    SyncState,
    SyncStatus,
    VideoItem,
)
from contentsync.ingestion.provider import VideoProvider, YouTubeDataProvider
from contentsync.ingestion.quota import QuotaTracker, QuotaUsage
from contentsync.ingestion.reconciler import Reconciler, format_description
from contentsync.ingestion.scheduler import SyncScheduler
from contentsync.ingestion.watermark import InMemoryWatermarkStore, WatermarkStore

__all__ = [
    # Models
    "VideoItem",
    "SyncResult",
    "SyncConfiguration",
    "SyncState",
    "SyncStatus",
    "ReconcileAction",
    "ReconcileOutcome",
    # Provider
    "VideoProvider",
    "YouTubeDataProvider",
    "QuotaTracker",
    "QuotaUsage",
    # Pass
    "Reconciler",
    "format_description",
    "IngestionEngine",
    "SyncScheduler",
    # Watermarks
    "WatermarkStore",
    "InMemoryWatermarkStore",
]
