"""Persistence layer for contentsync.

Provides SQLAlchemy async implementations of the content store, the
discovery queries and the watermark store.
"""

from contentsync.persistence.db import Database
from contentsync.persistence.repositories import (
    SqlContentStore,
    SqlDiscoveryRepository,
    SqlWatermarkStore,
)
from contentsync.persistence.tables import Base, ContentTable, SyncWatermarkTable

__all__ = [
    "Base",
    "ContentTable",
    "Database",
    "SqlContentStore",
    "SqlDiscoveryRepository",
    "SqlWatermarkStore",
    "SyncWatermarkTable",
]
