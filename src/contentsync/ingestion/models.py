"""Ingestion data types."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any


@dataclass
class VideoItem:
    """Metadata for one external video, as returned by the provider."""

    external_id: str | None
    title: str
    description: str
    thumbnail_url: str | None
    published_at: datetime
    channel_id: str
    channel_title: str = ""
    duration: str | None = None
    view_count: int = 0


@dataclass
class SyncResult:
    """Counters and errors for one sync pass.

    ``success`` is False when any item failed or the pass aborted.
    """

    processed: int = 0
    created: int = 0
    updated: int = 0
    skipped: int = 0
    failed: int = 0
    errors: list[str] = field(default_factory=list)
    success: bool = True
    started_at: datetime | None = None
    completed_at: datetime | None = None
    duration_ms: float = 0

    @property
    def changed(self) -> int:
        return self.created + self.updated

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        data["started_at"] = self.started_at.isoformat() if self.started_at else None
        data["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return data


@dataclass
class SyncConfiguration:
    """Tunable parameters for sync passes."""

    channel_handle: str
    max_items_per_pass: int = 20
    sync_interval_seconds: int = 3600
    auto_publish: bool = True


class SyncState(str, Enum):
    """Engine lifecycle state."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class SyncStatus:
    """Snapshot returned by the status endpoint."""

    enabled: bool
    running: bool
    channel: str
    next_run: datetime | None
    state: SyncState
    last_result: SyncResult | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "enabled": self.enabled,
            "running": self.running,
            "channel": self.channel,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "state": self.state.value,
            "last_result": self.last_result.to_dict() if self.last_result else None,
        }


class ReconcileAction(str, Enum):
    """What reconciliation did with an item."""

    CREATED = "created"
    UPDATED = "updated"
    SKIPPED = "skipped"


@dataclass
class ReconcileOutcome:
    """Result of reconciling one item."""

    action: ReconcileAction
    content_id: int
