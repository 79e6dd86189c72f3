"""Event schemas for contentsync.

Invalidation events travel from the write side (CMS, sync engine) to the
read side (discovery cache). They are transient: they exist only on the
wire and are never persisted.

Wire format (JSON):
    {
        "kind": "content-updated" | "content-deleted" | "content-bulk-updated",
        "contentId": 42,                    # optional
        "action": "created" | "updated" | "published" | "unpublished",
        "timestamp": "2026-01-10T12:34:56.789000+00:00"
    }
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any

import orjson


class InvalidationKind(str, Enum):
    """Kind of content change carried by an event."""

    CONTENT_UPDATED = "content-updated"
    CONTENT_DELETED = "content-deleted"
    CONTENT_BULK_UPDATED = "content-bulk-updated"


class ContentAction(str, Enum):
    """What happened to a single record (content-updated only)."""

    CREATED = "created"
    UPDATED = "updated"
    PUBLISHED = "published"
    UNPUBLISHED = "unpublished"


@dataclass(frozen=True, slots=True)
class InvalidationEvent:
    """A content change notification."""

    kind: InvalidationKind
    content_id: int | None = None
    action: ContentAction | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def __post_init__(self) -> None:
        if self.action is not None and self.kind != InvalidationKind.CONTENT_UPDATED:
            raise ValueError(f"action is only valid for {InvalidationKind.CONTENT_UPDATED.value}")

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire dictionary (camelCase, optional keys omitted)."""
        data: dict[str, Any] = {"kind": self.kind.value}
        if self.content_id is not None:
            data["contentId"] = self.content_id
        if self.action is not None:
            data["action"] = self.action.value
        data["timestamp"] = self.timestamp.isoformat()
        return data

    def to_bytes(self) -> bytes:
        """Serialize to JSON bytes."""
        return orjson.dumps(self.to_dict())

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> InvalidationEvent:
        """Build an event from a wire dictionary."""
        content_id = data.get("contentId")
        action = data.get("action")
        timestamp = data.get("timestamp")
        return cls(
            kind=InvalidationKind(data["kind"]),
            content_id=int(content_id) if content_id is not None else None,
            action=ContentAction(action) if action is not None else None,
            timestamp=(
                datetime.fromisoformat(timestamp) if timestamp else datetime.now(UTC)
            ),
        )

    @classmethod
    def from_bytes(cls, data: bytes | str) -> InvalidationEvent:
        """Deserialize from JSON bytes."""
        return cls.from_dict(orjson.loads(data))


def content_updated(content_id: int, action: ContentAction) -> InvalidationEvent:
    return InvalidationEvent(
        kind=InvalidationKind.CONTENT_UPDATED, content_id=content_id, action=action
    )


def content_deleted(content_id: int) -> InvalidationEvent:
    return InvalidationEvent(kind=InvalidationKind.CONTENT_DELETED, content_id=content_id)


def content_bulk_updated() -> InvalidationEvent:
    return InvalidationEvent(kind=InvalidationKind.CONTENT_BULK_UPDATED)
