"""Canonical content record types.

ContentRecord is what the store hands back; ContentDraft and ContentPatch
are what the write path accepts. Records round-trip through plain dicts so
they can be cached as JSON and rehydrated on the read side.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from datetime import UTC, datetime
from typing import Any


def _parse_datetime(value: Any) -> datetime | None:
    if value is None or isinstance(value, datetime):
        return value
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass
class ContentDraft:
    """Fields for a new content record."""

    title: str
    body: str = ""
    thumbnail_url: str | None = None
    video_url: str | None = None
    external_id: str | None = None
    external_channel: str | None = None
    is_published: bool = True
    published_at: datetime | None = None


@dataclass
class ContentPatch:
    """Partial update for an existing record.

    A field left as None is not changed.
    """

    title: str | None = None
    body: str | None = None
    thumbnail_url: str | None = None
    video_url: str | None = None
    external_id: str | None = None
    external_channel: str | None = None
    is_published: bool | None = None
    published_at: datetime | None = None

    def changes(self) -> dict[str, Any]:
        """Return only the fields that are set."""
        return {f.name: getattr(self, f.name) for f in fields(self) if getattr(self, f.name) is not None}


@dataclass
class ContentRecord:
    """A canonical content record."""

    id: int
    title: str
    body: str
    thumbnail_url: str | None
    video_url: str | None
    external_id: str | None
    external_channel: str | None
    is_published: bool
    published_at: datetime | None
    created_at: datetime
    updated_at: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "id": self.id,
            "title": self.title,
            "body": self.body,
            "thumbnail_url": self.thumbnail_url,
            "video_url": self.video_url,
            "external_id": self.external_id,
            "external_channel": self.external_channel,
            "is_published": self.is_published,
            "published_at": self.published_at.isoformat() if self.published_at else None,
            "created_at": self.created_at.isoformat(),
            "updated_at": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentRecord:
        """Rehydrate a record produced by to_dict()."""
        return cls(
            id=int(data["id"]),
            title=data["title"],
            body=data.get("body", ""),
            thumbnail_url=data.get("thumbnail_url"),
            video_url=data.get("video_url"),
            external_id=data.get("external_id"),
            external_channel=data.get("external_channel"),
            is_published=bool(data.get("is_published", False)),
            published_at=_parse_datetime(data.get("published_at")),
            created_at=_parse_datetime(data["created_at"]),  # type: ignore[arg-type]
            updated_at=_parse_datetime(data["updated_at"]),  # type: ignore[arg-type]
        )

    @property
    def searchable_text(self) -> str:
        return f"{self.title} {self.body}".lower()
