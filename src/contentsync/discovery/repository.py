"""Read-only queries over published content.

"Published" means is_published is set and published_at is present.
Listings order by published_at then created_at, newest first. Search is a
case-insensitive substring match on title or body, ordered by published_at
descending then title ascending. No relevance ranking.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime

from contentsync.content.models import ContentRecord
from contentsync.content.store import InMemoryContentStore
from contentsync.discovery.models import ContentListResult, ContentSearchResult


class ContentDiscoveryRepository(ABC):
    """Abstract read-side query interface."""

    @abstractmethod
    async def find_published(self, page: int, limit: int) -> ContentListResult:
        """Page through published records."""

    @abstractmethod
    async def find_published_by_id(self, content_id: int) -> ContentRecord | None:
        """Return a published record, or None if absent or unpublished."""

    @abstractmethod
    async def search_published(self, query: str, page: int, limit: int) -> ContentSearchResult:
        """Substring search over published records."""

    @abstractmethod
    async def latest_published(self, limit: int) -> list[ContentRecord]:
        """Most recent published records."""


def is_visible(record: ContentRecord) -> bool:
    return record.is_published and record.published_at is not None


def _newest_first(record: ContentRecord) -> tuple[datetime, datetime]:
    return (record.published_at or record.created_at, record.created_at)


class InMemoryDiscoveryRepository(ContentDiscoveryRepository):
    """Discovery queries evaluated over an InMemoryContentStore."""

    def __init__(self, store: InMemoryContentStore):
        self.store = store

    def _published(self) -> list[ContentRecord]:
        return sorted(
            (r for r in self.store.records() if is_visible(r)),
            key=_newest_first,
            reverse=True,
        )

    async def find_published(self, page: int, limit: int) -> ContentListResult:
        records = self._published()
        offset = (page - 1) * limit
        return ContentListResult.build(records[offset : offset + limit], len(records), page, limit)

    async def find_published_by_id(self, content_id: int) -> ContentRecord | None:
        record = await self.store.find_by_id(content_id)
        if record is None or not is_visible(record):
            return None
        return record

    async def search_published(self, query: str, page: int, limit: int) -> ContentSearchResult:
        needle = query.lower()
        matches = [r for r in self.store.records() if is_visible(r) and needle in r.searchable_text]
        # Two stable sorts: title ascending, then published_at descending
        matches.sort(key=lambda r: r.title)
        matches.sort(key=lambda r: r.published_at, reverse=True)  # type: ignore[arg-type, return-value]

        offset = (page - 1) * limit
        base = ContentListResult.build(matches[offset : offset + limit], len(matches), page, limit)
        return ContentSearchResult(
            data=base.data,
            total=base.total,
            page=base.page,
            last_page=base.last_page,
            has_next=base.has_next,
            has_previous=base.has_previous,
            query=query,
        )

    async def latest_published(self, limit: int) -> list[ContentRecord]:
        return self._published()[:limit]
