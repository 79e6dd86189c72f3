"""Canonical content store interface.

The store owns record persistence: ids are assigned here and never change.
InMemoryContentStore backs single-process runs and tests; the SQL
implementation lives in contentsync.persistence.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Callable, Iterator
from dataclasses import replace
from datetime import UTC, datetime

from contentsync.content.models import ContentDraft, ContentPatch, ContentRecord
from contentsync.errors import ContentNotFoundError, ContentValidationError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class ContentStore(ABC):
    """Abstract canonical store for content records."""

    @abstractmethod
    async def create(self, draft: ContentDraft) -> ContentRecord:
        """Persist a new record and return it with its assigned id."""

    @abstractmethod
    async def find_by_id(self, content_id: int) -> ContentRecord | None:
        """Return a record by id, or None."""

    @abstractmethod
    async def find_by_external_id(self, external_id: str) -> ContentRecord | None:
        """Return the record carrying an external id, or None."""

    @abstractmethod
    async def update(self, content_id: int, patch: ContentPatch) -> ContentRecord:
        """Apply a patch. Raises ContentNotFoundError if the id is absent."""

    @abstractmethod
    async def delete(self, content_id: int) -> None:
        """Delete a record. Raises ContentNotFoundError if the id is absent."""


class InMemoryContentStore(ContentStore):
    """Dict-backed content store.

    External ids are unique when present, matching the SQL unique index.
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._records: dict[int, ContentRecord] = {}
        self._by_external_id: dict[str, int] = {}
        self._next_id = 1

    async def create(self, draft: ContentDraft) -> ContentRecord:
        if draft.external_id and draft.external_id in self._by_external_id:
            raise ContentValidationError([f"External ID {draft.external_id} already exists"])

        now = self._clock()
        record = ContentRecord(
            id=self._next_id,
            title=draft.title,
            body=draft.body,
            thumbnail_url=draft.thumbnail_url,
            video_url=draft.video_url,
            external_id=draft.external_id,
            external_channel=draft.external_channel,
            is_published=draft.is_published,
            published_at=draft.published_at,
            created_at=now,
            updated_at=now,
        )
        self._next_id += 1
        self._records[record.id] = record
        if record.external_id:
            self._by_external_id[record.external_id] = record.id
        return replace(record)

    async def find_by_id(self, content_id: int) -> ContentRecord | None:
        record = self._records.get(content_id)
        return replace(record) if record else None

    async def find_by_external_id(self, external_id: str) -> ContentRecord | None:
        content_id = self._by_external_id.get(external_id)
        if content_id is None:
            return None
        return await self.find_by_id(content_id)

    async def update(self, content_id: int, patch: ContentPatch) -> ContentRecord:
        existing = self._records.get(content_id)
        if existing is None:
            raise ContentNotFoundError(content_id)

        changes = patch.changes()
        new_external_id = changes.get("external_id")
        if new_external_id and new_external_id != existing.external_id:
            if new_external_id in self._by_external_id:
                raise ContentValidationError([f"External ID {new_external_id} already exists"])
            if existing.external_id:
                del self._by_external_id[existing.external_id]
            self._by_external_id[new_external_id] = content_id

        updated = replace(existing, **changes, updated_at=self._clock())
        self._records[content_id] = updated
        return replace(updated)

    async def delete(self, content_id: int) -> None:
        record = self._records.pop(content_id, None)
        if record is None:
            raise ContentNotFoundError(content_id)
        if record.external_id:
            self._by_external_id.pop(record.external_id, None)

    def records(self) -> Iterator[ContentRecord]:
        """Iterate over stored records (snapshot copies)."""
        for record in list(self._records.values()):
            yield replace(record)

    def __len__(self) -> int:
        return len(self._records)
