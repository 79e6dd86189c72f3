"""SQL implementations of the store, discovery and watermark interfaces.

Each call opens its own session from the factory and commits on success.
Datetimes read back from backends that drop the zone (SQLite) are treated
as UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime

from sqlalchemy import Select, func, or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from contentsync.content.models import ContentDraft, ContentPatch, ContentRecord
from contentsync.content.store import Clock, ContentStore, utc_now
from contentsync.discovery.models import ContentListResult, ContentSearchResult
from contentsync.discovery.repository import ContentDiscoveryRepository
from contentsync.errors import ContentNotFoundError, ContentValidationError
from contentsync.ingestion.watermark import WatermarkStore
from contentsync.persistence.tables import ContentTable, SyncWatermarkTable


def _as_utc(value: datetime | None) -> datetime | None:
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def _to_record(row: ContentTable) -> ContentRecord:
    return ContentRecord(
        id=row.id,
        title=row.title,
        body=row.body,
        thumbnail_url=row.thumbnail_url,
        video_url=row.video_url,
        external_id=row.external_id,
        external_channel=row.external_channel,
        is_published=row.is_published,
        published_at=_as_utc(row.published_at),
        created_at=_as_utc(row.created_at),  # type: ignore[arg-type]
        updated_at=_as_utc(row.updated_at),  # type: ignore[arg-type]
    )


def escape_like(term: str) -> str:
    """Escape LIKE wildcards so user input matches literally."""
    return term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


class SqlContentStore(ContentStore):
    """ContentStore backed by the content table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession], clock: Clock = utc_now):
        self.session_factory = session_factory
        self._clock = clock

    async def create(self, draft: ContentDraft) -> ContentRecord:
        now = self._clock()
        row = ContentTable(
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
        async with self.session_factory() as session:
            session.add(row)
            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ContentValidationError(
                    [f"External ID {draft.external_id} already exists"]
                ) from e
            await session.refresh(row)
            return _to_record(row)

    async def find_by_id(self, content_id: int) -> ContentRecord | None:
        async with self.session_factory() as session:
            row = await session.get(ContentTable, content_id)
            return _to_record(row) if row else None

    async def find_by_external_id(self, external_id: str) -> ContentRecord | None:
        stmt = select(ContentTable).where(ContentTable.external_id == external_id)
        async with self.session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _to_record(row) if row else None

    async def update(self, content_id: int, patch: ContentPatch) -> ContentRecord:
        async with self.session_factory() as session:
            row = await session.get(ContentTable, content_id)
            if row is None:
                raise ContentNotFoundError(content_id)

            for name, value in patch.changes().items():
                setattr(row, name, value)
            row.updated_at = self._clock()

            try:
                await session.commit()
            except IntegrityError as e:
                await session.rollback()
                raise ContentValidationError(
                    [f"External ID {patch.external_id} already exists"]
                ) from e
            await session.refresh(row)
            return _to_record(row)

    async def delete(self, content_id: int) -> None:
        async with self.session_factory() as session:
            row = await session.get(ContentTable, content_id)
            if row is None:
                raise ContentNotFoundError(content_id)
            await session.delete(row)
            await session.commit()


class SqlDiscoveryRepository(ContentDiscoveryRepository):
    """Discovery queries over the content table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _published() -> Select[tuple[ContentTable]]:
        return select(ContentTable).where(
            ContentTable.is_published.is_(True),
            ContentTable.published_at.is_not(None),
        )

    async def _page(
        self, stmt: Select[tuple[ContentTable]], page: int, limit: int
    ) -> tuple[list[ContentRecord], int]:
        count_stmt = select(func.count()).select_from(stmt.order_by(None).subquery())
        async with self.session_factory() as session:
            total = (await session.execute(count_stmt)).scalar_one()
            rows = (
                await session.execute(stmt.offset((page - 1) * limit).limit(limit))
            ).scalars()
            return [_to_record(row) for row in rows], total

    async def find_published(self, page: int, limit: int) -> ContentListResult:
        stmt = self._published().order_by(
            ContentTable.published_at.desc(), ContentTable.created_at.desc()
        )
        records, total = await self._page(stmt, page, limit)
        return ContentListResult.build(records, total, page, limit)

    async def find_published_by_id(self, content_id: int) -> ContentRecord | None:
        stmt = self._published().where(ContentTable.id == content_id)
        async with self.session_factory() as session:
            row = (await session.execute(stmt)).scalar_one_or_none()
            return _to_record(row) if row else None

    async def search_published(self, query: str, page: int, limit: int) -> ContentSearchResult:
        pattern = f"%{escape_like(query)}%"
        stmt = (
            self._published()
            .where(
                or_(
                    ContentTable.title.ilike(pattern, escape="\\"),
                    ContentTable.body.ilike(pattern, escape="\\"),
                )
            )
            .order_by(ContentTable.published_at.desc(), ContentTable.title.asc())
        )
        records, total = await self._page(stmt, page, limit)
        base = ContentListResult.build(records, total, page, limit)
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
        stmt = (
            self._published()
            .order_by(ContentTable.published_at.desc(), ContentTable.created_at.desc())
            .limit(limit)
        )
        async with self.session_factory() as session:
            rows = (await session.execute(stmt)).scalars()
            return [_to_record(row) for row in rows]


class SqlWatermarkStore(WatermarkStore):
    """WatermarkStore backed by the sync_watermarks table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def get(self, channel_id: str) -> datetime | None:
        async with self.session_factory() as session:
            row = await session.get(SyncWatermarkTable, channel_id)
            return _as_utc(row.last_synced_at) if row else None

    async def set(self, channel_id: str, timestamp: datetime) -> None:
        async with self.session_factory() as session:
            row = await session.get(SyncWatermarkTable, channel_id)
            if row is None:
                session.add(SyncWatermarkTable(channel_id=channel_id, last_synced_at=timestamp))
            else:
                row.last_synced_at = timestamp
            await session.commit()
