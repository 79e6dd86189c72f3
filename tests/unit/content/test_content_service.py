"""Tests for the content write path."""

from datetime import timedelta

import pytest

from contentsync.content.models import ContentDraft, ContentPatch
from contentsync.content.service import ContentService
from contentsync.content.store import InMemoryContentStore
from contentsync.errors import ContentNotFoundError, ContentValidationError
from contentsync.events.bus import InMemoryEventBus
from contentsync.events.publisher import ContentEventPublisher
from contentsync.events.schemas import ContentAction, InvalidationEvent, InvalidationKind


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def service(bus: InMemoryEventBus, clock) -> ContentService:
    return ContentService(InMemoryContentStore(clock), ContentEventPublisher(bus), clock=clock)


def drain(bus: InMemoryEventBus) -> list[InvalidationEvent]:
    return [bus._queue.get_nowait() for _ in range(bus.pending_count)]


class TestCreateContent:
    """Test record creation."""

    async def test_create_publishes_created_event(
        self, service: ContentService, bus: InMemoryEventBus
    ) -> None:
        record = await service.create_content(ContentDraft(title="Episode"))

        assert record.id == 1
        events = drain(bus)
        assert len(events) == 1
        assert events[0].content_id == record.id
        assert events[0].action == ContentAction.CREATED

    async def test_create_stamps_publish_time(self, service: ContentService, clock) -> None:
        """Publishing without a timestamp uses the current time."""
        record = await service.create_content(ContentDraft(title="Episode"))
        assert record.published_at == clock.now

    async def test_create_without_notify(
        self, service: ContentService, bus: InMemoryEventBus
    ) -> None:
        await service.create_content(ContentDraft(title="Episode"), notify=False)
        assert bus.pending_count == 0

    async def test_invalid_draft_is_not_stored(self, service: ContentService) -> None:
        with pytest.raises(ContentValidationError):
            await service.create_content(ContentDraft(title=""))
        assert len(service.store) == 0

    async def test_duplicate_external_id_rejected(self, service: ContentService) -> None:
        await service.create_content(ContentDraft(title="A", external_id="vid1"))
        with pytest.raises(ContentValidationError):
            await service.create_content(ContentDraft(title="B", external_id="vid1"))


class TestUpdateContent:
    """Test record updates."""

    async def test_update_returns_action(
        self, service: ContentService, bus: InMemoryEventBus
    ) -> None:
        record = await service.create_content(ContentDraft(title="Old"), notify=False)

        updated, action = await service.update_content(record.id, ContentPatch(title="New"))

        assert updated.title == "New"
        assert action == ContentAction.UPDATED
        assert drain(bus)[0].action == ContentAction.UPDATED

    async def test_publishing_stamps_timestamp(self, service: ContentService, clock) -> None:
        record = await service.create_content(
            ContentDraft(title="Draft", is_published=False), notify=False
        )
        clock.advance(60)

        updated, action = await service.update_content(record.id, ContentPatch(is_published=True))

        assert action == ContentAction.PUBLISHED
        assert updated.published_at == clock.now

    async def test_unpublish(self, service: ContentService) -> None:
        record = await service.create_content(ContentDraft(title="Live"), notify=False)

        _, action = await service.update_content(record.id, ContentPatch(is_published=False))

        assert action == ContentAction.UNPUBLISHED

    async def test_updated_at_moves(self, service: ContentService, clock) -> None:
        record = await service.create_content(ContentDraft(title="A"), notify=False)
        clock.advance(5)

        updated, _ = await service.update_content(record.id, ContentPatch(body="more"))

        assert updated.updated_at == record.updated_at + timedelta(seconds=5)
        assert updated.created_at == record.created_at

    async def test_update_missing(self, service: ContentService) -> None:
        with pytest.raises(ContentNotFoundError):
            await service.update_content(99, ContentPatch(title="x"))


class TestDeleteContent:
    """Test record deletion."""

    async def test_delete_publishes_deleted_event(
        self, service: ContentService, bus: InMemoryEventBus
    ) -> None:
        record = await service.create_content(ContentDraft(title="A"), notify=False)

        await service.delete_content(record.id)

        events = drain(bus)
        assert events[0].kind == InvalidationKind.CONTENT_DELETED
        with pytest.raises(ContentNotFoundError):
            await service.find_content_by_id(record.id)

    async def test_write_succeeds_when_bus_is_full(self, clock) -> None:
        """A dropped event never fails the write."""
        bus = InMemoryEventBus(max_size=1)
        service = ContentService(InMemoryContentStore(clock), ContentEventPublisher(bus), clock=clock)

        await service.create_content(ContentDraft(title="A"))
        await service.create_content(ContentDraft(title="B"))

        assert len(service.store) == 2
        assert bus.pending_count == 1
