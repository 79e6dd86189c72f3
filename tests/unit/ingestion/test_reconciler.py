"""Tests for item reconciliation."""

import pytest

from contentsync.content.service import ContentService
from contentsync.content.store import InMemoryContentStore
from contentsync.errors import MissingExternalIdError
from contentsync.events.bus import InMemoryEventBus
from contentsync.events.publisher import ContentEventPublisher
from contentsync.events.schemas import ContentAction
from contentsync.ingestion.models import ReconcileAction
from contentsync.ingestion.reconciler import MAX_DESCRIPTION_LENGTH, Reconciler, format_description


@pytest.fixture
def bus() -> InMemoryEventBus:
    return InMemoryEventBus()


@pytest.fixture
def reconciler(clock, bus: InMemoryEventBus) -> Reconciler:
    service = ContentService(InMemoryContentStore(clock), ContentEventPublisher(bus), clock=clock)
    return Reconciler(service)


class TestReconcile:
    """Test create, skip and update decisions."""

    async def test_new_item_is_created(self, reconciler: Reconciler, make_video) -> None:
        outcome = await reconciler.reconcile(make_video())

        record = await reconciler.content_service.store.find_by_id(outcome.content_id)
        assert outcome.action == ReconcileAction.CREATED
        assert record.external_id == "vid1"
        assert record.video_url == "https://www.youtube.com/watch?v=vid1"
        assert record.external_channel == "Thmanyah Podcasts"
        assert record.is_published

    async def test_create_does_not_publish(
        self, reconciler: Reconciler, bus: InMemoryEventBus, make_video
    ) -> None:
        """Created events are left for the engine to batch."""
        await reconciler.reconcile(make_video())
        assert bus.pending_count == 0

    async def test_unchanged_item_is_skipped(
        self, reconciler: Reconciler, bus: InMemoryEventBus, make_video
    ) -> None:
        """Reconciling the same item twice writes once."""
        first = await reconciler.reconcile(make_video())
        stored = await reconciler.content_service.store.find_by_id(first.content_id)

        second = await reconciler.reconcile(make_video())

        assert second.action == ReconcileAction.SKIPPED
        assert second.content_id == first.content_id
        assert await reconciler.content_service.store.find_by_id(first.content_id) == stored
        assert bus.pending_count == 0

    async def test_changed_item_is_updated(
        self, reconciler: Reconciler, bus: InMemoryEventBus, make_video
    ) -> None:
        first = await reconciler.reconcile(make_video())

        second = await reconciler.reconcile(make_video(title="Episode 1 (remastered)"))

        record = await reconciler.content_service.store.find_by_id(first.content_id)
        assert second.action == ReconcileAction.UPDATED
        assert record.title == "Episode 1 (remastered)"
        assert len(reconciler.content_service.store) == 1
        assert bus._queue.get_nowait().action == ContentAction.UPDATED

    def test_draft_built_from_checked_external_id(self, reconciler: Reconciler, make_video) -> None:
        """Drafts take the external id they were handed."""
        draft = reconciler.to_draft(make_video(external_id="abc"), "abc")

        assert draft.external_id == "abc"
        assert draft.video_url == "https://www.youtube.com/watch?v=abc"
        assert draft.body.endswith("watch?v=abc")

    async def test_missing_external_id(self, reconciler: Reconciler, make_video) -> None:
        with pytest.raises(MissingExternalIdError):
            await reconciler.reconcile(make_video(external_id=None))

    async def test_auto_publish_off(self, reconciler: Reconciler, make_video) -> None:
        reconciler.auto_publish = False
        outcome = await reconciler.reconcile(make_video())

        record = await reconciler.content_service.store.find_by_id(outcome.content_id)
        assert record.is_published is False

    async def test_update_republishes_unpublished_record(
        self, reconciler: Reconciler, make_video
    ) -> None:
        reconciler.auto_publish = False
        first = await reconciler.reconcile(make_video())
        reconciler.auto_publish = True

        await reconciler.reconcile(make_video(description="New description"))

        record = await reconciler.content_service.store.find_by_id(first.content_id)
        assert record.is_published is True


class TestFormatDescription:
    """Test body rendering."""

    def test_appends_watch_link(self) -> None:
        body = format_description("Hello", "abc")
        assert body == "Hello\n\n---\n\nWatch on YouTube: https://www.youtube.com/watch?v=abc"

    def test_collapses_blank_lines(self) -> None:
        body = format_description("a\n\n\n\n\nb", "abc")
        assert body.startswith("a\n\nb\n\n---")

    def test_truncates_long_descriptions(self) -> None:
        body = format_description("x" * (MAX_DESCRIPTION_LENGTH + 10), "abc")
        assert body.startswith("x" * MAX_DESCRIPTION_LENGTH + "...")
        assert "x" * (MAX_DESCRIPTION_LENGTH + 1) not in body

    def test_empty_description(self) -> None:
        body = format_description("", "abc")
        assert body.strip().startswith("---")
        assert body.endswith("watch?v=abc")
