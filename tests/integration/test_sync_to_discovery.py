"""End-to-end flow: sync writes, events invalidate, discovery reads."""

from collections.abc import AsyncIterator

import pytest

from contentsync.runtime import ContentSyncRuntime


@pytest.fixture
async def started(runtime: ContentSyncRuntime) -> AsyncIterator[ContentSyncRuntime]:
    """The in-memory runtime with its bus running and the scheduler off."""
    await runtime.start(run_scheduler=False)
    yield runtime
    await runtime.stop()


class TestSyncToDiscovery:
    """Test that discovery reflects sync passes through invalidation."""

    async def test_new_items_visible_after_events(
        self, started: ContentSyncRuntime, provider, make_video, clock
    ) -> None:
        assert (await started.discovery.list_published()).total == 0

        provider.items = [make_video("a", "A"), make_video("b", "B")]
        await started.engine.run_sync_pass()
        await started.bus.flush()

        result = await started.discovery.list_published()
        assert result.total == 2

    async def test_update_evicts_cached_item(
        self, started: ContentSyncRuntime, provider, make_video
    ) -> None:
        provider.items = [make_video("a", "Original")]
        await started.engine.run_sync_pass()
        await started.bus.flush()
        record = await started.discovery.get_published_by_id(1)
        assert record.title == "Original"

        await started.engine.watermarks.set("UC123", record.published_at.replace(year=2025))
        provider.items = [make_video("a", "Renamed")]
        result = await started.engine.run_sync_pass()
        await started.bus.flush()

        assert result.updated == 1
        assert (await started.discovery.get_published_by_id(1)).title == "Renamed"

    async def test_search_reflects_sync(
        self, started: ContentSyncRuntime, provider, make_video
    ) -> None:
        assert (await started.discovery.search_published("history")).total == 0

        provider.items = [make_video("a", "History hour")]
        await started.engine.run_sync_pass()
        await started.bus.flush()

        assert (await started.discovery.search_published("history")).total == 1

    async def test_stop_closes_provider(self, runtime: ContentSyncRuntime, provider) -> None:
        await runtime.start(run_scheduler=False)
        await runtime.stop()
        assert provider.closed
