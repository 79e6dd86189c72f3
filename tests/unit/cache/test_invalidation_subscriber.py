"""Tests for event-driven cache invalidation."""

from unittest.mock import AsyncMock

import pytest

from contentsync.cache.invalidation import CacheInvalidator, InvalidationSubscriber
from contentsync.cache.keys import CacheKeys
from contentsync.cache.store import InMemoryCacheStore
from contentsync.events.schemas import (
    ContentAction,
    content_bulk_updated,
    content_deleted,
    content_updated,
)


@pytest.fixture
def keys() -> CacheKeys:
    return CacheKeys("test")


@pytest.fixture
async def cache(clock, keys: CacheKeys) -> InMemoryCacheStore:
    """A cache holding one entry of each kind for content 1 and 2."""
    store = InMemoryCacheStore(clock)
    for key in (
        keys.content_item(1),
        keys.content_item(2),
        keys.content_list(1, 20),
        keys.content_search("news", 1, 10),
        keys.content_latest(10),
    ):
        await store.set(key, b"{}", 60)
    return store


@pytest.fixture
def subscriber(cache: InMemoryCacheStore, keys: CacheKeys) -> InvalidationSubscriber:
    return InvalidationSubscriber(CacheInvalidator(cache, keys))


class TestInvalidationSubscriber:
    """Test event to eviction mapping."""

    async def test_updated_evicts_item_and_collections(
        self, subscriber: InvalidationSubscriber, cache: InMemoryCacheStore, keys: CacheKeys
    ) -> None:
        """content-updated evicts that item plus every collection."""
        await subscriber.handle_event(content_updated(1, ContentAction.PUBLISHED))
        assert cache.keys() == [keys.content_item(2)]

    async def test_deleted_evicts_collections(
        self, subscriber: InvalidationSubscriber, cache: InMemoryCacheStore, keys: CacheKeys
    ) -> None:
        await subscriber.handle_event(content_deleted(2))
        assert cache.keys() == [keys.content_item(1)]

    async def test_bulk_evicts_collections_only(
        self, subscriber: InvalidationSubscriber, cache: InMemoryCacheStore, keys: CacheKeys
    ) -> None:
        """Bulk invalidation leaves item entries to their TTL."""
        await subscriber.handle_event(content_bulk_updated())
        assert sorted(cache.keys()) == sorted([keys.content_item(1), keys.content_item(2)])

    async def test_handler_errors_do_not_propagate(self, keys: CacheKeys) -> None:
        """A failing cache is logged, never raised from the handler."""
        cache = AsyncMock()
        cache.delete.side_effect = RuntimeError("boom")
        subscriber = InvalidationSubscriber(CacheInvalidator(cache, keys))

        await subscriber.handle_event(content_updated(1, ContentAction.UPDATED))

    async def test_manual_invalidation_propagates_errors(self, keys: CacheKeys) -> None:
        """The admin entry point surfaces failures."""
        cache = AsyncMock()
        cache.delete_pattern.side_effect = RuntimeError("boom")
        subscriber = InvalidationSubscriber(CacheInvalidator(cache, keys))

        with pytest.raises(RuntimeError):
            await subscriber.invalidate()

    async def test_manual_invalidation_with_id(
        self, subscriber: InvalidationSubscriber, cache: InMemoryCacheStore, keys: CacheKeys
    ) -> None:
        await subscriber.invalidate(2)
        assert cache.keys() == [keys.content_item(1)]
