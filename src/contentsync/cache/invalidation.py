"""Event-driven invalidation of the discovery cache.

The write side never touches the read-side cache directly. It publishes
InvalidationEvents; every read-side process runs an InvalidationSubscriber
that maps each event to evictions:

- content-updated with an id: that item's entry plus every collection
- content-updated without an id, content-deleted, content-bulk-updated:
  every list, search and latest entry

Eviction is advisory. If an event is lost the entry expires on its TTL.

Example:
    invalidator = CacheInvalidator(cache_store, CacheKeys())
    subscriber = InvalidationSubscriber(invalidator)
    await bus.subscribe(subscriber.handle_event)
"""

from __future__ import annotations

import logging

from contentsync.cache.keys import CacheKeys
from contentsync.cache.store import CacheStore
from contentsync.events.schemas import InvalidationEvent, InvalidationKind
from contentsync.observability.metrics import record_invalidation

logger = logging.getLogger(__name__)


class CacheInvalidator:
    """Evicts discovery cache entries by id or by collection pattern."""

    def __init__(self, cache: CacheStore, keys: CacheKeys):
        self.cache = cache
        self.keys = keys

    async def evict_item(self, content_id: int) -> None:
        await self.cache.delete(self.keys.content_item(content_id))
        logger.debug(f"Invalidated cache for content: {content_id}")

    async def evict_collections(self) -> int:
        deleted = 0
        for pattern in self.keys.collection_patterns():
            deleted += await self.cache.delete_pattern(pattern)
        logger.debug(f"Invalidated {deleted} list, search and latest entries")
        return deleted

    async def invalidate_content(self, content_id: int | None = None) -> None:
        """Evict one item (when given) and every collection."""
        if content_id is not None:
            await self.evict_item(content_id)
        await self.evict_collections()


class InvalidationSubscriber:
    """Consumes invalidation events and evicts the matching cache entries."""

    def __init__(self, invalidator: CacheInvalidator):
        self.invalidator = invalidator

    async def handle_event(self, event: InvalidationEvent) -> None:
        """Apply one event. Failures are logged and never propagate."""
        try:
            await self._apply(event)
            record_invalidation(event.kind.value)
        except Exception as e:
            logger.error(f"Failed to handle {event.kind.value} event: {e}", exc_info=True)

    async def _apply(self, event: InvalidationEvent) -> None:
        if event.kind == InvalidationKind.CONTENT_UPDATED:
            action = event.action.value if event.action else "unknown"
            logger.debug(f"Received content update event: ID {event.content_id}, action: {action}")
            await self.invalidator.invalidate_content(event.content_id)
        elif event.kind == InvalidationKind.CONTENT_DELETED:
            logger.debug(f"Received content deletion event: ID {event.content_id}")
            if event.content_id is not None:
                await self.invalidator.evict_item(event.content_id)
            await self.invalidator.evict_collections()
        elif event.kind == InvalidationKind.CONTENT_BULK_UPDATED:
            logger.debug("Received bulk content invalidation event")
            await self.invalidator.evict_collections()

    async def invalidate(self, content_id: int | None = None) -> None:
        """Manually evict cache entries (admin entry point).

        Unlike event handling, failures propagate to the caller.
        """
        try:
            await self.invalidator.invalidate_content(content_id)
        except Exception as e:
            logger.error(f"Manual cache invalidation failed: {e}", exc_info=True)
            raise
        suffix = f" for content: {content_id}" if content_id is not None else ""
        logger.info(f"Manual cache invalidation completed{suffix}")
        record_invalidation("manual")

    async def health_check(self) -> bool:
        return await self.invalidator.cache.health_check()
