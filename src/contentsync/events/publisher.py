"""Event publishing helpers for content writes and sync passes.

A messaging outage must never block or fail a content write, so every
method here logs and swallows errors instead of raising.

Example:
    publisher = ContentEventPublisher(bus)

    await publisher.publish_content_updated(record.id, ContentAction.CREATED)
    await publisher.publish_sync_completed(changed=3, created_ids=[41, 42])
"""

from __future__ import annotations

import logging

from contentsync.events.bus import EventBus
from contentsync.events.schemas import (
    ContentAction,
    InvalidationEvent,
    content_bulk_updated,
    content_deleted,
    content_updated,
)

logger = logging.getLogger(__name__)


class ContentEventPublisher:
    """Publishes content change events onto a bus."""

    def __init__(self, bus: EventBus):
        self.bus = bus

    async def _publish(self, event: InvalidationEvent) -> bool:
        try:
            await self.bus.publish(event)
            return True
        except Exception as e:
            logger.error(f"Failed to publish {event.kind.value} event: {e}", exc_info=True)
            return False

    async def publish_content_updated(self, content_id: int, action: ContentAction) -> bool:
        """Notify readers that one record changed."""
        sent = await self._publish(content_updated(content_id, action))
        if sent:
            logger.debug(f"Published content update event: ID {content_id}, action: {action.value}")
        return sent

    async def publish_content_deleted(self, content_id: int) -> bool:
        """Notify readers that a record was deleted."""
        sent = await self._publish(content_deleted(content_id))
        if sent:
            logger.debug(f"Published content deletion event: ID {content_id}")
        return sent

    async def publish_bulk_invalidation(self) -> bool:
        """Tell readers every collection cache may be stale."""
        sent = await self._publish(content_bulk_updated())
        if sent:
            logger.debug("Published bulk content invalidation event")
        return sent

    async def publish_sync_completed(self, changed: int, created_ids: list[int]) -> None:
        """Publish the batched events for a finished sync pass.

        One created event per new record, then a single bulk invalidation
        when anything changed.
        """
        for content_id in created_ids:
            await self.publish_content_updated(content_id, ContentAction.CREATED)

        if changed > 0:
            await self.publish_bulk_invalidation()

        logger.debug(f"Published sync events: {changed} changed, {len(created_ids)} new")
