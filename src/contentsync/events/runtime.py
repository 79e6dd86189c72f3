"""Event bus construction from settings."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from contentsync.config import Settings
from contentsync.events.bus import EventBus, InMemoryEventBus
from contentsync.events.redis_bus import RedisPubSubEventBus

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def create_event_bus(settings: Settings, redis_client: Redis | None = None) -> EventBus:
    """Create an event bus based on configuration."""
    backend = settings.event_bus_backend.lower()

    if backend in {"memory", "inmemory", "in_memory"}:
        return InMemoryEventBus(max_size=settings.event_bus_queue_size)

    if backend in {"redis", "pubsub", "redis_pubsub"}:
        if redis_client is None:
            raise ValueError("The redis event bus requires a Redis client")
        return RedisPubSubEventBus(
            redis_client,
            channel=settings.event_bus_channel,
            max_queue_size=settings.event_bus_queue_size,
        )

    raise ValueError("Unsupported event_bus_backend. Supported values: memory, redis.")
