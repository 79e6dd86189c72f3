"""Event system for contentsync.

Content writes and sync passes emit invalidation events; the discovery
side consumes them to evict cache entries.

Delivery is best-effort:
- publish() never raises and never waits on the transport
- undelivered events are not retried or persisted
- cache TTL bounds staleness when events are lost
"""

from contentsync.events.bus import EventBus, EventHandler, InMemoryEventBus
from contentsync.events.publisher import ContentEventPublisher
from contentsync.events.redis_bus import RedisPubSubEventBus
from contentsync.events.runtime import create_event_bus
from contentsync.events.schemas import (
    ContentAction,
    InvalidationEvent,
    InvalidationKind,
    content_bulk_updated,
    content_deleted,
    content_updated,
)

__all__ = [
    # Event types
    "ContentAction",
    "InvalidationEvent",
    "InvalidationKind",
    "content_updated",
    "content_deleted",
    "content_bulk_updated",
    # Bus
    "EventBus",
    "EventHandler",
    "InMemoryEventBus",
    "RedisPubSubEventBus",
    "create_event_bus",
    # Publishers
    "ContentEventPublisher",
]
