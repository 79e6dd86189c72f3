"""Tests for the in-memory event bus."""

import asyncio

from contentsync.events.bus import InMemoryEventBus
from contentsync.events.schemas import InvalidationEvent, content_bulk_updated, content_deleted


class TestInMemoryEventBus:
    """Test in-memory event bus."""

    async def test_publish_and_receive(self) -> None:
        """Subscribed handlers receive published events."""
        bus = InMemoryEventBus()
        received: list[InvalidationEvent] = []

        async def handler(event: InvalidationEvent) -> None:
            received.append(event)

        await bus.subscribe(handler)
        await bus.start()
        await asyncio.sleep(0.1)

        await bus.publish(content_deleted(1))
        await bus.drain()
        await bus.stop()

        assert len(received) == 1
        assert received[0].content_id == 1

    async def test_events_delivered_in_order(self) -> None:
        bus = InMemoryEventBus()
        received: list[int | None] = []

        async def handler(event: InvalidationEvent) -> None:
            received.append(event.content_id)

        await bus.subscribe(handler)
        await bus.start()

        for i in range(5):
            await bus.publish(content_deleted(i))
        await bus.flush()
        await bus.stop()

        assert received == [0, 1, 2, 3, 4]

    async def test_full_queue_drops_event(self) -> None:
        """Publishing to a full queue drops the event without raising."""
        bus = InMemoryEventBus(max_size=2)

        await bus.publish(content_bulk_updated())
        await bus.publish(content_bulk_updated())
        await bus.publish(content_bulk_updated())

        assert bus.pending_count == 2

    async def test_failing_handler_does_not_block_others(self) -> None:
        """One handler failing leaves the others and later events intact."""
        bus = InMemoryEventBus()
        received: list[InvalidationEvent] = []

        async def failing(event: InvalidationEvent) -> None:
            raise RuntimeError("boom")

        async def recording(event: InvalidationEvent) -> None:
            received.append(event)

        await bus.subscribe(failing)
        await bus.subscribe(recording)
        await bus.start()

        await bus.publish(content_deleted(1))
        await bus.publish(content_deleted(2))
        await bus.drain()
        await bus.stop()

        assert [e.content_id for e in received] == [1, 2]

    async def test_start_is_idempotent(self) -> None:
        bus = InMemoryEventBus()
        await bus.start()
        await bus.start()
        await bus.stop()
        assert await bus.health_check() is True
