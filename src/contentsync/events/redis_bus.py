"""Redis Pub/Sub event bus for cross-process invalidation.

The write side (CMS and sync engine) publishes content events; every
read-side process subscribed to the channel receives them and evicts its
cache entries.

Delivery is best-effort by design of Pub/Sub: subscribers that are down
when a message is published never see it. There is no acknowledgment,
no retry and no dead-letter stream.

Features:
- publish() is a non-blocking put into a bounded outbound queue
- A sender task drains the queue to Redis, so a slow or unavailable
  Redis never stalls the write path
- A listener task dispatches incoming messages, one failure per message
"""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING, Awaitable, cast

from contentsync.events.bus import EventBus, EventHandler, dispatch, handler_name
from contentsync.events.schemas import InvalidationEvent
from contentsync.observability.metrics import record_event_dropped, record_event_published

if TYPE_CHECKING:
    from redis.asyncio import Redis
    from redis.asyncio.client import PubSub

logger = logging.getLogger(__name__)

CHANNEL = "contentsync:content-events"
OUTBOUND_QUEUE_SIZE = 1000


class RedisPubSubEventBus(EventBus):
    """Redis Pub/Sub based event bus.

    Example:
        bus = RedisPubSubEventBus(redis_client)
        await bus.subscribe(subscriber.handle_event)
        await bus.start()

        await bus.publish(content_bulk_updated())

        await bus.stop()
    """

    def __init__(
        self,
        client: Redis,
        channel: str = CHANNEL,
        max_queue_size: int = OUTBOUND_QUEUE_SIZE,
    ):
        self.client = client
        self.channel = channel
        self._outbound: asyncio.Queue[InvalidationEvent] = asyncio.Queue(maxsize=max_queue_size)
        self._handlers: list[EventHandler] = []
        self._running = False
        self._sender: asyncio.Task[None] | None = None
        self._listener: asyncio.Task[None] | None = None
        self._pubsub: PubSub | None = None

    async def publish(self, event: InvalidationEvent) -> None:
        """Queue an event for the sender task. Never raises."""
        try:
            self._outbound.put_nowait(event)
        except asyncio.QueueFull:
            record_event_dropped("queue_full")
            logger.warning(f"Outbound event queue full, dropped {event.kind.value} event")

    async def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler to receive events."""
        self._handlers.append(handler)
        logger.info(f"Registered event handler: {handler_name(handler)}")

    async def start(self) -> None:
        """Start the sender and, when handlers exist, the listener."""
        if self._running:
            return

        self._running = True
        self._sender = asyncio.create_task(self._send_loop())

        if self._handlers:
            self._pubsub = self.client.pubsub()
            await self._pubsub.subscribe(self.channel)
            self._listener = asyncio.create_task(self._listen_loop())

        logger.info(f"Started event bus on channel {self.channel}")

    async def stop(self) -> None:
        """Stop both loops. Events still queued are discarded."""
        self._running = False

        for task in (self._sender, self._listener):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._sender = None
        self._listener = None

        if self._pubsub:
            try:
                await self._pubsub.unsubscribe(self.channel)
                await self._pubsub.aclose()
            except Exception as e:
                logger.warning(f"Error closing pubsub: {e}")
            self._pubsub = None

        dropped = self._outbound.qsize()
        if dropped:
            record_event_dropped("shutdown")
            logger.warning(f"Discarded {dropped} unsent events on shutdown")

        logger.info("Stopped event bus")

    async def _send_loop(self) -> None:
        """Drain the outbound queue to Redis."""
        while self._running:
            try:
                event = await self._outbound.get()
            except asyncio.CancelledError:
                break

            try:
                count = cast(int, await self.client.publish(self.channel, event.to_bytes()))
                record_event_published(event.kind.value)
                logger.debug(f"Published {event.kind.value} event to {count} subscribers")
            except asyncio.CancelledError:
                raise
            except Exception as e:
                record_event_dropped("transport_error")
                logger.error(f"Failed to publish {event.kind.value} event: {e}")
            finally:
                self._outbound.task_done()

    async def _listen_loop(self) -> None:
        """Main loop for receiving events."""
        while self._running and self._pubsub:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True,
                    timeout=1.0,
                )

                if message is None:
                    continue

                if message["type"] == "message":
                    await self._handle_message(message["data"])

            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"Error in event listener: {e}")
                await asyncio.sleep(1)

    async def _handle_message(self, data: bytes) -> None:
        """Parse one message and hand it to the handlers."""
        try:
            event = InvalidationEvent.from_bytes(data)
        except Exception as e:
            logger.error(f"Failed to parse event message: {e}")
            return

        logger.debug(f"Received {event.kind.value} event (content {event.content_id})")
        await dispatch(self._handlers, event)

    @property
    def pending_count(self) -> int:
        """Events waiting to be sent."""
        return self._outbound.qsize()

    async def flush(self) -> None:
        """Wait until every queued event has been handed to Redis."""
        await self._outbound.join()

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except Exception:
            return False
