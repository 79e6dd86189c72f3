"""Event bus implementation for contentsync.

Provides fire-and-forget pub/sub for invalidation events:
- InMemoryEventBus: for single-process deployments and tests
- RedisPubSubEventBus: for separate write and read processes

publish() never raises and never waits on the transport. Events go into a
bounded in-process queue; when the queue is full the event is dropped and
logged. The read-side cache heals through TTL expiry, so a lost event
only extends staleness.
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable

from contentsync.events.schemas import InvalidationEvent
from contentsync.observability.metrics import record_event_dropped, record_event_published

logger = logging.getLogger(__name__)


EventHandler = Callable[[InvalidationEvent], Awaitable[None]]


def handler_name(handler: EventHandler) -> str:
    return getattr(handler, "__name__", handler.__class__.__name__)


class EventBus(ABC):
    """Abstract event bus interface."""

    @abstractmethod
    async def publish(self, event: InvalidationEvent) -> None:
        """Hand an event to the bus. Must not raise."""
        pass

    @abstractmethod
    async def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler to receive events."""
        pass

    @abstractmethod
    async def start(self) -> None:
        """Start the event bus."""
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Stop the event bus."""
        pass

    async def health_check(self) -> bool:
        """Check that the transport is reachable."""
        return True

    async def flush(self) -> None:
        """Wait until queued events have been handed off."""
        return None


async def dispatch(handlers: list[EventHandler], event: InvalidationEvent) -> None:
    """Run every handler for one event, isolating handler failures."""
    for handler in handlers:
        try:
            await handler(event)
        except Exception:
            logger.exception(f"Event handler {handler_name(handler)} failed on {event.kind.value}")


class InMemoryEventBus(EventBus):
    """In-memory event bus using asyncio.Queue.

    Suitable for single-process deployments where the write side and the
    discovery cache live together. Events are processed in FIFO order.
    """

    def __init__(self, max_size: int = 1000):
        self._queue: asyncio.Queue[InvalidationEvent] = asyncio.Queue(maxsize=max_size)
        self._handlers: list[EventHandler] = []
        self._running = False
        self._task: asyncio.Task[None] | None = None

    async def publish(self, event: InvalidationEvent) -> None:
        """Enqueue an event without waiting.

        A full queue drops the event.
        """
        try:
            self._queue.put_nowait(event)
            record_event_published(event.kind.value)
        except asyncio.QueueFull:
            record_event_dropped("queue_full")
            logger.warning(f"Event queue full, dropped {event.kind.value} event")

    async def subscribe(self, handler: EventHandler) -> None:
        """Subscribe a handler to receive events."""
        self._handlers.append(handler)

    async def start(self) -> None:
        """Start processing events."""
        if self._running:
            return

        self._running = True
        self._task = asyncio.create_task(self._process_loop())

    async def stop(self) -> None:
        """Stop processing events."""
        self._running = False

        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _process_loop(self) -> None:
        """Main event processing loop."""
        while self._running:
            try:
                event = await asyncio.wait_for(self._queue.get(), timeout=1.0)
            except TimeoutError:
                continue
            except asyncio.CancelledError:
                break

            try:
                await dispatch(self._handlers, event)
            finally:
                self._queue.task_done()

    @property
    def pending_count(self) -> int:
        """Number of events waiting to be processed."""
        return self._queue.qsize()

    async def drain(self) -> None:
        """Wait for all pending events to be processed."""
        await self._queue.join()

    async def flush(self) -> None:
        await self.drain()
