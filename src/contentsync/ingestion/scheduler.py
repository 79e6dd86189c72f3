"""Interval scheduler for sync passes.

Runs a pass every sync_interval_seconds (read from the engine's current
configuration each cycle). A tick that finds a pass already running is
skipped. Failures are logged and the loop continues.
"""

from __future__ import annotations

import asyncio
import logging
from datetime import timedelta

from contentsync.content.store import Clock, utc_now
from contentsync.errors import ContentSyncError, SyncInProgressError
from contentsync.ingestion.engine import IngestionEngine

logger = logging.getLogger(__name__)


class SyncScheduler:
    """Triggers IngestionEngine passes on a fixed interval.

    Example:
        scheduler = SyncScheduler(engine)
        await scheduler.start()
        ...
        await scheduler.stop()
    """

    def __init__(
        self,
        engine: IngestionEngine,
        run_on_start: bool = False,
        clock: Clock = utc_now,
    ):
        self.engine = engine
        self.run_on_start = run_on_start
        self._clock = clock
        self._running = False
        self._task: asyncio.Task[None] | None = None

    @property
    def interval(self) -> float:
        return float(self.engine.get_sync_configuration().sync_interval_seconds)

    async def start(self) -> None:
        """Start the scheduler loop."""
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._loop())
        logger.info(f"Sync scheduler started (every {self.interval:.0f}s)")

    async def stop(self) -> None:
        """Stop the loop, cancelling any pass in flight."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        self.engine.next_run = None
        logger.info("Sync scheduler stopped")

    async def _loop(self) -> None:
        if self.run_on_start:
            await self.tick()

        while self._running:
            interval = self.interval
            self.engine.next_run = self._clock() + timedelta(seconds=interval)
            try:
                await asyncio.sleep(interval)
            except asyncio.CancelledError:
                break
            await self.tick()

    async def tick(self) -> None:
        """Run one scheduled pass, skipping if one is in progress."""
        try:
            await self.engine.run_sync_pass(trigger="scheduled")
        except SyncInProgressError:
            logger.warning("Sync already running, skipping scheduled execution")
        except ContentSyncError as e:
            logger.error(f"Scheduled sync failed: {e}")
        except Exception as e:
            logger.error(f"Scheduled sync failed: {e}", exc_info=True)
