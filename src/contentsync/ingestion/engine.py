"""Sync pass orchestration.

A pass resolves the configured channel, reads its watermark, lists items
published after it, reconciles each item in isolation, advances the
watermark and finally publishes the batched invalidation events.

Guarantees:
- At most one pass runs per engine. A second request while one is running
  raises SyncInProgressError immediately; it never waits.
- The watermark advances only when the pass gets through the item loop,
  whether or not individual items failed. Provider failures, timeouts and
  cancellation leave it untouched.
- Records committed before an abort stay committed. The next pass sees
  them as existing and skips or updates them.
- last_result reflects the most recent pass, including aborted ones.

Example:
    engine = IngestionEngine(provider, reconciler, watermarks, publisher, config)
    result = await engine.run_sync_pass(trigger="manual")
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import fields, replace
from datetime import datetime
from typing import Any
from uuid import uuid4

from contentsync.content.store import Clock, utc_now
from contentsync.errors import (
    ChannelNotFoundError,
    IngestionFailedError,
    SyncInProgressError,
)
from contentsync.events.publisher import ContentEventPublisher
from contentsync.ingestion.models import (
    ReconcileAction,
    SyncConfiguration,
    SyncResult,
    SyncState,
    SyncStatus,
)
from contentsync.ingestion.provider import VideoProvider
from contentsync.ingestion.reconciler import Reconciler
from contentsync.ingestion.watermark import WatermarkStore
from contentsync.observability.logging import LogContext
from contentsync.observability.metrics import record_sync_item, record_sync_pass

logger = logging.getLogger(__name__)


class IngestionEngine:
    """Runs sync passes against one provider and one channel."""

    def __init__(
        self,
        provider: VideoProvider,
        reconciler: Reconciler,
        watermarks: WatermarkStore,
        publisher: ContentEventPublisher,
        config: SyncConfiguration,
        *,
        enabled: bool = True,
        pass_timeout: float | None = 300.0,
        clock: Clock = utc_now,
    ):
        self.provider = provider
        self.reconciler = reconciler
        self.watermarks = watermarks
        self.publisher = publisher
        self.enabled = enabled
        self.pass_timeout = pass_timeout
        self._config = config
        self._clock = clock
        self._lock = asyncio.Lock()
        self._last_result: SyncResult | None = None
        self.state = SyncState.IDLE
        # Set by the scheduler
        self.next_run: datetime | None = None

        self.reconciler.auto_publish = config.auto_publish

    @property
    def running(self) -> bool:
        return self._lock.locked()

    # -------------------------------------------------------------------------
    # Pass execution
    # -------------------------------------------------------------------------

    async def run_sync_pass(self, trigger: str = "manual") -> SyncResult:
        """Run one pass and return its result.

        Raises:
            SyncInProgressError: another pass is running
            ChannelNotFoundError: the channel handle did not resolve
            IngestionFailedError: the pass aborted (provider error, timeout)
        """
        if self._lock.locked():
            record_sync_pass("rejected")
            raise SyncInProgressError()

        async with self._lock:
            run_id = uuid4().hex[:8]
            with LogContext(sync_run_id=run_id, channel=self._config.channel_handle):
                return await self._run(trigger)

    async def _run(self, trigger: str) -> SyncResult:
        self.state = SyncState.RUNNING
        result = SyncResult(started_at=self._clock())
        started = time.perf_counter()
        logger.info(f"Starting {trigger} sync for {self._config.channel_handle}")

        deadline = asyncio.timeout(self.pass_timeout or None)
        try:
            async with deadline:
                await self._execute(result)
        except asyncio.CancelledError:
            self._finish(result, started, error="Sync pass cancelled")
            logger.warning("Sync pass cancelled, watermark not advanced")
            raise
        except TimeoutError as e:
            if not deadline.expired():
                raise self._abort(result, started, e) from e
            message = f"Sync pass timed out after {self.pass_timeout}s"
            self._finish(result, started, error=message)
            logger.error(f"{message}, watermark not advanced")
            raise IngestionFailedError(message) from e
        except ChannelNotFoundError as e:
            self._finish(result, started, error=str(e))
            logger.error(f"Channel sync failed: {e}")
            raise
        except Exception as e:
            raise self._abort(result, started, e) from e

        self._finish(result, started)
        logger.info(
            f"Sync completed: {result.created} created, {result.updated} updated, "
            f"{result.skipped} skipped, {result.failed} failed"
        )
        return result

    def _abort(self, result: SyncResult, started: float, error: Exception) -> IngestionFailedError:
        failure = IngestionFailedError(error)
        self._finish(result, started, error=str(failure))
        logger.error(f"Channel sync failed: {error}", exc_info=error)
        return failure

    async def _execute(self, result: SyncResult) -> None:
        handle = self._config.channel_handle
        channel_id = await self.provider.resolve_channel(handle)
        if not channel_id:
            raise ChannelNotFoundError(handle)

        watermark = await self.watermarks.get(channel_id)
        pass_started = self._clock()
        items = await self.provider.list_items(
            channel_id,
            self._config.max_items_per_pass,
            published_after=watermark,
        )
        logger.info(f"Processing {len(items)} videos from channel {channel_id}")

        created_ids: list[int] = []
        for item in items:
            result.processed += 1
            try:
                outcome = await self.reconciler.reconcile(item)
            except Exception as e:
                result.failed += 1
                result.errors.append(f"{item.title}: {e}")
                record_sync_item("failed")
                logger.warning(f"Failed to sync video {item.external_id}: {e}")
                continue

            if outcome.action == ReconcileAction.CREATED:
                result.created += 1
                created_ids.append(outcome.content_id)
            elif outcome.action == ReconcileAction.UPDATED:
                result.updated += 1
            else:
                result.skipped += 1
            record_sync_item(outcome.action.value)

        await self._advance_watermark(channel_id, watermark, pass_started)
        await self.publisher.publish_sync_completed(result.changed, created_ids)

    async def _advance_watermark(
        self, channel_id: str, previous: datetime | None, candidate: datetime
    ) -> None:
        if previous is not None and candidate <= previous:
            logger.warning(f"Keeping watermark {previous.isoformat()} for {channel_id}")
            return
        await self.watermarks.set(channel_id, candidate)
        logger.debug(f"Updated sync timestamp for channel {channel_id}: {candidate.isoformat()}")

    def _finish(self, result: SyncResult, started: float, error: str | None = None) -> None:
        result.completed_at = self._clock()
        result.duration_ms = (time.perf_counter() - started) * 1000
        duration = result.duration_ms / 1000

        if error is not None:
            result.errors.append(error)
            result.success = False
            self.state = SyncState.FAILED
            record_sync_pass("failed", duration)
        else:
            result.success = result.failed == 0
            self.state = SyncState.COMPLETED
            record_sync_pass("completed" if result.success else "partial", duration)

        self._last_result = result

    # -------------------------------------------------------------------------
    # Status and configuration
    # -------------------------------------------------------------------------

    def get_last_sync_result(self) -> SyncResult | None:
        return self._last_result

    def get_sync_status(self) -> SyncStatus:
        return SyncStatus(
            enabled=self.enabled,
            running=self.running,
            channel=self._config.channel_handle,
            next_run=self.next_run,
            state=self.state,
            last_result=self._last_result,
        )

    async def get_api_health(self) -> dict[str, Any]:
        """Probe provider access and report quota usage."""
        try:
            accessible = await self.provider.check_access()
            usage = self.provider.quota_usage()
        except Exception as e:
            logger.error(f"API health check failed: {e}", exc_info=True)
            return {"healthy": False, "quota_used": None, "quota_limit": None, "error": str(e)}

        if not accessible:
            return {
                "healthy": False,
                "quota_used": usage.used,
                "quota_limit": usage.limit,
                "error": "API validation failed - check credentials",
            }
        return {
            "healthy": True,
            "quota_used": usage.used,
            "quota_limit": usage.limit,
            "error": None,
        }

    def get_sync_configuration(self) -> SyncConfiguration:
        return replace(self._config)

    def update_sync_configuration(self, **changes: Any) -> SyncConfiguration:
        """Change sync parameters; takes effect on the next pass."""
        known = {f.name for f in fields(SyncConfiguration)}
        unknown = set(changes) - known
        if unknown:
            raise ValueError(f"Unknown sync configuration fields: {', '.join(sorted(unknown))}")
        if "max_items_per_pass" in changes and changes["max_items_per_pass"] < 1:
            raise ValueError("max_items_per_pass must be at least 1")
        if "sync_interval_seconds" in changes and changes["sync_interval_seconds"] < 1:
            raise ValueError("sync_interval_seconds must be at least 1")

        self._config = replace(self._config, **changes)
        self.reconciler.auto_publish = self._config.auto_publish
        logger.info(f"Sync configuration updated: {changes}")
        return self.get_sync_configuration()
