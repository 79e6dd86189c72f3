"""Tests for sync pass orchestration."""

import asyncio
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest

from contentsync.errors import (
    ChannelNotFoundError,
    IngestionFailedError,
    ProviderError,
    SyncInProgressError,
)
from contentsync.events.schemas import ContentAction, InvalidationKind
from contentsync.ingestion.models import SyncState
from contentsync.ingestion.quota import QuotaTracker, QuotaUsage
from contentsync.runtime import ContentSyncRuntime


def drain_events(runtime: ContentSyncRuntime) -> list:
    return [runtime.bus._queue.get_nowait() for _ in range(runtime.bus.pending_count)]


def gate_list_items(provider) -> asyncio.Event:
    """Make list_items block until the returned event is set."""
    gate = asyncio.Event()
    original = provider.list_items

    async def blocked(*args, **kwargs):
        await gate.wait()
        return await original(*args, **kwargs)

    provider.list_items = blocked
    return gate


class TestSyncPass:
    """Test a complete pass."""

    async def test_creates_new_items(self, runtime: ContentSyncRuntime, provider, make_video) -> None:
        provider.items = [make_video("a", "A"), make_video("b", "B")]

        result = await runtime.engine.run_sync_pass()

        assert (result.processed, result.created, result.failed) == (2, 2, 0)
        assert result.success
        assert result.completed_at is not None
        assert len(runtime.content_store) == 2

    async def test_events_are_batched_after_pass(
        self, runtime: ContentSyncRuntime, provider, make_video
    ) -> None:
        """One created event per new record, then one bulk event."""
        provider.items = [make_video("a", "A"), make_video("b", "B")]

        await runtime.engine.run_sync_pass()

        events = drain_events(runtime)
        assert [e.action for e in events[:2]] == [ContentAction.CREATED, ContentAction.CREATED]
        assert events[-1].kind == InvalidationKind.CONTENT_BULK_UPDATED
        assert len(events) == 3

    async def test_unchanged_pass_publishes_nothing(
        self, runtime: ContentSyncRuntime, provider, make_video
    ) -> None:
        provider.items = [make_video("a", "A")]
        await runtime.engine.run_sync_pass()
        drain_events(runtime)

        await runtime.engine.watermarks.set("UC123", datetime(2025, 1, 1, tzinfo=UTC))
        result = await runtime.engine.run_sync_pass()

        assert result.skipped == 1
        assert result.changed == 0
        assert runtime.bus.pending_count == 0

    async def test_second_pass_uses_watermark(
        self, runtime: ContentSyncRuntime, provider, clock, make_video
    ) -> None:
        """Only items published after the previous pass started are fetched."""
        provider.items = [make_video("a", "A")]
        await runtime.engine.run_sync_pass()
        first_started = clock.now

        clock.advance(24 * 3600)
        provider.items = [
            make_video("b", "B", published_at=first_started + timedelta(hours=1)),
            make_video("a", "A"),
        ]
        result = await runtime.engine.run_sync_pass()

        assert provider.list_calls[1][2] == first_started
        assert (result.processed, result.created) == (1, 1)
        assert len(runtime.content_store) == 2
        assert await runtime.engine.watermarks.get("UC123") == clock.now

    async def test_partial_failure(self, runtime: ContentSyncRuntime, provider, make_video) -> None:
        """A failing item is counted and the rest of the pass continues."""
        provider.items = [
            make_video("a", "A"),
            make_video(None, "Broken"),
            make_video("c", "C"),
        ]

        result = await runtime.engine.run_sync_pass()

        assert (result.created, result.failed) == (2, 1)
        assert not result.success
        assert result.errors[0].startswith("Broken: ")
        assert await runtime.engine.watermarks.get("UC123") is not None
        assert runtime.engine.state == SyncState.COMPLETED


class TestPassFailures:
    """Test aborted passes."""

    async def test_provider_failure_keeps_watermark(
        self, runtime: ContentSyncRuntime, provider
    ) -> None:
        previous = datetime(2026, 1, 1, tzinfo=UTC)
        await runtime.engine.watermarks.set("UC123", previous)
        provider.list_error = ProviderError("boom", status_code=500, transient=True)

        with pytest.raises(IngestionFailedError) as exc:
            await runtime.engine.run_sync_pass()

        assert isinstance(exc.value.__cause__, ProviderError)
        assert await runtime.engine.watermarks.get("UC123") == previous
        last = runtime.engine.get_last_sync_result()
        assert last is not None and not last.success
        assert runtime.engine.state == SyncState.FAILED

        provider.list_error = None
        await runtime.engine.run_sync_pass()
        assert provider.list_calls[-1][2] == previous

    async def test_inner_timeout_is_not_a_pass_timeout(
        self, runtime: ContentSyncRuntime, provider
    ) -> None:
        """A TimeoutError from a dependency keeps its own message."""
        provider.list_error = TimeoutError("socket read timed out")

        with pytest.raises(IngestionFailedError) as exc:
            await runtime.engine.run_sync_pass()

        assert "socket read timed out" in str(exc.value)
        assert "Sync pass timed out" not in str(exc.value)
        assert isinstance(exc.value.__cause__, TimeoutError)
        assert "socket read timed out" in runtime.engine.get_last_sync_result().errors[-1]

    async def test_channel_not_found(self, runtime: ContentSyncRuntime, provider) -> None:
        provider.channel_id = None
        with pytest.raises(ChannelNotFoundError):
            await runtime.engine.run_sync_pass()

    async def test_timeout(self, runtime: ContentSyncRuntime, provider) -> None:
        gate_list_items(provider)
        runtime.engine.pass_timeout = 0.05

        with pytest.raises(IngestionFailedError, match="timed out"):
            await runtime.engine.run_sync_pass()

        assert await runtime.engine.watermarks.get("UC123") is None
        assert not runtime.engine.running

    async def test_cancellation(self, runtime: ContentSyncRuntime, provider) -> None:
        gate_list_items(provider)
        task = asyncio.create_task(runtime.engine.run_sync_pass())
        await asyncio.sleep(0.05)

        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert runtime.engine.get_last_sync_result().success is False
        assert not runtime.engine.running

    async def test_watermark_never_regresses(
        self, runtime: ContentSyncRuntime, provider, clock
    ) -> None:
        ahead = clock.now + timedelta(days=1)
        await runtime.engine.watermarks.set("UC123", ahead)

        await runtime.engine.run_sync_pass()

        assert await runtime.engine.watermarks.get("UC123") == ahead


class TestSingleFlight:
    """Test concurrent pass requests."""

    async def test_second_request_rejected(
        self, runtime: ContentSyncRuntime, provider, make_video
    ) -> None:
        provider.items = [make_video("a", "A")]
        gate = gate_list_items(provider)

        first = asyncio.create_task(runtime.engine.run_sync_pass())
        await asyncio.sleep(0.05)
        assert runtime.engine.running

        with pytest.raises(SyncInProgressError):
            await runtime.engine.run_sync_pass()

        gate.set()
        result = await first
        assert result.created == 1
        assert not runtime.engine.running

        status = runtime.engine.get_sync_status()
        assert status.state == SyncState.COMPLETED
        assert status.last_result is result


class TestQuotaAndHealth:
    """Test quota accounting and API health."""

    async def test_quota_warning_fires_once(
        self, runtime: ContentSyncRuntime, provider, clock
    ) -> None:
        warnings: list[QuotaUsage] = []
        provider.quota = QuotaTracker(limit=10, clock=clock, on_warning=warnings.append)

        for _ in range(4):
            await runtime.engine.run_sync_pass()

        assert len(warnings) == 1
        assert provider.quota_usage().used == 16

    async def test_api_health(self, runtime: ContentSyncRuntime, provider) -> None:
        health = await runtime.engine.get_api_health()
        assert health == {"healthy": True, "quota_used": 1, "quota_limit": 10000, "error": None}

    async def test_api_health_rejected_credentials(
        self, runtime: ContentSyncRuntime, provider
    ) -> None:
        provider.check_access = AsyncMock(return_value=False)
        health = await runtime.engine.get_api_health()
        assert health["healthy"] is False
        assert health["error"] == "API validation failed - check credentials"

    async def test_api_health_error(self, runtime: ContentSyncRuntime, provider) -> None:
        provider.accessible = False
        health = await runtime.engine.get_api_health()
        assert health["healthy"] is False
        assert health["error"] == "forbidden"


class TestConfiguration:
    """Test runtime configuration changes."""

    def test_update_configuration(self, runtime: ContentSyncRuntime) -> None:
        config = runtime.engine.update_sync_configuration(max_items_per_pass=5, auto_publish=False)

        assert config.max_items_per_pass == 5
        assert runtime.reconciler.auto_publish is False

    def test_returned_configuration_is_a_copy(self, runtime: ContentSyncRuntime) -> None:
        config = runtime.engine.get_sync_configuration()
        config.max_items_per_pass = 999
        assert runtime.engine.get_sync_configuration().max_items_per_pass == 20

    def test_unknown_field(self, runtime: ContentSyncRuntime) -> None:
        with pytest.raises(ValueError):
            runtime.engine.update_sync_configuration(colour="red")

    def test_invalid_value(self, runtime: ContentSyncRuntime) -> None:
        with pytest.raises(ValueError):
            runtime.engine.update_sync_configuration(max_items_per_pass=0)

    async def test_max_items_applies_next_pass(
        self, runtime: ContentSyncRuntime, provider, make_video
    ) -> None:
        provider.items = [make_video(str(i), f"Item {i}") for i in range(5)]
        runtime.engine.update_sync_configuration(max_items_per_pass=2)

        result = await runtime.engine.run_sync_pass()

        assert result.processed == 2
        assert provider.list_calls[0][1] == 2
