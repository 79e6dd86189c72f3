"""Global pytest configuration and fixtures.

Provides a controllable clock, a scripted video provider and an in-memory
runtime shared by unit and integration tests.
"""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from contentsync.config import Settings
from contentsync.errors import ProviderError
from contentsync.ingestion.models import VideoItem
from contentsync.ingestion.provider import VideoProvider
from contentsync.ingestion.quota import QuotaTracker, QuotaUsage
from contentsync.runtime import ContentSyncRuntime


class MutableClock:
    """Clock whose time only moves when a test says so."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now = self.now + timedelta(seconds=seconds)


class FakeVideoProvider(VideoProvider):
    """Scripted provider.

    ``items`` is returned by list_items (filtered by published_after like the
    real provider). Set ``list_error`` or ``resolve_error`` to make calls fail.
    """

    def __init__(self, quota: QuotaTracker | None = None, channel_id: str | None = "UC123"):
        self.channel_id = channel_id
        self.items: list[VideoItem] = []
        self.quota = quota or QuotaTracker(limit=10000)
        self.list_error: Exception | None = None
        self.resolve_error: Exception | None = None
        self.accessible = True
        self.list_calls: list[tuple[str, int, datetime | None]] = []
        self.closed = False

    async def resolve_channel(self, handle: str) -> str | None:
        self.quota.consume(1)
        if self.resolve_error:
            raise self.resolve_error
        return self.channel_id

    async def list_items(
        self,
        channel_id: str,
        max_results: int,
        published_after: datetime | None = None,
    ) -> list[VideoItem]:
        self.quota.consume(3)
        self.list_calls.append((channel_id, max_results, published_after))
        if self.list_error:
            raise self.list_error
        items = [i for i in self.items if published_after is None or i.published_at > published_after]
        return items[:max_results]

    async def check_access(self) -> bool:
        self.quota.consume(1)
        if not self.accessible:
            raise ProviderError("forbidden", status_code=401)
        return True

    def quota_usage(self) -> QuotaUsage:
        return self.quota.usage()

    async def aclose(self) -> None:
        self.closed = True


def make_item(
    external_id: str | None = "vid1",
    title: str = "Episode 1",
    description: str = "About episode 1",
    published_at: datetime | None = None,
    thumbnail_url: str | None = "https://i.ytimg.com/vi/vid1/maxresdefault.jpg",
) -> VideoItem:
    return VideoItem(
        external_id=external_id,
        title=title,
        description=description,
        thumbnail_url=thumbnail_url,
        published_at=published_at or datetime(2026, 1, 1, 12, 0, tzinfo=UTC),
        channel_id="UC123",
        channel_title="Thmanyah Podcasts",
    )


@pytest.fixture
def clock() -> MutableClock:
    """A clock frozen at 2026-01-10 12:00 UTC."""
    return MutableClock(datetime(2026, 1, 10, 12, 0, tzinfo=UTC))


@pytest.fixture
def test_settings() -> Settings:
    """Settings for fully in-process runs."""
    return Settings(
        store_backend="memory",
        cache_backend="memory",
        event_bus_backend="memory",
        youtube_api_key="test-key",
        sync_enabled=True,
        sync_pass_timeout_seconds=5.0,
        enable_metrics=True,
    )


@pytest.fixture
def provider(clock: MutableClock) -> FakeVideoProvider:
    return FakeVideoProvider(QuotaTracker(limit=10000, clock=clock))


@pytest.fixture
def runtime(
    test_settings: Settings, provider: FakeVideoProvider, clock: MutableClock
) -> ContentSyncRuntime:
    """An unstarted in-memory runtime."""
    return ContentSyncRuntime.in_memory(test_settings, provider, clock=clock)


@pytest.fixture
def make_video():
    """Factory for VideoItem test data."""
    return make_item
