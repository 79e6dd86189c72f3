"""External video metadata providers.

VideoProvider is the narrow interface the ingestion engine depends on.
YouTubeDataProvider implements it against the YouTube Data API v3 with
httpx.

Error mapping:
- 403 and 429 raise ProviderRateLimitError
- timeouts, connection errors and 5xx raise ProviderError(transient=True)
- any other non-2xx raises ProviderError(transient=False)

Every HTTP request counts one unit against the injected QuotaTracker.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from datetime import UTC, datetime
from typing import Any

import httpx
import orjson

from contentsync.errors import ProviderError, ProviderRateLimitError
from contentsync.ingestion.models import VideoItem
from contentsync.ingestion.quota import QuotaTracker, QuotaUsage

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://www.googleapis.com/youtube/v3"
WATCH_URL = "https://www.youtube.com/watch?v={video_id}"
THUMBNAIL_PREFERENCE = ("maxres", "high", "medium", "default")
MAX_PAGE_RESULTS = 50


def watch_url(video_id: str) -> str:
    return WATCH_URL.format(video_id=video_id)


def select_best_thumbnail(thumbnails: dict[str, Any] | None) -> str | None:
    """Pick the largest available thumbnail URL."""
    if not thumbnails:
        return None
    for size in THUMBNAIL_PREFERENCE:
        url = (thumbnails.get(size) or {}).get("url")
        if url:
            return url
    return None


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return datetime.now(UTC)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class VideoProvider(ABC):
    """Source of external video metadata."""

    @abstractmethod
    async def resolve_channel(self, handle: str) -> str | None:
        """Resolve a channel handle to a channel id, or None if unknown."""

    @abstractmethod
    async def list_items(
        self,
        channel_id: str,
        max_results: int,
        published_after: datetime | None = None,
    ) -> list[VideoItem]:
        """List recent items for a channel, newer than published_after."""

    @abstractmethod
    async def check_access(self) -> bool:
        """Return True if the provider accepts our credentials."""

    @abstractmethod
    def quota_usage(self) -> QuotaUsage:
        """Current daily quota usage."""

    async def aclose(self) -> None:
        """Release network resources."""


class YouTubeDataProvider(VideoProvider):
    """YouTube Data API v3 client.

    Example:
        provider = YouTubeDataProvider(api_key, quota=QuotaTracker(limit=10000))
        channel_id = await provider.resolve_channel("@thmanyahPodcasts")
        items = await provider.list_items(channel_id, max_results=20)
        await provider.aclose()
    """

    def __init__(
        self,
        api_key: str | None,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 10.0,
        quota: QuotaTracker | None = None,
        client: httpx.AsyncClient | None = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.quota = quota or QuotaTracker()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def quota_usage(self) -> QuotaUsage:
        return self.quota.usage()

    # -------------------------------------------------------------------------
    # HTTP
    # -------------------------------------------------------------------------

    async def _get(self, resource: str, params: dict[str, Any]) -> dict[str, Any]:
        self.quota.consume(1)
        query = {**params}
        if self.api_key:
            query["key"] = self.api_key

        try:
            response = await self._client.get(f"{self.base_url}/{resource}", params=query)
        except httpx.TimeoutException as e:
            raise ProviderError(f"YouTube API timeout on {resource}", transient=True) from e
        except httpx.TransportError as e:
            raise ProviderError(f"YouTube API unreachable: {e}", transient=True) from e

        status = response.status_code
        if status in (403, 429):
            logger.warning("YouTube API rate limit reached")
            raise ProviderRateLimitError(
                f"YouTube API rejected {resource} with {status}", status_code=status
            )
        if status >= 500:
            raise ProviderError(
                f"YouTube API error {status} on {resource}", status_code=status, transient=True
            )
        if status >= 400:
            logger.error(f"YouTube API error {status} on {resource}: {response.text[:200]}")
            raise ProviderError(f"YouTube API error {status} on {resource}", status_code=status)

        try:
            return orjson.loads(response.content)
        except orjson.JSONDecodeError as e:
            raise ProviderError(f"Malformed YouTube API response on {resource}") from e

    # -------------------------------------------------------------------------
    # VideoProvider
    # -------------------------------------------------------------------------

    async def resolve_channel(self, handle: str) -> str | None:
        clean_handle = handle.lstrip("@")

        data = await self._get("channels", {"part": "id", "forHandle": f"@{clean_handle}"})
        items = data.get("items") or []
        if items and items[0].get("id"):
            logger.debug(f"Found channel: {items[0]['id']} for {handle}")
            return items[0]["id"]

        # Fallback search
        data = await self._get(
            "search",
            {"part": "snippet", "q": clean_handle, "type": "channel", "maxResults": 1},
        )
        items = data.get("items") or []
        channel_id = (items[0].get("snippet") or {}).get("channelId") if items else None
        if channel_id:
            logger.debug(f"Found channel via search: {channel_id} for {handle}")
        return channel_id

    async def list_items(
        self,
        channel_id: str,
        max_results: int,
        published_after: datetime | None = None,
    ) -> list[VideoItem]:
        data = await self._get("channels", {"part": "contentDetails", "id": channel_id})
        items = data.get("items") or []
        uploads = (
            ((items[0].get("contentDetails") or {}).get("relatedPlaylists") or {}).get("uploads")
            if items
            else None
        )
        if not uploads:
            raise ProviderError(f"No uploads playlist found for channel {channel_id}")

        playlist = await self._get(
            "playlistItems",
            {
                "part": "snippet",
                "playlistId": uploads,
                "maxResults": min(max(max_results, 1), MAX_PAGE_RESULTS),
            },
        )
        video_ids = [
            video_id
            for entry in playlist.get("items") or []
            if (video_id := ((entry.get("snippet") or {}).get("resourceId") or {}).get("videoId"))
        ]
        if not video_ids:
            return []

        videos = await self._get(
            "videos",
            {"part": "snippet,statistics,contentDetails", "id": ",".join(video_ids)},
        )
        result = [self._to_item(video) for video in videos.get("items") or [] if video.get("snippet")]

        if published_after is not None:
            result = [item for item in result if item.published_at > published_after]
        return result[:max_results]

    async def check_access(self) -> bool:
        try:
            await self._get("search", {"part": "id", "q": "test", "maxResults": 1})
            return True
        except ProviderError as e:
            logger.error(f"API validation failed: {e}")
            return False

    @staticmethod
    def _to_item(video: dict[str, Any]) -> VideoItem:
        snippet = video["snippet"]
        statistics = video.get("statistics") or {}
        return VideoItem(
            external_id=video.get("id"),
            title=snippet.get("title") or "Untitled",
            description=snippet.get("description") or "",
            thumbnail_url=select_best_thumbnail(snippet.get("thumbnails")),
            published_at=_parse_timestamp(snippet.get("publishedAt")),
            channel_id=snippet.get("channelId") or "",
            channel_title=snippet.get("channelTitle") or "",
            duration=(video.get("contentDetails") or {}).get("duration"),
            view_count=int(statistics.get("viewCount") or 0),
        )
