"""Cache-aside reads for published content.

Each read sanitises its parameters, builds a deterministic key, returns the
cached value on a hit and otherwise queries the repository and populates
the cache. Cache failures never fail a read: a broken get is a miss and a
broken set is logged. There is no lock around the miss path, so two
concurrent misses may both compute and both write; the later write wins.

TTLs per operation class:
- list and item: cache_ttl_seconds
- search: search_cache_ttl_seconds
- latest: the shorter of cache_ttl_seconds and latest_cache_ttl_cap_seconds
"""

from __future__ import annotations

import logging
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import orjson

from contentsync.cache.invalidation import CacheInvalidator
from contentsync.cache.keys import CacheKeys
from contentsync.cache.store import CacheStore
from contentsync.content.models import ContentRecord
from contentsync.discovery.models import ContentListResult, ContentSearchResult
from contentsync.discovery.repository import ContentDiscoveryRepository
from contentsync.errors import ContentNotFoundError
from contentsync.observability.metrics import (
    record_cache_error,
    record_cache_hit,
    record_cache_miss,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

MIN_QUERY_LENGTH = 2
MAX_QUERY_LENGTH = 100
MAX_LATEST_COUNT = 50


class DiscoveryCacheLayer:
    """Cached read operations over the discovery repository.

    Example:
        layer = DiscoveryCacheLayer(repository, cache_store, CacheKeys())
        page = await layer.list_published(page=1, limit=20)
        hits = await layer.search_published("history", page=1, limit=10)
    """

    def __init__(
        self,
        repository: ContentDiscoveryRepository,
        cache: CacheStore,
        keys: CacheKeys | None = None,
        *,
        ttl_seconds: int = 60,
        search_ttl_seconds: int = 30,
        latest_ttl_cap_seconds: int = 30,
        default_page_size: int = 20,
        max_page_size: int = 50,
        max_search_page_size: int = 30,
    ):
        self.repository = repository
        self.cache = cache
        self.keys = keys or CacheKeys()
        self.invalidator = CacheInvalidator(cache, self.keys)
        self.ttl_seconds = ttl_seconds
        self.search_ttl_seconds = search_ttl_seconds
        self.latest_ttl_seconds = min(ttl_seconds, latest_ttl_cap_seconds)
        self.default_page_size = default_page_size
        self.max_page_size = max_page_size
        self.max_search_page_size = max_search_page_size

    # -------------------------------------------------------------------------
    # Read operations
    # -------------------------------------------------------------------------

    async def list_published(self, page: int = 1, limit: int | None = None) -> ContentListResult:
        page = max(page, 1)
        limit = self._clamp_limit(limit, self.max_page_size)
        key = self.keys.content_list(page, limit)

        async def load() -> ContentListResult:
            return await self.repository.find_published(page, limit)

        return await self._cached(
            "list",
            key,
            self.ttl_seconds,
            load,
            encode=lambda result: result.to_dict(),
            decode=ContentListResult.from_dict,
        )

    async def get_published_by_id(self, content_id: int) -> ContentRecord:
        if not isinstance(content_id, int) or isinstance(content_id, bool) or content_id < 1:
            raise ContentNotFoundError(content_id)
        key = self.keys.content_item(content_id)

        cached = await self._read("item", key)
        if cached is not None:
            return ContentRecord.from_dict(cached)

        record = await self.repository.find_published_by_id(content_id)
        if record is None:
            raise ContentNotFoundError(content_id)

        await self._write("item", key, record.to_dict(), self.ttl_seconds)
        return record

    async def search_published(
        self, query: str, page: int = 1, limit: int | None = None
    ) -> ContentSearchResult:
        clean_query = self.sanitize_query(query)
        if not clean_query:
            return ContentSearchResult.empty(query or "", page)

        page = max(page, 1)
        limit = self._clamp_limit(limit, self.max_search_page_size)
        key = self.keys.content_search(clean_query, page, limit)

        async def load() -> ContentSearchResult:
            started = time.perf_counter()
            result = await self.repository.search_published(clean_query, page, limit)
            result.search_time_ms = int((time.perf_counter() - started) * 1000)
            return result

        result = await self._cached(
            "search",
            key,
            self.search_ttl_seconds,
            load,
            encode=lambda r: r.to_dict(),
            decode=ContentSearchResult.from_dict,
        )
        # Search keys fold case; echo this caller's query
        result.query = clean_query
        logger.debug(f'Search "{clean_query}": {result.total} results')
        return result

    async def list_latest(self, count: int = 10) -> list[ContentRecord]:
        count = min(max(count, 1), MAX_LATEST_COUNT)
        key = self.keys.content_latest(count)

        async def load() -> list[ContentRecord]:
            return await self.repository.latest_published(count)

        return await self._cached(
            "latest",
            key,
            self.latest_ttl_seconds,
            load,
            encode=lambda records: [r.to_dict() for r in records],
            decode=lambda items: [ContentRecord.from_dict(item) for item in items],
        )

    # -------------------------------------------------------------------------
    # Invalidation
    # -------------------------------------------------------------------------

    async def invalidate_content(self, content_id: int | None = None) -> None:
        """Evict one item (when given) and every collection entry."""
        await self.invalidator.invalidate_content(content_id)

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def sanitize_query(query: str | None) -> str:
        """Trim a search query; too short yields "", too long is truncated."""
        if not query or not isinstance(query, str):
            return ""
        clean = query.strip()
        if len(clean) < MIN_QUERY_LENGTH:
            return ""
        return clean[:MAX_QUERY_LENGTH]

    def _clamp_limit(self, limit: int | None, upper: int) -> int:
        if limit is None:
            limit = self.default_page_size
        return min(max(limit, 1), upper)

    async def _cached(
        self,
        operation: str,
        key: str,
        ttl: int,
        load: Callable[[], Awaitable[T]],
        *,
        encode: Callable[[T], Any],
        decode: Callable[[Any], T],
    ) -> T:
        cached = await self._read(operation, key)
        if cached is not None:
            try:
                return decode(cached)
            except Exception as e:
                record_cache_error(operation)
                logger.warning(f"Discarding undecodable cache entry {key}: {e}")

        value = await load()
        await self._write(operation, key, encode(value), ttl)
        return value

    async def _read(self, operation: str, key: str) -> Any | None:
        try:
            raw = await self.cache.get(key)
        except Exception as e:
            record_cache_error(operation)
            logger.warning(f"Cache get failed for key {key}: {e}")
            return None

        if raw is None:
            record_cache_miss(operation)
            logger.debug(f"Cache miss: {key}")
            return None

        try:
            value = orjson.loads(raw)
        except orjson.JSONDecodeError as e:
            record_cache_error(operation)
            logger.warning(f"Discarding malformed cache entry {key}: {e}")
            return None

        record_cache_hit(operation)
        logger.debug(f"Cache hit: {key}")
        return value

    async def _write(self, operation: str, key: str, value: Any, ttl: int) -> None:
        try:
            await self.cache.set(key, orjson.dumps(value), ttl)
        except Exception as e:
            record_cache_error(operation)
            logger.warning(f"Cache set failed for key {key}: {e}")
