"""Redis cache implementation for the discovery cache.

Provides async Redis operations for caching serialized read results.
Uses the redis-py async client for connection pooling.
"""

from __future__ import annotations

import logging
from collections.abc import Awaitable
from typing import TYPE_CHECKING, cast

import redis.asyncio as redis

from contentsync.cache.store import CacheStore
from contentsync.errors import CacheError

if TYPE_CHECKING:
    from redis.asyncio import Redis

logger = logging.getLogger(__name__)


def create_redis_client(url: str) -> Redis:
    """Create a pooled Redis client storing raw bytes."""
    return redis.from_url(  # type: ignore[no-untyped-call]
        url,
        encoding="utf-8",
        decode_responses=False,  # We're storing bytes
    )


class RedisCacheStore(CacheStore):
    """Cache store backed by Redis.

    Reads and writes swallow Redis errors so that a cache outage degrades
    reads to the canonical store instead of failing them. Deletes raise
    CacheError; event handling logs it, manual invalidation surfaces it.
    """

    def __init__(self, client: Redis):
        self.client = client

    async def get(self, key: str) -> bytes | None:
        try:
            return cast(bytes | None, await self.client.get(key))
        except Exception as e:
            logger.warning(f"Cache get failed for key {key}: {e}")
            return None

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        try:
            await self.client.setex(key, ttl_seconds, value)
        except Exception as e:
            logger.warning(f"Cache set failed for key {key}: {e}")

    async def delete(self, key: str) -> None:
        try:
            await self.client.delete(key)
        except Exception as e:
            raise CacheError(f"Cache delete failed for key {key}: {e}") from e

    async def delete_pattern(self, pattern: str) -> int:
        deleted = 0
        try:
            # Use SCAN to avoid blocking on large keyspaces
            async for key in self.client.scan_iter(match=pattern):
                await self.client.delete(key)
                deleted += 1
        except Exception as e:
            raise CacheError(f"Cache pattern delete failed for pattern {pattern}: {e}") from e
        return deleted

    async def health_check(self) -> bool:
        """Check Redis connectivity."""
        try:
            await cast(Awaitable[bool], self.client.ping())
            return True
        except Exception:
            return False
