"""Cache store interface and in-memory implementation.

A cache store holds opaque serialized values under string keys with an
expiry. Entries are overwritten wholesale, never patched. Implementations
must not let read-path failures escape: a get that fails is a miss and a
set that fails is logged and dropped. Deletes raise CacheError so callers
can decide whether an eviction failure matters.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timedelta
from fnmatch import fnmatchcase

from contentsync.content.store import Clock, utc_now

logger = logging.getLogger(__name__)


class CacheStore(ABC):
    """Abstract key/value cache with TTL and pattern deletes."""

    @abstractmethod
    async def get(self, key: str) -> bytes | None:
        """Return the cached value, or None on miss or failure."""

    @abstractmethod
    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        """Store a value with an expiry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        """Remove one key."""

    @abstractmethod
    async def delete_pattern(self, pattern: str) -> int:
        """Remove every key matching a glob pattern. Returns the count."""

    async def health_check(self) -> bool:
        return True


@dataclass
class _Entry:
    value: bytes
    expires_at: datetime


class InMemoryCacheStore(CacheStore):
    """Dict-backed cache for single-process runs and tests.

    Expired entries are removed lazily on access. The clock is injectable
    so tests can move time forward past a TTL.
    """

    def __init__(self, clock: Clock = utc_now):
        self._clock = clock
        self._entries: dict[str, _Entry] = {}

    async def get(self, key: str) -> bytes | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at <= self._clock():
            del self._entries[key]
            return None
        return entry.value

    async def set(self, key: str, value: bytes, ttl_seconds: int) -> None:
        self._entries[key] = _Entry(
            value=value,
            expires_at=self._clock() + timedelta(seconds=ttl_seconds),
        )

    async def delete(self, key: str) -> None:
        self._entries.pop(key, None)

    async def delete_pattern(self, pattern: str) -> int:
        matched = [key for key in self._entries if fnmatchcase(key, pattern)]
        for key in matched:
            del self._entries[key]
        if matched:
            logger.debug(f"Deleted {len(matched)} keys matching {pattern}")
        return len(matched)

    def keys(self) -> list[str]:
        """Live keys, for inspection in tests."""
        now = self._clock()
        return [key for key, entry in self._entries.items() if entry.expires_at > now]

    def __len__(self) -> int:
        return len(self.keys())
