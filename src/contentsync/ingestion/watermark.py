"""Sync watermark storage.

A watermark maps a channel id to the time of its last completed sync pass.
The engine reads it to bound the provider query and advances it only after
a pass completes.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class WatermarkStore(ABC):
    """Abstract channel watermark store."""

    @abstractmethod
    async def get(self, channel_id: str) -> datetime | None:
        """Return the last completed sync time for a channel."""

    @abstractmethod
    async def set(self, channel_id: str, timestamp: datetime) -> None:
        """Record a completed sync for a channel."""


class InMemoryWatermarkStore(WatermarkStore):
    def __init__(self) -> None:
        self._marks: dict[str, datetime] = {}

    async def get(self, channel_id: str) -> datetime | None:
        return self._marks.get(channel_id)

    async def set(self, channel_id: str, timestamp: datetime) -> None:
        self._marks[channel_id] = timestamp
