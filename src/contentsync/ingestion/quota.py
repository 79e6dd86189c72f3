"""Daily request budget tracking for the metadata provider.

Each provider call adds its cost. The counter resets when the UTC date
changes. Crossing the warning threshold logs once per day and fires the
optional callback; the tracker never blocks a call.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import date

from contentsync.content.store import Clock, utc_now
from contentsync.observability.metrics import record_quota_usage

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class QuotaUsage:
    used: int
    limit: int

    @property
    def ratio(self) -> float:
        return self.used / self.limit if self.limit else 0.0

    def to_dict(self) -> dict[str, int]:
        return {"used": self.used, "limit": self.limit}


class QuotaTracker:
    """Counts provider cost units against a daily limit."""

    def __init__(
        self,
        limit: int = 10000,
        warning_ratio: float = 0.9,
        clock: Clock = utc_now,
        on_warning: Callable[[QuotaUsage], None] | None = None,
    ):
        self.limit = limit
        self.warning_ratio = warning_ratio
        self._clock = clock
        self._on_warning = on_warning
        self._used = 0
        self._day: date = clock().date()
        self._warned = False

    def _roll_day(self) -> None:
        today = self._clock().date()
        if today != self._day:
            logger.info(f"Quota counter reset for {today.isoformat()} ({self._used} used on {self._day})")
            self._day = today
            self._used = 0
            self._warned = False

    def consume(self, cost: int) -> QuotaUsage:
        """Record a call's cost and return the updated usage."""
        self._roll_day()
        self._used += cost

        crossed = not self._warned and self._used >= self.limit * self.warning_ratio
        if crossed:
            self._warned = True
            logger.warning(f"Provider quota usage high: {self._used}/{self.limit} units")

        usage = QuotaUsage(self._used, self.limit)
        record_quota_usage(self._used, warning=crossed)
        if crossed and self._on_warning is not None:
            self._on_warning(usage)
        return usage

    def usage(self) -> QuotaUsage:
        self._roll_day()
        return QuotaUsage(self._used, self.limit)

    @property
    def warned(self) -> bool:
        return self._warned
