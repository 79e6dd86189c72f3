"""Read-side result types.

Results are cached as JSON via orjson and rehydrated on a hit, so each
type round-trips through a plain dict.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any

from contentsync.content.models import ContentRecord


def last_page_for(total: int, limit: int) -> int:
    return math.ceil(total / limit) if limit > 0 else 0


@dataclass
class ContentListResult:
    """One page of published records."""

    data: list[ContentRecord] = field(default_factory=list)
    total: int = 0
    page: int = 1
    last_page: int = 0
    has_next: bool = False
    has_previous: bool = False

    @classmethod
    def build(cls, data: list[ContentRecord], total: int, page: int, limit: int) -> ContentListResult:
        last_page = last_page_for(total, limit)
        return cls(
            data=data,
            total=total,
            page=page,
            last_page=last_page,
            has_next=page < last_page,
            has_previous=page > 1,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [record.to_dict() for record in self.data],
            "total": self.total,
            "page": self.page,
            "last_page": self.last_page,
            "has_next": self.has_next,
            "has_previous": self.has_previous,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentListResult:
        return cls(
            data=[ContentRecord.from_dict(item) for item in data.get("data", [])],
            total=data.get("total", 0),
            page=data.get("page", 1),
            last_page=data.get("last_page", 0),
            has_next=data.get("has_next", False),
            has_previous=data.get("has_previous", False),
        )


@dataclass
class ContentSearchResult(ContentListResult):
    """One page of search hits."""

    query: str = ""
    search_time_ms: int = 0

    @classmethod
    def empty(cls, query: str, page: int) -> ContentSearchResult:
        return cls(page=max(page, 1), query=query.strip())

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["query"] = self.query
        data["search_time_ms"] = self.search_time_ms
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContentSearchResult:
        base = ContentListResult.from_dict(data)
        return cls(
            data=base.data,
            total=base.total,
            page=base.page,
            last_page=base.last_page,
            has_next=base.has_next,
            has_previous=base.has_previous,
            query=data.get("query", ""),
            search_time_ms=data.get("search_time_ms", 0),
        )
