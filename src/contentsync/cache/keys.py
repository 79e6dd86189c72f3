"""Cache key schema for the discovery cache.

Key format: {prefix}:{operation}[:{param}]*

Where:
- prefix: "cms_discovery" by default (namespace shared with other services)
- operation: content_list, content_item, content_search, content_latest
- param: normalized string form of each parameter, in call order

The same operation with the same normalized parameters always yields the
same key. Collections are evicted by the pattern {prefix}:{operation}*.
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import orjson


def normalize_param(param: Any) -> str:
    """Render one key parameter in a stable form."""
    if param is None:
        return ""
    if isinstance(param, bool):
        return "true" if param else "false"
    if isinstance(param, float) and param.is_integer():
        return str(int(param))
    if isinstance(param, int | float):
        return str(param)
    if isinstance(param, str):
        # Colons and glob characters would break key parsing and pattern deletes
        return quote(param.strip(), safe="")
    if isinstance(param, dict):
        return quote(orjson.dumps(param, option=orjson.OPT_SORT_KEYS).decode(), safe="")
    if isinstance(param, list | tuple):
        return ",".join(normalize_param(item) for item in param)
    return quote(str(param), safe="")


class CacheKeys:
    """Cache key generator for discovery reads."""

    PREFIX = "cms_discovery"

    CONTENT_LIST = "content_list"
    CONTENT_ITEM = "content_item"
    CONTENT_SEARCH = "content_search"
    CONTENT_LATEST = "content_latest"

    COLLECTIONS = (CONTENT_LIST, CONTENT_SEARCH, CONTENT_LATEST)

    def __init__(self, prefix: str = PREFIX):
        self.prefix = prefix

    @staticmethod
    def generate_key(operation: str, *params: Any) -> str:
        """Build the unprefixed key for an operation and its parameters."""
        if not params:
            return operation
        return ":".join([operation, *(normalize_param(p) for p in params)])

    def full_key(self, key: str) -> str:
        return f"{self.prefix}:{key}"

    def content_list(self, page: int, limit: int) -> str:
        """Key for a page of published content."""
        return self.full_key(self.generate_key(self.CONTENT_LIST, page, limit))

    def content_item(self, content_id: int) -> str:
        """Key for a single published record."""
        return self.full_key(self.generate_key(self.CONTENT_ITEM, content_id))

    def content_search(self, query: str, page: int, limit: int) -> str:
        """Key for a page of search results."""
        return self.full_key(self.generate_key(self.CONTENT_SEARCH, query.lower(), page, limit))

    def content_latest(self, count: int) -> str:
        """Key for the latest-N listing."""
        return self.full_key(self.generate_key(self.CONTENT_LATEST, count))

    def collection_patterns(self) -> list[str]:
        """Patterns matching every list, search and latest entry.

        Use with Redis SCAN + DEL for invalidation.
        """
        return [self.full_key(f"{operation}*") for operation in self.COLLECTIONS]

    def parse_key(self, key: str) -> dict[str, Any] | None:
        """Split a full key into operation and raw params.

        Returns None if the key doesn't carry this prefix.
        """
        head = f"{self.prefix}:"
        if not key.startswith(head):
            return None
        parts = key[len(head) :].split(":")
        return {"operation": parts[0], "params": parts[1:]}
