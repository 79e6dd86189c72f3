"""Read-side discovery of published content."""

from contentsync.discovery.cache_layer import DiscoveryCacheLayer
from contentsync.discovery.models import ContentListResult, ContentSearchResult
from contentsync.discovery.repository import (
    ContentDiscoveryRepository,
    InMemoryDiscoveryRepository,
)

__all__ = [
    "ContentDiscoveryRepository",
    "ContentListResult",
    "ContentSearchResult",
    "DiscoveryCacheLayer",
    "InMemoryDiscoveryRepository",
]
