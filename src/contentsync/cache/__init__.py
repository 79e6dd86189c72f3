"""Cache layer for contentsync.

Provides the read-side cache used by discovery with the cache-aside pattern:
- Deterministic keys per operation and normalized parameters
- TTL-based expiration bounds staleness when events are lost
- Event-driven invalidation via InvalidationSubscriber
"""

from contentsync.cache.invalidation import CacheInvalidator, InvalidationSubscriber
from contentsync.cache.keys import CacheKeys, normalize_param
from contentsync.cache.redis import RedisCacheStore, create_redis_client
from contentsync.cache.store import CacheStore, InMemoryCacheStore

__all__ = [
    # Keys
    "CacheKeys",
    "normalize_param",
    # Stores
    "CacheStore",
    "InMemoryCacheStore",
    "RedisCacheStore",
    "create_redis_client",
    # Invalidation
    "CacheInvalidator",
    "InvalidationSubscriber",
]
