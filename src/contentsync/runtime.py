"""Application wiring.

ContentSyncRuntime owns every long-lived component: store, cache, bus,
provider, engine, scheduler and discovery layer. Nothing is a module-level
singleton; the API, the CLI and tests each build their own runtime.

Example:
    runtime = ContentSyncRuntime.from_settings(settings)
    await runtime.start()
    result = await runtime.engine.run_sync_pass()
    await runtime.stop()
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from contentsync.cache.invalidation import InvalidationSubscriber
from contentsync.cache.keys import CacheKeys
from contentsync.cache.redis import RedisCacheStore, create_redis_client
from contentsync.cache.store import CacheStore, InMemoryCacheStore
from contentsync.config import Settings
from contentsync.content.service import ContentService
from contentsync.content.store import Clock, ContentStore, InMemoryContentStore, utc_now
from contentsync.discovery.cache_layer import DiscoveryCacheLayer
from contentsync.discovery.repository import (
    ContentDiscoveryRepository,
    InMemoryDiscoveryRepository,
)
from contentsync.events.bus import EventBus, InMemoryEventBus
from contentsync.events.publisher import ContentEventPublisher
from contentsync.events.runtime import create_event_bus
from contentsync.ingestion.engine import IngestionEngine
from contentsync.ingestion.models import SyncConfiguration
from contentsync.ingestion.provider import VideoProvider, YouTubeDataProvider
from contentsync.ingestion.quota import QuotaTracker
from contentsync.ingestion.reconciler import Reconciler
from contentsync.ingestion.scheduler import SyncScheduler
from contentsync.ingestion.watermark import InMemoryWatermarkStore, WatermarkStore

if TYPE_CHECKING:
    from redis.asyncio import Redis

    from contentsync.persistence.db import Database

logger = logging.getLogger(__name__)


class ContentSyncRuntime:
    """Owns and wires the write side, the read side and the bus between them."""

    def __init__(
        self,
        settings: Settings,
        *,
        content_store: ContentStore,
        discovery_repository: ContentDiscoveryRepository,
        watermarks: WatermarkStore,
        cache: CacheStore,
        bus: EventBus,
        provider: VideoProvider,
        database: Database | None = None,
        redis: Redis | None = None,
        clock: Clock = utc_now,
    ):
        self.settings = settings
        self.content_store = content_store
        self.cache = cache
        self.bus = bus
        self.provider = provider
        self.database = database
        self.redis = redis

        self.publisher = ContentEventPublisher(bus)
        self.content_service = ContentService(content_store, self.publisher, clock=clock)
        self.reconciler = Reconciler(self.content_service, settings.youtube_auto_publish)
        self.engine = IngestionEngine(
            provider,
            self.reconciler,
            watermarks,
            self.publisher,
            SyncConfiguration(
                channel_handle=settings.youtube_channel_handle,
                max_items_per_pass=settings.youtube_max_videos_per_sync,
                sync_interval_seconds=settings.sync_interval_seconds,
                auto_publish=settings.youtube_auto_publish,
            ),
            enabled=settings.sync_enabled and bool(settings.youtube_api_key),
            pass_timeout=settings.sync_pass_timeout_seconds,
            clock=clock,
        )
        self.scheduler = SyncScheduler(self.engine, clock=clock)

        self.keys = CacheKeys(settings.cache_key_prefix)
        self.discovery = DiscoveryCacheLayer(
            discovery_repository,
            cache,
            self.keys,
            ttl_seconds=settings.cache_ttl_seconds,
            search_ttl_seconds=settings.search_cache_ttl_seconds,
            latest_ttl_cap_seconds=settings.latest_cache_ttl_cap_seconds,
            default_page_size=settings.default_page_size,
            max_page_size=settings.max_page_size,
            max_search_page_size=settings.max_search_page_size,
        )
        self.subscriber = InvalidationSubscriber(self.discovery.invalidator)
        self._started = False

    # -------------------------------------------------------------------------
    # Construction
    # -------------------------------------------------------------------------

    @staticmethod
    def create_provider(settings: Settings, clock: Clock = utc_now) -> YouTubeDataProvider:
        quota = QuotaTracker(
            limit=settings.youtube_daily_quota,
            warning_ratio=settings.quota_warning_ratio,
            clock=clock,
        )
        return YouTubeDataProvider(
            settings.youtube_api_key,
            base_url=settings.youtube_api_base_url,
            timeout=settings.provider_timeout_seconds,
            quota=quota,
        )

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        *,
        provider: VideoProvider | None = None,
        clock: Clock = utc_now,
    ) -> ContentSyncRuntime:
        """Build a runtime with the backends selected in settings."""
        provider = provider or cls.create_provider(settings, clock)

        uses_redis = (
            settings.cache_backend.lower() == "redis"
            or settings.event_bus_backend.lower() in {"redis", "pubsub", "redis_pubsub"}
        )
        redis = create_redis_client(settings.redis_url) if uses_redis else None

        cache: CacheStore
        if settings.cache_backend.lower() == "redis" and redis is not None:
            cache = RedisCacheStore(redis)
        elif settings.cache_backend.lower() == "memory":
            cache = InMemoryCacheStore(clock)
        else:
            raise ValueError("Unsupported cache_backend. Supported values: memory, redis.")

        bus = create_event_bus(settings, redis)

        if settings.store_backend.lower() == "memory":
            memory_store = InMemoryContentStore(clock)
            return cls(
                settings,
                content_store=memory_store,
                discovery_repository=InMemoryDiscoveryRepository(memory_store),
                watermarks=InMemoryWatermarkStore(),
                cache=cache,
                bus=bus,
                provider=provider,
                redis=redis,
                clock=clock,
            )

        if settings.store_backend.lower() != "sql":
            raise ValueError("Unsupported store_backend. Supported values: memory, sql.")

        from contentsync.persistence import (
            Database,
            SqlContentStore,
            SqlDiscoveryRepository,
            SqlWatermarkStore,
        )

        database = Database(
            settings.database_url,
            pool_size=settings.db_pool_size,
            max_overflow=settings.db_max_overflow,
        )
        return cls(
            settings,
            content_store=SqlContentStore(database.session_factory, clock),
            discovery_repository=SqlDiscoveryRepository(database.session_factory),
            watermarks=SqlWatermarkStore(database.session_factory),
            cache=cache,
            bus=bus,
            provider=provider,
            database=database,
            redis=redis,
            clock=clock,
        )

    @classmethod
    def in_memory(
        cls,
        settings: Settings,
        provider: VideoProvider,
        *,
        clock: Clock = utc_now,
    ) -> ContentSyncRuntime:
        """Build a fully in-process runtime (no database, no Redis)."""
        store = InMemoryContentStore(clock)
        return cls(
            settings,
            content_store=store,
            discovery_repository=InMemoryDiscoveryRepository(store),
            watermarks=InMemoryWatermarkStore(),
            cache=InMemoryCacheStore(clock),
            bus=InMemoryEventBus(max_size=settings.event_bus_queue_size),
            provider=provider,
            clock=clock,
        )

    # -------------------------------------------------------------------------
    # Lifecycle
    # -------------------------------------------------------------------------

    async def start(self, run_scheduler: bool = True) -> None:
        if self._started:
            return
        if self.database is not None:
            await self.database.init()

        await self.bus.subscribe(self.subscriber.handle_event)
        await self.bus.start()

        if run_scheduler and self.engine.enabled:
            await self.scheduler.start()
        elif run_scheduler:
            logger.info("Sync scheduler disabled (sync_enabled off or no API key)")

        self._started = True
        logger.info(f"{self.settings.app_name} runtime started")

    async def stop(self) -> None:
        await self.scheduler.stop()
        await self.bus.stop()
        await self.provider.aclose()
        if self.redis is not None:
            await self.redis.aclose()
        if self.database is not None:
            await self.database.close()
        self._started = False
        logger.info(f"{self.settings.app_name} runtime stopped")

    async def readiness(self) -> dict[str, Any]:
        """Health of each backing service."""
        checks = {
            "cache": await self.cache.health_check(),
            "event_bus": await self.bus.health_check(),
        }
        if self.database is not None:
            checks["database"] = await self.database.health_check()
        return {"ready": all(checks.values()), "checks": checks}
