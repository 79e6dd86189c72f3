"""Shared FastAPI dependencies for contentsync routers.

The runtime is stored on app.state by the application factory; routers
pull the component they need through these dependencies.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from contentsync.cache.invalidation import InvalidationSubscriber
from contentsync.discovery.cache_layer import DiscoveryCacheLayer
from contentsync.ingestion.engine import IngestionEngine
from contentsync.runtime import ContentSyncRuntime


def get_runtime(request: Request) -> ContentSyncRuntime:
    return request.app.state.runtime


def get_engine(runtime: Annotated[ContentSyncRuntime, Depends(get_runtime)]) -> IngestionEngine:
    return runtime.engine


def get_discovery(
    runtime: Annotated[ContentSyncRuntime, Depends(get_runtime)],
) -> DiscoveryCacheLayer:
    return runtime.discovery


def get_subscriber(
    runtime: Annotated[ContentSyncRuntime, Depends(get_runtime)],
) -> InvalidationSubscriber:
    return runtime.subscriber


RuntimeDep = Annotated[ContentSyncRuntime, Depends(get_runtime)]
EngineDep = Annotated[IngestionEngine, Depends(get_engine)]
DiscoveryDep = Annotated[DiscoveryCacheLayer, Depends(get_discovery)]
SubscriberDep = Annotated[InvalidationSubscriber, Depends(get_subscriber)]
