"""FastAPI application factory for contentsync.

Creates the application with:
- Sync endpoints (/sync/youtube)
- Discovery endpoints (/content)
- Cache administration (/admin/cache/invalidate)
- Health probes and Prometheus metrics
- Lifecycle management for the runtime (database, Redis, bus, scheduler)
- ORJSON for fast JSON serialization
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, cast

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse
from starlette.types import ExceptionHandler

from contentsync.api.errors import contentsync_exception_handler, generic_exception_handler
from contentsync.api.middleware import CorrelationMiddleware
from contentsync.api.routers import admin, content, health, sync
from contentsync.api.routers import metrics as metrics_router
from contentsync.config import Settings, settings
from contentsync.errors import ContentSyncError
from contentsync.observability import configure_logging
from contentsync.observability.metrics import get_metrics
from contentsync.runtime import ContentSyncRuntime

logger = logging.getLogger(__name__)


def create_app(
    runtime: ContentSyncRuntime | None = None,
    app_settings: Settings | None = None,
    run_scheduler: bool = True,
) -> FastAPI:
    """Create and configure the FastAPI application.

    A prebuilt runtime may be passed in (tests do this); otherwise one is
    built from settings when the application starts.
    """
    app_settings = app_settings or settings

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        """Start the runtime on startup and stop it on shutdown."""
        # Configure structured logging (JSON in production, console in dev)
        configure_logging(
            json_format=app_settings.env != "dev",
            level=app_settings.log_level,
        )
        get_metrics()  # Initialize metrics registry

        logger.info(f"Starting {app_settings.app_name} ({app_settings.env})")
        app.state.runtime = runtime or ContentSyncRuntime.from_settings(app_settings)
        await app.state.runtime.start(run_scheduler=run_scheduler)
        logger.info(f"{app_settings.app_name} startup complete")

        yield

        logger.info(f"Shutting down {app_settings.app_name}")
        await app.state.runtime.stop()
        logger.info(f"{app_settings.app_name} shutdown complete")

    app = FastAPI(
        title="contentsync",
        description="Content synchronization and discovery service",
        version="0.1.0",
        default_response_class=ORJSONResponse,
        lifespan=lifespan,
        docs_url="/docs",
        openapi_url="/openapi.json",
    )

    app.add_middleware(CorrelationMiddleware)

    # Register exception handlers
    app.add_exception_handler(
        ContentSyncError, cast(ExceptionHandler, contentsync_exception_handler)
    )
    app.add_exception_handler(Exception, cast(ExceptionHandler, generic_exception_handler))

    # Include routers
    app.include_router(health.router)
    if app_settings.enable_metrics:
        app.include_router(metrics_router.router)
    app.include_router(sync.router)
    app.include_router(content.router)
    app.include_router(admin.router)

    return app
