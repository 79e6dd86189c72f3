"""Sync endpoints.

- POST /sync/youtube         - run a pass now (409 if one is running)
- GET  /sync/youtube/health  - provider access and quota
- GET  /sync/youtube/stats   - last result plus scheduler state
- GET  /sync/youtube/status  - enabled, running, channel, next run
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter

from contentsync.api.deps import EngineDep

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/sync/youtube", tags=["sync"])


@router.post("", summary="Trigger a sync pass")
async def trigger_sync(engine: EngineDep) -> dict[str, Any]:
    logger.info("Manual sync triggered by administrator")
    result = await engine.run_sync_pass(trigger="manual")
    return result.to_dict()


@router.get("/health", summary="Provider API health")
async def api_health(engine: EngineDep) -> dict[str, Any]:
    return await engine.get_api_health()


@router.get("/stats", summary="Sync statistics")
async def sync_stats(engine: EngineDep) -> dict[str, Any]:
    status = engine.get_sync_status()
    last = engine.get_last_sync_result()
    return {
        "last_sync_result": last.to_dict() if last else None,
        "sync_currently_running": status.running,
        "sync_enabled": status.enabled,
        "channel_handle": status.channel,
        "next_scheduled_sync": status.next_run.isoformat() if status.next_run else None,
    }


@router.get("/status", summary="Sync status")
async def sync_status(engine: EngineDep) -> dict[str, Any]:
    return engine.get_sync_status().to_dict()
