"""Administrative endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter
from pydantic import BaseModel

from contentsync.api.deps import SubscriberDep

router = APIRouter(prefix="/admin", tags=["admin"])


class InvalidateRequest(BaseModel):
    content_id: int | None = None


@router.post("/cache/invalidate", summary="Evict discovery cache entries")
async def invalidate_cache(
    subscriber: SubscriberDep,
    request: InvalidateRequest | None = None,
) -> dict[str, Any]:
    content_id = request.content_id if request else None
    await subscriber.invalidate(content_id)
    return {"invalidated": True, "content_id": content_id}
