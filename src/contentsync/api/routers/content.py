"""Public discovery endpoints.

All reads go through the DiscoveryCacheLayer, so responses may lag writes
by at most the cache TTL when invalidation events are lost.
"""

from __future__ import annotations

from typing import Annotated, Any

from fastapi import APIRouter, Query

from contentsync.api.deps import DiscoveryDep

router = APIRouter(prefix="/content", tags=["content"])


@router.get("", summary="List published content")
async def list_content(
    discovery: DiscoveryDep,
    page: Annotated[int, Query()] = 1,
    limit: Annotated[int | None, Query()] = None,
) -> dict[str, Any]:
    result = await discovery.list_published(page, limit)
    return result.to_dict()


@router.get("/search", summary="Search published content")
async def search_content(
    discovery: DiscoveryDep,
    q: Annotated[str, Query()] = "",
    page: Annotated[int, Query()] = 1,
    limit: Annotated[int | None, Query()] = None,
) -> dict[str, Any]:
    result = await discovery.search_published(q, page, limit)
    return result.to_dict()


@router.get("/latest", summary="Latest published content")
async def latest_content(
    discovery: DiscoveryDep,
    limit: Annotated[int, Query()] = 10,
) -> list[dict[str, Any]]:
    records = await discovery.list_latest(limit)
    return [record.to_dict() for record in records]


@router.get("/{content_id}", summary="Get published content by id")
async def get_content(content_id: int, discovery: DiscoveryDep) -> dict[str, Any]:
    record = await discovery.get_published_by_id(content_id)
    return record.to_dict()
