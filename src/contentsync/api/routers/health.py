"""Health check endpoints.

Provides Kubernetes-compatible liveness and readiness probes:
- /health/live  - Liveness probe (always returns OK if process is running)
- /health/ready - Readiness probe (checks cache, bus and database)
"""

from __future__ import annotations

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from contentsync.api.deps import RuntimeDep

router = APIRouter(prefix="/health", tags=["health"])


@router.get("/live", summary="Liveness probe")
async def liveness() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/ready", summary="Readiness probe")
async def readiness(runtime: RuntimeDep) -> JSONResponse:
    report = await runtime.readiness()
    return JSONResponse(status_code=200 if report["ready"] else 503, content=report)
