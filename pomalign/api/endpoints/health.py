from __future__ import annotations

from fastapi import APIRouter

from pomalign.core.manifest import get_version
from pomalign.core.observability.metrics import inc_named

router = APIRouter()


@router.get("/health/live")
async def live():
    inc_named("health_live")
    return {"status": "ok"}


@router.get("/api/v1/health/live")
def liveness():
    inc_named("health_live")
    return {"status": "alive", "version": get_version()}
