from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from pomalign.api.schemas import ManipulateRequest, ManipulateResponse
from pomalign.core.bridge import HostBridge
from pomalign.core.observability.metrics import inc_named
from pomalign.core.pipeline import ManipulationManager

log = logging.getLogger("pomalign.api")

router = APIRouter()

# one manager per process: its session registry rejects concurrent runs on the same root
_MANAGER = ManipulationManager()


def get_manager() -> ManipulationManager:
    return _MANAGER


@router.post("/api/v1/manipulate", response_model=ManipulateResponse)
def manipulate(req: ManipulateRequest, manager: ManipulationManager = Depends(get_manager)):
    """
    Run the pipeline synchronously. Pipeline failures surface as 422 through
    SafeErrorMiddleware. Temporary descriptors written in side-channel mode are
    left on disk for the caller.
    """
    inc_named("api_manipulate")
    bridge = HostBridge(dict(req.host_properties))
    run = manager.run(req.pom, req.properties, bridge=bridge)
    log.info("manipulate entry=%s state=%s", req.pom, run.state.value)

    body = run.to_dict()
    body.pop("error", None)
    body["host_properties"] = bridge.snapshot()
    return ManipulateResponse(**body)
