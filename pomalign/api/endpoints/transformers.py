from __future__ import annotations

from fastapi import APIRouter

from pomalign.api.schemas import TransformerOut, TransformersResponse
from pomalign.core.transformers import TransformerRegistry

router = APIRouter()


@router.get("/api/v1/transformers", response_model=TransformersResponse)
def list_transformers():
    """Installed transformers in execution order (not initialised, so none report enabled)."""
    reg = TransformerRegistry()
    return TransformersResponse(
        fingerprint=reg.fingerprint,
        transformers=[TransformerOut(**info.to_dict()) for info in reg.describe()],
    )
