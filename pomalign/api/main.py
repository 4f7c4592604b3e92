from __future__ import annotations

from fastapi import FastAPI

from pomalign.api.endpoints import health, manipulate, metrics_export, transformers
from pomalign.api.middleware.error_shaping import SafeErrorMiddleware
from pomalign.api.middleware.request_id import RequestIdMiddleware
from pomalign.core.manifest import get_version

app = FastAPI(
    title="pom-align API",
    version=get_version(),
)

# ------------------------------------------------------------
# Middleware stack (ORDER MATTERS)
# Starlette reverses add_middleware order: the LAST call = OUTERMOST wrapper.
#   SafeErrorMiddleware -> RequestIdMiddleware -> handler
# ------------------------------------------------------------
app.add_middleware(RequestIdMiddleware)
app.add_middleware(SafeErrorMiddleware)

app.include_router(health.router)
app.include_router(transformers.router)
app.include_router(manipulate.router)
app.include_router(metrics_export.router)
