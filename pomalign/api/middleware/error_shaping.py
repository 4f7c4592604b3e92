from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from pomalign.core.errors import ManipulationError

log = logging.getLogger("pomalign.errors")


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Pipeline errors become 422 with message, kind and offending file
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except ManipulationError as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.warning("Manipulation failed: %s rid=%s path=%s", str(e), rid, request.url.path)
            payload = {"detail": e.message, **e.to_dict()}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=422, content=payload)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
