from __future__ import annotations

import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from roomspace.logging import request_id_var

log = logging.getLogger("roomspace.access")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Stamps every request/response with X-Request-Id and logs one access line."""

    async def dispatch(self, request: Request, call_next):
        rid = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = rid
        token = request_id_var.set(rid)
        started = time.perf_counter()
        try:
            resp = await call_next(request)
        finally:
            request_id_var.reset(token)

        resp.headers["X-Request-Id"] = rid
        log.info(
            "request",
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": resp.status_code,
                "duration_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return resp
