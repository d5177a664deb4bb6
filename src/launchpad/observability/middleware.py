"""Request correlation and access logging middleware.

- ``RequestIdMiddleware`` accepts or generates ``X-Request-ID``, stores it
  in ``request_id_ctx`` (and ``request.state``) and echoes it back. The
  setup routes use it as the provisioning request id.
- ``RequestLoggingMiddleware`` logs one structured line per request.
"""

from __future__ import annotations

import re
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .logging import get_logger, request_id_ctx

logger = get_logger(__name__)

# 8-128 chars of alphanumerics or dashes; anything else is replaced.
_VALID_REQUEST_ID = re.compile(r"^[a-zA-Z0-9\-]{8,128}$")


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Generate or accept X-Request-ID and propagate via contextvars."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        incoming_id = request.headers.get("x-request-id", "")
        if incoming_id and _VALID_REQUEST_ID.match(incoming_id):
            rid = incoming_id
        else:
            rid = str(uuid.uuid4())

        request.state.request_id = rid
        token = request_id_ctx.set(rid)
        try:
            response = await call_next(request)
        finally:
            request_id_ctx.reset(token)

        response.headers["X-Request-ID"] = rid
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Log every completed request with method, path, status, and duration."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint,
    ) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000

        logger.info(
            "request_completed",
            method=request.method,
            path=request.url.path,
            status=response.status_code,
            duration_ms=round(duration_ms, 2),
        )
        return response
