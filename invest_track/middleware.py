"""
Request-scoped middleware.

- **Request ID**: every request/response carries an ``X-Request-ID`` header,
  and the ID is published to the logging context so every log line written
  while serving the request can be correlated with it.
- **Request timing**: adds ``X-Process-Time`` and flags slow requests.
"""

import logging
import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from invest_track.core.logging import request_id_var

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
SLOW_REQUEST_MS = 500


class RequestIDMiddleware(BaseHTTPMiddleware):
    """
    Reuses an upstream ``X-Request-ID`` or generates a UUID4.

    The ID is stored on ``request.state.request_id``, set in
    :data:`request_id_var` for the duration of the request, and echoed back
    in the response header.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestTimingMiddleware(BaseHTTPMiddleware):
    """Logs wall-clock duration per request and exposes it as ``X-Process-Time``."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        response = await call_next(request)
        elapsed_ms = (time.perf_counter() - start) * 1000

        response.headers["X-Process-Time"] = f"{elapsed_ms:.2f}ms"

        extra = {
            "method": request.method,
            "path": request.url.path,
            "status_code": response.status_code,
            "elapsed_ms": round(elapsed_ms, 2),
        }
        if elapsed_ms > SLOW_REQUEST_MS:
            logger.warning(
                "%s %s completed in %.2fms (SLOW)",
                request.method,
                request.url.path,
                elapsed_ms,
                extra=extra,
            )
        else:
            logger.debug(
                "%s %s completed in %.2fms",
                request.method,
                request.url.path,
                elapsed_ms,
                extra=extra,
            )
        return response
