"""
NoteVault Backend — Request Logging Middleware
================================================

What:  One access-log line per HTTP request.
How:   Measures wall time around the downstream app and logs method, path,
       status, duration, response size and request ID.

Log level by status:
    5xx → ERROR, 4xx → WARNING, everything else → INFO

Not logged: request bodies (note content and base64 attachments) and
attachment bytes.
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from notevault.middleware.request_id import request_id_var

logger = logging.getLogger("notevault.access")

# Probed every few seconds by orchestrators; logging them drowns real traffic
QUIET_PATHS = {"/health"}


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration of each request."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        if request.url.path in QUIET_PATHS:
            return await call_next(request)

        start_time = time.perf_counter()
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start_time) * 1000

        status = response.status_code
        if status >= 500:
            log_level = logging.ERROR
        elif status >= 400:
            log_level = logging.WARNING
        else:
            log_level = logging.INFO

        client_ip = request.client.host if request.client else "unknown"
        rid = request_id_var.get("")
        # Streamed downloads report their declared size; time-to-first-byte only
        size = response.headers.get("content-length", "-")

        logger.log(
            log_level,
            "%s %s %d %.1fms %sB [%s] from %s",
            request.method,
            request.url.path,
            status,
            duration_ms,
            size,
            rid,
            client_ip,
            extra={
                "request_id": rid,
                "method": request.method,
                "path": request.url.path,
                "status": status,
                "duration_ms": round(duration_ms, 2),
                "client_ip": client_ip,
            },
        )
        return response
