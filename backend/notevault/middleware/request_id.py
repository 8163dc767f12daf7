"""
NoteVault Backend — Request ID Middleware
===========================================

What:  Assigns a correlation ID to each request and returns it in X-Request-ID.
Why:   Every log line and every error body for one request carries the same ID,
       so a user-reported failure can be matched to server logs.
How:   Reuses a client-supplied X-Request-ID when it is short and printable,
       otherwise generates one; stores it in a ContextVar and request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own ID
request_id_var: ContextVar[str] = ContextVar("request_id", default="")

# Longer or non-printable client IDs are replaced, never echoed into headers
MAX_CLIENT_ID_LENGTH = 64


def _accept_client_id(value: str) -> bool:
    return 0 < len(value) <= MAX_CLIENT_ID_LENGTH and value.isprintable()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Middleware that assigns a unique ID to each request for tracing."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        client_id = request.headers.get("X-Request-ID", "").strip()
        rid = client_id if _accept_client_id(client_id) else uuid.uuid4().hex[:12]

        token = request_id_var.set(rid)
        request.state.request_id = rid
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)

        response.headers["X-Request-ID"] = rid
        return response
