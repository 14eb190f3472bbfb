"""Request ID middleware for log correlation.

Generates a unique request ID for every request. The ID is always
server-generated (never accepted from external headers to prevent spoofing).
A client-supplied X-Request-ID is logged as client_request_id separately.
"""

from __future__ import annotations

import re
from uuid import uuid4

import structlog
from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

REQUEST_ID_HEADER = "X-Request-ID"

_REQUEST_ID_PATTERN = re.compile(r"^[a-zA-Z0-9_\-]{1,64}$")


def generate_request_id() -> str:
    """Generate a unique request ID."""
    return str(uuid4())


class RequestIdMiddleware(BaseHTTPMiddleware):
    """Bind a fresh request ID to structlog context and echo it in the response."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = generate_request_id()
        request.state.request_id = request_id

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(request_id=request_id)

        client_request_id = request.headers.get(REQUEST_ID_HEADER, "")
        if client_request_id and _REQUEST_ID_PATTERN.match(client_request_id):
            structlog.contextvars.bind_contextvars(client_request_id=client_request_id)

        response = await call_next(request)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def get_request_id(request: Request) -> str:
    """Return the request ID, or an empty string outside the middleware."""
    return getattr(request.state, "request_id", "")
