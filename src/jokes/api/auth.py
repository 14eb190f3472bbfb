"""Bearer token gate for mutating routes.

Validates `Authorization: Bearer <token>` against the static token in
Settings. Single-tenant: no per-user identity, expiry, or signatures.
The comparison is timing-safe (secrets.compare_digest).
"""

from __future__ import annotations

import secrets

import structlog
from fastapi import Request

from jokes.api.errors import ErrorStatus, unauthorized

logger = structlog.get_logger()

AUTHORIZATION_HEADER = "authorization"
AUTHORIZATION_TYPE_BEARER = "bearer"


def check_bearer_token(authorization: str | None, expected_token: str) -> None:
    """Validate an Authorization header value.

    Raises:
        ErrorStatus 401: If the header is missing, malformed, not a bearer
            credential, or carries the wrong token.
    """
    if not authorization:
        raise unauthorized("authorization header is not provided")

    fields = authorization.split()
    if len(fields) < 2:
        raise unauthorized("invalid authorization header format")

    authorization_type = fields[0].lower()
    if authorization_type != AUTHORIZATION_TYPE_BEARER:
        raise unauthorized(f"unsupported authorization type {authorization_type}")

    if not secrets.compare_digest(fields[1].encode(), expected_token.encode()):
        raise unauthorized("invalid token")


async def require_bearer_token(request: Request) -> None:
    """FastAPI dependency — reject the request unless it carries the static token."""
    settings = request.app.state.settings
    try:
        check_bearer_token(request.headers.get(AUTHORIZATION_HEADER), settings.api_token)
    except ErrorStatus as exc:
        await logger.awarning(
            "auth_rejected",
            method=request.method,
            path=request.url.path,
            reason=str(exc),
        )
        raise
