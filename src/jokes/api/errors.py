"""Classified request failures and their wire representation.

Handlers raise ErrorStatus with the HTTP status the failure should produce.
error_info() turns any exception into an (ErrorResponse, status) pair:
classified failures keep their message and status, anything else becomes an
opaque 500 so internal details never reach the caller.
"""

from __future__ import annotations

from fastapi import status
from pydantic import BaseModel

UNKNOWN_ERROR_MESSAGE = "unknown error occurred"


class ErrorResponse(BaseModel):
    """JSON error body: {"error": "..."}."""

    error: str


class ErrorStatus(Exception):
    """A failure paired with the HTTP status code it maps to."""

    def __init__(self, cause: Exception | str, status_code: int) -> None:
        self.cause = cause if isinstance(cause, Exception) else None
        self.message = str(cause)
        self.status_code = status_code
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"ErrorStatus(status_code={self.status_code}, message={self.message!r})"


def error_info(exc: BaseException) -> tuple[ErrorResponse, int]:
    """Map a failure to its JSON body and HTTP status."""
    if isinstance(exc, ErrorStatus):
        return ErrorResponse(error=exc.message), exc.status_code
    return ErrorResponse(error=UNKNOWN_ERROR_MESSAGE), status.HTTP_500_INTERNAL_SERVER_ERROR


def bad_request(cause: Exception | str) -> ErrorStatus:
    return ErrorStatus(cause, status.HTTP_400_BAD_REQUEST)


def unauthorized(cause: Exception | str) -> ErrorStatus:
    return ErrorStatus(cause, status.HTTP_401_UNAUTHORIZED)


def not_found(cause: Exception | str) -> ErrorStatus:
    return ErrorStatus(cause, status.HTTP_404_NOT_FOUND)


def too_many_requests(cause: Exception | str) -> ErrorStatus:
    return ErrorStatus(cause, status.HTTP_429_TOO_MANY_REQUESTS)


def internal_error(cause: Exception | str) -> ErrorStatus:
    return ErrorStatus(cause, status.HTTP_500_INTERNAL_SERVER_ERROR)
