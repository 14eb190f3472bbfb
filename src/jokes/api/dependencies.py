"""FastAPI dependency injection — the joke service collaborator.

Reads from app.state, which is populated during lifespan startup
(or directly by tests with a substitute implementation).
"""

from __future__ import annotations

from fastapi import Request

from jokes.service import JokeService


def get_service(request: Request) -> JokeService:
    """Get the JokeService instance from app state."""
    return request.app.state.service
