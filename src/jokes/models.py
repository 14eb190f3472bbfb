"""Domain models — the Joke entity, its update payload, and the request body.

Joke is passed by value between the handler, service, and repository layers.
All timestamps are timezone-aware UTC.
"""

from __future__ import annotations

from datetime import UTC, datetime
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field


class Joke(BaseModel):
    """A stored joke. Serialises as {id, joke, created_at, updated_at}."""

    id: str
    joke: str
    created_at: datetime
    updated_at: datetime

    @classmethod
    def new(cls, text: str) -> Joke:
        """Build a fresh joke with a new identifier and matching timestamps."""
        now = datetime.now(UTC)
        return cls(id=new_joke_id(), joke=text, created_at=now, updated_at=now)


class JokeUpdate(BaseModel):
    """Fields an update replaces. The creation timestamp is never part of it."""

    id: str
    joke: str
    updated_at: datetime


class JokeRequest(BaseModel):
    """POST /jokes and PATCH /jokes/{id} request body."""

    model_config = ConfigDict(extra="ignore")

    joke: str = Field(min_length=1)


def new_joke_id() -> str:
    """Generate a unique joke identifier."""
    return str(uuid4())


def parse_joke_id(value: str) -> UUID:
    """Convert a path identifier into the storage identifier type.

    Raises:
        ValueError: If the value is not a well-formed UUID.
    """
    return UUID(value)
