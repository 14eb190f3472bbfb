"""Joke service — pass-through between the HTTP handlers and the repository."""

from __future__ import annotations

from typing import Protocol

from jokes.db.repository import JokeRepository
from jokes.models import Joke, JokeUpdate, parse_joke_id


class JokeService(Protocol):
    """Operations the HTTP handlers depend on.

    get_joke and delete_joke raise ValueError for a malformed id and
    JokeNotFoundError when no document matches.
    """

    async def create_joke(self, joke: Joke) -> Joke: ...

    async def get_joke(self, joke_id: str) -> Joke: ...

    async def update_joke(self, joke: JokeUpdate) -> Joke: ...

    async def delete_joke(self, joke_id: str) -> None: ...

    async def list_jokes(self, skip: int, limit: int) -> list[Joke]: ...


class DefaultJokeService:
    """JokeService delegating straight to a JokeRepository."""

    def __init__(self, repository: JokeRepository) -> None:
        self._repository = repository

    async def create_joke(self, joke: Joke) -> Joke:
        return await self._repository.create(joke)

    async def get_joke(self, joke_id: str) -> Joke:
        return await self._repository.get(parse_joke_id(joke_id))

    async def update_joke(self, joke: JokeUpdate) -> Joke:
        return await self._repository.update(joke)

    async def delete_joke(self, joke_id: str) -> None:
        await self._repository.delete(parse_joke_id(joke_id))

    async def list_jokes(self, skip: int, limit: int) -> list[Joke]:
        return await self._repository.get_all(skip, limit)
