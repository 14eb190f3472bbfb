"""Joke repository — direct passthrough to the database.

JokeRepository is the storage capability the service layer depends on.
SqlJokeRepository implements it on an async SQLAlchemy session factory.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jokes.db.models import JokeRecord
from jokes.models import Joke, JokeUpdate


class JokeNotFoundError(LookupError):
    """No joke document exists for the requested identifier."""

    def __init__(self, joke_id: UUID | str) -> None:
        super().__init__("no joke found for the given id")
        self.joke_id = str(joke_id)


class JokeRepository(Protocol):
    """Storage operations for jokes."""

    async def create(self, joke: Joke) -> Joke: ...

    async def get(self, joke_id: UUID) -> Joke: ...

    async def update(self, joke: JokeUpdate) -> Joke: ...

    async def delete(self, joke_id: UUID) -> None: ...

    async def get_all(self, skip: int, limit: int) -> list[Joke]: ...


def _utc(value: datetime) -> datetime:
    # SQLite drops tzinfo on the way back
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def _to_joke(record: JokeRecord) -> Joke:
    return Joke(
        id=record.id,
        joke=record.joke,
        created_at=_utc(record.created_at),
        updated_at=_utc(record.updated_at),
    )


class SqlJokeRepository:
    """JokeRepository backed by a relational table."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]) -> None:
        self._session_factory = session_factory

    async def create(self, joke: Joke) -> Joke:
        async with self._session_factory() as session:
            async with session.begin():
                session.add(
                    JokeRecord(
                        id=joke.id,
                        joke=joke.joke,
                        created_at=joke.created_at,
                        updated_at=joke.updated_at,
                    )
                )
        return joke

    async def get(self, joke_id: UUID) -> Joke:
        async with self._session_factory() as session:
            record = await session.get(JokeRecord, str(joke_id))
            if record is None:
                raise JokeNotFoundError(joke_id)
            return _to_joke(record)

    async def update(self, joke: JokeUpdate) -> Joke:
        """Replace the text and update timestamp; the creation timestamp is kept.

        Raises:
            JokeNotFoundError: If no joke has the given id.
        """
        async with self._session_factory() as session:
            async with session.begin():
                record = await session.get(JokeRecord, joke.id)
                if record is None:
                    raise JokeNotFoundError(joke.id)
                record.joke = joke.joke
                record.updated_at = joke.updated_at
            return _to_joke(record)

    async def delete(self, joke_id: UUID) -> None:
        async with self._session_factory() as session:
            async with session.begin():
                await session.execute(delete(JokeRecord).where(JokeRecord.id == str(joke_id)))

    async def get_all(self, skip: int, limit: int) -> list[Joke]:
        async with self._session_factory() as session:
            result = await session.execute(
                select(JokeRecord)
                .order_by(JokeRecord.created_at, JokeRecord.id)
                .offset(skip)
                .limit(limit)
            )
            return [_to_joke(record) for record in result.scalars().all()]
