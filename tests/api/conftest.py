"""Shared fixtures for API route tests.

Provides:
- An in-memory FakeJokeService standing in for the storage-backed service
- A configured FastAPI test app wired to the fake
- A second app wired to the real SQLite repository
- An httpx AsyncClient pointed at each app
- Pre-configured auth headers
"""

from __future__ import annotations

from collections.abc import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from jokes.api.app import create_app
from jokes.config import Settings
from jokes.db.repository import JokeNotFoundError, SqlJokeRepository
from jokes.models import Joke, JokeUpdate, parse_joke_id
from jokes.service import DefaultJokeService

TEST_API_TOKEN = "test-api-token-12345-abcdefghijklmnop"


class FakeJokeService:
    """In-memory JokeService. Insertion order is list order."""

    def __init__(self) -> None:
        self.jokes: dict[str, Joke] = {}
        self.fail_with: Exception | None = None
        self.list_calls: list[tuple[int, int]] = []

    def _maybe_fail(self) -> None:
        if self.fail_with is not None:
            raise self.fail_with

    async def create_joke(self, joke: Joke) -> Joke:
        self._maybe_fail()
        self.jokes[joke.id] = joke
        return joke

    async def get_joke(self, joke_id: str) -> Joke:
        self._maybe_fail()
        key = str(parse_joke_id(joke_id))
        if key not in self.jokes:
            raise JokeNotFoundError(key)
        return self.jokes[key]

    async def update_joke(self, joke: JokeUpdate) -> Joke:
        self._maybe_fail()
        if joke.id not in self.jokes:
            raise JokeNotFoundError(joke.id)
        updated = self.jokes[joke.id].model_copy(
            update={"joke": joke.joke, "updated_at": joke.updated_at}
        )
        self.jokes[joke.id] = updated
        return updated

    async def delete_joke(self, joke_id: str) -> None:
        self._maybe_fail()
        self.jokes.pop(str(parse_joke_id(joke_id)), None)

    async def list_jokes(self, skip: int, limit: int) -> list[Joke]:
        self._maybe_fail()
        self.list_calls.append((skip, limit))
        return list(self.jokes.values())[skip : skip + limit]


def make_settings(**overrides: object) -> Settings:
    """Test Settings: in-memory SQLite, test token, generous rate limit."""
    values: dict[str, object] = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "api_token": TEST_API_TOKEN,
        "log_level": "WARNING",
        "log_format": "console",
        "rate_limit_burst": 1000,
        "rate_limit_rate": 1000.0,
    }
    values.update(overrides)
    return Settings(**values)  # type: ignore[arg-type]


@pytest.fixture
def test_settings() -> Settings:
    return make_settings()


@pytest.fixture
def fake_service() -> FakeJokeService:
    return FakeJokeService()


@pytest.fixture
def test_app(test_settings: Settings, fake_service: FakeJokeService) -> object:
    """Create a test FastAPI app backed by the in-memory fake service."""
    app = create_app(settings=test_settings)
    app.state.service = fake_service
    return app


@pytest.fixture
async def client(test_app) -> AsyncGenerator[AsyncClient, None]:
    """Provide an httpx AsyncClient for the test app."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def sql_app(
    test_settings: Settings, session_factory: async_sessionmaker[AsyncSession]
) -> object:
    """Create a test FastAPI app backed by the SQLite repository."""
    app = create_app(settings=test_settings)
    app.state.service = DefaultJokeService(SqlJokeRepository(session_factory))
    return app


@pytest.fixture
async def sql_client(sql_app) -> AsyncGenerator[AsyncClient, None]:
    transport = ASGITransport(app=sql_app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


@pytest.fixture
def auth_headers() -> dict[str, str]:
    """Valid bearer token headers."""
    return {"Authorization": f"Bearer {TEST_API_TOKEN}"}


@pytest.fixture
def settings_factory():
    """Build test Settings with per-test overrides."""
    return make_settings
