"""Shared test fixtures for the jokes test suite.

Provides an in-memory SQLite engine, a session factory, and a SQL-backed
joke repository.
"""

from collections.abc import AsyncGenerator

import pytest
import structlog
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from jokes.db.repository import SqlJokeRepository
from jokes.db.session import create_async_engine_from_url, create_session_factory, create_tables


@pytest.fixture
async def async_engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create an in-memory SQLite async engine with the joke table."""
    engine = create_async_engine_from_url("sqlite+aiosqlite:///:memory:")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(async_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return create_session_factory(async_engine)


@pytest.fixture
def repository(session_factory: async_sessionmaker[AsyncSession]) -> SqlJokeRepository:
    """SQL-backed repository over the in-memory database."""
    return SqlJokeRepository(session_factory)


@pytest.fixture(autouse=True)
def reset_structlog():
    """Undo any logging configuration a test (or app lifespan) applied."""
    yield
    structlog.reset_defaults()
