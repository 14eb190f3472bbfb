"""Async SQLAlchemy engine, session factory, and schema bootstrap.

Provides:
    create_async_engine_from_url: Creates a configured async engine
    create_session_factory: Creates an async session maker
    create_tables: Creates the joke table if it does not exist
"""

from __future__ import annotations

from sqlalchemy import make_url
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from jokes.db.models import Base


def create_async_engine_from_url(
    database_url: str,
    *,
    pool_timeout: int = 5,
    connect_timeout: int = 5,
    echo: bool = False,
) -> AsyncEngine:
    """Create an async SQLAlchemy engine with configured timeouts.

    Args:
        database_url: The database connection URL.
        pool_timeout: Seconds to wait for a connection from the pool.
        connect_timeout: Seconds to wait for the initial connection.
        echo: Whether to log SQL statements.

    Returns:
        A configured AsyncEngine instance.
    """
    kwargs: dict[str, object] = {"echo": echo}

    url = make_url(database_url)
    if url.get_backend_name() == "sqlite":
        kwargs["connect_args"] = {"timeout": connect_timeout}
        # An in-memory database lives only as long as its single connection
        if url.database in (None, "", ":memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_timeout"] = pool_timeout
        kwargs["pool_size"] = 10
        kwargs["max_overflow"] = 20

    return create_async_engine(database_url, **kwargs)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an async session factory bound to the given engine.

    Args:
        engine: The async engine to bind sessions to.

    Returns:
        An async_sessionmaker configured with expire_on_commit=False.
    """
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_tables(engine: AsyncEngine) -> None:
    """Create all tables that do not exist yet. No migrations are run."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
