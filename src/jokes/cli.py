"""CLI entrypoint — Typer-based command interface.

Commands:
    jokes serve        — Start the FastAPI server
    jokes init-db      — Create the database tables
"""

from __future__ import annotations

import asyncio

import typer

app = typer.Typer(
    name="jokes",
    help="Jokes — REST CRUD service for jokes",
)


@app.command()
def serve(
    host: str | None = typer.Option(None, help="API server host (default: API_HOST)"),
    port: int | None = typer.Option(None, help="API server port (default: API_PORT)"),
    reload: bool = typer.Option(False, help="Enable auto-reload for development"),
) -> None:
    """Start the jokes API server.

    SIGINT/SIGTERM stop accepting connections and give in-flight requests
    up to SHUTDOWN_GRACE_SECONDS to finish.
    """
    import uvicorn

    from jokes.config import get_settings

    settings = get_settings()
    uvicorn.run(
        "jokes.api.app:create_app",
        host=host or settings.api_host,
        port=port or settings.api_port,
        reload=reload,
        factory=True,
        timeout_graceful_shutdown=settings.shutdown_grace_seconds,
    )


@app.command()
def init_db() -> None:
    """Create the joke table if it does not exist."""

    async def _run() -> None:
        from jokes.config import get_settings
        from jokes.db.session import create_async_engine_from_url, create_tables

        settings = get_settings()
        engine = create_async_engine_from_url(settings.database_url)
        await create_tables(engine)
        await engine.dispose()

    asyncio.run(_run())
    typer.echo("Database tables created")


if __name__ == "__main__":
    app()
