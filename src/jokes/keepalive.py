"""Periodic self-ping that keeps idle-sleeping hosts awake.

Some hosting platforms suspend a service after ~15 minutes without traffic.
When KEEPALIVE_URL is set, the pinger GETs it every
keepalive_interval_seconds. The first failed ping stops the loop.
"""

from __future__ import annotations

import asyncio

import httpx
import structlog

logger = structlog.get_logger()


class KeepAlivePinger:
    """Background task issuing GET requests to a health URL."""

    def __init__(
        self,
        url: str,
        interval_seconds: float,
        *,
        timeout: float = 10.0,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        self._url = url
        self._interval = interval_seconds
        self._client = client or httpx.AsyncClient(timeout=timeout)
        self._owns_client = client is None
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def ping(self) -> bool:
        """Issue one ping. Returns True on a 2xx response."""
        try:
            response = await self._client.get(self._url)
            response.raise_for_status()
        except httpx.HTTPError as exc:
            await logger.awarning("keepalive_failed", url=self._url, error=str(exc))
            return False
        await logger.ainfo("keepalive_ok", url=self._url, status_code=response.status_code)
        return True

    async def run(self) -> None:
        while True:
            await asyncio.sleep(self._interval)
            if not await self.ping():
                return

    def start(self) -> None:
        if self.running:
            return
        self._task = asyncio.create_task(self.run(), name="keepalive")

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
        if self._owns_client:
            await self._client.aclose()
