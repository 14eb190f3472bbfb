"""Per-client-IP token bucket rate limiting.

One bucket per client IP, created full on first sight. Each admitted
request consumes one token; tokens refill continuously at `rate` per second
up to `burst`. A background sweep evicts clients idle for longer than
`idle_timeout` so the table stays bounded under churn.

The client table is guarded by a single lock shared by request-path lookups
and the sweep. Critical sections never await, so a threading lock is safe
on the event loop and also covers sync callers.
"""

from __future__ import annotations

import asyncio
import ipaddress
import threading
import time
from collections.abc import Callable
from dataclasses import dataclass

import structlog
from fastapi import Request

from jokes.api.errors import internal_error, too_many_requests
from jokes.observability.metrics import record_rate_limited, update_rate_limit_clients

logger = structlog.get_logger()

DEFAULT_RATE = 1.0
DEFAULT_BURST = 5
DEFAULT_IDLE_TIMEOUT = 180.0
DEFAULT_SWEEP_INTERVAL = 60.0


@dataclass
class TokenBucket:
    """Continuously refilling token bucket."""

    rate: float
    capacity: float
    tokens: float
    updated_at: float

    @classmethod
    def full(cls, rate: float, capacity: float, now: float) -> TokenBucket:
        return cls(rate=rate, capacity=capacity, tokens=capacity, updated_at=now)

    def allow(self, now: float) -> bool:
        """Refill for the elapsed time, then try to take one token."""
        elapsed = max(0.0, now - self.updated_at)
        self.tokens = min(self.capacity, self.tokens + elapsed * self.rate)
        self.updated_at = now
        if self.tokens >= 1.0:
            self.tokens -= 1.0
            return True
        return False


@dataclass
class ClientEntry:
    bucket: TokenBucket
    last_seen: float


class RateLimiter:
    """Token bucket admission control keyed by client IP.

    Args:
        rate: Sustained tokens per second.
        burst: Bucket capacity.
        idle_timeout: Seconds without a request before a client is evicted.
        sweep_interval: Seconds between eviction sweeps.
        clock: Monotonic time source, injectable for tests.
    """

    def __init__(
        self,
        rate: float = DEFAULT_RATE,
        burst: int = DEFAULT_BURST,
        idle_timeout: float = DEFAULT_IDLE_TIMEOUT,
        sweep_interval: float = DEFAULT_SWEEP_INTERVAL,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._rate = rate
        self._burst = burst
        self._idle_timeout = idle_timeout
        self._sweep_interval = sweep_interval
        self._clock = clock
        self._clients: dict[str, ClientEntry] = {}
        self._lock = threading.Lock()
        self._sweep_task: asyncio.Task[None] | None = None

    def allow(self, client_id: str) -> bool:
        """Return whether a request from client_id may proceed now."""
        with self._lock:
            now = self._clock()
            entry = self._clients.get(client_id)
            if entry is None:
                entry = ClientEntry(
                    bucket=TokenBucket.full(self._rate, self._burst, now),
                    last_seen=now,
                )
                self._clients[client_id] = entry
            entry.last_seen = now
            return entry.bucket.allow(now)

    def sweep(self) -> int:
        """Evict clients idle past the threshold. Returns how many were removed."""
        with self._lock:
            now = self._clock()
            stale = [
                client_id
                for client_id, entry in self._clients.items()
                if now - entry.last_seen > self._idle_timeout
            ]
            for client_id in stale:
                del self._clients[client_id]
            remaining = len(self._clients)
        update_rate_limit_clients(remaining)
        return len(stale)

    def __len__(self) -> int:
        with self._lock:
            return len(self._clients)

    def __contains__(self, client_id: object) -> bool:
        with self._lock:
            return client_id in self._clients

    @property
    def running(self) -> bool:
        return self._sweep_task is not None and not self._sweep_task.done()

    def start(self) -> None:
        """Start the periodic sweep on the running event loop. Idempotent."""
        if self.running:
            return
        self._sweep_task = asyncio.create_task(self._sweep_forever(), name="rate-limit-sweep")

    async def stop(self) -> None:
        """Cancel the sweep task and wait for it to finish."""
        task, self._sweep_task = self._sweep_task, None
        if task is None:
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _sweep_forever(self) -> None:
        while True:
            await asyncio.sleep(self._sweep_interval)
            evicted = self.sweep()
            if evicted:
                await logger.adebug("rate_limit_sweep", evicted=evicted, tracked=len(self))


def client_ip(request: Request) -> str:
    """Return the bare client IP address of the request.

    Raises:
        ErrorStatus 500: If the peer address is missing or not an IP.
    """
    if request.client is None or not request.client.host:
        raise internal_error("unable to determine IP")
    try:
        return str(ipaddress.ip_address(request.client.host))
    except ValueError as exc:
        raise internal_error("unable to determine IP") from exc


async def enforce_rate_limit(request: Request) -> None:
    """FastAPI dependency — admit the request or fail with 429."""
    limiter: RateLimiter = request.app.state.rate_limiter
    ip = client_ip(request)
    if not limiter.allow(ip):
        record_rate_limited()
        await logger.awarning(
            "rate_limited",
            client_ip=ip,
            method=request.method,
            path=request.url.path,
        )
        raise too_many_requests("rate limit exceeded")
