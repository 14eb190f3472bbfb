"""Tests for per-client token bucket rate limiting."""

from __future__ import annotations

import asyncio

import pytest
from httpx import ASGITransport, AsyncClient

from jokes.api.app import create_app
from jokes.api.rate_limit import RateLimiter, TokenBucket


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def limiter(clock: FakeClock) -> RateLimiter:
    return RateLimiter(rate=1.0, burst=5, idle_timeout=180.0, sweep_interval=60.0, clock=clock)


class TestTokenBucket:
    def test_starts_full(self) -> None:
        bucket = TokenBucket.full(rate=1.0, capacity=5, now=0.0)
        assert [bucket.allow(0.0) for _ in range(6)] == [True] * 5 + [False]

    def test_refill_is_capped_at_capacity(self) -> None:
        bucket = TokenBucket.full(rate=1.0, capacity=5, now=0.0)
        for _ in range(5):
            bucket.allow(0.0)
        bucket.allow(3600.0)
        assert bucket.tokens == pytest.approx(4.0)

    def test_partial_refill(self) -> None:
        bucket = TokenBucket.full(rate=1.0, capacity=1, now=0.0)
        assert bucket.allow(0.0)
        assert not bucket.allow(0.5)
        assert bucket.allow(1.0)

    def test_clock_going_backwards_does_not_drain(self) -> None:
        bucket = TokenBucket.full(rate=1.0, capacity=2, now=10.0)
        assert bucket.allow(5.0)
        assert bucket.tokens == pytest.approx(1.0)


class TestRateLimiter:
    def test_burst_of_five_then_denied(self, limiter: RateLimiter) -> None:
        results = [limiter.allow("10.0.0.1") for _ in range(6)]
        assert results == [True, True, True, True, True, False]

    def test_one_more_after_a_second(self, limiter: RateLimiter, clock: FakeClock) -> None:
        for _ in range(6):
            limiter.allow("10.0.0.1")
        clock.advance(1.0)
        assert limiter.allow("10.0.0.1") is True
        assert limiter.allow("10.0.0.1") is False

    def test_clients_are_independent(self, limiter: RateLimiter) -> None:
        for _ in range(5):
            limiter.allow("10.0.0.1")
        assert limiter.allow("10.0.0.1") is False
        assert limiter.allow("10.0.0.2") is True

    def test_entries_created_lazily(self, limiter: RateLimiter) -> None:
        assert len(limiter) == 0
        limiter.allow("10.0.0.1")
        assert "10.0.0.1" in limiter
        assert len(limiter) == 1

    def test_sweep_evicts_idle_clients(self, limiter: RateLimiter, clock: FakeClock) -> None:
        limiter.allow("10.0.0.1")
        clock.advance(120.0)
        limiter.allow("10.0.0.2")
        clock.advance(61.0)

        assert limiter.sweep() == 1
        assert "10.0.0.1" not in limiter
        assert "10.0.0.2" in limiter

    def test_denied_lookup_refreshes_last_seen(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        for _ in range(6):
            limiter.allow("10.0.0.1")
        clock.advance(179.0)
        limiter.allow("10.0.0.1")
        clock.advance(179.0)
        assert limiter.sweep() == 0
        assert "10.0.0.1" in limiter

    def test_evicted_client_returns_with_full_bucket(
        self, limiter: RateLimiter, clock: FakeClock
    ) -> None:
        for _ in range(5):
            limiter.allow("10.0.0.1")
        clock.advance(181.0)
        limiter.sweep()
        assert [limiter.allow("10.0.0.1") for _ in range(6)] == [True] * 5 + [False]


class TestSweepTask:
    async def test_start_and_stop(self) -> None:
        limiter = RateLimiter(sweep_interval=0.01)
        limiter.start()
        assert limiter.running
        limiter.start()  # idempotent
        await limiter.stop()
        assert not limiter.running

    async def test_stop_without_start(self) -> None:
        await RateLimiter().stop()

    async def test_background_sweep_evicts(self) -> None:
        clock = FakeClock()
        limiter = RateLimiter(idle_timeout=1.0, sweep_interval=0.01, clock=clock)
        limiter.allow("10.0.0.1")
        clock.advance(5.0)
        limiter.start()
        try:
            for _ in range(100):
                if len(limiter) == 0:
                    break
                await asyncio.sleep(0.01)
        finally:
            await limiter.stop()
        assert len(limiter) == 0


class TestRateLimitedRoutes:
    """GET routes are rate limited per client IP; others are not."""

    @pytest.fixture
    async def limited_client(self, settings_factory, fake_service, clock: FakeClock):
        app = create_app(settings=settings_factory(rate_limit_burst=5, rate_limit_rate=1.0))
        app.state.service = fake_service
        app.state.rate_limiter = RateLimiter(rate=1.0, burst=5, clock=clock)
        transport = ASGITransport(app=app, client=("203.0.113.7", 5555))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac

    async def test_sixth_list_request_is_429(self, limited_client: AsyncClient) -> None:
        statuses = [(await limited_client.get("/v1/jokes")).status_code for _ in range(6)]
        assert statuses == [200, 200, 200, 200, 200, 429]

    async def test_429_body(self, limited_client: AsyncClient) -> None:
        for _ in range(5):
            await limited_client.get("/v1/jokes")
        response = await limited_client.get("/v1/jokes")
        assert response.json() == {"error": "rate limit exceeded"}

    async def test_denied_request_never_reaches_handler(
        self, limited_client: AsyncClient, fake_service
    ) -> None:
        for _ in range(6):
            await limited_client.get("/v1/jokes")
        assert len(fake_service.list_calls) == 5

    async def test_get_by_id_shares_the_bucket(self, limited_client: AsyncClient) -> None:
        for _ in range(5):
            await limited_client.get("/v1/jokes")
        response = await limited_client.get("/v1/jokes/00000000-0000-4000-8000-000000000000")
        assert response.status_code == 429

    async def test_admitted_again_after_refill(
        self, limited_client: AsyncClient, clock: FakeClock
    ) -> None:
        for _ in range(6):
            await limited_client.get("/v1/jokes")
        clock.advance(1.0)
        response = await limited_client.get("/v1/jokes")
        assert response.status_code == 200

    async def test_health_is_not_rate_limited(self, limited_client: AsyncClient) -> None:
        statuses = [(await limited_client.get("/hello-world")).status_code for _ in range(10)]
        assert set(statuses) == {200}

    async def test_mutating_routes_are_not_rate_limited(
        self, limited_client: AsyncClient, auth_headers: dict
    ) -> None:
        statuses = [
            (
                await limited_client.post("/v1/jokes", json={"joke": f"j{i}"}, headers=auth_headers)
            ).status_code
            for i in range(8)
        ]
        assert set(statuses) == {200}

    async def test_unparseable_client_address_is_500(self, settings_factory, fake_service) -> None:
        app = create_app(settings=settings_factory())
        app.state.service = fake_service
        transport = ASGITransport(app=app, client=("not-an-ip", 5555))
        async with AsyncClient(transport=transport, base_url="http://test") as ac:
            response = await ac.get("/v1/jokes")
        assert response.status_code == 500
        assert response.json() == {"error": "unable to determine IP"}
