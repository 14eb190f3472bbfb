"""Prometheus metrics for the jokes service.

Request counters and latency per route, rate-limit denials, and the size of
the rate limiter's client table. Served at GET /metrics (auth required).
"""

from __future__ import annotations

from prometheus_client import Counter, Gauge, Histogram, generate_latest

# --- HTTP metrics ---

HTTP_REQUESTS_TOTAL = Counter(
    "jokes_http_requests_total",
    "Total handled HTTP requests",
    ["method", "route", "status"],
)

HTTP_REQUEST_DURATION = Histogram(
    "jokes_http_request_duration_seconds",
    "Handler duration in seconds",
    ["method", "route"],
    buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
)

# --- Rate limiting metrics ---

RATE_LIMITED_TOTAL = Counter(
    "jokes_rate_limited_total",
    "Requests rejected by the per-client rate limiter",
)

RATE_LIMIT_CLIENTS = Gauge(
    "jokes_rate_limit_clients",
    "Client IPs tracked by the rate limiter after the last sweep",
)


def record_request(method: str, route: str, status: int, duration_seconds: float) -> None:
    """Record one handled request."""
    HTTP_REQUESTS_TOTAL.labels(method=method, route=route, status=str(status)).inc()
    HTTP_REQUEST_DURATION.labels(method=method, route=route).observe(duration_seconds)


def record_rate_limited() -> None:
    """Record a request denied by the rate limiter."""
    RATE_LIMITED_TOTAL.inc()


def update_rate_limit_clients(count: int) -> None:
    """Update the tracked-client gauge."""
    RATE_LIMIT_CLIENTS.set(count)


def get_metrics_text() -> bytes:
    """Generate Prometheus metrics output."""
    return generate_latest()
