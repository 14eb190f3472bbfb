"""GET /metrics — Prometheus metrics endpoint (bearer token required)."""

from __future__ import annotations

from fastapi import APIRouter, Depends
from starlette.responses import Response

from jokes.api.auth import require_bearer_token
from jokes.observability.metrics import get_metrics_text

router = APIRouter()


@router.get("/metrics", dependencies=[Depends(require_bearer_token)])
async def prometheus_metrics() -> Response:
    """Serve Prometheus metrics."""
    return Response(
        content=get_metrics_text(),
        media_type="text/plain; version=0.0.4; charset=utf-8",
    )
