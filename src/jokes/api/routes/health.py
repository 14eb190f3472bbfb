"""GET /hello-world — liveness check. No auth, no rate limit, no storage."""

from fastapi import APIRouter, Request
from fastapi.responses import PlainTextResponse

from jokes.api.middleware import request_middleware

router = APIRouter()

HEALTH_BODY = "Hello world"


@router.get("/hello-world", response_class=PlainTextResponse)
@request_middleware
async def hello_world(request: Request) -> PlainTextResponse:
    return PlainTextResponse(HEALTH_BODY)
