"""Per-handler request middleware — deadline, timing, and error serialisation.

Every route handler is wrapped with @request_middleware. The wrapper:
- runs the handler under the configured deadline (request_timeout_seconds),
  which also bounds any storage call the handler awaits
- measures wall-clock duration
- on failure, maps the exception through error_info() and writes
  {"error": ...} with the mapped status
- logs one structured line per request and records Prometheus metrics

Handlers are run exactly once; nothing is retried.
"""

from __future__ import annotations

import asyncio
import functools
import inspect
import time
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

import structlog
from fastapi import Request, Response, status
from fastapi.responses import JSONResponse
from starlette.routing import Match

from jokes.api.errors import ErrorStatus, error_info, internal_error
from jokes.observability.metrics import record_request

logger = structlog.get_logger()

HandlerT = TypeVar("HandlerT", bound=Callable[..., Awaitable[Any]])


def _route_template(request: Request) -> str:
    """Path template of the app-level route serving the request, mount prefix included."""
    for route in request.app.router.routes:
        match, _ = route.matches(request.scope)
        if match == Match.FULL:
            return getattr(route, "path", request.url.path)
    return request.url.path


def _classify(exc: Exception) -> Exception:
    if isinstance(exc, TimeoutError):
        return internal_error("request timed out")
    return exc


def request_middleware(handler: HandlerT) -> HandlerT:
    """Wrap an endpoint with deadline, timing, logging, and error mapping.

    The endpoint must declare a `request: Request` parameter.
    """
    if "request" not in inspect.signature(handler).parameters:
        raise TypeError(f"{handler.__name__} must accept a 'request' parameter")

    @functools.wraps(handler)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        request: Request = kwargs["request"]
        timeout = request.app.state.settings.request_timeout_seconds
        method = request.method
        path = request.url.path
        route = _route_template(request)

        start = time.perf_counter()
        try:
            async with asyncio.timeout(timeout):
                result = await handler(*args, **kwargs)
        except Exception as exc:
            failure = _classify(exc)
            body, status_code = error_info(failure)
            duration = time.perf_counter() - start

            log_kwargs: dict[str, Any] = {
                "error": body.error,
                "status_code": status_code,
                "method": method,
                "path": path,
                "duration_ms": round(duration * 1000, 3),
            }
            if not isinstance(failure, ErrorStatus):
                log_kwargs["error_type"] = type(exc).__name__
                log_kwargs["exc_info"] = exc
            elif failure.cause is not None:
                log_kwargs["cause"] = repr(failure.cause)
            await logger.awarning("request_failed", **log_kwargs)
            record_request(method, route, status_code, duration)

            return JSONResponse(status_code=status_code, content=body.model_dump())

        duration = time.perf_counter() - start
        status_code = result.status_code if isinstance(result, Response) else status.HTTP_200_OK
        await logger.ainfo(
            "request_succeeded",
            method=method,
            path=path,
            duration_ms=round(duration * 1000, 3),
        )
        record_request(method, route, status_code, duration)
        return result

    return wrapper  # type: ignore[return-value]
