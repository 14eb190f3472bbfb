"""Joke CRUD endpoints.

- POST   /jokes            — create (bearer token)
- GET    /jokes/{joke_id}  — fetch one (rate limited)
- GET    /jokes            — paginated list, ?page=&limit= (rate limited)
- PATCH  /jokes/{joke_id}  — replace the text (bearer token)
- DELETE /jokes/{joke_id}  — delete (bearer token)

Each handler decodes and validates its input, calls the JokeService, and
raises ErrorStatus for every failure it can classify. Mounted under /v1.
"""

import re
from datetime import UTC, datetime

from fastapi import APIRouter, Depends, Request, Response, status
from pydantic import ValidationError

from jokes.api.auth import require_bearer_token
from jokes.api.dependencies import get_service
from jokes.api.errors import bad_request, internal_error, not_found
from jokes.api.middleware import request_middleware
from jokes.api.rate_limit import enforce_rate_limit
from jokes.db.repository import JokeNotFoundError
from jokes.models import Joke, JokeRequest, JokeUpdate, parse_joke_id
from jokes.service import JokeService

router = APIRouter()

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 10
MAX_INT64 = 2**63 - 1

_NUMBER_PATTERN = re.compile(r"\+?[0-9]+")


# --- Input helpers ---


def _require_id(joke_id: str) -> str:
    if not joke_id:
        raise bad_request("id is required")
    return joke_id


def _describe_validation_error(exc: ValidationError) -> str:
    errors = exc.errors(include_url=False)
    if any(error["type"] == "json_invalid" for error in errors):
        return "request body is not valid JSON"
    details = "; ".join(
        f"{'.'.join(str(part) for part in error['loc']) or 'body'}: {error['msg']}"
        for error in errors
    )
    return f"request validation failed: {details}"


async def _decode_joke_request(request: Request) -> JokeRequest:
    """Decode and validate a {"joke": "..."} body.

    Raises:
        ErrorStatus 400: If the body is empty, not JSON, or fails validation.
    """
    raw = await request.body()
    if not raw.strip():
        raise bad_request("request body must not be empty")
    try:
        return JokeRequest.model_validate_json(raw)
    except ValidationError as exc:
        raise bad_request(_describe_validation_error(exc)) from exc


def _parse_positive(value: str | None, default: int, name: str) -> int:
    """Parse a positive page/limit number: ASCII digits, optional '+', within int64."""
    if value is None or value == "":
        return default
    if _NUMBER_PATTERN.fullmatch(value) is None:
        raise bad_request(f"invalid {name} number")
    parsed = int(value)
    if parsed < 1 or parsed > MAX_INT64:
        raise bad_request(f"invalid {name} number")
    return parsed


def _convert_id(joke_id: str) -> str:
    try:
        return str(parse_joke_id(joke_id))
    except ValueError as exc:
        raise internal_error("invalid joke id") from exc


async def _fetch(service: JokeService, joke_id: str) -> Joke:
    try:
        return await service.get_joke(joke_id)
    except JokeNotFoundError as exc:
        raise not_found(exc) from exc
    except Exception as exc:
        raise internal_error("failed to fetch joke") from exc


# --- Endpoints ---


@router.post(
    "/jokes",
    response_model=Joke,
    dependencies=[Depends(require_bearer_token)],
)
@request_middleware
async def create_joke(
    request: Request,
    service: JokeService = Depends(get_service),
) -> Joke:
    """Create a joke with a fresh id and matching created/updated timestamps."""
    payload = await _decode_joke_request(request)
    joke = Joke.new(payload.joke)
    try:
        return await service.create_joke(joke)
    except Exception as exc:
        raise internal_error("failed to create joke") from exc


@router.get(
    "/jokes/{joke_id}",
    response_model=Joke,
    dependencies=[Depends(enforce_rate_limit)],
)
@request_middleware
async def get_joke(
    request: Request,
    joke_id: str,
    service: JokeService = Depends(get_service),
) -> Joke:
    return await _fetch(service, _convert_id(_require_id(joke_id)))


@router.get(
    "/jokes",
    response_model=list[Joke],
    dependencies=[Depends(enforce_rate_limit)],
)
@request_middleware
async def list_jokes(
    request: Request,
    page: str | None = None,
    limit: str | None = None,
    service: JokeService = Depends(get_service),
) -> list[Joke]:
    """List jokes, `limit` per page, pages numbered from 1."""
    page_number = _parse_positive(page, DEFAULT_PAGE, "page")
    page_size = _parse_positive(limit, DEFAULT_LIMIT, "limit")
    skip = (page_number - 1) * page_size
    if skip > MAX_INT64:
        raise bad_request("invalid page number")
    try:
        return list(await service.list_jokes(skip, page_size))
    except Exception as exc:
        raise internal_error("failed to list jokes") from exc


@router.patch(
    "/jokes/{joke_id}",
    response_model=Joke,
    dependencies=[Depends(require_bearer_token)],
)
@request_middleware
async def update_joke(
    request: Request,
    joke_id: str,
    service: JokeService = Depends(get_service),
) -> Joke:
    """Replace a joke's text. updated_at is always refreshed; created_at never changes."""
    joke_id = _require_id(joke_id)
    payload = await _decode_joke_request(request)
    storage_id = _convert_id(joke_id)

    update = JokeUpdate(id=storage_id, joke=payload.joke, updated_at=datetime.now(UTC))
    try:
        return await service.update_joke(update)
    except JokeNotFoundError as exc:
        raise not_found(exc) from exc
    except Exception as exc:
        raise internal_error("failed to update joke") from exc


@router.delete(
    "/jokes/{joke_id}",
    dependencies=[Depends(require_bearer_token)],
)
@request_middleware
async def delete_joke(
    request: Request,
    joke_id: str,
    service: JokeService = Depends(get_service),
) -> Response:
    """Delete a joke. 404 if it does not exist; empty 200 body on success."""
    joke_id = _convert_id(_require_id(joke_id))
    await _fetch(service, joke_id)
    try:
        await service.delete_joke(joke_id)
    except Exception as exc:
        raise internal_error("failed to delete joke") from exc
    return Response(status_code=status.HTTP_200_OK)
