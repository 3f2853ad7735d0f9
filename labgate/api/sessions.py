"""Session lifecycle endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request, Response
from fastapi.responses import JSONResponse, PlainTextResponse

from labgate.api.deps import get_services
from labgate.api.errors import raise_http_error
from labgate.api.schemas import SessionResponse
from labgate.services import SessionServices

router = APIRouter(prefix="/sessions", tags=["sessions"])


@router.post("/{session_id}", response_model=SessionResponse, status_code=201)
async def create_session(
    session_id: str,
    request: Request,
    services: SessionServices = Depends(get_services),
) -> SessionResponse:
    """Create or replace a session from its query parameters."""
    record = services.open_session(session_id, dict(request.query_params))
    return SessionResponse.from_record(record)


@router.get("/{session_id}", response_model=SessionResponse)
async def get_session(
    session_id: str,
    services: SessionServices = Depends(get_services),
) -> SessionResponse:
    """Fetch a session, extending its lifetime."""
    record = services.registry.get(session_id)
    if record is None:
        raise_http_error("NOT_FOUND", "Session not found", 404)
    return SessionResponse.from_record(record)


@router.delete("/{session_id}", status_code=204)
async def delete_session(
    session_id: str,
    services: SessionServices = Depends(get_services),
) -> Response:
    """Terminate a session and drop its client and events."""
    if not await services.close_session(session_id):
        raise_http_error("NOT_FOUND", "Session not found", 404)
    return Response(status_code=204)


@router.api_route("/{session_id}/api/{endpoint:path}", methods=["GET", "POST", "PUT", "DELETE"])
async def forward_request(
    session_id: str,
    endpoint: str,
    request: Request,
    services: SessionServices = Depends(get_services),
) -> Response:
    """Forward a call to GitLab through the session's client.

    Anything but GET counts as a write and is refused for read-only sessions.
    """
    client = services.client_for(session_id)
    if client is None:
        raise_http_error("NOT_FOUND", "Session not found", 404)
    if request.method != "GET":
        client.validate_write_operation(f"{request.method} /{endpoint}")
    if request.url.query:
        endpoint = f"{endpoint}?{request.url.query}"
    # Forwarded undecoded.
    raw = await request.body()
    result = await client.request(endpoint, method=request.method, body=raw or None)
    if isinstance(result, str):
        return PlainTextResponse(result)
    return JSONResponse(result)
