"""Event stream endpoints: store messages and resume after disconnect."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Header, Response
from starlette.responses import StreamingResponse

from labgate.api.deps import get_services
from labgate.api.schemas import AppendEventRequest, AppendEventResponse
from labgate.services import SessionServices
from labgate.sse import sse_event

router = APIRouter(prefix="/streams", tags=["streams"])


@router.post("/{stream_id}/events", response_model=AppendEventResponse, status_code=201)
async def append_event(
    stream_id: str,
    payload: AppendEventRequest,
    services: SessionServices = Depends(get_services),
) -> AppendEventResponse:
    event_id = services.events.append(stream_id, payload.message)
    return AppendEventResponse(event_id=event_id, stream_id=stream_id)


@router.get("/replay")
async def replay(
    last_event_id: str | None = Header(None, alias="Last-Event-ID"),
    services: SessionServices = Depends(get_services),
) -> Response:
    """Replay everything stored after Last-Event-ID as an SSE body.

    Answers 204 when the id is missing or unknown.
    """
    chunks: list[bytes] = []

    async def send(event_id: str, message: Any) -> None:
        chunks.append(sse_event(message, event_id=event_id).encode("utf-8"))

    stream_id = await services.events.replay_after(last_event_id, send)
    if not stream_id:
        return Response(status_code=204)

    async def body():
        for chunk in chunks:
            yield chunk

    return StreamingResponse(
        body(),
        media_type="text/event-stream",
        headers={"X-Stream-ID": stream_id},
    )
