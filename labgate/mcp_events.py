"""EventLog adapter for the MCP streamable-HTTP transport."""

from __future__ import annotations

from mcp.server.streamable_http import (
    EventCallback,
    EventId,
    EventMessage,
    EventStore,
    StreamId,
)
from mcp.types import JSONRPCMessage

from labgate.events import EventLog


class McpEventStore(EventStore):
    """Lets the MCP server resume SSE streams from an :class:`EventLog`.

    Priming events (stored with no message) keep their place in the stream
    but are never re-sent.
    """

    def __init__(self, log: EventLog | None = None) -> None:
        self.log = log if log is not None else EventLog()

    async def store_event(self, stream_id: StreamId, message: JSONRPCMessage | None) -> EventId:
        return self.log.append(stream_id, message)

    async def replay_events_after(
        self, last_event_id: EventId, send_callback: EventCallback
    ) -> StreamId | None:
        async def _send(event_id: str, message: JSONRPCMessage | None) -> None:
            if message is None:
                return
            await send_callback(EventMessage(message=message, event_id=event_id))

        stream_id = await self.log.replay_after(last_event_id, _send)
        return stream_id or None
