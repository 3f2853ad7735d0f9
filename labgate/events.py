"""In-memory, append-only event log with per-stream resumable replay."""

from __future__ import annotations

import itertools
import secrets
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from typing import Any

import structlog

logger = structlog.get_logger(__name__)

SendCallback = Callable[[str, Any], Awaitable[None]]


@dataclass(frozen=True)
class EventRecord:
    """One stored message.

    ``seq`` is a log-wide counter, so ordering by it within a stream is
    exactly append order.
    """

    event_id: str
    stream_id: str
    seq: int
    message: Any


class EventLog:
    """Stores messages per stream and replays them after a given event id.

    Event ids have the form ``<stream>_<millis>_<random>`` so that they sort
    in append order and stay unique across streams, but the owning stream is
    never recovered by parsing the id: every record keeps its stream and
    sequence number, and each stream keeps an ordered index of its ids. Stream
    ids may therefore contain any character, underscores included.

    Growth is unbounded; streams are only dropped by :meth:`clear_stream`.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._events: dict[str, EventRecord] = {}
        self._streams: dict[str, list[str]] = {}
        self._seq = itertools.count(1)
        self._clock = clock

    def _generate_event_id(self, stream_id: str) -> str:
        millis = int(self._clock() * 1000)
        return f"{stream_id}_{millis:013d}_{secrets.token_hex(4)}"

    def append(self, stream_id: str, message: Any) -> str:
        """Store ``message`` on ``stream_id`` and return its new event id."""
        event_id = self._generate_event_id(stream_id)
        while event_id in self._events:
            event_id = self._generate_event_id(stream_id)
        record = EventRecord(
            event_id=event_id,
            stream_id=stream_id,
            seq=next(self._seq),
            message=message,
        )
        self._events[event_id] = record
        self._streams.setdefault(stream_id, []).append(event_id)
        logger.debug("Stored event", event_id=event_id, stream_id=stream_id)
        return event_id

    async def replay_after(self, last_event_id: str | None, send: SendCallback) -> str:
        """Send every event of ``last_event_id``'s stream that came after it.

        ``send(event_id, message)`` is awaited once per event, in append
        order. A failure in ``send`` propagates; events already sent stay
        sent.

        Returns:
            The stream id, or ``""`` when ``last_event_id`` is empty or
            unknown (nothing to resume).
        """
        if not last_event_id:
            return ""
        anchor = self._events.get(last_event_id)
        if anchor is None:
            return ""

        # Snapshot first: send() may suspend while other streams append.
        pending = [
            self._events[event_id]
            for event_id in self._streams.get(anchor.stream_id, [])
            if self._events[event_id].seq > anchor.seq
        ]
        for record in pending:
            await send(record.event_id, record.message)
        logger.debug(
            "Replayed events",
            stream_id=anchor.stream_id,
            after=last_event_id,
            count=len(pending),
        )
        return anchor.stream_id

    def clear_stream(self, stream_id: str) -> int:
        """Delete every event recorded on ``stream_id``."""
        event_ids = self._streams.pop(stream_id, [])
        for event_id in event_ids:
            del self._events[event_id]
        logger.info("Cleared events from stream", stream_id=stream_id, count=len(event_ids))
        return len(event_ids)

    def event_count(self) -> int:
        return len(self._events)

    def stream_event_count(self, stream_id: str) -> int:
        return len(self._streams.get(stream_id, ()))
