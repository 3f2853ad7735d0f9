"""Helpers for producing server-sent event (SSE) responses."""

from __future__ import annotations

import json
from typing import Any


def sse_event(data: Any, *, event_id: str | None = None) -> str:
    """Serialize an event payload into SSE wire format."""
    payload = json.dumps(data, separators=(",", ":"), default=str)
    if event_id:
        return f"id: {event_id}\ndata: {payload}\n\n"
    return f"data: {payload}\n\n"
