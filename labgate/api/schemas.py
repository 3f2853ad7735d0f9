"""Pydantic request/response models for API endpoints."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel

from labgate.registry import SessionRecord


class RegistryStats(BaseModel):
    active: int
    max: int
    timeout_minutes: float


class HealthResponse(BaseModel):
    """Health check response."""

    ok: bool
    version: str
    sessions: RegistryStats
    clients: int
    events: int


class SessionResponse(BaseModel):
    """Session summary returned by API endpoints. Never includes the token."""

    session_id: str
    api_url: str
    project_id: str | None
    read_only: bool
    use_wiki: bool
    use_milestone: bool
    use_pipeline: bool
    created_at: datetime
    last_used: datetime

    @classmethod
    def from_record(cls, record: SessionRecord) -> SessionResponse:
        config = record.config
        return cls(
            session_id=record.session_id,
            api_url=config.api_url,
            project_id=config.project_id,
            read_only=config.read_only_enabled,
            use_wiki=config.wiki_enabled,
            use_milestone=config.milestone_enabled,
            use_pipeline=config.pipeline_enabled,
            created_at=record.created_at,
            last_used=record.last_used,
        )


class AppendEventRequest(BaseModel):
    """Request body for storing a message on a stream."""

    message: Any


class AppendEventResponse(BaseModel):
    event_id: str
    stream_id: str
