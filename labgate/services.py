"""Explicitly constructed session services shared by the server."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

import structlog

from labgate.client import SessionApiClient
from labgate.events import EventLog
from labgate.pool import ClientPool
from labgate.registry import SessionRecord, SessionRegistry
from labgate.settings import settings

logger = structlog.get_logger(__name__)


@dataclass
class SessionServices:
    """Registry, client pool and event log owned by one server instance."""

    registry: SessionRegistry = field(default_factory=SessionRegistry)
    pool: ClientPool = field(default_factory=ClientPool)
    events: EventLog = field(default_factory=EventLog)

    @classmethod
    def from_settings(cls) -> SessionServices:
        """Build services using limits from the environment."""
        registry = SessionRegistry(
            max_sessions=settings.max_sessions(),
            timeout_minutes=settings.session_timeout_minutes(),
            sweep_interval_seconds=settings.sweep_interval_seconds(),
        )
        return cls(registry=registry)

    def open_session(self, session_id: str, raw: Mapping[str, Any]) -> SessionRecord:
        """Register (or replace) a session's configuration.

        A client already pooled for this id is kept as-is; call
        :meth:`close_session` first to rebuild it with the new settings.
        """
        return self.registry.create(session_id, raw)

    def client_for(self, session_id: str) -> SessionApiClient | None:
        """Return the session's client, or None if the session is gone."""
        record = self.registry.get(session_id)
        if record is None:
            return None
        return self.pool.get_or_create(record)

    async def close_session(self, session_id: str) -> bool:
        """Tear down a session: config, client and its event stream."""
        removed = self.registry.remove(session_id)
        client = self.pool.get(session_id)
        if client is not None:
            self.pool.remove(session_id)
            await client.aclose()
            removed = True
        removed = self.events.clear_stream(session_id) > 0 or removed
        if removed:
            logger.info("Closed session", session_id=session_id)
        return removed

    def start(self) -> None:
        self.registry.start()

    async def stop(self) -> None:
        await self.registry.stop()
        await self.pool.aclose()

    def stats(self) -> dict[str, Any]:
        return {
            "sessions": self.registry.stats(),
            "clients": self.pool.count(),
            "events": self.events.event_count(),
        }
