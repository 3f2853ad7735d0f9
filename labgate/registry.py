"""Bounded, idle-expiring registry of per-session configuration."""

from __future__ import annotations

import asyncio
import math
from collections.abc import Callable, Mapping
from contextlib import suppress
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

import structlog

from labgate.config import DynamicConfig, validate_config

logger = structlog.get_logger(__name__)

DEFAULT_MAX_SESSIONS = 1000
DEFAULT_TIMEOUT_MINUTES = 60
DEFAULT_SWEEP_INTERVAL_SECONDS = 300
EVICTION_DIVISOR = 10


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SessionRecord:
    """Configuration and activity timestamps for one session."""

    session_id: str
    config: DynamicConfig
    created_at: datetime
    last_used: datetime


class SessionRegistry:
    """Maps session ids to their configuration.

    Records expire after ``timeout_minutes`` without a lookup. Expiry is
    detected lazily by :meth:`get` and eagerly by :meth:`sweep_expired`, which
    the background sweeper calls every ``sweep_interval_seconds``. When a
    create finds the registry full, the least recently used tenth is evicted
    first, so ``max_sessions`` is a soft bound rather than a hard ceiling.
    """

    def __init__(
        self,
        max_sessions: int = DEFAULT_MAX_SESSIONS,
        timeout_minutes: float = DEFAULT_TIMEOUT_MINUTES,
        *,
        sweep_interval_seconds: float = DEFAULT_SWEEP_INTERVAL_SECONDS,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._sessions: dict[str, SessionRecord] = {}
        self._max_sessions = max_sessions
        self._timeout = timedelta(minutes=timeout_minutes)
        self._timeout_minutes = timeout_minutes
        self._sweep_interval_s = sweep_interval_seconds
        self._clock = clock
        self._sweeper: asyncio.Task | None = None

    def create(self, session_id: str, raw: Mapping[str, Any]) -> SessionRecord:
        """Validate ``raw`` and register it under ``session_id``.

        Replaces any existing record for the same id. Nothing is stored when
        validation fails.

        Raises:
            ConfigValidationError: if ``raw`` is not a valid configuration.
        """
        config = validate_config(raw)
        now = self._clock()
        record = SessionRecord(
            session_id=session_id,
            config=config,
            created_at=now,
            last_used=now,
        )
        if len(self._sessions) >= self._max_sessions:
            self._evict_oldest(math.ceil(self._max_sessions / EVICTION_DIVISOR))
        self._sessions[session_id] = record
        logger.info(
            "Created session config",
            session_id=session_id,
            api_url=config.api_url,
            has_token=bool(config.access_token),
            project_id=config.project_id,
            read_only=config.read_only,
        )
        return record

    def get(self, session_id: str) -> SessionRecord | None:
        """Return the session and mark it used, or None if missing or expired."""
        record = self._sessions.get(session_id)
        if record is None:
            return None
        now = self._clock()
        if self._is_expired(record, now):
            del self._sessions[session_id]
            logger.info("Session expired and removed", session_id=session_id)
            return None
        record.last_used = now
        return record

    def remove(self, session_id: str) -> bool:
        """Delete a session unconditionally. Returns whether it existed."""
        existed = self._sessions.pop(session_id, None) is not None
        if existed:
            logger.info("Removed session config", session_id=session_id)
        return existed

    def count(self) -> int:
        return len(self._sessions)

    def stats(self) -> dict[str, Any]:
        return {
            "active": len(self._sessions),
            "max": self._max_sessions,
            "timeout_minutes": self._timeout_minutes,
        }

    def _is_expired(self, record: SessionRecord, now: datetime) -> bool:
        return now - record.last_used > self._timeout

    def sweep_expired(self) -> int:
        """Remove every session idle for longer than the timeout."""
        now = self._clock()
        expired = [
            session_id
            for session_id, record in self._sessions.items()
            if self._is_expired(record, now)
        ]
        for session_id in expired:
            del self._sessions[session_id]
        if expired:
            logger.info("Cleaned up expired sessions", count=len(expired))
        return len(expired)

    def _evict_oldest(self, count: int) -> int:
        oldest = sorted(self._sessions.values(), key=lambda r: r.last_used)[:count]
        for record in oldest:
            del self._sessions[record.session_id]
        logger.info("Cleaned up oldest sessions", count=len(oldest))
        return len(oldest)

    # -------------------------------------------------------------------------
    # Background sweeper
    # -------------------------------------------------------------------------

    async def run_sweeper(self) -> None:
        """Sweep expired sessions forever at the configured interval."""
        while True:
            await asyncio.sleep(self._sweep_interval_s)
            try:
                self.sweep_expired()
            except Exception:
                logger.exception("Session sweep failed")

    def start(self) -> None:
        """Start the background sweeper on the running event loop."""
        if self._sweeper is None or self._sweeper.done():
            self._sweeper = asyncio.create_task(self.run_sweeper())

    async def stop(self) -> None:
        """Cancel the background sweeper and wait for it to exit."""
        task, self._sweeper = self._sweeper, None
        if task is None:
            return
        task.cancel()
        with suppress(asyncio.CancelledError):
            await task
