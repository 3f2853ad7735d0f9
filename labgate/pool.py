"""Per-session GitLab client instances."""

from __future__ import annotations

from collections.abc import Callable

import structlog

from labgate.client import SessionApiClient
from labgate.registry import SessionRecord

logger = structlog.get_logger(__name__)


class ClientPool:
    """Holds at most one SessionApiClient per session id.

    Clients are created lazily and live independently of the registry: a
    client stays in the pool, with the configuration it was built from, until
    :meth:`remove` or :meth:`clear` is called.
    """

    def __init__(
        self, factory: Callable[[SessionRecord], SessionApiClient] = SessionApiClient
    ) -> None:
        self._clients: dict[str, SessionApiClient] = {}
        self._factory = factory

    def get_or_create(self, record: SessionRecord) -> SessionApiClient:
        """Return the session's client, building it from ``record`` if missing."""
        client = self._clients.get(record.session_id)
        if client is None:
            client = self._factory(record)
            self._clients[record.session_id] = client
            logger.info("Created GitLab client for session", session_id=record.session_id)
        return client

    def get(self, session_id: str) -> SessionApiClient | None:
        return self._clients.get(session_id)

    def remove(self, session_id: str) -> bool:
        existed = self._clients.pop(session_id, None) is not None
        if existed:
            logger.info("Removed GitLab client for session", session_id=session_id)
        return existed

    def count(self) -> int:
        return len(self._clients)

    def clear(self) -> None:
        self._clients.clear()
        logger.info("Cleared all GitLab clients")

    async def aclose(self) -> None:
        """Close every pooled client's connections, then forget them all."""
        clients = list(self._clients.values())
        self.clear()
        for client in clients:
            await client.aclose()
