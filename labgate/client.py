"""Session-scoped GitLab API client."""

from __future__ import annotations

import json
from typing import Any
from urllib.parse import urlsplit

import httpx
import structlog

from labgate.config import DynamicConfig
from labgate.errors import ApiError, ReadOnlyViolation
from labgate.log_redaction import redact_secret
from labgate.registry import SessionRecord
from labgate.settings import settings

logger = structlog.get_logger(__name__)


def join_url(base_url: str, endpoint: str) -> str:
    """Join a base URL and an endpoint with exactly one slash between them."""
    return f"{base_url.rstrip('/')}/{endpoint.lstrip('/')}"


def select_proxy_url(api_url: str) -> str:
    """Pick the proxy configured for the target's scheme.

    HTTPS targets prefer HTTPS_PROXY, everything else prefers HTTP_PROXY; each
    falls back to the other variable when its own is unset.
    """
    if urlsplit(api_url).scheme == "https":
        return settings.https_proxy() or settings.http_proxy()
    return settings.http_proxy() or settings.https_proxy()


class SessionApiClient:
    """GitLab client bound to one session's configuration.

    The configuration is captured at construction; later changes to the
    session record are not observed. The network path is chosen once: through
    the configured proxy when one is set and usable, directly otherwise.

    Args:
        record: Session whose configuration and id this client serves.
        transport: Optional httpx transport, used instead of the proxy/direct
            selection (tests pass an ``httpx.MockTransport`` here).
        timeout: Per-request timeout in seconds.
    """

    def __init__(
        self,
        record: SessionRecord,
        *,
        transport: httpx.AsyncBaseTransport | None = None,
        timeout: float | None = None,
    ) -> None:
        self._session_id = record.session_id
        self._config = record.config
        self._proxy_url: str | None = None
        if transport is None:
            transport = self._setup_transport()
        timeout = timeout if timeout is not None else settings.request_timeout_seconds()
        self._http = httpx.AsyncClient(transport=transport, timeout=timeout)

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def config(self) -> DynamicConfig:
        return self._config

    @property
    def proxy_url(self) -> str | None:
        """Proxy this client routes through, or None for a direct connection."""
        return self._proxy_url

    def _setup_transport(self) -> httpx.AsyncHTTPTransport:
        proxy_url = select_proxy_url(self._config.api_url)
        if proxy_url:
            try:
                transport = httpx.AsyncHTTPTransport(proxy=proxy_url)
            except Exception as exc:
                logger.warning(
                    "Failed to setup proxy; using direct connection",
                    session_id=self._session_id,
                    error=str(exc),
                )
            else:
                self._proxy_url = proxy_url
                logger.info("Using proxy for session", session_id=self._session_id, proxy=proxy_url)
                return transport
        return httpx.AsyncHTTPTransport()

    async def aclose(self) -> None:
        """Release pooled connections."""
        await self._http.aclose()

    async def request(
        self,
        endpoint: str,
        *,
        method: str = "GET",
        body: Any = None,
        headers: dict[str, str] | None = None,
    ) -> Any:
        """Call a GitLab API endpoint relative to the session's base URL.

        Returns:
            Parsed JSON when the response declares a JSON content type,
            otherwise the raw response text.

        Raises:
            ApiError: on a non-success HTTP status.
            httpx.HTTPError: on transport failures, unchanged.
        """
        url = join_url(self._config.api_url, endpoint)
        request_headers = httpx.Headers(
            {
                "Authorization": f"Bearer {self._config.access_token}",
                "Content-Type": "application/json",
            }
        )
        # Caller headers win, whatever their casing.
        request_headers.update(headers or {})
        content: str | bytes | None = None
        if body is not None:
            content = body if isinstance(body, (str, bytes)) else json.dumps(body)

        try:
            response = await self._http.request(
                method, url, headers=request_headers, content=content
            )
            if not response.is_success:
                raise ApiError(response.status_code, response.text)
            content_type = response.headers.get("content-type", "")
            if "application/json" in content_type:
                return response.json()
            return response.text
        except Exception as exc:
            logger.error(
                "API request failed",
                session_id=self._session_id,
                url=redact_secret(url, self._config.access_token),
                method=method,
                error=redact_secret(str(exc), self._config.access_token),
            )
            raise

    # -------------------------------------------------------------------------
    # Feature gates
    # -------------------------------------------------------------------------

    def read_only(self) -> bool:
        return self._config.read_only_enabled

    def wiki_enabled(self) -> bool:
        return self._config.wiki_enabled

    def milestone_enabled(self) -> bool:
        return self._config.milestone_enabled

    def pipeline_enabled(self) -> bool:
        return self._config.pipeline_enabled

    def effective_project_id(self, request_project_id: str | None = None) -> str:
        """Project id to act on: the explicit one, else the session default.

        An empty string means no project could be resolved.
        """
        return request_project_id or self._config.project_id or ""

    def validate_write_operation(self, operation: str) -> None:
        """Raise ReadOnlyViolation if the session forbids writes."""
        if self.read_only():
            raise ReadOnlyViolation(operation, self._session_id)
