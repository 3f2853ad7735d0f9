"""Shared pytest fixtures for labgate tests."""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import httpx
import pytest

# Host proxy settings must not leak into client construction.
for k in ("HTTP_PROXY", "HTTPS_PROXY", "http_proxy", "https_proxy"):
    os.environ.pop(k, None)

from labgate.client import SessionApiClient
from labgate.main import create_app
from labgate.pool import ClientPool
from labgate.registry import SessionRegistry
from labgate.services import SessionServices


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self) -> None:
        self.now = datetime(2024, 1, 1, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


VALID_CONFIG = {
    "api_url": "https://gitlab.example.com/api/v4",
    "access_token": "glpat-secret-token",
}


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def registry(clock: FakeClock) -> SessionRegistry:
    return SessionRegistry(max_sessions=10, timeout_minutes=60, clock=clock)


@pytest.fixture
def gitlab_requests() -> list[httpx.Request]:
    """Requests seen by the fake GitLab transport."""
    return []


@pytest.fixture
def gitlab_transport(gitlab_requests) -> httpx.MockTransport:
    """Fake GitLab: echoes request details as JSON, /raw answers plain text."""

    def handler(request: httpx.Request) -> httpx.Response:
        gitlab_requests.append(request)
        if request.url.path.endswith("/raw"):
            return httpx.Response(200, text="plain body")
        if request.url.path.endswith("/missing"):
            return httpx.Response(404, text='{"message":"404 Not Found"}')
        return httpx.Response(
            200,
            json={
                "method": request.method,
                "path": request.url.path,
                "query": request.url.query.decode(),
                "body": request.content.decode(errors="replace") or None,
            },
        )

    return httpx.MockTransport(handler)


@pytest.fixture
def services(registry, gitlab_transport) -> SessionServices:
    pool = ClientPool(factory=lambda record: SessionApiClient(record, transport=gitlab_transport))
    return SessionServices(registry=registry, pool=pool)


@pytest.fixture
async def api_client(services) -> AsyncGenerator[httpx.AsyncClient, None]:
    """Async HTTP client bound to an app built around the test services."""
    app = create_app(services)
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture(scope="session")
def anyio_backend() -> str:
    """Force the AnyIO pytest plugin to run tests under asyncio."""
    return "asyncio"


@pytest.fixture
def raw_config() -> dict[str, str]:
    """Minimal valid session configuration, as query parameters."""
    return dict(VALID_CONFIG)
