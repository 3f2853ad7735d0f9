"""Tests for SessionServices composition."""

import pytest

from labgate.services import SessionServices


class TestSessionServices:
    """Session-level workflows across registry, pool and event log."""

    def test_client_for_unknown_session(self, services: SessionServices) -> None:
        assert services.client_for("missing") is None
        assert services.pool.count() == 0

    def test_client_for_creates_once(self, services: SessionServices, raw_config) -> None:
        services.open_session("s1", raw_config)

        first = services.client_for("s1")
        second = services.client_for("s1")

        assert first is not None
        assert first is second

    def test_client_for_expired_session(self, services: SessionServices, clock, raw_config) -> None:
        services.open_session("s1", raw_config)
        clock.advance(minutes=61)

        assert services.client_for("s1") is None

    @pytest.mark.anyio
    async def test_close_session(self, services: SessionServices, raw_config) -> None:
        services.open_session("s1", raw_config)
        client = services.client_for("s1")
        services.events.append("s1", {"n": 1})
        services.events.append("other", {"n": 2})

        assert await services.close_session("s1") is True

        assert services.registry.count() == 0
        assert services.pool.count() == 0
        assert services.events.stream_event_count("s1") == 0
        assert services.events.stream_event_count("other") == 1
        assert await services.close_session("s1") is False
        with pytest.raises(RuntimeError):
            await client.request("projects")

    def test_from_settings(self, monkeypatch) -> None:
        monkeypatch.setenv("LABGATE_MAX_SESSIONS", "5")
        monkeypatch.setenv("LABGATE_SESSION_TIMEOUT_MINUTES", "15")

        services = SessionServices.from_settings()

        assert services.registry.stats() == {"active": 0, "max": 5, "timeout_minutes": 15}

    def test_independent_instances(self, raw_config) -> None:
        a = SessionServices()
        b = SessionServices()
        a.open_session("s1", raw_config)

        assert a.registry.count() == 1
        assert b.registry.count() == 0

    @pytest.mark.anyio
    async def test_start_stop(self, services: SessionServices, raw_config) -> None:
        services.open_session("s1", raw_config)
        services.client_for("s1")
        services.start()

        await services.stop()

        assert services.pool.count() == 0
