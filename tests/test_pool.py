"""Tests for ClientPool at-most-one-instance semantics."""

import pytest

from labgate.client import SessionApiClient
from labgate.pool import ClientPool


class TestClientPool:
    """Lazy creation, identity and explicit removal."""

    def test_get_or_create_returns_same_instance(self, registry, raw_config) -> None:
        pool = ClientPool()
        record = registry.create("s1", raw_config)

        first = pool.get_or_create(record)
        second = pool.get_or_create(record)

        assert isinstance(first, SessionApiClient)
        assert first is second
        assert pool.count() == 1

    def test_stale_client_kept_after_recreate(self, registry, raw_config) -> None:
        """A recreated session does not implicitly replace its client."""
        pool = ClientPool()
        original = pool.get_or_create(registry.create("s1", raw_config))

        updated = registry.create("s1", {**raw_config, "read_only": "true"})
        client = pool.get_or_create(updated)

        assert client is original
        assert client.read_only() is False

    def test_remove_then_rebuild(self, registry, raw_config) -> None:
        pool = ClientPool()
        original = pool.get_or_create(registry.create("s1", raw_config))

        assert pool.remove("s1") is True
        assert pool.remove("s1") is False

        rebuilt = pool.get_or_create(registry.create("s1", {**raw_config, "read_only": "true"}))
        assert rebuilt is not original
        assert rebuilt.read_only() is True

    def test_separate_sessions_separate_clients(self, registry, raw_config) -> None:
        pool = ClientPool()
        a = pool.get_or_create(registry.create("a", raw_config))
        b = pool.get_or_create(registry.create("b", raw_config))

        assert a is not b
        assert a.session_id == "a"
        assert b.session_id == "b"
        assert pool.count() == 2

    def test_clear(self, registry, raw_config) -> None:
        pool = ClientPool()
        pool.get_or_create(registry.create("a", raw_config))
        pool.get_or_create(registry.create("b", raw_config))

        pool.clear()

        assert pool.count() == 0

    def test_custom_factory(self, registry, raw_config) -> None:
        built = []

        def factory(record):
            built.append(record.session_id)
            return SessionApiClient(record)

        pool = ClientPool(factory=factory)
        record = registry.create("s1", raw_config)
        pool.get_or_create(record)
        pool.get_or_create(record)

        assert built == ["s1"]

    def test_get_does_not_create(self, registry, raw_config) -> None:
        pool = ClientPool()
        assert pool.get("s1") is None

        client = pool.get_or_create(registry.create("s1", raw_config))

        assert pool.get("s1") is client
        assert pool.count() == 1

    @pytest.mark.anyio
    async def test_aclose_closes_every_client(self, registry, raw_config) -> None:
        pool = ClientPool()
        a = pool.get_or_create(registry.create("a", raw_config))
        b = pool.get_or_create(registry.create("b", raw_config))

        await pool.aclose()

        assert pool.count() == 0
        for client in (a, b):
            with pytest.raises(RuntimeError):
                await client.request("projects")
