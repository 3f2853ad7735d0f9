"""Tests for EventLog append and resumable replay."""

import pytest

from labgate.events import EventLog


class Recorder:
    """Replay callback that records what it was sent."""

    def __init__(self, fail_on: str | None = None) -> None:
        self.sent: list[tuple[str, object]] = []
        self._fail_on = fail_on

    async def __call__(self, event_id: str, message: object) -> None:
        if event_id == self._fail_on:
            raise RuntimeError("client went away")
        self.sent.append((event_id, message))


class TestAppend:
    """Event ids and counters."""

    def test_ids_unique_and_prefixed(self) -> None:
        log = EventLog()
        ids = [log.append("S", {"n": i}) for i in range(50)]

        assert len(set(ids)) == 50
        assert all(event_id.startswith("S_") for event_id in ids)

    def test_ids_sort_in_append_order(self) -> None:
        ticks = iter([1.0, 2.0, 3.0])
        log = EventLog(clock=lambda: next(ticks))
        ids = [log.append("S", i) for i in range(3)]

        assert sorted(ids) == ids

    def test_counts(self) -> None:
        log = EventLog()
        log.append("S", 1)
        log.append("S", 2)
        log.append("T", 3)

        assert log.event_count() == 3
        assert log.stream_event_count("S") == 2
        assert log.stream_event_count("T") == 1
        assert log.stream_event_count("missing") == 0


class TestReplay:
    """Ordered replay strictly after the given event."""

    @pytest.mark.anyio
    async def test_replays_following_events_of_same_stream(self) -> None:
        log = EventLog()
        e1 = log.append("S", "one")
        e2 = log.append("S", "two")
        f1 = log.append("T", "other")
        e3 = log.append("S", "three")
        send = Recorder()

        stream_id = await log.replay_after(e1, send)

        assert stream_id == "S"
        assert send.sent == [(e2, "two"), (e3, "three")]
        assert f1 not in [event_id for event_id, _ in send.sent]

    @pytest.mark.anyio
    async def test_last_event_yields_nothing_but_stream(self) -> None:
        log = EventLog()
        log.append("S", 1)
        last = log.append("S", 2)
        send = Recorder()

        assert await log.replay_after(last, send) == "S"
        assert send.sent == []

    @pytest.mark.anyio
    @pytest.mark.parametrize("last_event_id", ["", None, "S_0000000000000_deadbeef", "garbage"])
    async def test_empty_or_unknown_id(self, last_event_id) -> None:
        log = EventLog()
        log.append("S", 1)
        send = Recorder()

        assert await log.replay_after(last_event_id, send) == ""
        assert send.sent == []

    @pytest.mark.anyio
    async def test_order_holds_within_same_millisecond(self) -> None:
        """A frozen clock still replays in append order."""
        log = EventLog(clock=lambda: 1700000000.0)
        ids = [log.append("S", i) for i in range(20)]
        send = Recorder()

        await log.replay_after(ids[0], send)

        assert [message for _, message in send.sent] == list(range(1, 20))

    @pytest.mark.anyio
    async def test_stream_ids_with_separator(self) -> None:
        """Streams whose ids contain underscores stay isolated."""
        log = EventLog()
        a1 = log.append("a_b", "a1")
        log.append("a", "x1")
        a2 = log.append("a_b", "a2")
        send = Recorder()

        assert await log.replay_after(a1, send) == "a_b"
        assert send.sent == [(a2, "a2")]

    @pytest.mark.anyio
    async def test_send_failure_propagates(self) -> None:
        log = EventLog()
        e1 = log.append("S", 1)
        e2 = log.append("S", 2)
        e3 = log.append("S", 3)
        log.append("S", 4)
        send = Recorder(fail_on=e3)

        with pytest.raises(RuntimeError, match="client went away"):
            await log.replay_after(e1, send)

        assert send.sent == [(e2, 2)]

    @pytest.mark.anyio
    async def test_events_appended_during_replay_not_sent(self) -> None:
        log = EventLog()
        e1 = log.append("S", 1)
        log.append("S", 2)
        seen = []

        async def send(event_id: str, message: object) -> None:
            seen.append(message)
            log.append("S", "late")

        await log.replay_after(e1, send)

        assert seen == [2]


class TestClearStream:
    """Stream teardown."""

    @pytest.mark.anyio
    async def test_clear_stream_only_touches_that_stream(self) -> None:
        log = EventLog()
        s1 = log.append("S", 1)
        log.append("S", 2)
        t1 = log.append("T", 1)
        t2 = log.append("T", 2)

        assert log.clear_stream("S") == 2

        assert log.event_count() == 2
        assert log.stream_event_count("S") == 0
        assert await log.replay_after(s1, Recorder()) == ""
        send = Recorder()
        assert await log.replay_after(t1, send) == "T"
        assert send.sent == [(t2, 2)]

    def test_clear_unknown_stream(self) -> None:
        assert EventLog().clear_stream("nope") == 0
