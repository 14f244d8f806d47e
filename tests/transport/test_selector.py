"""Tests for the transport selector state machine."""

import asyncio

import pytest

from conftest import FakeChannel, wait_until
from quote_sync.transport.models import TransportState, is_allowed
from quote_sync.transport.push import PushReader
from quote_sync.transport.selector import TransportSelector


class Recorder:
    """Collects selector callbacks."""

    def __init__(self) -> None:
        self.snapshots = []
        self.messages = []
        self.transitions = []
        self.fetches = 0

    async def fetch(self):
        self.fetches += 1
        return [{"symbol": "AAPL", "current_price": 150}]

    def selector(self, channel_factory=None, interval: float = 0.02) -> TransportSelector:
        return TransportSelector(
            fetch_snapshot=self.fetch,
            on_snapshot=self.snapshots.append,
            on_message=self.messages.append,
            channel_factory=channel_factory,
            poll_interval=interval,
            poll_timeout=0.5,
            on_state_change=self.transitions.append,
        )


class TestTransitionTable:
    """Test suite for allowed transitions."""

    def test_failover_is_one_way(self) -> None:
        assert is_allowed(TransportState.PUSH_ACTIVE, TransportState.POLL_ACTIVE)
        assert not is_allowed(TransportState.POLL_ACTIVE, TransportState.PUSH_ACTIVE)

    def test_closed_is_terminal(self) -> None:
        for state in TransportState:
            assert not is_allowed(TransportState.CLOSED, state)


class TestTransportSelector:
    """Test suite for TransportSelector."""

    @pytest.mark.asyncio
    async def test_no_push_endpoint_starts_polling(self) -> None:
        rec = Recorder()
        selector = rec.selector()

        state = await selector.start()
        try:
            assert state is TransportState.POLL_ACTIVE
            assert selector.poll_active
            assert await wait_until(lambda: rec.snapshots)
        finally:
            await selector.stop()

        assert rec.transitions[0].trigger == "no_push_endpoint"

    @pytest.mark.asyncio
    async def test_connect_failure_falls_back_to_polling(self) -> None:
        rec = Recorder()
        channel = FakeChannel(fail_connect=True)
        selector = rec.selector(lambda: channel)

        state = await selector.start()
        try:
            assert state is TransportState.POLL_ACTIVE
            assert channel.close_calls == 1
            assert selector.last_transport_error is not None
        finally:
            await selector.stop()

        assert [t.trigger for t in rec.transitions] == ["push_connect_failed", "teardown"]

    @pytest.mark.asyncio
    async def test_push_messages_are_forwarded(self) -> None:
        rec = Recorder()
        channel = FakeChannel()
        selector = rec.selector(lambda: channel)

        assert await selector.start() is TransportState.PUSH_ACTIVE
        try:
            channel.push('{"symbol": "AAPL", "current_price": 151}')
            channel.push('{"symbol": "MSFT", "current_price": 300}')
            assert await wait_until(lambda: len(rec.messages) == 2)
            assert selector.push_active
            assert not selector.poll_active
            assert rec.fetches == 0
        finally:
            await selector.stop()

    @pytest.mark.asyncio
    async def test_message_callback_error_keeps_push_active(self) -> None:
        rec = Recorder()
        channel = FakeChannel()
        received = []

        def on_message(payload) -> None:
            received.append(payload)
            if len(received) == 1:
                raise ValueError("cannot apply message")

        selector = TransportSelector(
            fetch_snapshot=rec.fetch,
            on_snapshot=rec.snapshots.append,
            on_message=on_message,
            channel_factory=lambda: channel,
            poll_interval=0.02,
            poll_timeout=0.5,
            on_state_change=rec.transitions.append,
        )

        assert await selector.start() is TransportState.PUSH_ACTIVE
        try:
            channel.push('{"symbol": "AAPL", "current_price": 151}')
            channel.push('{"symbol": "AAPL", "current_price": 152}')
            assert await wait_until(lambda: len(received) == 2)
            await asyncio.sleep(0.05)

            assert selector.state is TransportState.PUSH_ACTIVE
            assert not selector.poll_active
            assert rec.fetches == 0
        finally:
            await selector.stop()

        assert [t.trigger for t in rec.transitions] == ["push_connected", "teardown"]

    @pytest.mark.asyncio
    async def test_reader_counts_failed_messages(self) -> None:
        channel = FakeChannel()
        closed = []

        def on_message(payload) -> None:
            if payload == "bad":
                raise KeyError(payload)

        reader = PushReader(channel, on_message, closed.append)
        handle = reader.start()
        channel.push("bad")
        channel.push("good")
        channel.end()
        await handle.wait()

        assert reader.messages == 2
        assert reader.failed_messages == 1
        assert closed == [None]

    @pytest.mark.asyncio
    async def test_push_close_fails_over_to_single_poll_loop(self) -> None:
        rec = Recorder()
        channel = FakeChannel()
        selector = rec.selector(lambda: channel, interval=0.02)
        await selector.start()

        channel.end()
        try:
            assert await wait_until(lambda: selector.state is TransportState.POLL_ACTIVE)
            assert await wait_until(lambda: len(rec.snapshots) >= 2)
            assert selector.poll_starts == 1
            assert channel.close_calls == 1
            assert not selector.push_active
        finally:
            await selector.stop()

        assert [t.trigger for t in rec.transitions] == ["push_connected", "push_closed", "teardown"]

    @pytest.mark.asyncio
    async def test_push_error_fails_over_immediately(self) -> None:
        rec = Recorder()
        channel = FakeChannel()
        # Long interval: only the immediate failover fetch can land in time
        selector = rec.selector(lambda: channel, interval=10.0)
        await selector.start()

        channel.fail("connection reset")
        try:
            assert await wait_until(lambda: rec.snapshots)
            assert rec.transitions[-1].trigger == "push_error"
            assert "connection reset" in str(selector.last_transport_error)
        finally:
            await selector.stop()

    @pytest.mark.asyncio
    async def test_teardown_leaves_nothing_running(self) -> None:
        rec = Recorder()
        channel = FakeChannel()
        selector = rec.selector(lambda: channel)
        await selector.start()

        await selector.stop()
        channel.push('{"symbol": "AAPL", "current_price": 1}')
        await asyncio.sleep(0.05)

        assert selector.state is TransportState.CLOSED
        assert selector.closed
        assert rec.messages == []
        assert channel.close_calls == 1
        assert not selector.push_active
        assert not selector.poll_active

    @pytest.mark.asyncio
    async def test_teardown_while_polling(self) -> None:
        rec = Recorder()
        selector = rec.selector(interval=0.01)
        await selector.start()
        assert await wait_until(lambda: rec.snapshots)

        await selector.stop()
        seen = len(rec.snapshots)
        await asyncio.sleep(0.05)

        assert len(rec.snapshots) == seen
        assert not selector.poll_active

    @pytest.mark.asyncio
    async def test_stop_is_idempotent(self) -> None:
        rec = Recorder()
        selector = rec.selector()
        await selector.start()

        await selector.stop()
        await selector.stop()

        assert [t.to_state for t in rec.transitions].count(TransportState.CLOSED) == 1

    @pytest.mark.asyncio
    async def test_stop_during_handshake(self) -> None:
        rec = Recorder()
        release = asyncio.Event()

        class SlowChannel(FakeChannel):
            async def connect(self) -> None:
                await release.wait()
                await super().connect()

        channel = SlowChannel()
        selector = rec.selector(lambda: channel)
        starting = asyncio.create_task(selector.start())
        await asyncio.sleep(0.01)

        await selector.stop()
        release.set()
        state = await starting

        assert state is TransportState.CLOSED
        assert channel.close_calls == 1
        assert not selector.push_active

    @pytest.mark.asyncio
    async def test_start_twice_is_ignored(self) -> None:
        rec = Recorder()
        selector = rec.selector()
        await selector.start()
        try:
            assert await selector.start() is TransportState.POLL_ACTIVE
            assert selector.poll_starts == 1
        finally:
            await selector.stop()

        stats = selector.get_stats()
        assert stats["state"] == "closed"
        assert stats["poll_starts"] == 1
