"""Tests for the task cancellation handle."""

import asyncio

import pytest

from quote_sync.transport.handle import TaskHandle


class TestTaskHandle:
    """Test suite for TaskHandle."""

    def test_dispatch_until_stopped(self) -> None:
        handle = TaskHandle("test")
        calls = []

        assert handle.dispatch(calls.append, 1) is True
        handle.stop()
        assert handle.dispatch(calls.append, 2) is False

        assert calls == [1]
        assert handle.stopped

    @pytest.mark.asyncio
    async def test_stop_cancels_task(self) -> None:
        handle = TaskHandle("sleeper")
        task = asyncio.create_task(asyncio.sleep(10))
        handle.attach(task)
        assert handle.active

        handle.stop()
        await handle.wait()

        assert task.cancelled()
        assert not handle.active

    @pytest.mark.asyncio
    async def test_stop_from_own_task_does_not_cancel(self) -> None:
        handle = TaskHandle("self-stopping")
        reached = []

        async def body() -> None:
            handle.stop()
            await asyncio.sleep(0)
            reached.append(True)

        handle.attach(asyncio.create_task(body()))
        await handle.wait()

        assert reached == [True]

    @pytest.mark.asyncio
    async def test_stop_is_idempotent_and_wait_without_task(self) -> None:
        handle = TaskHandle("empty")
        handle.stop()
        handle.stop()
        await handle.wait()
