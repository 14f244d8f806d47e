"""
Cancellation handle for background transport tasks.

``start() -> handle`` and ``handle.stop()``: once ``stop()`` returns, the
handle refuses to dispatch any further callback, even if the underlying
task has not finished unwinding yet.
"""

import asyncio
from typing import Any, Callable, Optional


def _current_task() -> Optional[asyncio.Task]:
    try:
        return asyncio.current_task()
    except RuntimeError:
        return None


class TaskHandle:
    """Owns one asyncio task and gates its callbacks."""

    def __init__(self, name: str) -> None:
        self.name = name
        self._task: Optional[asyncio.Task] = None
        self._stopped = False

    def attach(self, task: asyncio.Task) -> None:
        self._task = task

    @property
    def stopped(self) -> bool:
        return self._stopped

    @property
    def active(self) -> bool:
        return not self._stopped and self._task is not None and not self._task.done()

    def dispatch(self, callback: Callable[..., Any], *args: Any) -> bool:
        """Invoke ``callback`` unless the handle has been stopped."""
        if self._stopped:
            return False
        callback(*args)
        return True

    def stop(self) -> None:
        """Stop synchronously: no callback is dispatched after this returns."""
        if self._stopped:
            return
        self._stopped = True
        task = self._task
        # A task stopping its own handle simply runs to completion
        if task is not None and not task.done() and task is not _current_task():
            task.cancel()

    async def wait(self) -> None:
        """Wait for the underlying task to finish unwinding."""
        task = self._task
        if task is None or task is _current_task():
            return
        await asyncio.wait({task})
