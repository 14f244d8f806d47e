"""
Fixed-interval snapshot polling.

Each cycle fetches the full quote snapshot with a timeout. A failed or
timed-out cycle is reported and skipped; the loop keeps its schedule and
tries again at the next tick.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional

import structlog

from ..errors import PollFetchError
from .handle import TaskHandle

logger = structlog.get_logger(__name__)


class PollLoop:
    """Polls ``fetch`` every ``interval`` seconds while its handle is live."""

    def __init__(
        self,
        fetch: Callable[[], Awaitable[Any]],
        on_snapshot: Callable[[Any], None],
        interval: float = 4.0,
        timeout: float = 3.0,
        on_error: Optional[Callable[[PollFetchError], None]] = None,
    ) -> None:
        self.fetch = fetch
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.interval = interval
        self.timeout = timeout

        self.cycles = 0
        self.failures = 0
        self.consecutive_failures = 0

    def start(self, immediate: bool = True) -> TaskHandle:
        """
        Start polling.

        Args:
            immediate: fetch right away instead of waiting one interval
        """
        handle = TaskHandle("poll-loop")
        handle.attach(asyncio.create_task(self._run(handle, immediate), name="quote-sync-poll-loop"))
        return handle

    async def _run(self, handle: TaskHandle, immediate: bool) -> None:
        loop = asyncio.get_running_loop()
        next_at = loop.time() if immediate else loop.time() + self.interval

        while not handle.stopped:
            delay = next_at - loop.time()
            if delay > 0:
                await asyncio.sleep(delay)
            if handle.stopped:
                break

            await self.poll_once(handle)

            # Fixed schedule; a slow fetch eats into the wait, never shifts it
            next_at += self.interval
            if next_at < loop.time():
                next_at = loop.time()

    async def poll_once(self, handle: TaskHandle) -> bool:
        """Run one fetch cycle; returns True if a snapshot was delivered."""
        self.cycles += 1
        try:
            payload = await asyncio.wait_for(self.fetch(), timeout=self.timeout)
        except asyncio.CancelledError:
            raise
        except asyncio.TimeoutError:
            error = PollFetchError(f"Poll fetch timed out after {self.timeout}s")
        except PollFetchError as e:
            error = e
        except Exception as e:
            error = PollFetchError(f"Unexpected poll failure: {type(e).__name__}: {e}")
        else:
            try:
                delivered = handle.dispatch(self.on_snapshot, payload)
            except Exception as e:
                error = PollFetchError(f"Snapshot handling failed: {type(e).__name__}: {e}")
                logger.error("Snapshot callback raised", error=str(e), error_type=type(e).__name__)
            else:
                self.consecutive_failures = 0
                return delivered

        self.failures += 1
        self.consecutive_failures += 1
        error.retry_count = self.consecutive_failures
        logger.warning(
            "Poll cycle failed",
            error=str(error),
            error_type=type(error).__name__,
            status=error.status,
            consecutive_failures=self.consecutive_failures
        )
        if self.on_error is not None:
            handle.dispatch(self.on_error, error)
        return False
