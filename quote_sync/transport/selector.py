"""
Transport selector state machine.

Opens the push channel when one is configured and falls back to polling
when it is absent, fails to open, errors or closes. Failover is one-way and
at most one poll loop ever runs per selector. Teardown stops every task and
closes the channel before ``stop()`` returns.
"""

from typing import Any, Awaitable, Callable, Optional

from ..errors import PollFetchError, TransportError
from ..logging.config import get_transport_logger, log_transport_transition
from ..utils.time import utc_now
from .handle import TaskHandle
from .models import TransportState, TransportTransition, is_allowed
from .poller import PollLoop
from .push import PushChannel, PushReader

transport_logger = get_transport_logger(__name__)

ChannelFactory = Callable[[], PushChannel]


class TransportSelector:
    """Chooses and supervises the active quote transport."""

    def __init__(
        self,
        fetch_snapshot: Callable[[], Awaitable[Any]],
        on_snapshot: Callable[[Any], None],
        on_message: Callable[[Any], None],
        channel_factory: Optional[ChannelFactory] = None,
        poll_interval: float = 4.0,
        poll_timeout: float = 3.0,
        on_state_change: Optional[Callable[[TransportTransition], None]] = None,
        on_poll_error: Optional[Callable[[PollFetchError], None]] = None,
    ) -> None:
        self.logger = transport_logger
        self.channel_factory = channel_factory
        self.on_message = on_message
        self.on_state_change = on_state_change

        self.poller = PollLoop(
            fetch=fetch_snapshot,
            on_snapshot=on_snapshot,
            interval=poll_interval,
            timeout=poll_timeout,
            on_error=on_poll_error,
        )

        self._state = TransportState.INIT
        self.transitions: list[TransportTransition] = []
        self.last_transport_error: Optional[TransportError] = None

        self._channel: Optional[PushChannel] = None
        self._push_handle: Optional[TaskHandle] = None
        self._poll_handle: Optional[TaskHandle] = None
        self.poll_starts = 0

    @property
    def state(self) -> TransportState:
        return self._state

    @property
    def closed(self) -> bool:
        return self._state is TransportState.CLOSED

    def _transition(self, to_state: TransportState, trigger: str,
                    context: Optional[dict[str, Any]] = None) -> bool:
        from_state = self._state
        if not is_allowed(from_state, to_state):
            self.logger.warning(
                "Ignoring invalid transport transition",
                from_state=from_state.value,
                to_state=to_state.value,
                trigger=trigger
            )
            return False

        self._state = to_state
        transition = TransportTransition(
            from_state=from_state,
            to_state=to_state,
            trigger=trigger,
            timestamp=utc_now(),
            context=context,
        )
        self.transitions.append(transition)
        log_transport_transition(self.logger, from_state.value, to_state.value, trigger, context)

        if self.on_state_change is not None:
            self.on_state_change(transition)
        return True

    async def start(self) -> TransportState:
        """Leave INIT for push or poll; returns the resulting state."""
        if self._state is not TransportState.INIT:
            self.logger.warning("Transport already started", state=self._state.value)
            return self._state

        if self.channel_factory is None:
            self._enter_poll("no_push_endpoint", immediate=False)
            return self._state

        channel: Optional[PushChannel] = None
        try:
            channel = self.channel_factory()
            await channel.connect()
        except Exception as e:
            error = e if isinstance(e, TransportError) else TransportError(
                f"Push channel construction failed: {type(e).__name__}: {e}"
            )
            self.last_transport_error = error
            self.logger.warning("Push channel unavailable, falling back to polling", error=str(error))
            if channel is not None:
                await channel.close()
            self._enter_poll("push_connect_failed", immediate=False, context={"error": str(error)})
            return self._state

        if self.closed:
            # stop() ran while the handshake was in flight
            await channel.close()
            return self._state

        self._channel = channel
        self._transition(TransportState.PUSH_ACTIVE, "push_connected")
        self._push_handle = PushReader(channel, self.on_message, self._on_push_closed).start()
        return self._state

    def _on_push_closed(self, error: Optional[Exception]) -> None:
        if self._state is not TransportState.PUSH_ACTIVE:
            return

        if error is not None:
            self.last_transport_error = error if isinstance(error, TransportError) else TransportError(str(error))
        self.logger.warning(
            "Push channel ended, failing over to polling",
            error=str(error) if error else None
        )

        if self._push_handle is not None:
            self._push_handle.stop()
        self._channel = None

        trigger = "push_error" if error is not None else "push_closed"
        self._enter_poll(trigger, immediate=True, context={"error": str(error)} if error else None)

    def _enter_poll(self, trigger: str, immediate: bool,
                    context: Optional[dict[str, Any]] = None) -> None:
        if self._poll_handle is not None and not self._poll_handle.stopped:
            self.logger.debug("Poll loop already running", trigger=trigger)
            return
        if not self._transition(TransportState.POLL_ACTIVE, trigger, context):
            return

        self.poll_starts += 1
        self._poll_handle = self.poller.start(immediate=immediate)

    async def stop(self) -> None:
        """
        Enter CLOSED and release every task and channel.

        Handles are stopped before anything is awaited, so no callback can
        fire once teardown has begun.
        """
        if self.closed:
            return

        push_handle, poll_handle = self._push_handle, self._poll_handle
        for handle in (push_handle, poll_handle):
            if handle is not None:
                handle.stop()

        self._transition(TransportState.CLOSED, "teardown")

        channel, self._channel = self._channel, None
        if channel is not None:
            await channel.close()

        for handle in (push_handle, poll_handle):
            if handle is not None:
                await handle.wait()

    @property
    def poll_active(self) -> bool:
        return self._poll_handle is not None and self._poll_handle.active

    @property
    def push_active(self) -> bool:
        return self._push_handle is not None and self._push_handle.active

    def get_stats(self) -> dict[str, Any]:
        return {
            "state": self._state.value,
            "poll_starts": self.poll_starts,
            "poll_cycles": self.poller.cycles,
            "poll_failures": self.poller.failures,
            "transitions": [
                {"from": t.from_state.value, "to": t.to_state.value, "trigger": t.trigger}
                for t in self.transitions
            ],
            "last_transport_error": str(self.last_transport_error) if self.last_transport_error else None,
        }
