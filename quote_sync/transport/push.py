"""
WebSocket push channel and its reader task.

The channel yields raw message payloads; the reader forwards each one to
the selector as it arrives and reports when the channel ends, whether by a
clean close or an error.
"""

import asyncio
from typing import Any, Callable, Optional, Protocol

import aiohttp
import structlog

from ..errors import TransportError
from .handle import TaskHandle

logger = structlog.get_logger(__name__)


class PushChannel(Protocol):
    """Minimal interface the selector needs from a push channel."""

    async def connect(self) -> None: ...

    async def receive(self) -> Optional[Any]:
        """Next payload, or None once the channel has closed."""
        ...

    async def close(self) -> None: ...


class WebSocketChannel:
    """aiohttp WebSocket implementation of PushChannel."""

    def __init__(
        self,
        url: str,
        subscribe_message: Optional[dict[str, Any]] = None,
        connect_timeout: float = 10.0,
        heartbeat: Optional[float] = 20.0,
        http: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.url = url
        self.subscribe_message = subscribe_message
        self.connect_timeout = connect_timeout
        self.heartbeat = heartbeat
        self._http = http
        self._owns_http = http is None
        self._ws: Optional[aiohttp.ClientWebSocketResponse] = None

    @property
    def connected(self) -> bool:
        return self._ws is not None and not self._ws.closed

    async def connect(self) -> None:
        """
        Open the socket and send the optional subscribe message once.

        Raises:
            TransportError: if the handshake fails or times out
        """
        if self._http is None:
            self._http = aiohttp.ClientSession()
            self._owns_http = True

        try:
            self._ws = await asyncio.wait_for(
                self._http.ws_connect(self.url, heartbeat=self.heartbeat),
                timeout=self.connect_timeout,
            )
            if self.subscribe_message is not None:
                await self._ws.send_json(self.subscribe_message)
        except (aiohttp.ClientError, asyncio.TimeoutError, OSError) as e:
            await self.close()
            raise TransportError(f"Push channel connect failed: {type(e).__name__}: {e}", url=self.url) from e

        logger.info("Push channel connected", url=self.url)

    async def receive(self) -> Optional[Any]:
        if self._ws is None:
            return None

        msg = await self._ws.receive()
        if msg.type in (aiohttp.WSMsgType.TEXT, aiohttp.WSMsgType.BINARY):
            return msg.data
        if msg.type == aiohttp.WSMsgType.ERROR:
            raise TransportError(f"Push channel error: {msg.data}", url=self.url)
        # CLOSE, CLOSING, CLOSED
        return None

    async def close(self) -> None:
        if self._ws is not None:
            await self._ws.close()
            self._ws = None
        if self._http is not None and self._owns_http:
            await self._http.close()
            self._http = None


class PushReader:
    """Background task forwarding channel messages until the channel ends."""

    def __init__(
        self,
        channel: PushChannel,
        on_message: Callable[[Any], None],
        on_closed: Callable[[Optional[Exception]], None],
    ) -> None:
        self.channel = channel
        self.on_message = on_message
        self.on_closed = on_closed
        self.messages = 0
        self.failed_messages = 0

    def start(self) -> TaskHandle:
        handle = TaskHandle("push-reader")
        handle.attach(asyncio.create_task(self._run(handle), name="quote-sync-push-reader"))
        return handle

    async def _run(self, handle: TaskHandle) -> None:
        error: Optional[Exception] = None
        try:
            while not handle.stopped:
                payload = await self.channel.receive()
                if payload is None:
                    break
                self.messages += 1
                try:
                    handle.dispatch(self.on_message, payload)
                except Exception as e:
                    # Consumer errors do not end the subscription
                    self.failed_messages += 1
                    logger.error("Push message callback raised", error=str(e), error_type=type(e).__name__)
        except asyncio.CancelledError:
            raise
        except TransportError as e:
            error = e
        except Exception as e:
            # Anything escaping the channel ends the subscription the same way
            error = TransportError(f"Push channel failed: {type(e).__name__}: {e}")
        finally:
            if not handle.stopped:
                await self.channel.close()

        handle.dispatch(self.on_closed, error)
