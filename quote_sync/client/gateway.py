"""
HTTP gateway for the quote service REST API.

Wraps an aiohttp ClientSession and maps transport outcomes onto the error
taxonomy: price fetch failures become PollFetchError, 401/403 become
AuthRequired, and trade refusals become TradeRejected carrying the server's
reason verbatim.
"""

import asyncio
import json
from typing import Any, Optional
from urllib.parse import quote as url_quote

import aiohttp
import structlog

from ..config.defaults import DefaultConfig, get_default_config
from ..errors import AuthRequired, PollFetchError, RecoverableError, TradeRejected
from .session import SessionContext

logger = structlog.get_logger(__name__)

TRADE_KINDS = ("buy", "sell")
AUTH_STATUSES = (401, 403)


class ApiGateway:
    """Async client for prices, portfolio, trades, candles and system status."""

    def __init__(
        self,
        session: SessionContext,
        config: Optional[DefaultConfig] = None,
        http: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        self.session = session
        self.config = config or get_default_config()
        self.logger = logger
        self._http = http
        self._owns_http = http is None

    async def __aenter__(self) -> "ApiGateway":
        await self.open()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def open(self) -> None:
        if self._http is None:
            timeout = aiohttp.ClientTimeout(total=self.config.api.request_timeout_seconds)
            self._http = aiohttp.ClientSession(timeout=timeout)
            self._owns_http = True

    async def close(self) -> None:
        if self._http is not None and self._owns_http:
            await self._http.close()
        self._http = None

    @property
    def http(self) -> aiohttp.ClientSession:
        if self._http is None:
            raise RuntimeError("ApiGateway is not open")
        return self._http

    def url_for(self, path: str) -> str:
        return self.config.api.base_url.rstrip("/") + "/" + path.lstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = False,
        payload: Optional[dict[str, Any]] = None,
        timeout: Optional[float] = None,
    ) -> tuple[int, Any]:
        """Issue a request and return (status, decoded JSON body or None)."""
        headers = {"Accept": "application/json"}
        if auth:
            headers.update(self.session.auth_headers())

        options: dict[str, Any] = {"headers": headers, "json": payload}
        if timeout:
            options["timeout"] = aiohttp.ClientTimeout(total=timeout)

        async with self.http.request(method, self.url_for(path), **options) as response:
            body = await response.text()
            try:
                data = json.loads(body) if body else None
            except json.JSONDecodeError:
                data = None
                if response.status < 400:
                    raise
            return response.status, data

    async def fetch_prices(self, timeout: Optional[float] = None) -> Any:
        """
        Fetch the full price snapshot.

        Raises:
            PollFetchError: on network failure, timeout, HTTP error or bad JSON
        """
        path = self.config.endpoints.prices
        try:
            status, data = await self._request("GET", path, timeout=timeout)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise PollFetchError(
                f"Price fetch failed: {type(e).__name__}: {e}",
                url=self.url_for(path)
            ) from e

        if status != 200:
            raise PollFetchError(f"Price fetch returned HTTP {status}", url=self.url_for(path), status=status)

        return data

    async def fetch_portfolio(self) -> Any:
        """
        Fetch the session's portfolio.

        Raises:
            AuthRequired: no credential, or the server refused it
            RecoverableError: network or server failure
        """
        path = self.config.endpoints.portfolio
        try:
            status, data = await self._request("GET", path, auth=True)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise RecoverableError(f"Portfolio fetch failed: {e}", context={"url": self.url_for(path)}) from e

        if status in AUTH_STATUSES:
            raise AuthRequired("Portfolio request was not authorized", status=status)
        if status != 200:
            raise RecoverableError(f"Portfolio fetch returned HTTP {status}", context={"status": status})

        return data

    async def place_trade(self, kind: str, symbol: str, quantity: Any) -> Any:
        """
        Submit a buy or sell order.

        Raises:
            AuthRequired: no credential, or the server refused it
            TradeRejected: the server refused the trade, or it could not be sent
        """
        if kind not in TRADE_KINDS:
            raise ValueError(f"Unknown trade kind: {kind!r}")

        path = self.config.endpoints.trade.format(kind=kind)
        try:
            status, data = await self._request(
                "POST", path, auth=True, payload={"symbol": symbol, "quantity": quantity}
            )
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise TradeRejected(str(e) or "Trade error", kind=kind, symbol=symbol) from e

        if status in AUTH_STATUSES:
            raise AuthRequired("Trade request was not authorized", status=status)
        if status >= 400:
            reason = data.get("error") if isinstance(data, dict) else None
            raise TradeRejected(reason or "Trade failed", kind=kind, symbol=symbol, status=status)

        self.logger.info("Trade accepted", kind=kind, symbol=symbol, quantity=quantity)
        return data

    async def fetch_candles(self, symbol: str) -> list[Any]:
        """Fetch candle records verbatim; anything but a list becomes []."""
        path = self.config.endpoints.candles.format(symbol=url_quote(symbol, safe=""))
        try:
            status, data = await self._request("GET", path)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise RecoverableError(f"Candle fetch failed: {e}", context={"symbol": symbol}) from e

        if status != 200 or not isinstance(data, list):
            return []
        return data

    async def fetch_system_status(self) -> dict[str, Any]:
        path = self.config.endpoints.system
        try:
            status, data = await self._request("GET", path)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise RecoverableError(f"System status fetch failed: {e}") from e

        if status != 200 or not isinstance(data, dict):
            raise RecoverableError(f"System status fetch returned HTTP {status}", context={"status": status})
        return data

    async def fetch_leaderboard(self) -> list[dict[str, Any]]:
        path = self.config.endpoints.leaderboard
        try:
            status, data = await self._request("GET", path, auth=True)
        except (aiohttp.ClientError, asyncio.TimeoutError, json.JSONDecodeError) as e:
            raise RecoverableError(f"Leaderboard fetch failed: {e}") from e

        if status in AUTH_STATUSES:
            raise AuthRequired("Leaderboard request was not authorized", status=status)
        if status != 200 or not isinstance(data, list):
            raise RecoverableError(f"Leaderboard fetch returned HTTP {status}", context={"status": status})
        return data
