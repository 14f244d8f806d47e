"""Pytest configuration and shared fixtures."""

import asyncio
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict, List, Optional

import pytest

from quote_sync.client.session import SessionContext
from quote_sync.config.defaults import (
    DefaultConfig,
    HistoryParams,
    PollParams,
    get_default_config,
)
from quote_sync.data.models import InstrumentQuote
from quote_sync.errors import TransportError


class FakeChannel:
    """In-memory push channel driven by the test through a queue."""

    def __init__(self, fail_connect: bool = False) -> None:
        self.fail_connect = fail_connect
        self.queue: asyncio.Queue = asyncio.Queue()
        self.connected = False
        self.connect_calls = 0
        self.close_calls = 0

    async def connect(self) -> None:
        self.connect_calls += 1
        if self.fail_connect:
            raise TransportError("connection refused", url="ws://fake")
        self.connected = True

    async def receive(self) -> Optional[Any]:
        item = await self.queue.get()
        if isinstance(item, Exception):
            raise item
        return item

    async def close(self) -> None:
        self.close_calls += 1
        self.connected = False

    def push(self, payload: Any) -> None:
        self.queue.put_nowait(payload)

    def end(self) -> None:
        self.queue.put_nowait(None)

    def fail(self, message: str = "socket reset") -> None:
        self.queue.put_nowait(TransportError(message, url="ws://fake"))


class FakeGateway:
    """Gateway stand-in serving canned responses and recording calls."""

    def __init__(self, prices: Optional[List[Any]] = None) -> None:
        self.prices: List[Any] = list(prices or [])
        self.price_error: Optional[Exception] = None
        self.portfolio: Any = {"virtual_cash": 1000, "positions": [], "status": "ACTIVE"}
        self.portfolio_error: Optional[Exception] = None
        self.system: Dict[str, Any] = {"trading_enabled": True}
        self.trade_error: Optional[Exception] = None
        self.candles: List[Any] = []
        self.leaderboard: List[Any] = []
        self.trades: List[tuple] = []
        self.price_calls = 0
        self.opened = False
        self.closed = False

    async def open(self) -> None:
        self.opened = True

    async def close(self) -> None:
        self.closed = True

    async def fetch_prices(self, timeout: Optional[float] = None) -> Any:
        self.price_calls += 1
        if self.price_error is not None:
            raise self.price_error
        return self.prices

    async def fetch_portfolio(self) -> Any:
        if self.portfolio_error is not None:
            raise self.portfolio_error
        return self.portfolio

    async def fetch_system_status(self) -> Dict[str, Any]:
        return self.system

    async def place_trade(self, kind: str, symbol: str, quantity: Any) -> Any:
        if self.trade_error is not None:
            raise self.trade_error
        self.trades.append((kind, symbol, quantity))
        return {"message": "ok"}

    async def fetch_candles(self, symbol: str) -> List[Any]:
        return self.candles

    async def fetch_leaderboard(self) -> List[Any]:
        return self.leaderboard


@pytest.fixture
def fake_channel_cls():
    return FakeChannel


@pytest.fixture
def fake_gateway_cls():
    return FakeGateway


@pytest.fixture
def fast_config() -> DefaultConfig:
    """Default configuration with a short poll interval for loop tests."""
    config = get_default_config()
    return DefaultConfig(
        api=config.api,
        endpoints=config.endpoints,
        push=config.push,
        poll=PollParams(interval_seconds=0.05, timeout_seconds=0.5),
        history=HistoryParams(window_size=20),
        view=config.view,
    )


@pytest.fixture
def trader_session() -> SessionContext:
    return SessionContext.create(token="trader-token", role="user")


@pytest.fixture
def admin_session() -> SessionContext:
    return SessionContext.create(token="admin-token", role="admin")


@pytest.fixture
def anonymous_session() -> SessionContext:
    return SessionContext.create()


@pytest.fixture
def sample_prices() -> List[Dict[str, Any]]:
    """Sample poll response."""
    return [
        {"symbol": "AAPL", "current_price": 150.0},
        {"symbol": "MSFT", "current_price": 310.5},
        {"symbol": "TSLA", "current_price": 240.25},
    ]


@pytest.fixture
def sample_portfolio() -> Dict[str, Any]:
    """Sample portfolio response."""
    return {
        "virtual_cash": 5000,
        "status": "ACTIVE",
        "positions": [
            {"symbol": "AAPL", "quantity": 10, "average_price": 140.0, "current_price": 150.0},
            {"symbol": "NVDA", "quantity": 2, "average_price": 400.0, "current_price": 410.0},
        ],
    }


def make_quote(symbol: str, price: Any, ts: Optional[datetime] = None) -> InstrumentQuote:
    """Build a quote; passing ``ts`` marks it source-timed."""
    return InstrumentQuote(
        symbol=symbol,
        price=Decimal(str(price)),
        observed_at=ts or datetime.now(timezone.utc),
        source_timed=ts is not None,
    )


async def wait_until(predicate, timeout: float = 2.0, step: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` elapses."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while loop.time() < deadline:
        if predicate():
            return True
        await asyncio.sleep(step)
    return predicate()
