"""
Main quote synchronization engine.

Coordinates quote acquisition, normalization, history and baseline
tracking, derived views and portfolio valuation for one client session.
"""

from dataclasses import dataclass, field
from decimal import Decimal
from pathlib import Path
from typing import Any, Callable, Mapping, Optional

import structlog

from .client.gateway import ApiGateway
from .client.session import SessionContext
from .config.defaults import DefaultConfig
from .config.loader import load_config
from .data.models import InstrumentQuote
from .data.normalizer import QuoteNormalizer
from .errors import AuthRequired, PollFetchError, RecoverableError, TradeRejected
from .portfolio.models import AccountSnapshot, PortfolioValuation
from .portfolio.ranking import AccountStanding, LeaderboardTracker
from .portfolio.valuator import parse_account, value_positions
from .state.baseline import BaselineTracker
from .state.history import HistoryBufferManager
from .state.quotes import QuoteBook
from .transport.models import TransportState, TransportTransition
from .transport.push import WebSocketChannel
from .transport.selector import ChannelFactory, TransportSelector
from .views.sorting import DerivedQuote, SortDirection, SortKey, SortSpec, build_view

logger = structlog.get_logger(__name__)

Subscriber = Callable[["EngineSnapshot"], None]


@dataclass(frozen=True)
class EngineSnapshot:
    """Read-only view handed to the presentation layer after every cycle."""
    quotes: tuple[InstrumentQuote, ...] = ()
    histories: Mapping[str, tuple[Decimal, ...]] = field(default_factory=dict)
    derived_view: tuple[DerivedQuote, ...] = ()
    portfolio_valuation: Optional[PortfolioValuation] = None
    transport_state: TransportState = TransportState.INIT
    sort_spec: SortSpec = field(default_factory=SortSpec)
    system_status: Mapping[str, Any] = field(default_factory=dict)
    cycle: int = 0

    @property
    def trading_enabled(self) -> bool:
        return bool(self.system_status.get("trading_enabled", False))


class QuoteSyncEngine:
    """
    Coordinator for a single client session.

    Pipeline:
    Transport → Normalizer → {History, Baseline, QuoteBook} → Derived View → Snapshot
    """

    def __init__(
        self,
        session: SessionContext,
        config: Optional[DefaultConfig] = None,
        gateway: Optional[ApiGateway] = None,
        channel_factory: Optional[ChannelFactory] = None,
        config_dir: Optional[str] = None,
    ) -> None:
        self.logger = logger.bind(session_id=session.session_id)
        self.session = session
        self.config = config or load_config(Path(config_dir) if config_dir else None)
        self.gateway = gateway or ApiGateway(session, self.config)

        self.normalizer = QuoteNormalizer()
        self.history = HistoryBufferManager(self.config.history.window_size)
        self.baselines = BaselineTracker()
        self.quotes = QuoteBook()

        view_cfg = self.config.view
        self.sort_spec = SortSpec(
            key=SortKey(view_cfg.default_sort_key),
            direction=SortDirection(view_cfg.default_sort_direction),
        )
        self.toggle_default = SortDirection(view_cfg.toggle_default_direction)

        self.account: Optional[AccountSnapshot] = None
        self.system_status: dict[str, Any] = {}
        self.last_poll_error: Optional[PollFetchError] = None
        self.leaderboard = LeaderboardTracker()
        self.standings: list[AccountStanding] = []

        if channel_factory is None and self.config.push.url:
            channel_factory = self._websocket_factory

        self.selector = TransportSelector(
            fetch_snapshot=self._fetch_snapshot,
            on_snapshot=self.ingest_snapshot,
            on_message=self.ingest_message,
            channel_factory=channel_factory,
            poll_interval=self.config.poll.interval_seconds,
            poll_timeout=self.config.poll.timeout_seconds,
            on_state_change=self._on_transport_change,
            on_poll_error=self._on_poll_error,
        )

        self._subscribers: list[Subscriber] = []
        self._snapshot = EngineSnapshot(sort_spec=self.sort_spec)
        self._started = False

        self.logger.info(
            "Quote sync engine initialized",
            push_enabled=channel_factory is not None,
            poll_interval=self.config.poll.interval_seconds,
            history_window=self.config.history.window_size
        )

    def _websocket_factory(self) -> WebSocketChannel:
        push = self.config.push
        return WebSocketChannel(
            url=push.url,  # type: ignore[arg-type]
            subscribe_message=push.subscribe_message,
            connect_timeout=push.connect_timeout_seconds,
            heartbeat=push.heartbeat_seconds,
        )

    async def __aenter__(self) -> "QuoteSyncEngine":
        await self.start()
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.stop()

    # Lifecycle

    async def start(self) -> None:
        """Run the initial load, then start the transport."""
        if self._started:
            return
        self._started = True

        await self.gateway.open()
        await self._initial_load()
        await self.selector.start()

    async def stop(self) -> None:
        """Tear down the transport and HTTP session; no callbacks fire afterwards."""
        await self.selector.stop()
        await self.gateway.close()
        self.logger.info("Quote sync engine stopped", cycles=self.baselines.cycle)

    async def _initial_load(self) -> None:
        try:
            await self.refresh_system_status()
        except RecoverableError as e:
            self.logger.warning("Initial system status load failed", error=str(e))

        if self.session.authenticated:
            try:
                await self.refresh_portfolio()
            except (RecoverableError, AuthRequired) as e:
                self.logger.warning("Initial portfolio load failed", error=str(e), error_type=type(e).__name__)

        try:
            payload = await self.gateway.fetch_prices(timeout=self.config.poll.timeout_seconds)
        except PollFetchError as e:
            self._on_poll_error(e)
        else:
            try:
                self.ingest_snapshot(payload)
            except Exception as e:
                self.logger.error(
                    "Initial snapshot ingest failed",
                    error=str(e),
                    error_type=type(e).__name__
                )

    async def _fetch_snapshot(self) -> Any:
        return await self.gateway.fetch_prices(timeout=self.config.poll.timeout_seconds)

    # Ingest

    def ingest_snapshot(self, payload: Any) -> list[InstrumentQuote]:
        """Apply a full poll snapshot as one cycle."""
        quotes = self.normalizer.normalize_batch(payload)
        return self._run_cycle(quotes, full_snapshot=True)

    def ingest_message(self, payload: Any) -> list[InstrumentQuote]:
        """Apply a single push message as one cycle."""
        quotes = self.normalizer.normalize_message(payload)
        return self._run_cycle(quotes, full_snapshot=False)

    def _run_cycle(self, quotes: list[InstrumentQuote], full_snapshot: bool) -> list[InstrumentQuote]:
        if self.selector.closed:
            self.logger.debug("Ignoring quotes after teardown", count=len(quotes))
            return []

        # Last write wins per symbol within a cycle; first-seen order is kept
        latest: dict[str, InstrumentQuote] = {}
        for quote in quotes:
            latest[quote.symbol] = quote

        # An empty or fully malformed payload is not a cycle and prunes nothing
        if not latest:
            return []

        self.baselines.begin_cycle()

        if full_snapshot and self.config.poll.prune_missing:
            self.quotes.prune(latest.keys())

        applied = []
        for quote in latest.values():
            if not self.quotes.apply(quote):
                continue
            self.history.record(quote.symbol, quote.price)
            self.baselines.observe(quote.symbol, quote.price)
            applied.append(quote)

        self.logger.debug(
            "Ingest cycle complete",
            cycle=self.baselines.cycle,
            source="poll" if full_snapshot else "push",
            received=len(quotes),
            applied=len(applied)
        )

        self._publish()
        return applied

    # Views

    def toggle_sort(self, key: SortKey) -> SortSpec:
        """Select a sort column; repeating a key flips its direction."""
        self.sort_spec = self.sort_spec.toggle(SortKey(key), self.toggle_default)
        self._publish()
        return self.sort_spec

    def derived_view(self) -> list[DerivedQuote]:
        return build_view(
            self.quotes.snapshot(),
            self.baselines.snapshot(),
            self.history.snapshot_all(),
            self.sort_spec,
            places=self.config.view.percent_places,
        )

    def portfolio_valuation(self) -> Optional[PortfolioValuation]:
        if self.account is None:
            return None
        return value_positions(
            self.account.positions,
            self.quotes.as_mapping(),
            cash=self.account.cash,
            status=self.account.status,
        )

    def snapshot(self) -> EngineSnapshot:
        return self._snapshot

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register for new snapshots; returns an unsubscribe function."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    def _publish(self) -> None:
        self._snapshot = EngineSnapshot(
            quotes=tuple(self.quotes.snapshot()),
            histories=self.history.snapshot_all(),
            derived_view=tuple(self.derived_view()),
            portfolio_valuation=self.portfolio_valuation(),
            transport_state=self.selector.state,
            sort_spec=self.sort_spec,
            system_status=dict(self.system_status),
            cycle=self.baselines.cycle,
        )

        for callback in list(self._subscribers):
            try:
                callback(self._snapshot)
            except Exception as e:
                self.logger.error(
                    "Snapshot subscriber failed",
                    error=str(e),
                    error_type=type(e).__name__
                )

    def _on_transport_change(self, transition: TransportTransition) -> None:
        if transition.to_state is TransportState.CLOSED:
            return
        self._publish()

    def _on_poll_error(self, error: PollFetchError) -> None:
        self.last_poll_error = error
        self.logger.info("Keeping last quotes after failed poll", error=str(error))

    # Session operations

    async def refresh_portfolio(self) -> Optional[PortfolioValuation]:
        """Re-fetch positions and revalue them against current quotes."""
        payload = await self.gateway.fetch_portfolio()
        self.account = parse_account(payload)
        self._publish()
        return self._snapshot.portfolio_valuation

    async def refresh_system_status(self) -> dict[str, Any]:
        self.system_status = await self.gateway.fetch_system_status()
        return self.system_status

    async def trade(self, kind: str, symbol: str, quantity: Any) -> Optional[PortfolioValuation]:
        """
        Place a trade and refresh the portfolio on success.

        Raises:
            AuthRequired: the session has no valid credential
            TradeRejected: the trade was refused, locally or by the server
        """
        self.session.require_token()
        if self.session.is_admin:
            raise TradeRejected("Admins cannot trade!", kind=kind, symbol=symbol)

        try:
            qty = Decimal(str(quantity))
        except ArithmeticError:
            raise TradeRejected(f"Invalid quantity: {quantity!r}", kind=kind, symbol=symbol)
        if not qty.is_finite() or qty <= 0:
            raise TradeRejected(f"Invalid quantity: {quantity!r}", kind=kind, symbol=symbol)

        wire_qty: Any = int(qty) if qty == qty.to_integral_value() else float(qty)
        await self.gateway.place_trade(kind, symbol, wire_qty)

        try:
            return await self.refresh_portfolio()
        except RecoverableError as e:
            self.logger.warning("Portfolio refresh after trade failed", error=str(e))
            return self._snapshot.portfolio_valuation

    async def refresh_leaderboard(self) -> list[AccountStanding]:
        """
        Rank accounts and annotate each with its value change since the last refresh.

        Raises:
            AuthRequired: the session has no valid credential
            RecoverableError: network or server failure
        """
        rows = await self.gateway.fetch_leaderboard()
        self.standings = self.leaderboard.update(rows)
        return self.standings

    async def load_candles(self, symbol: str) -> list[Any]:
        """Candle records for the chart renderer, passed through verbatim."""
        return await self.gateway.fetch_candles(symbol)

    def get_runtime_stats(self) -> dict[str, Any]:
        return {
            "cycles": self.baselines.cycle,
            "tracked_instruments": len(self.history),
            "quotes": len(self.quotes),
            "stale_rejections": self.quotes.stale_rejections,
            "normalizer": self.normalizer.get_stats(),
            "transport": self.selector.get_stats(),
        }
