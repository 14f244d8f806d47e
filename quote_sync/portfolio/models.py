"""
Portfolio data models.

Positions are owned by the external ledger; the engine only reads them and
produces valuations at read time.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from ..data.parsers import parse_price
from ..errors import MalformedQuoteError

ZERO = Decimal(0)


@dataclass(frozen=True)
class Position:
    """Held position as reported by the portfolio endpoint."""
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    reported_price: Optional[Decimal] = None     # Server-side price at fetch time

    @classmethod
    def from_payload(cls, record: dict[str, Any]) -> "Position":
        """Build from a ``{symbol, quantity, average_price, current_price}`` record."""
        symbol = record.get("symbol")
        if not isinstance(symbol, str) or not symbol.strip():
            raise MalformedQuoteError("Position missing symbol", raw_record=str(record)[:100], field="symbol")

        reported = record.get("current_price")
        return cls(
            symbol=symbol.strip(),
            quantity=parse_price(record.get("quantity")),
            average_cost=parse_price(record.get("average_price")),
            reported_price=parse_price(reported) if reported is not None else None,
        )


@dataclass(frozen=True)
class PositionValuation:
    """Position joined with the latest quote."""
    symbol: str
    quantity: Decimal
    average_cost: Decimal
    current_price: Decimal
    cost: Decimal
    market_value: Decimal
    unrealized_pl: Decimal
    quote_available: bool

    @property
    def profitable(self) -> bool:
        return self.unrealized_pl >= 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "quantity": str(self.quantity),
            "average_cost": str(self.average_cost),
            "current_price": str(self.current_price),
            "cost": str(self.cost),
            "market_value": str(self.market_value),
            "unrealized_pl": str(self.unrealized_pl),
            "quote_available": self.quote_available,
        }


@dataclass(frozen=True)
class PortfolioValuation:
    """Per-position figures plus account aggregates."""
    cash: Decimal
    positions: tuple[PositionValuation, ...]
    total_cost: Decimal
    total_market_value: Decimal
    total_unrealized_pl: Decimal
    total_value: Decimal
    status: Optional[str] = None

    @classmethod
    def empty(cls, cash: Decimal = ZERO, status: Optional[str] = None) -> "PortfolioValuation":
        return cls(
            cash=cash,
            positions=(),
            total_cost=ZERO,
            total_market_value=ZERO,
            total_unrealized_pl=ZERO,
            total_value=cash,
            status=status,
        )


@dataclass(frozen=True)
class AccountSnapshot:
    """Portfolio endpoint response, parsed."""
    cash: Decimal
    positions: tuple[Position, ...]
    status: Optional[str] = None
