"""
Portfolio valuation against the latest quote snapshot.

A position whose symbol has no live quote is valued at its average cost, so
one missing quote degrades that row to zero P/L instead of failing the
whole computation.
"""

import logging
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional

from ..data.models import InstrumentQuote
from ..data.parsers import parse_price
from ..errors import DataQualityError
from .models import ZERO, AccountSnapshot, PortfolioValuation, Position, PositionValuation

logger = logging.getLogger(__name__)


def value_position(position: Position, quote: Optional[InstrumentQuote]) -> PositionValuation:
    """Value one position at the quote price, or at average cost without a quote."""
    current_price = quote.price if quote is not None else position.average_cost

    cost = position.average_cost * position.quantity
    market_value = current_price * position.quantity

    return PositionValuation(
        symbol=position.symbol,
        quantity=position.quantity,
        average_cost=position.average_cost,
        current_price=current_price,
        cost=cost,
        market_value=market_value,
        unrealized_pl=market_value - cost,
        quote_available=quote is not None,
    )


def value_positions(
    positions: Iterable[Position],
    quotes: Mapping[str, InstrumentQuote],
    cash: Decimal = ZERO,
    status: Optional[str] = None,
) -> PortfolioValuation:
    """
    Value all positions and aggregate.

    Args:
        positions: Externally owned positions
        quotes: Latest quote per symbol
        cash: Uninvested account cash
        status: Account status passed through from the ledger

    Returns:
        PortfolioValuation with ``total_value = cash + sum(market_value)``
    """
    valuations = tuple(value_position(p, quotes.get(p.symbol)) for p in positions)

    total_cost = sum((v.cost for v in valuations), ZERO)
    total_market_value = sum((v.market_value for v in valuations), ZERO)

    return PortfolioValuation(
        cash=cash,
        positions=valuations,
        total_cost=total_cost,
        total_market_value=total_market_value,
        total_unrealized_pl=total_market_value - total_cost,
        total_value=cash + total_market_value,
        status=status,
    )


def parse_account(payload: Any) -> AccountSnapshot:
    """
    Parse a ``{virtual_cash, positions, status}`` portfolio response.

    Malformed positions are skipped and logged.
    """
    if not isinstance(payload, dict):
        logger.warning(f"Portfolio payload must be an object, got {type(payload).__name__}")
        return AccountSnapshot(cash=ZERO, positions=())

    try:
        cash = parse_price(payload.get("virtual_cash", 0))
    except DataQualityError as e:
        logger.warning(f"Invalid virtual_cash in portfolio payload: {e}")
        cash = ZERO

    positions = []
    raw_positions = payload.get("positions") or []
    if not isinstance(raw_positions, list):
        raw_positions = []

    for record in raw_positions:
        try:
            positions.append(Position.from_payload(record if isinstance(record, dict) else {}))
        except DataQualityError as e:
            logger.warning(f"Skipping malformed position: {e}")

    status = payload.get("status")
    return AccountSnapshot(cash=cash, positions=tuple(positions), status=status if isinstance(status, str) else None)
