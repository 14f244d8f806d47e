"""
Account ranking by total value.

Rows come from the leaderboard endpoint as ``{id, name, email, total_value,
profit}``. The tracker remembers each account's previous total so callers
can highlight gains and losses between refreshes.
"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Iterable, Optional

import structlog

from ..data.parsers import parse_price
from ..errors import DataQualityError

logger = structlog.get_logger(__name__)

ZERO = Decimal(0)


@dataclass(frozen=True)
class AccountStanding:
    """One ranked account."""
    rank: int
    account_id: Any
    display_name: str
    total_value: Decimal
    profit: Decimal
    value_change: Decimal = ZERO


def display_name(name: Optional[str], email: Optional[str]) -> str:
    """Account name, falling back to the local part of the email."""
    if name and name.strip():
        return name.strip()
    if email:
        return email.split("@")[0]
    return ""


def _decimal_or_zero(value: Any) -> Decimal:
    try:
        return parse_price(value) if value is not None else ZERO
    except DataQualityError:
        # Profit may be negative, which parse_price rejects for prices
        try:
            amount = Decimal(str(value))
        except ArithmeticError:
            return ZERO
        return amount if amount.is_finite() else ZERO


def rank_accounts(rows: Iterable[dict[str, Any]]) -> list[AccountStanding]:
    """Rank accounts by total value, highest first; ties keep input order."""
    parsed = [
        (row, _decimal_or_zero(row.get("total_value")), _decimal_or_zero(row.get("profit")))
        for row in rows
        if isinstance(row, dict)
    ]
    parsed.sort(key=lambda item: item[1], reverse=True)

    return [
        AccountStanding(
            rank=index + 1,
            account_id=row.get("id"),
            display_name=display_name(row.get("name"), row.get("email")),
            total_value=total,
            profit=profit,
        )
        for index, (row, total, profit) in enumerate(parsed)
    ]


class LeaderboardTracker:
    """Tracks per-account value changes between leaderboard refreshes."""

    def __init__(self) -> None:
        self._last_values: dict[Any, Decimal] = {}

    def update(self, rows: Iterable[dict[str, Any]]) -> list[AccountStanding]:
        """
        Rank ``rows`` and annotate each with its change since the last update.

        Accounts not seen before report a change of zero.
        """
        standings = rank_accounts(rows)
        previous = self._last_values

        annotated = []
        for standing in standings:
            last = previous.get(standing.account_id)
            change = standing.total_value - last if last is not None else ZERO
            annotated.append(AccountStanding(
                rank=standing.rank,
                account_id=standing.account_id,
                display_name=standing.display_name,
                total_value=standing.total_value,
                profit=standing.profit,
                value_change=change,
            ))

        self._last_values = {s.account_id: s.total_value for s in standings}
        logger.debug("Leaderboard updated", accounts=len(annotated))
        return annotated
