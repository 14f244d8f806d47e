"""
Sorted, indicator-annotated projections of the quote set.

Sorting is stable in both directions: instruments with equal keys keep
their input order. Descending order uses ``reverse=True``, which Python
guarantees to keep stable.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Iterable, Mapping, Optional

from ..data.models import InstrumentQuote
from .indicators import Direction, compute_indicator


class SortKey(str, Enum):
    """Sortable columns of the derived view."""
    SYMBOL = "symbol"
    PRICE = "price"
    TREND = "trend"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"

    def flipped(self) -> "SortDirection":
        return SortDirection.DESC if self is SortDirection.ASC else SortDirection.ASC


@dataclass(frozen=True)
class SortSpec:
    """Active sort column and direction for the session."""
    key: SortKey = SortKey.SYMBOL
    direction: SortDirection = SortDirection.ASC

    def toggle(self, key: SortKey, default_direction: SortDirection = SortDirection.DESC) -> "SortSpec":
        """
        Select ``key``.

        Re-selecting the active key flips the direction; selecting another
        key resets the direction to ``default_direction``.
        """
        key = SortKey(key)
        if key is self.key:
            return replace(self, direction=self.direction.flipped())
        return SortSpec(key=key, direction=SortDirection(default_direction))


@dataclass(frozen=True)
class DerivedQuote:
    """One row of the derived view."""
    symbol: str
    price: Decimal
    baseline: Decimal
    percent_change: Decimal
    direction: Direction
    history: tuple[Decimal, ...] = ()

    @property
    def rising(self) -> bool:
        return self.direction is Direction.RISING

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": str(self.price),
            "baseline": str(self.baseline),
            "percent_change": str(self.percent_change),
            "direction": self.direction.value,
            "history": [str(p) for p in self.history],
        }


_SORT_FIELDS: dict[SortKey, Callable[[DerivedQuote], Any]] = {
    SortKey.SYMBOL: lambda row: row.symbol,
    SortKey.PRICE: lambda row: row.price,
    SortKey.TREND: lambda row: row.percent_change,
}


def derive_rows(
    quotes: Iterable[InstrumentQuote],
    baselines: Mapping[str, Decimal],
    histories: Optional[Mapping[str, tuple[Decimal, ...]]] = None,
    places: int = 2,
) -> list[DerivedQuote]:
    """Annotate quotes with indicators, keeping input order."""
    histories = histories or {}
    rows = []

    for quote in quotes:
        baseline = baselines.get(quote.symbol)
        indicator = compute_indicator(quote.price, baseline, places=places)
        rows.append(DerivedQuote(
            symbol=quote.symbol,
            price=quote.price,
            baseline=baseline if baseline is not None else quote.price,
            percent_change=indicator.percent_change,
            direction=indicator.direction,
            history=tuple(histories.get(quote.symbol, ())),
        ))

    return rows


def sort_rows(rows: Iterable[DerivedQuote], spec: SortSpec) -> list[DerivedQuote]:
    return sorted(rows, key=_SORT_FIELDS[spec.key], reverse=spec.direction is SortDirection.DESC)


def build_view(
    quotes: Iterable[InstrumentQuote],
    baselines: Mapping[str, Decimal],
    histories: Optional[Mapping[str, tuple[Decimal, ...]]] = None,
    spec: Optional[SortSpec] = None,
    places: int = 2,
) -> list[DerivedQuote]:
    """Build the sorted derived view for the current quote set."""
    rows = derive_rows(quotes, baselines, histories, places=places)
    return sort_rows(rows, spec or SortSpec())
