"""
Per-instrument baseline prices for trend computation.

The baseline is "the price as of the previous update cycle". Observations
made during a cycle are staged and only become baselines when the next
cycle begins, so every indicator computed within one cycle reads the same
baseline snapshot.
"""

from decimal import Decimal
from typing import Optional

import structlog

logger = structlog.get_logger(__name__)


class BaselineTracker:
    """Single source of previous-price state for all derived views."""

    def __init__(self) -> None:
        self._baselines: dict[str, Decimal] = {}
        self._current: dict[str, Decimal] = {}
        self.cycle = 0

    def begin_cycle(self) -> None:
        """Roll the prices observed last cycle into the baseline map."""
        if self._current:
            self._baselines.update(self._current)
            self._current = {}
        self.cycle += 1

    def observe(self, symbol: str, price: Decimal) -> None:
        """
        Record the current price for this cycle.

        A symbol seen for the first time is seeded with its own price, so
        its first indicator reads as a zero change.
        """
        if symbol not in self._baselines:
            self._baselines[symbol] = price
            logger.debug("Seeded baseline", symbol=symbol, price=str(price), cycle=self.cycle)
        self._current[symbol] = price

    def baseline(self, symbol: str) -> Optional[Decimal]:
        return self._baselines.get(symbol)

    def snapshot(self) -> dict[str, Decimal]:
        return dict(self._baselines)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._baselines
