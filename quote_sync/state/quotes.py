"""
Current quote set for the session.

Applies quotes with last-write-wins per symbol. When both the stored and
the incoming quote carry a source timestamp, an older incoming quote is
rejected as stale; otherwise the later-arriving quote wins.
"""

from typing import Iterable, Optional

import structlog

from ..data.models import InstrumentQuote

logger = structlog.get_logger(__name__)


class QuoteBook:
    """Symbol-keyed quote set preserving first-seen order."""

    def __init__(self) -> None:
        self._quotes: dict[str, InstrumentQuote] = {}
        self.stale_rejections = 0

    def apply(self, quote: InstrumentQuote) -> bool:
        """
        Merge one quote.

        Returns:
            True if the quote was stored, False if it was stale
        """
        existing = self._quotes.get(quote.symbol)
        if existing is not None and not quote.is_newer_than(existing):
            self.stale_rejections += 1
            logger.debug(
                "Rejected stale quote",
                symbol=quote.symbol,
                incoming_ts=quote.observed_at.isoformat(),
                stored_ts=existing.observed_at.isoformat()
            )
            return False

        self._quotes[quote.symbol] = quote
        return True

    def prune(self, keep: Iterable[str]) -> list[str]:
        """Drop symbols not in ``keep``; returns the removed symbols."""
        keep_set = set(keep)
        removed = [symbol for symbol in self._quotes if symbol not in keep_set]
        for symbol in removed:
            del self._quotes[symbol]
        if removed:
            logger.info("Pruned symbols missing from snapshot", symbols=removed)
        return removed

    def get(self, symbol: str) -> Optional[InstrumentQuote]:
        return self._quotes.get(symbol)

    def snapshot(self) -> list[InstrumentQuote]:
        return list(self._quotes.values())

    def as_mapping(self) -> dict[str, InstrumentQuote]:
        return dict(self._quotes)

    def __contains__(self, symbol: str) -> bool:
        return symbol in self._quotes

    def __len__(self) -> int:
        return len(self._quotes)
