"""
Canonical data models for normalized quote data.

This module defines immutable data structures that represent clean, validated
quotes after normalization from raw transport payloads.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class InstrumentQuote:
    """Normalized quote for a single instrument."""
    symbol: str                 # Unique instrument key
    price: Decimal              # Last traded / quoted price
    observed_at: datetime       # UTC observation time
    source_timed: bool = False  # True if observed_at came from the payload

    def is_newer_than(self, other: "InstrumentQuote") -> bool:
        """
        Decide whether this quote supersedes ``other``.

        Source timestamps are only comparable when both quotes carry one;
        otherwise the later-arriving quote wins.
        """
        if self.source_timed and other.source_timed:
            return self.observed_at >= other.observed_at
        return True

    def to_dict(self) -> dict[str, Any]:
        return {
            "symbol": self.symbol,
            "price": str(self.price),
            "observed_at": self.observed_at.isoformat(),
        }


@dataclass
class NormalizerStats:
    """Counters for normalization outcomes."""
    batches: int = 0
    accepted: int = 0
    dropped: int = 0
    last_errors: list[str] = field(default_factory=list)

    def record_drop(self, reason: str, keep: int = 10) -> None:
        self.dropped += 1
        self.last_errors.append(reason)
        if len(self.last_errors) > keep:
            del self.last_errors[:-keep]

    def get_stats(self) -> dict[str, Any]:
        total = self.accepted + self.dropped
        return {
            "batches": self.batches,
            "accepted": self.accepted,
            "dropped": self.dropped,
            "acceptance_rate": self.accepted / max(total, 1),
            "last_errors": list(self.last_errors),
        }
