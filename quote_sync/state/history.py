"""
Rolling per-instrument price history.

Each instrument gets a fixed-capacity FIFO window of recent prices. The
window is a deque with ``maxlen`` so appends evict the oldest entry in the
same operation and the cap is never exceeded.
"""

from collections import deque
from decimal import Decimal

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_WINDOW_SIZE = 20


class HistoryBufferManager:
    """Owns the price windows; everything else reads snapshots."""

    def __init__(self, window_size: int = DEFAULT_WINDOW_SIZE):
        if window_size <= 0:
            raise ValueError(f"window_size must be positive, got {window_size}")
        self.window_size = window_size
        self._windows: dict[str, deque] = {}

    def _get_or_create_window(self, symbol: str) -> deque:
        if symbol not in self._windows:
            self._windows[symbol] = deque(maxlen=self.window_size)
            logger.debug("Created price history window", symbol=symbol, window_size=self.window_size)
        return self._windows[symbol]

    def record(self, symbol: str, price: Decimal) -> None:
        """Append a price; duplicates are appended too."""
        self._get_or_create_window(symbol).append(price)

    def snapshot(self, symbol: str) -> tuple[Decimal, ...]:
        """Ordered copy of the window, oldest first. Empty if never seen."""
        window = self._windows.get(symbol)
        return tuple(window) if window else ()

    def snapshot_all(self) -> dict[str, tuple[Decimal, ...]]:
        return {symbol: tuple(window) for symbol, window in self._windows.items()}

    def symbols(self) -> list[str]:
        return list(self._windows.keys())

    def __len__(self) -> int:
        return len(self._windows)
