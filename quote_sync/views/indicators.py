"""Direction and percent-change indicators."""

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, localcontext
from enum import Enum
from typing import Optional

HUNDRED = Decimal(100)
ZERO = Decimal(0)


class Direction(str, Enum):
    """Price direction relative to the baseline."""
    RISING = "rising"
    FALLING = "falling"


@dataclass(frozen=True)
class Indicator:
    """Derived trend indicator for one instrument."""
    direction: Direction
    percent_change: Decimal
    change: Decimal

    @property
    def rising(self) -> bool:
        return self.direction is Direction.RISING


def compute_indicator(current: Decimal, baseline: Optional[Decimal], places: int = 2) -> Indicator:
    """
    Compute direction and percent change of ``current`` against ``baseline``.

    Percent change is ``(current - baseline) / baseline * 100`` rounded
    half-up to ``places`` decimals, or 0 when the baseline is not positive.
    A zero change counts as rising. A missing baseline is treated as equal
    to the current price.
    """
    if baseline is None:
        baseline = current

    change = current - baseline
    if baseline > 0:
        ratio = change / baseline * HUNDRED
        # quantize needs room for every integer digit plus the places
        with localcontext() as ctx:
            ctx.prec = max(ctx.prec, ratio.adjusted() + places + 2)
            percent = ratio.quantize(Decimal(1).scaleb(-places), rounding=ROUND_HALF_UP)
    else:
        percent = ZERO.quantize(Decimal(1).scaleb(-places))

    direction = Direction.RISING if change >= 0 else Direction.FALLING
    return Indicator(direction=direction, percent_change=percent, change=change)
