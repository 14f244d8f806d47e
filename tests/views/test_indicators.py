"""Tests for direction and percent-change indicators."""

from decimal import Decimal

from quote_sync.views.indicators import Direction, compute_indicator


class TestComputeIndicator:
    """Test suite for compute_indicator."""

    def test_rising_percent_change(self) -> None:
        indicator = compute_indicator(Decimal("165"), Decimal("150"))

        assert indicator.direction is Direction.RISING
        assert indicator.percent_change == Decimal("10.00")
        assert indicator.change == Decimal("15")

    def test_falling_percent_change(self) -> None:
        indicator = compute_indicator(Decimal("135"), Decimal("150"))

        assert indicator.direction is Direction.FALLING
        assert indicator.percent_change == Decimal("-10.00")
        assert not indicator.rising

    def test_zero_change_counts_as_rising(self) -> None:
        indicator = compute_indicator(Decimal("150"), Decimal("150"))

        assert indicator.rising
        assert indicator.percent_change == Decimal("0.00")

    def test_missing_baseline_is_zero_change(self) -> None:
        indicator = compute_indicator(Decimal("150"), None)

        assert indicator.rising
        assert indicator.percent_change == Decimal("0.00")

    def test_zero_baseline_avoids_division(self) -> None:
        indicator = compute_indicator(Decimal("5"), Decimal("0"))

        assert indicator.percent_change == Decimal("0.00")
        assert indicator.rising

    def test_rounds_half_up(self) -> None:
        # 100.005 / 100 -> 0.005% rounds away from zero
        assert compute_indicator(Decimal("100.005"), Decimal("100")).percent_change == Decimal("0.01")
        assert compute_indicator(Decimal("1"), Decimal("3")).percent_change == Decimal("-66.67")

    def test_extreme_ratio_does_not_overflow_precision(self) -> None:
        indicator = compute_indicator(Decimal("1000000000"), Decimal("0.000000000000000000001"))

        assert indicator.rising
        assert indicator.percent_change == Decimal("1E+32")
        assert indicator.percent_change.as_tuple().exponent == -2

    def test_custom_places(self) -> None:
        indicator = compute_indicator(Decimal("2"), Decimal("3"), places=4)
        assert indicator.percent_change == Decimal("-33.3333")
