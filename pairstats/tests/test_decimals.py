"""Decimal conversion and zero-guarded division tests"""

from decimal import Decimal

import pytest

from pairstats.core.decimals import safe_div, to_scaled


class TestToScaled:
    def test_zero_decimals_is_identity(self):
        assert to_scaled(123456789, 0) == Decimal(123456789)

    def test_scales_by_power_of_ten(self):
        assert to_scaled(1_500_000, 6) == Decimal("1.5")
        assert to_scaled(10**18, 18) == Decimal(1)

    def test_max_uint256_is_exact(self):
        raw = 2**256 - 1
        scaled = to_scaled(raw, 18)
        assert scaled.scaleb(18) == Decimal(raw)

    def test_negative_decimals_rejected(self):
        with pytest.raises(ValueError):
            to_scaled(1, -1)


class TestSafeDiv:
    def test_zero_denominator_returns_zero(self):
        assert safe_div(Decimal(5), Decimal(0)) == 0

    def test_regular_division(self):
        assert safe_div(Decimal(1000), Decimal(2)) == Decimal(500)

    def test_high_precision(self):
        # 1/3 keeps far more than the default 28 significant digits
        third = safe_div(Decimal(1), Decimal(3))
        assert len(third.as_tuple().digits) == 80
