"""Tests for the shared rounding and tolerance policy."""

import pytest
from decimal import Decimal

from happyshare.ledger import EPSILON, InvalidAmount, is_zero, round2, to_decimal


class TestToDecimal:

    def test_float_goes_through_str(self):
        """Test that 0.1 is not turned into its binary expansion."""
        assert to_decimal(0.1) == Decimal("0.1")

    def test_int_and_string(self):
        assert to_decimal(5) == Decimal("5")
        assert to_decimal(" 12.50 ") == Decimal("12.50")

    @pytest.mark.parametrize("value", ["NaN", "Infinity", float("nan"), float("-inf")])
    def test_rejects_non_finite(self, value):
        with pytest.raises(InvalidAmount):
            to_decimal(value)

    @pytest.mark.parametrize("value", ["abc", "", None, True, [1]])
    def test_rejects_non_numbers(self, value):
        with pytest.raises(InvalidAmount):
            to_decimal(value)


class TestRound2:

    def test_rounds_half_away_from_zero(self):
        """Test the documented rounding rule on both signs."""
        assert round2("0.005") == Decimal("0.01")
        assert round2("-0.005") == Decimal("-0.01")
        assert round2("2.675") == Decimal("2.68")

    def test_rounds_down_below_half(self):
        assert round2("33.3333333") == Decimal("33.33")

    def test_negative_zero_is_normalised(self):
        """Test that -0.001 comes out as 0.00, not -0.00."""
        assert str(round2("-0.001")) == "0.00"

    def test_always_two_places(self):
        assert str(round2(30)) == "30.00"


class TestIsZero:

    def test_epsilon_is_one_cent(self):
        assert EPSILON == Decimal("0.01")

    def test_inside_band(self):
        assert is_zero("0.009")
        assert is_zero("-0.009")
        assert is_zero(0)

    def test_edge_of_band_is_not_zero(self):
        """Test that exactly one cent is a real balance."""
        assert not is_zero("0.01")
        assert not is_zero("-0.01")
