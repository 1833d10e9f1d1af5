"""
Unit tests for the money rounding policy.

Verifies:
- Half-up rounding to two decimal places
- Float inputs round as written, not as stored in binary
- Idempotence
- Non-finite input rejection
- Even splitting with the residue on the last part
"""

from decimal import ROUND_DOWN, Decimal

import pytest
from hypothesis import given
from hypothesis import strategies as st

from tuition_kernel.db.types import (
    MONEY_DECIMAL_PLACES,
    ZERO,
    round_money,
    split_evenly,
    to_decimal,
)


class TestRoundMoney:
    """Tests for round_money."""

    def test_rounds_half_up(self):
        assert round_money(Decimal("10.125")) == Decimal("10.13")
        assert round_money(Decimal("10.124")) == Decimal("10.12")

    def test_float_rounds_as_written(self):
        """1.005 is stored as 1.00499999... in binary but rounds to 1.01."""
        assert round_money(1.005) == Decimal("1.01")
        assert round_money(2.675) == Decimal("2.68")

    def test_int_and_string_inputs(self):
        assert round_money(7500) == Decimal("7500.00")
        assert round_money("11250.5") == Decimal("11250.50")

    def test_result_has_two_places(self):
        result = round_money(Decimal("3"))
        assert result.as_tuple().exponent == -MONEY_DECIMAL_PLACES

    def test_negative_zero_normalized(self):
        result = round_money(Decimal("-0.001"))
        assert result == ZERO
        assert not result.is_signed()

    def test_custom_rounding_mode(self):
        assert round_money(Decimal("1.019"), rounding=ROUND_DOWN) == Decimal("1.01")

    @pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
    def test_non_finite_float_rejected(self, value):
        with pytest.raises(ValueError):
            round_money(value)

    def test_non_finite_decimal_rejected(self):
        with pytest.raises(ValueError):
            round_money(Decimal("NaN"))

    def test_garbage_string_rejected(self):
        with pytest.raises(ValueError):
            round_money("twelve dollars")

    def test_bool_rejected(self):
        with pytest.raises(ValueError):
            to_decimal(True)

    @given(st.decimals(allow_nan=False, allow_infinity=False, min_value=-10**9, max_value=10**9))
    def test_idempotent_for_decimals(self, value):
        once = round_money(value)
        assert round_money(once) == once

    @given(st.floats(allow_nan=False, allow_infinity=False, min_value=-1e9, max_value=1e9))
    def test_idempotent_for_floats(self, value):
        once = round_money(value)
        assert round_money(once) == once


class TestSplitEvenly:
    """Tests for split_evenly."""

    def test_exact_split(self):
        assert split_evenly(Decimal("30000"), 4) == [Decimal("7500.00")] * 4

    def test_residue_on_last_part(self):
        assert split_evenly(Decimal("100"), 3) == [
            Decimal("33.33"),
            Decimal("33.33"),
            Decimal("33.34"),
        ]

    def test_parts_sum_to_total(self):
        parts = split_evenly(Decimal("1000.01"), 7)
        assert sum(parts) == Decimal("1000.01")

    def test_small_total_never_negative(self):
        parts = split_evenly(Decimal("0.05"), 4)
        assert all(p >= 0 for p in parts)
        assert sum(parts) == Decimal("0.05")

    def test_zero_total(self):
        assert split_evenly(ZERO, 3) == [ZERO, ZERO, ZERO]

    def test_zero_parts_rejected(self):
        with pytest.raises(ValueError):
            split_evenly(Decimal("10"), 0)
