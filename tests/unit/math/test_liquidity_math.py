"""Tests for liquidity <-> token amount conversions."""

import pytest

from clmm.constants import Q64, U128_MAX
from clmm.errors import ArithmeticOverflow, LiquidityOverflow, LiquiditySubflow
from clmm.math.liquidity_math import (
    add_delta,
    get_amounts_for_liquidity,
    get_amount_1_delta_wide,
    get_delta_amount_0_signed,
    get_delta_amount_0_unsigned,
    get_delta_amount_1_signed,
    get_delta_amount_1_unsigned,
    get_delta_amounts_signed,
    get_liquidity_for_amount_0,
    get_liquidity_for_amount_1,
    get_liquidity_for_amounts,
    get_liquidity_for_single_amount,
)
from clmm.math.tick_math import get_sqrt_price_at_tick

PRICE_LOWER = get_sqrt_price_at_tick(-600)
PRICE_UPPER = get_sqrt_price_at_tick(600)


class TestAddDelta:
    """Tests for add_delta."""

    def test_positive(self):
        assert add_delta(10, 5) == 15

    def test_negative(self):
        assert add_delta(10, -4) == 6

    def test_to_zero(self):
        assert add_delta(10, -10) == 0

    def test_subflow(self):
        with pytest.raises(LiquiditySubflow):
            add_delta(10, -11)

    def test_overflow(self):
        with pytest.raises(LiquidityOverflow):
            add_delta(U128_MAX, 1)


class TestDeltaAmounts:
    """Tests for token amounts between two prices."""

    def test_amount_1_exact(self):
        """From price 1 to 4 (sqrt 1 to 2), token1 is L times the sqrt difference."""
        assert get_delta_amount_1_unsigned(Q64, 2 * Q64, 10**6, True) == 10**6
        assert get_delta_amount_1_unsigned(Q64, 2 * Q64, 10**6, False) == 10**6

    def test_amount_0_exact(self):
        """From sqrt price 1 to 2, token0 is L * (1/1 - 1/2)."""
        assert get_delta_amount_0_unsigned(Q64, 2 * Q64, 10**6, True) == 500_000
        assert get_delta_amount_0_unsigned(Q64, 2 * Q64, 10**6, False) == 500_000

    def test_price_order_does_not_matter(self):
        a = get_delta_amount_0_unsigned(PRICE_LOWER, PRICE_UPPER, 10**12, True)
        b = get_delta_amount_0_unsigned(PRICE_UPPER, PRICE_LOWER, 10**12, True)
        assert a == b

    def test_rounding_up_is_at_most_one_more(self):
        up = get_delta_amount_0_unsigned(Q64, PRICE_UPPER, 10**12, True)
        down = get_delta_amount_0_unsigned(Q64, PRICE_UPPER, 10**12, False)
        assert up - down in (0, 1)

        up = get_delta_amount_1_unsigned(PRICE_LOWER, Q64, 10**12, True)
        down = get_delta_amount_1_unsigned(PRICE_LOWER, Q64, 10**12, False)
        assert up - down in (0, 1)

    def test_u64_overflow_raises(self):
        with pytest.raises(ArithmeticOverflow):
            get_delta_amount_1_unsigned(PRICE_LOWER, PRICE_UPPER, U128_MAX, True)

    def test_wide_amount_1_exceeds_u128(self):
        """Token1 between sqrt prices 1 and 4 at maximum liquidity is three times u128."""
        assert get_amount_1_delta_wide(Q64, 4 * Q64, U128_MAX, False) == 3 * U128_MAX
        assert get_amount_1_delta_wide(Q64, 4 * Q64, U128_MAX, True) == 3 * U128_MAX

    def test_signed_positive_rounds_up(self):
        assert get_delta_amount_0_signed(Q64, PRICE_UPPER, 10**12) == (
            get_delta_amount_0_unsigned(Q64, PRICE_UPPER, 10**12, True)
        )

    def test_signed_negative_rounds_down(self):
        assert get_delta_amount_1_signed(PRICE_LOWER, Q64, -(10**12)) == -(
            get_delta_amount_1_unsigned(PRICE_LOWER, Q64, 10**12, False)
        )


class TestDeltaAmountsForRange:
    """Tests for get_delta_amounts_signed across the three price regimes."""

    def _amounts(self, tick_current, liquidity=10**12):
        return get_delta_amounts_signed(
            tick_current,
            get_sqrt_price_at_tick(tick_current),
            PRICE_LOWER,
            PRICE_UPPER,
            -600,
            600,
            liquidity,
        )

    def test_below_range_is_all_token0(self):
        amount_0, amount_1 = self._amounts(-1200)
        assert amount_0 > 0
        assert amount_1 == 0

    def test_above_range_is_all_token1(self):
        amount_0, amount_1 = self._amounts(1200)
        assert amount_0 == 0
        assert amount_1 > 0

    def test_inside_range_is_split(self):
        amount_0, amount_1 = self._amounts(0)
        assert amount_0 > 0
        assert amount_1 > 0

    def test_upper_tick_counts_as_above(self):
        """The range is half-open: at tick_upper the position is all token1."""
        amount_0, amount_1 = self._amounts(600)
        assert amount_0 == 0
        assert amount_1 > 0

    def test_lower_tick_counts_as_inside(self):
        amount_0, amount_1 = self._amounts(-600)
        assert amount_0 > 0
        assert amount_1 == 0

    def test_removal_is_negative(self):
        amount_0, amount_1 = self._amounts(0, liquidity=-(10**12))
        assert amount_0 < 0
        assert amount_1 < 0


class TestLiquidityForAmounts:
    """Tests for liquidity from token amounts."""

    def test_single_sided_amount_1(self):
        """Token1 over sqrt prices 1..2 gives L = amount / (2 - 1)."""
        assert get_liquidity_for_amount_1(Q64, 2 * Q64, 10**6) == 10**6

    def test_single_sided_amount_0(self):
        assert get_liquidity_for_amount_0(Q64, 2 * Q64, 500_000) == 10**6

    def test_below_range_uses_token0_only(self):
        price = get_sqrt_price_at_tick(-1200)
        assert get_liquidity_for_amounts(price, PRICE_LOWER, PRICE_UPPER, 10**9, 0) > 0
        assert get_liquidity_for_amounts(price, PRICE_LOWER, PRICE_UPPER, 0, 10**9) == 0

    def test_inside_range_takes_the_smaller_side(self):
        both = get_liquidity_for_amounts(Q64, PRICE_LOWER, PRICE_UPPER, 10**9, 10**6)
        from_1 = get_liquidity_for_amount_1(PRICE_LOWER, Q64, 10**6)
        assert both == from_1

    def test_round_trip_never_gains(self):
        """Liquidity rebuilt from its floored amounts never exceeds the original."""
        liquidity = 10**12
        amount_0, amount_1 = get_amounts_for_liquidity(Q64, PRICE_LOWER, PRICE_UPPER, liquidity)
        rebuilt = get_liquidity_for_amounts(Q64, PRICE_LOWER, PRICE_UPPER, amount_0, amount_1)
        assert rebuilt <= liquidity
        assert liquidity - rebuilt <= liquidity // 10**6

    def test_single_amount_irrelevant_token_gives_zero(self):
        above = get_sqrt_price_at_tick(1200)
        below = get_sqrt_price_at_tick(-1200)
        assert get_liquidity_for_single_amount(above, PRICE_LOWER, PRICE_UPPER, 10**9, True) == 0
        assert get_liquidity_for_single_amount(below, PRICE_LOWER, PRICE_UPPER, 10**9, False) == 0

    def test_single_amount_inside_range(self):
        liquidity = get_liquidity_for_single_amount(Q64, PRICE_LOWER, PRICE_UPPER, 10**9, True)
        assert liquidity == get_liquidity_for_amount_0(Q64, PRICE_UPPER, 10**9)


class TestAmountsForLiquidity:
    """Tests for get_amounts_for_liquidity."""

    def test_below_range(self):
        price = get_sqrt_price_at_tick(-1200)
        amount_0, amount_1 = get_amounts_for_liquidity(price, PRICE_LOWER, PRICE_UPPER, 10**12)
        assert amount_0 > 0
        assert amount_1 == 0

    def test_above_range(self):
        price = get_sqrt_price_at_tick(1200)
        amount_0, amount_1 = get_amounts_for_liquidity(price, PRICE_LOWER, PRICE_UPPER, 10**12)
        assert amount_0 == 0
        assert amount_1 > 0

    def test_symmetric_range_at_price_one(self):
        """At price 1 a symmetric range holds nearly equal amounts of both tokens."""
        amount_0, amount_1 = get_amounts_for_liquidity(Q64, PRICE_LOWER, PRICE_UPPER, 10**12)
        assert abs(amount_0 - amount_1) <= amount_0 // 1000
