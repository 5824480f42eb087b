"""Liquidity <-> token amount conversions.

For a range [√Pa, √Pb] and liquidity L:
    Δx = L · (√Pb − √Pa) / (√Pb · √Pa)     (token0)
    Δy = L · (√Pb − √Pa)                   (token1)

Amounts owed *by* a trader or liquidity provider round up, amounts owed *to*
them round down, so the pool never pays out more than it holds.
"""

from __future__ import annotations

from clmm.constants import Q64, RESOLUTION, U128_MAX
from clmm.errors import LiquidityOverflow, LiquiditySubflow
from clmm.math.checked import ceiling_div, to_u64, to_u128
from clmm.math.full_math import U256_BITS, mul_div_ceil, mul_div_floor, require_fits


def _sorted(sqrt_price_a_x64: int, sqrt_price_b_x64: int) -> tuple[int, int]:
    if sqrt_price_a_x64 > sqrt_price_b_x64:
        return sqrt_price_b_x64, sqrt_price_a_x64
    return sqrt_price_a_x64, sqrt_price_b_x64


# =============================================================================
# Signed liquidity delta
# =============================================================================


def add_delta(liquidity: int, delta: int) -> int:
    """Apply a signed liquidity delta to an unsigned liquidity value.

    Args:
        liquidity: Current liquidity (u128)
        delta: Signed change (i128)

    Returns:
        New liquidity

    Raises:
        LiquiditySubflow: If a negative delta would take liquidity below zero
        LiquidityOverflow: If a positive delta would overflow u128
    """
    if delta < 0:
        result = liquidity + delta
        if result < 0:
            raise LiquiditySubflow(f"Liquidity underflow: {liquidity} - {-delta}")
        return result
    result = liquidity + delta
    if result > U128_MAX:
        raise LiquidityOverflow(f"Liquidity overflow: {liquidity} + {delta}")
    return result


# =============================================================================
# Amount deltas
# =============================================================================


def get_amount_0_delta_wide(
    sqrt_price_a_x64: int, sqrt_price_b_x64: int, liquidity: int, round_up: bool
) -> int:
    """Token0 amount between two prices, without narrowing to u64.

    Used by the swap step to compare the amount needed to reach a target with
    the amount available, where the former may legitimately exceed u64.
    """
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    if sqrt_price_a_x64 <= 0:
        raise ValueError("sqrt price must be positive")

    numerator_1 = liquidity << RESOLUTION
    numerator_2 = sqrt_price_b_x64 - sqrt_price_a_x64

    if round_up:
        intermediate = require_fits(
            mul_div_ceil(numerator_1, numerator_2, sqrt_price_b_x64, U256_BITS), "amount_0 delta"
        )
        return ceiling_div(intermediate, sqrt_price_a_x64)
    intermediate = require_fits(
        mul_div_floor(numerator_1, numerator_2, sqrt_price_b_x64, U256_BITS), "amount_0 delta"
    )
    return intermediate // sqrt_price_a_x64


def get_amount_1_delta_wide(
    sqrt_price_a_x64: int, sqrt_price_b_x64: int, liquidity: int, round_up: bool
) -> int:
    """Token1 amount between two prices, without narrowing to u64.

    The product is taken at 256 bits like the token0 variant, so the result may
    exceed u128 for very large liquidity.
    """
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    diff = sqrt_price_b_x64 - sqrt_price_a_x64
    if round_up:
        return require_fits(mul_div_ceil(liquidity, diff, Q64, U256_BITS), "amount_1 delta")
    return require_fits(mul_div_floor(liquidity, diff, Q64, U256_BITS), "amount_1 delta")


def get_delta_amount_0_unsigned(
    sqrt_price_a_x64: int, sqrt_price_b_x64: int, liquidity: int, round_up: bool
) -> int:
    """Token0 amount (u64) needed to move between two prices at fixed liquidity.

    Raises:
        ArithmeticOverflow: If the amount does not fit in u64
    """
    return to_u64(
        get_amount_0_delta_wide(sqrt_price_a_x64, sqrt_price_b_x64, liquidity, round_up),
        "amount_0",
    )


def get_delta_amount_1_unsigned(
    sqrt_price_a_x64: int, sqrt_price_b_x64: int, liquidity: int, round_up: bool
) -> int:
    """Token1 amount (u64) needed to move between two prices at fixed liquidity.

    Raises:
        ArithmeticOverflow: If the amount does not fit in u64
    """
    return to_u64(
        get_amount_1_delta_wide(sqrt_price_a_x64, sqrt_price_b_x64, liquidity, round_up),
        "amount_1",
    )


def get_delta_amount_0_signed(sqrt_price_a_x64: int, sqrt_price_b_x64: int, liquidity: int) -> int:
    """Signed token0 delta: positive liquidity rounds up, negative rounds down."""
    if liquidity < 0:
        return -get_delta_amount_0_unsigned(sqrt_price_a_x64, sqrt_price_b_x64, -liquidity, False)
    return get_delta_amount_0_unsigned(sqrt_price_a_x64, sqrt_price_b_x64, liquidity, True)


def get_delta_amount_1_signed(sqrt_price_a_x64: int, sqrt_price_b_x64: int, liquidity: int) -> int:
    """Signed token1 delta: positive liquidity rounds up, negative rounds down."""
    if liquidity < 0:
        return -get_delta_amount_1_unsigned(sqrt_price_a_x64, sqrt_price_b_x64, -liquidity, False)
    return get_delta_amount_1_unsigned(sqrt_price_a_x64, sqrt_price_b_x64, liquidity, True)


def get_delta_amounts_signed(
    tick_current: int,
    sqrt_price_x64_current: int,
    sqrt_price_lower_x64: int,
    sqrt_price_upper_x64: int,
    tick_lower: int,
    tick_upper: int,
    liquidity_delta: int,
) -> tuple[int, int]:
    """Token amounts for a liquidity change on [tick_lower, tick_upper).

    Below the range the position is all token0, above it all token1, and
    inside it is split at the current price.

    Returns:
        (amount_0, amount_1), positive when owed to the pool
    """
    if tick_current < tick_lower:
        return (
            get_delta_amount_0_signed(sqrt_price_lower_x64, sqrt_price_upper_x64, liquidity_delta),
            0,
        )
    if tick_current < tick_upper:
        return (
            get_delta_amount_0_signed(
                sqrt_price_x64_current, sqrt_price_upper_x64, liquidity_delta
            ),
            get_delta_amount_1_signed(
                sqrt_price_lower_x64, sqrt_price_x64_current, liquidity_delta
            ),
        )
    return (
        0,
        get_delta_amount_1_signed(sqrt_price_lower_x64, sqrt_price_upper_x64, liquidity_delta),
    )


# =============================================================================
# Liquidity from amounts
# =============================================================================


def get_liquidity_for_amount_0(sqrt_price_a_x64: int, sqrt_price_b_x64: int, amount_0: int) -> int:
    """Liquidity provided by amount_0 over [a, b], rounded down."""
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    intermediate = require_fits(
        mul_div_floor(sqrt_price_a_x64, sqrt_price_b_x64, Q64), "liquidity intermediate"
    )
    return require_fits(
        mul_div_floor(amount_0, intermediate, sqrt_price_b_x64 - sqrt_price_a_x64),
        "liquidity from amount_0",
    )


def get_liquidity_for_amount_1(sqrt_price_a_x64: int, sqrt_price_b_x64: int, amount_1: int) -> int:
    """Liquidity provided by amount_1 over [a, b], rounded down."""
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    return require_fits(
        mul_div_floor(amount_1, Q64, sqrt_price_b_x64 - sqrt_price_a_x64),
        "liquidity from amount_1",
    )


def get_liquidity_for_amounts(
    sqrt_price_x64: int,
    sqrt_price_a_x64: int,
    sqrt_price_b_x64: int,
    amount_0: int,
    amount_1: int,
) -> int:
    """Maximum liquidity that amount_0 and amount_1 can back at the current price.

    At or below the range only token0 counts; at or above only token1; inside
    the range the smaller of the two single-sided results wins.
    """
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    if sqrt_price_x64 <= sqrt_price_a_x64:
        return get_liquidity_for_amount_0(sqrt_price_a_x64, sqrt_price_b_x64, amount_0)
    if sqrt_price_x64 < sqrt_price_b_x64:
        return min(
            get_liquidity_for_amount_0(sqrt_price_x64, sqrt_price_b_x64, amount_0),
            get_liquidity_for_amount_1(sqrt_price_a_x64, sqrt_price_x64, amount_1),
        )
    return get_liquidity_for_amount_1(sqrt_price_a_x64, sqrt_price_b_x64, amount_1)


def get_liquidity_for_single_amount(
    sqrt_price_x64: int,
    sqrt_price_a_x64: int,
    sqrt_price_b_x64: int,
    amount: int,
    is_base_0: bool,
) -> int:
    """Liquidity backed by one token amount alone.

    Returns 0 when the current price makes the given token irrelevant for the
    range (token0 above the range, token1 below it).
    """
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    if is_base_0:
        if sqrt_price_x64 <= sqrt_price_a_x64:
            return get_liquidity_for_amount_0(sqrt_price_a_x64, sqrt_price_b_x64, amount)
        if sqrt_price_x64 < sqrt_price_b_x64:
            return get_liquidity_for_amount_0(sqrt_price_x64, sqrt_price_b_x64, amount)
        return 0
    if sqrt_price_x64 <= sqrt_price_a_x64:
        return 0
    if sqrt_price_x64 < sqrt_price_b_x64:
        return get_liquidity_for_amount_1(sqrt_price_a_x64, sqrt_price_x64, amount)
    return get_liquidity_for_amount_1(sqrt_price_a_x64, sqrt_price_b_x64, amount)


# =============================================================================
# Amounts from liquidity
# =============================================================================


def get_amounts_for_liquidity(
    sqrt_price_x64: int,
    sqrt_price_a_x64: int,
    sqrt_price_b_x64: int,
    liquidity: int,
) -> tuple[int, int]:
    """Token amounts (rounded down) represented by liquidity at the current price."""
    sqrt_price_a_x64, sqrt_price_b_x64 = _sorted(sqrt_price_a_x64, sqrt_price_b_x64)
    to_u128(liquidity, "liquidity")
    if sqrt_price_x64 <= sqrt_price_a_x64:
        return (
            get_delta_amount_0_unsigned(sqrt_price_a_x64, sqrt_price_b_x64, liquidity, False),
            0,
        )
    if sqrt_price_x64 < sqrt_price_b_x64:
        return (
            get_delta_amount_0_unsigned(sqrt_price_x64, sqrt_price_b_x64, liquidity, False),
            get_delta_amount_1_unsigned(sqrt_price_a_x64, sqrt_price_x64, liquidity, False),
        )
    return (
        0,
        get_delta_amount_1_unsigned(sqrt_price_a_x64, sqrt_price_b_x64, liquidity, False),
    )


__all__ = [
    "add_delta",
    "get_amount_0_delta_wide",
    "get_amount_1_delta_wide",
    "get_delta_amount_0_unsigned",
    "get_delta_amount_1_unsigned",
    "get_delta_amount_0_signed",
    "get_delta_amount_1_signed",
    "get_delta_amounts_signed",
    "get_liquidity_for_amount_0",
    "get_liquidity_for_amount_1",
    "get_liquidity_for_amounts",
    "get_liquidity_for_single_amount",
    "get_amounts_for_liquidity",
]
