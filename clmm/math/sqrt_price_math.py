"""Next sqrt price after adding or removing a token amount at fixed liquidity.

Rounding always favors the pool: moving by token0 rounds the price up, moving
by token1 rounds it down, so the trader never gets a better price than the
amount they provided pays for.
"""

from __future__ import annotations

from clmm.constants import RESOLUTION, U128_MAX
from clmm.errors import ArithmeticOverflow, ArithmeticUnderflow
from clmm.math.checked import ceiling_div
from clmm.math.full_math import mul_div_ceil, require_fits


def get_next_sqrt_price_from_amount_0_rounding_up(
    sqrt_price_x64: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding/removing ``amount`` of token0.

    Computes ``L · √P / (L ± Δx · √P)`` in Q64.64, rounding up. When the
    product overflows u128, falls back to the equivalent
    ``L / (L/√P ± Δx)`` form, which loses precision but stays exact in
    direction.
    """
    if amount == 0:
        return sqrt_price_x64

    numerator_1 = liquidity << RESOLUTION
    product = amount * sqrt_price_x64

    if add:
        if product <= U128_MAX:
            denominator = numerator_1 + product
            if denominator <= U128_MAX:
                return require_fits(
                    mul_div_ceil(numerator_1, sqrt_price_x64, denominator), "next sqrt price"
                )
        return ceiling_div(numerator_1, numerator_1 // sqrt_price_x64 + amount)

    if product > U128_MAX or numerator_1 <= product:
        raise ArithmeticUnderflow(
            f"Removing {amount} token0 exceeds virtual reserves at liquidity {liquidity}"
        )
    return require_fits(
        mul_div_ceil(numerator_1, sqrt_price_x64, numerator_1 - product), "next sqrt price"
    )


def get_next_sqrt_price_from_amount_1_rounding_down(
    sqrt_price_x64: int, liquidity: int, amount: int, add: bool
) -> int:
    """Next sqrt price after adding/removing ``amount`` of token1.

    Computes ``√P ± Δy / L`` in Q64.64, rounding down.
    """
    if add:
        quotient = (amount << RESOLUTION) // liquidity
        result = sqrt_price_x64 + quotient
        if result > U128_MAX:
            raise ArithmeticOverflow(f"Next sqrt price overflows u128: {result}")
        return result

    quotient = ceiling_div(amount << RESOLUTION, liquidity)
    if sqrt_price_x64 <= quotient:
        raise ArithmeticUnderflow(
            f"Removing {amount} token1 exceeds virtual reserves at liquidity {liquidity}"
        )
    return sqrt_price_x64 - quotient


def get_next_sqrt_price_from_input(
    sqrt_price_x64: int, liquidity: int, amount_in: int, zero_for_one: bool
) -> int:
    """Next sqrt price after swapping ``amount_in`` into the pool.

    Args:
        sqrt_price_x64: Current sqrt price, must be positive
        liquidity: Active liquidity, must be positive
        amount_in: Input amount (already net of fees)
        zero_for_one: True if token0 is the input
    """
    if sqrt_price_x64 <= 0:
        raise ValueError("sqrt price must be positive")
    if liquidity <= 0:
        raise ValueError("liquidity must be positive")
    if zero_for_one:
        return get_next_sqrt_price_from_amount_0_rounding_up(
            sqrt_price_x64, liquidity, amount_in, True
        )
    return get_next_sqrt_price_from_amount_1_rounding_down(
        sqrt_price_x64, liquidity, amount_in, True
    )


def get_next_sqrt_price_from_output(
    sqrt_price_x64: int, liquidity: int, amount_out: int, zero_for_one: bool
) -> int:
    """Next sqrt price after taking ``amount_out`` out of the pool.

    Args:
        sqrt_price_x64: Current sqrt price, must be positive
        liquidity: Active liquidity, must be positive
        amount_out: Output amount
        zero_for_one: True if token1 is the output
    """
    if sqrt_price_x64 <= 0:
        raise ValueError("sqrt price must be positive")
    if liquidity <= 0:
        raise ValueError("liquidity must be positive")
    if zero_for_one:
        return get_next_sqrt_price_from_amount_1_rounding_down(
            sqrt_price_x64, liquidity, amount_out, False
        )
    return get_next_sqrt_price_from_amount_0_rounding_up(
        sqrt_price_x64, liquidity, amount_out, False
    )


__all__ = [
    "get_next_sqrt_price_from_amount_0_rounding_up",
    "get_next_sqrt_price_from_amount_1_rounding_down",
    "get_next_sqrt_price_from_input",
    "get_next_sqrt_price_from_output",
]
