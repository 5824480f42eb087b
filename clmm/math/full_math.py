"""Widening multiply-divide over fixed-width unsigned integers.

``a * b / denominator`` is computed exactly (Python integers do not overflow),
and only the final result is checked against the output width. This matches
the u64 -> u128 and u128 -> u256 intermediate-width scheme: an intermediate
product may be as wide as it likes, the quotient may not.
"""

from __future__ import annotations

from clmm.errors import ArithmeticOverflow

U64_BITS = 64
U128_BITS = 128
U256_BITS = 256


def _check_operands(a: int, b: int, denominator: int) -> None:
    if denominator == 0:
        raise ZeroDivisionError("mul_div denominator is zero")
    if a < 0 or b < 0 or denominator < 0:
        raise ValueError(f"mul_div operands must be unsigned: {a}, {b}, {denominator}")


def mul_div_floor(a: int, b: int, denominator: int, bits: int = U128_BITS) -> int | None:
    """Compute floor(a * b / denominator).

    Args:
        a: First factor
        b: Second factor
        denominator: Divisor, must be non-zero
        bits: Output width in bits (64, 128 or 256)

    Returns:
        The quotient, or None if it does not fit in ``bits`` bits

    Raises:
        ZeroDivisionError: If denominator is zero (precondition violation)
    """
    _check_operands(a, b, denominator)
    result = a * b // denominator
    if result >> bits:
        return None
    return result


def mul_div_ceil(a: int, b: int, denominator: int, bits: int = U128_BITS) -> int | None:
    """Compute ceil(a * b / denominator).

    Returns None if the rounded-up quotient does not fit in ``bits`` bits.

    Raises:
        ZeroDivisionError: If denominator is zero (precondition violation)
    """
    _check_operands(a, b, denominator)
    result = -(-(a * b) // denominator)
    if result >> bits:
        return None
    return result


def mul_div_rounding(
    a: int, b: int, denominator: int, round_up: bool, bits: int = U128_BITS
) -> int | None:
    """Dispatch to mul_div_ceil or mul_div_floor."""
    if round_up:
        return mul_div_ceil(a, b, denominator, bits)
    return mul_div_floor(a, b, denominator, bits)


def require_fits(value: int | None, what: str) -> int:
    """Unwrap a mul_div result, raising ArithmeticOverflow on None."""
    if value is None:
        raise ArithmeticOverflow(f"{what} overflows its output width")
    return value


__all__ = [
    "U64_BITS",
    "U128_BITS",
    "U256_BITS",
    "mul_div_floor",
    "mul_div_ceil",
    "mul_div_rounding",
    "require_fits",
]
