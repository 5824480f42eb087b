"""Fixed-width integer helpers.

Python integers are unbounded, so every value that crosses a width boundary
(token amounts are u64, prices and liquidity u128, ticks i32) goes through one
of these helpers:
- ``to_u64`` / ``to_u128`` / ``to_i128`` raise on out-of-range values
- ``checked_*`` return None on overflow/underflow instead of raising
- ``wrapping_*`` reduce modulo 2^128 (or 2^64 signed) for counters that are meant to wrap
- ``to_underflow_u64`` clamps to zero where an out-of-range amount is legitimate

Usage pattern:
    from clmm.math.checked import to_u64, checked_add_u64

    total = checked_add_u64(owed, delta)
    if total is None:
        raise ArithmeticOverflow(...)
"""

from __future__ import annotations

from clmm.constants import I64_MIN, I128_MAX, I128_MIN, U64_MAX, U128_MAX
from clmm.errors import ArithmeticOverflow, ArithmeticUnderflow


def to_u64(value: int, what: str = "value") -> int:
    """Validate that value fits in u64.

    Raises:
        ArithmeticUnderflow: If value is negative
        ArithmeticOverflow: If value exceeds 2^64-1
    """
    if value < 0:
        raise ArithmeticUnderflow(f"{what} is negative: {value}")
    if value > U64_MAX:
        raise ArithmeticOverflow(f"{what} exceeds u64: {value}")
    return value


def to_u128(value: int, what: str = "value") -> int:
    """Validate that value fits in u128.

    Raises:
        ArithmeticUnderflow: If value is negative
        ArithmeticOverflow: If value exceeds 2^128-1
    """
    if value < 0:
        raise ArithmeticUnderflow(f"{what} is negative: {value}")
    if value > U128_MAX:
        raise ArithmeticOverflow(f"{what} exceeds u128: {value}")
    return value


def to_i128(value: int, what: str = "value") -> int:
    """Validate that value fits in i128."""
    if value < I128_MIN:
        raise ArithmeticUnderflow(f"{what} below i128 minimum: {value}")
    if value > I128_MAX:
        raise ArithmeticOverflow(f"{what} exceeds i128: {value}")
    return value


def checked_add_u64(a: int, b: int) -> int | None:
    """Add two u64 values, returning None if the sum overflows."""
    result = a + b
    if result > U64_MAX:
        return None
    return result


def checked_add_u128(a: int, b: int) -> int | None:
    """Add two u128 values, returning None if the sum overflows."""
    result = a + b
    if result > U128_MAX:
        return None
    return result


def checked_sub(a: int, b: int) -> int | None:
    """Subtract, returning None on underflow instead of raising."""
    result = a - b
    if result < 0:
        return None
    return result


def add_u64(a: int, b: int, what: str = "amount") -> int:
    """Add two u64 values, raising on overflow."""
    result = checked_add_u64(a, b)
    if result is None:
        raise ArithmeticOverflow(f"{what} overflow: {a} + {b}")
    return result


def add_u128(a: int, b: int, what: str = "value") -> int:
    """Add two u128 values, raising on overflow."""
    result = checked_add_u128(a, b)
    if result is None:
        raise ArithmeticOverflow(f"{what} overflow: {a} + {b}")
    return result


def sub_checked(a: int, b: int, what: str = "value") -> int:
    """Subtract, raising ArithmeticUnderflow if b > a."""
    result = checked_sub(a, b)
    if result is None:
        raise ArithmeticUnderflow(f"{what} underflow: {a} - {b}")
    return result


def saturating_sub(a: int, b: int) -> int:
    """Subtract, clamping the result to zero instead of raising."""
    return max(0, a - b)


def wrapping_add_u128(a: int, b: int) -> int:
    """Add modulo 2^128."""
    return (a + b) & U128_MAX


def wrapping_sub_u128(a: int, b: int) -> int:
    """Subtract modulo 2^128."""
    return (a - b) & U128_MAX


def wrapping_add_i64(a: int, b: int) -> int:
    """Add with two's complement wraparound at 64 bits."""
    return (a + b - I64_MIN) % 2**64 + I64_MIN


def ceiling_div(a: int, b: int) -> int:
    """Ceiling division for non-negative operands.

    Raises:
        ZeroDivisionError: If b is zero
    """
    if b == 0:
        raise ZeroDivisionError(f"Ceiling division by zero: {a}")
    return -(-a // b)


def to_underflow_u64(value: int) -> int:
    """Convert a wide value to u64, returning 0 if it does not fit.

    Used for fee and reward deltas derived from wrapping growth counters:
    a wrapped difference shows up as a huge value and must clamp to nothing
    rather than mint tokens.
    """
    if 0 <= value < U64_MAX:
        return value
    return 0


__all__ = [
    "to_u64",
    "to_u128",
    "to_i128",
    "checked_add_u64",
    "checked_add_u128",
    "checked_sub",
    "add_u64",
    "add_u128",
    "sub_checked",
    "saturating_sub",
    "wrapping_add_u128",
    "wrapping_sub_u128",
    "wrapping_add_i64",
    "ceiling_div",
    "to_underflow_u64",
]
