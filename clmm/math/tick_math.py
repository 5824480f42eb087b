"""Tick <-> sqrt price conversion in Q64.64 fixed point.

A tick ``t`` maps to the price ``1.0001^t``; pools store the square root of
that price as a Q64.64 number. ``get_sqrt_price_at_tick`` evaluates
``sqrt(1.0001)^t`` by multiplying precomputed powers for each set bit of |t|.
``get_tick_at_sqrt_price`` inverts it with a fixed-point log2 followed by a
change of base, then resolves the +/-1 approximation error by probing.
"""

from __future__ import annotations

from clmm.constants import U128_MAX
from clmm.errors import InvalidSqrtPrice, InvalidTickIndex, InvalidTickSpacing

MIN_TICK = -443636
MAX_TICK = -MIN_TICK

# sqrt prices at MIN_TICK and MAX_TICK
MIN_SQRT_PRICE_X64 = 4295048016
MAX_SQRT_PRICE_X64 = 79226673521066979257578248091

# Fractional bits extracted by the log2 refinement loop
BIT_PRECISION = 16

# 2^64 / sqrt(1.0001)^(2^i) for bits 1..18 of |tick|
_RATIO_FOR_BIT = (
    (0x2, 0xFFF97272373D4000),
    (0x4, 0xFFF2E50F5F657000),
    (0x8, 0xFFE5CACA7E10F000),
    (0x10, 0xFFCB9843D60F7000),
    (0x20, 0xFF973B41FA98E800),
    (0x40, 0xFF2EA16466C9B000),
    (0x80, 0xFE5DEE046A9A3800),
    (0x100, 0xFCBE86C7900BB000),
    (0x200, 0xF987A7253AC65800),
    (0x400, 0xF3392B0822BB6000),
    (0x800, 0xE7159475A2CAF000),
    (0x1000, 0xD097F3BDFD2F2000),
    (0x2000, 0xA9F746462D9F8000),
    (0x4000, 0x70D869A156F31C00),
    (0x8000, 0x31BE135F97ED3200),
    (0x10000, 0x9AA508B5B85A500),
    (0x20000, 0x5D6AF8DEDC582C),
    (0x40000, 0x2216E584F5FA),
)

_RATIO_BIT_ZERO = 0xFFFCB933BD6FB800

# 1 / log2(sqrt(1.0001)) scaled by 2^32, and the error bracket offsets
_LOG_SQRT_10001_FACTOR = 59543866431248
_TICK_LOW_OFFSET = 184467440737095516
_TICK_HIGH_OFFSET = 15793534762490258745


def get_sqrt_price_at_tick(tick: int) -> int:
    """Calculate sqrt(1.0001^tick) as a Q64.64 number.

    Args:
        tick: Tick index in [MIN_TICK, MAX_TICK]

    Returns:
        Sqrt price as Q64.64 (u128)

    Raises:
        InvalidTickIndex: If |tick| > MAX_TICK
    """
    abs_tick = abs(tick)
    if abs_tick > MAX_TICK:
        raise InvalidTickIndex(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")

    ratio = _RATIO_BIT_ZERO if abs_tick & 0x1 else 1 << 64
    for bit, magic in _RATIO_FOR_BIT:
        if abs_tick & bit:
            ratio = (ratio * magic) >> 64

    # The ladder computes 1/sqrt(1.0001)^|tick|; invert for positive ticks
    if tick > 0:
        ratio = U128_MAX // ratio

    return ratio


def get_tick_at_sqrt_price(sqrt_price_x64: int) -> int:
    """Calculate the greatest tick whose sqrt price is <= sqrt_price_x64.

    Args:
        sqrt_price_x64: Sqrt price as Q64.64, in [MIN_SQRT_PRICE_X64, MAX_SQRT_PRICE_X64)

    Returns:
        Tick index

    Raises:
        InvalidSqrtPrice: If the price is out of range
    """
    if not MIN_SQRT_PRICE_X64 <= sqrt_price_x64 < MAX_SQRT_PRICE_X64:
        raise InvalidSqrtPrice(
            f"Sqrt price {sqrt_price_x64} outside [{MIN_SQRT_PRICE_X64}, {MAX_SQRT_PRICE_X64})"
        )

    # Integer part of log2(price) in Q32.32
    msb = sqrt_price_x64.bit_length() - 1
    log2p_integer_x32 = (msb - 64) << 32

    # Normalize to [2^63, 2^64) and extract fractional bits by repeated squaring
    if msb >= 64:
        r = sqrt_price_x64 >> (msb - 63)
    else:
        r = sqrt_price_x64 << (63 - msb)

    bit = 0x8000000000000000
    log2p_fraction_x64 = 0
    for _ in range(BIT_PRECISION):
        r *= r
        is_r_more_than_two = r >> 127
        r >>= 63 + is_r_more_than_two
        log2p_fraction_x64 += bit * is_r_more_than_two
        bit >>= 1

    log2p_x32 = log2p_integer_x32 + (log2p_fraction_x64 >> 32)

    # Change of base: log_sqrt(1.0001)(p) = log2(p) / log2(sqrt(1.0001))
    log_sqrt_10001_x64 = log2p_x32 * _LOG_SQRT_10001_FACTOR

    tick_low = (log_sqrt_10001_x64 - _TICK_LOW_OFFSET) >> 64
    tick_high = (log_sqrt_10001_x64 + _TICK_HIGH_OFFSET) >> 64

    if tick_low == tick_high:
        return tick_low
    if get_sqrt_price_at_tick(tick_high) <= sqrt_price_x64:
        return tick_high
    return tick_low


def check_tick(tick: int, tick_spacing: int = 1) -> None:
    """Validate that a tick is in bounds and on the spacing grid.

    Raises:
        InvalidTickIndex: If the tick is out of bounds
        InvalidTickSpacing: If the tick is not a multiple of tick_spacing
    """
    if tick < MIN_TICK or tick > MAX_TICK:
        raise InvalidTickIndex(f"Tick {tick} outside [{MIN_TICK}, {MAX_TICK}]")
    if tick % tick_spacing != 0:
        raise InvalidTickSpacing(f"Tick {tick} is not a multiple of spacing {tick_spacing}")


__all__ = [
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_PRICE_X64",
    "MAX_SQRT_PRICE_X64",
    "BIT_PRECISION",
    "get_sqrt_price_at_tick",
    "get_tick_at_sqrt_price",
    "check_tick",
]
