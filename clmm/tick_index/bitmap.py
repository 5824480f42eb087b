"""Bitmap word arithmetic for the sparse tick index.

Ticks are first compressed by the pool's tick spacing (flooring toward
negative infinity), then split into a word position and a bit position:

    compressed = tick // tick_spacing
    word_pos   = compressed >> 8
    bit_pos    = compressed % 256

A set bit means the tick at that compressed position is initialized.
"""

from __future__ import annotations

from clmm.constants import BITMAP_WORD_BITS
from clmm.math.tick_math import MAX_TICK, MIN_TICK

WORD_MASK = (1 << BITMAP_WORD_BITS) - 1
_LAST_BIT = BITMAP_WORD_BITS - 1


def compress_tick(tick: int, tick_spacing: int) -> int:
    """Divide a tick by the spacing, rounding toward negative infinity."""
    return tick // tick_spacing


def position(compressed: int) -> tuple[int, int]:
    """Split a compressed tick into (word_pos, bit_pos)."""
    return compressed >> 8, compressed % BITMAP_WORD_BITS


def word_bounds(tick_spacing: int) -> tuple[int, int]:
    """Smallest and largest word positions reachable for a tick spacing."""
    min_word, _ = position(compress_tick(MIN_TICK, tick_spacing))
    max_word, _ = position(compress_tick(MAX_TICK, tick_spacing))
    return min_word, max_word


def most_significant_bit(word: int) -> int:
    return word.bit_length() - 1


def least_significant_bit(word: int) -> int:
    return (word & -word).bit_length() - 1


def next_initialized_bit(word: int, bit_pos: int, lte: bool) -> tuple[int, bool]:
    """Find the nearest set bit in a word, searching from bit_pos.

    Args:
        word: 256-bit bitmap word
        bit_pos: Starting bit, inclusive
        lte: True to search toward bit 0, False to search toward bit 255

    Returns:
        (bit, initialized). When no bit is set in the searched half the
        boundary sentinel is returned (0 for lte, 255 otherwise) with
        initialized=False, telling the caller to continue in the adjacent word.
    """
    if lte:
        mask = (1 << (bit_pos + 1)) - 1
        masked = word & mask
        if masked:
            return most_significant_bit(masked), True
        return 0, False

    mask = WORD_MASK ^ ((1 << bit_pos) - 1)
    masked = word & mask
    if masked:
        return least_significant_bit(masked), True
    return _LAST_BIT, False


def flip_bit(word: int, bit_pos: int) -> int:
    return word ^ (1 << bit_pos)


def is_bit_set(word: int, bit_pos: int) -> bool:
    return bool(word >> bit_pos & 1)


__all__ = [
    "WORD_MASK",
    "compress_tick",
    "position",
    "word_bounds",
    "most_significant_bit",
    "least_significant_bit",
    "next_initialized_bit",
    "flip_bit",
    "is_bit_set",
]
