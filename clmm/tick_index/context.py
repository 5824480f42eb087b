"""Caller-supplied tick-index context.

A swap may only read bitmap words the caller explicitly supplied. This bounds
the work a single swap can do: running past the supplied words raises
``InsufficientTickContext`` instead of silently loading more.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from clmm.tick_index.bitmap import compress_tick, position, word_bounds
from clmm.tick_index.extension import in_default_window


@dataclass(frozen=True)
class TickContext:
    """Set of bitmap words a swap is allowed to search.

    Attributes:
        word_positions: Word positions the caller loaded
        include_extension: Whether the extension bitmap was supplied; words
            outside the default window are unusable without it
    """

    word_positions: frozenset[int]
    include_extension: bool = False

    @classmethod
    def of(
        cls, word_positions: Iterable[int], include_extension: bool | None = None
    ) -> TickContext:
        """Build a context, supplying the extension iff any word needs it."""
        words = frozenset(word_positions)
        if include_extension is None:
            include_extension = any(not in_default_window(w) for w in words)
        return cls(word_positions=words, include_extension=include_extension)

    @classmethod
    def for_swap(
        cls, tick_current: int, tick_spacing: int, zero_for_one: bool, word_count: int
    ) -> TickContext:
        """Context covering ``word_count`` words in the swap direction.

        The first word is the one the swap searches first: the word holding
        the current tick for zero_for_one, or the word holding the next
        compressed tick otherwise.
        """
        compressed = compress_tick(tick_current, tick_spacing)
        if zero_for_one:
            start, _ = position(compressed)
            step = -1
        else:
            start, _ = position(compressed + 1)
            step = 1
        min_word, max_word = word_bounds(tick_spacing)
        words = [
            start + step * i
            for i in range(word_count)
            if min_word <= start + step * i <= max_word
        ]
        return cls.of(words)

    @classmethod
    def spanning(cls, tick_lower: int, tick_upper: int, tick_spacing: int) -> TickContext:
        """Context covering every word between two ticks, inclusive."""
        lower_word, _ = position(compress_tick(tick_lower, tick_spacing))
        upper_word, _ = position(compress_tick(tick_upper, tick_spacing))
        return cls.of(range(lower_word, upper_word + 1))

    def covers(self, word_pos: int) -> bool:
        """True if the swap may read this word."""
        if word_pos not in self.word_positions:
            return False
        return in_default_window(word_pos) or self.include_extension


__all__ = ["TickContext"]
