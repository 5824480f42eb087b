"""Sparse index of initialized ticks for one pool."""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from clmm.errors import InsufficientTickContext
from clmm.math.tick_math import check_tick
from clmm.tick_index.bitmap import (
    WORD_MASK,
    compress_tick,
    flip_bit,
    is_bit_set,
    next_initialized_bit,
    position,
)
from clmm.tick_index.context import TickContext
from clmm.tick_index.extension import TickIndexExtension, in_default_window

logger = structlog.get_logger()


@dataclass
class TickIndex:
    """Default bitmap window plus an optional extension.

    Attributes:
        tick_spacing: Pool tick spacing
        default_words: Words inside the default window, keyed by word position
        extension: Words outside the window; None until first needed
    """

    tick_spacing: int
    default_words: dict[int, int] = field(default_factory=dict)
    extension: TickIndexExtension | None = None

    def get_word(self, word_pos: int) -> int:
        if in_default_window(word_pos):
            return self.default_words.get(word_pos, 0)
        if self.extension is None:
            return 0
        return self.extension.get_word(word_pos)

    def _set_word(self, word_pos: int, word: int) -> None:
        if in_default_window(word_pos):
            word &= WORD_MASK
            if word:
                self.default_words[word_pos] = word
            else:
                self.default_words.pop(word_pos, None)
            return
        if self.extension is None:
            self.extension = TickIndexExtension(tick_spacing=self.tick_spacing)
            logger.debug("tick_index_extension_created", tick_spacing=self.tick_spacing)
        self.extension.set_word(word_pos, word)

    def is_initialized(self, tick: int) -> bool:
        """True if the bit for this tick is set."""
        check_tick(tick, self.tick_spacing)
        word_pos, bit_pos = position(compress_tick(tick, self.tick_spacing))
        return is_bit_set(self.get_word(word_pos), bit_pos)

    def flip_tick(self, tick: int) -> None:
        """Toggle the initialized bit for a tick.

        Raises:
            InvalidTickIndex: If the tick is out of bounds or off the spacing grid
        """
        check_tick(tick, self.tick_spacing)
        word_pos, bit_pos = position(compress_tick(tick, self.tick_spacing))
        self._set_word(word_pos, flip_bit(self.get_word(word_pos), bit_pos))

    def next_initialized_tick_within_one_word(
        self, tick: int, lte: bool, context: TickContext
    ) -> tuple[int, bool]:
        """Find the next initialized tick within the word being searched.

        Searching left (lte) includes ``tick`` itself; searching right starts
        strictly after it. If the word has nothing in that direction, the tick
        at the word's boundary is returned with initialized=False so the
        caller can move there and search the adjacent word.

        Args:
            tick: Starting tick (need not be on the spacing grid)
            lte: True to search toward lower ticks
            context: Words the caller supplied

        Returns:
            (next_tick, initialized)

        Raises:
            InsufficientTickContext: If the word to search is not in the context
        """
        compressed = compress_tick(tick, self.tick_spacing)
        search_from = compressed if lte else compressed + 1
        word_pos, bit_pos = position(search_from)

        if not context.covers(word_pos):
            raise InsufficientTickContext(
                f"Tick index word {word_pos} not supplied "
                f"(tick={tick}, direction={'down' if lte else 'up'})"
            )

        bit, initialized = next_initialized_bit(self.get_word(word_pos), bit_pos, lte)
        next_compressed = search_from + (bit - bit_pos)
        return next_compressed * self.tick_spacing, initialized

    def initialized_ticks(self) -> list[int]:
        """All initialized ticks in ascending order."""
        words = dict(self.default_words)
        if self.extension is not None:
            words.update(self.extension.positive_words)
            words.update(self.extension.negative_words)
        ticks = []
        for word_pos in sorted(words):
            word = words[word_pos]
            for bit_pos in range(256):
                if word >> bit_pos & 1:
                    ticks.append(((word_pos << 8) + bit_pos) * self.tick_spacing)
        return ticks


__all__ = ["TickIndex"]
