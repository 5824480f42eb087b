"""Bitmap extension for ticks outside a pool's default window.

The default window only covers word positions in
[-DEFAULT_BITMAP_WORDS, DEFAULT_BITMAP_WORDS). Positions beyond that, up to the
words holding MIN_TICK and MAX_TICK, live in an extension that a pool only
allocates once a position actually references such a tick.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from clmm.constants import DEFAULT_BITMAP_WORDS
from clmm.errors import InvalidTickIndex
from clmm.tick_index.bitmap import WORD_MASK, word_bounds


def in_default_window(word_pos: int) -> bool:
    """True if the word position is covered by the pool's default bitmap."""
    return -DEFAULT_BITMAP_WORDS <= word_pos < DEFAULT_BITMAP_WORDS


@dataclass
class TickIndexExtension:
    """Bitmap words for positions outside the default window.

    Attributes:
        tick_spacing: Tick spacing of the owning pool
        positive_words: Words above the default window, keyed by word position
        negative_words: Words below the default window, keyed by word position
    """

    tick_spacing: int
    positive_words: dict[int, int] = field(default_factory=dict)
    negative_words: dict[int, int] = field(default_factory=dict)

    def _check(self, word_pos: int) -> None:
        if in_default_window(word_pos):
            raise InvalidTickIndex(f"Word {word_pos} is inside the default window")
        min_word, max_word = word_bounds(self.tick_spacing)
        if word_pos < min_word or word_pos > max_word:
            raise InvalidTickIndex(f"Word {word_pos} outside [{min_word}, {max_word}]")

    def _words_for(self, word_pos: int) -> dict[int, int]:
        return self.positive_words if word_pos >= 0 else self.negative_words

    def get_word(self, word_pos: int) -> int:
        self._check(word_pos)
        return self._words_for(word_pos).get(word_pos, 0)

    def set_word(self, word_pos: int, word: int) -> None:
        self._check(word_pos)
        words = self._words_for(word_pos)
        word &= WORD_MASK
        if word:
            words[word_pos] = word
        else:
            words.pop(word_pos, None)

    def is_empty(self) -> bool:
        return not self.positive_words and not self.negative_words


__all__ = ["TickIndexExtension", "in_default_window"]
