"""Sparse tick index: bitmap words, extension and swap context."""

from clmm.tick_index.bitmap import compress_tick, next_initialized_bit, position
from clmm.tick_index.context import TickContext
from clmm.tick_index.extension import TickIndexExtension, in_default_window
from clmm.tick_index.index import TickIndex

__all__ = [
    "TickIndex",
    "TickIndexExtension",
    "TickContext",
    "compress_tick",
    "position",
    "next_initialized_bit",
    "in_default_window",
]
