"""Wrapping 128-bit growth counters.

Fee and reward growth counters only ever move forward, but they are allowed to
wrap around 2^128. Their absolute values carry no meaning; only the difference
between two readings of the same counter does. ``ModularAccumulator`` makes that
explicit: it supports advancing by an amount and subtracting another reading,
and refuses ordering comparisons.
"""

from __future__ import annotations

from clmm.constants import U128_MAX

_MODULUS = U128_MAX + 1


class ModularAccumulator:
    """Monotonic counter modulo 2^128.

    Attributes:
        value: The raw counter reading in [0, 2^128)
    """

    __slots__ = ("_value",)
    _value: int

    def __init__(self, value: int = 0) -> None:
        if not isinstance(value, int) or isinstance(value, bool):
            raise TypeError(f"ModularAccumulator requires int, got {type(value).__name__}")
        self._value = value % _MODULUS

    @property
    def value(self) -> int:
        """The raw counter reading."""
        return self._value

    @classmethod
    def zero(cls) -> ModularAccumulator:
        return cls(0)

    def advance(self, amount: int) -> ModularAccumulator:
        """Return a new reading advanced by amount (wrapping)."""
        if amount < 0:
            raise ValueError(f"Growth counters only advance, got {amount}")
        return ModularAccumulator(self._value + amount)

    def __sub__(self, other: ModularAccumulator) -> ModularAccumulator:
        """Wrapping difference ``self - other``."""
        if not isinstance(other, ModularAccumulator):
            return NotImplemented
        return ModularAccumulator(self._value - other._value)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, ModularAccumulator):
            return self._value == other._value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(("ModularAccumulator", self._value))

    def __repr__(self) -> str:
        return f"ModularAccumulator({self._value})"

    def __deepcopy__(self, memo: dict) -> ModularAccumulator:
        return self

    def __copy__(self) -> ModularAccumulator:
        return self


__all__ = ["ModularAccumulator"]
