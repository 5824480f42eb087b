"""Tests for wrapping growth counters."""

import copy

import pytest

from clmm.constants import U128_MAX
from clmm.math.accumulator import ModularAccumulator


class TestModularAccumulator:
    """Tests for ModularAccumulator."""

    def test_zero(self):
        assert ModularAccumulator.zero().value == 0

    def test_value_reduced_modulo_2_128(self):
        assert ModularAccumulator(U128_MAX + 3).value == 2

    def test_advance_returns_new_reading(self):
        """advance leaves the original untouched."""
        a = ModularAccumulator(10)
        b = a.advance(5)
        assert a.value == 10
        assert b.value == 15

    def test_advance_wraps(self):
        assert ModularAccumulator(U128_MAX).advance(2).value == 1

    def test_advance_rejects_negative(self):
        with pytest.raises(ValueError):
            ModularAccumulator(1).advance(-1)

    def test_difference_survives_wrap(self):
        """The difference across a wrap is the distance advanced."""
        before = ModularAccumulator(U128_MAX - 9)
        after = before.advance(25)
        assert (after - before).value == 25

    def test_subtracting_later_reading_wraps(self):
        assert (ModularAccumulator(0) - ModularAccumulator(1)).value == U128_MAX

    def test_no_ordering(self):
        """Only differences are meaningful, so ordering is not defined."""
        with pytest.raises(TypeError):
            _ = ModularAccumulator(1) < ModularAccumulator(2)  # type: ignore[operator]

    def test_rejects_non_int(self):
        with pytest.raises(TypeError):
            ModularAccumulator(1.5)  # type: ignore[arg-type]
        with pytest.raises(TypeError):
            ModularAccumulator(True)

    def test_equality_and_hash(self):
        assert ModularAccumulator(7) == ModularAccumulator(7)
        assert hash(ModularAccumulator(7)) == hash(ModularAccumulator(7))
        assert ModularAccumulator(7) != ModularAccumulator(8)

    def test_deepcopy_shares_immutable_instance(self):
        a = ModularAccumulator(3)
        assert copy.deepcopy(a) is a
