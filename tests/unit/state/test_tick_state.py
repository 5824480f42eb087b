"""Tests for per-tick bookkeeping."""

import pytest

from clmm.errors import LiquiditySubflow
from clmm.math.accumulator import ModularAccumulator
from clmm.state.pool import RewardInfo
from clmm.state.tick import Tick

GLOBAL_0 = ModularAccumulator(1000)
GLOBAL_1 = ModularAccumulator(2000)


def _rewards(growth: int = 0) -> list[RewardInfo]:
    active = RewardInfo(
        token_mint="mint-reward", reward_growth_global_x64=ModularAccumulator(growth)
    )
    return [active, RewardInfo(), RewardInfo()]


class TestUpdate:
    """Tests for Tick.update."""

    def test_first_reference_flips(self):
        tick = Tick(tick=-60)
        assert tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards())
        assert tick.is_initialized()
        assert tick.liquidity_net == 100

    def test_second_reference_does_not_flip(self):
        tick = Tick(tick=-60)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards())
        assert not tick.update(0, 50, GLOBAL_0, GLOBAL_1, True, _rewards())
        assert tick.liquidity_gross == 150
        assert tick.liquidity_net == 50

    def test_removing_all_flips_back(self):
        tick = Tick(tick=-60)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards())
        assert tick.update(0, -100, GLOBAL_0, GLOBAL_1, False, _rewards())
        assert not tick.is_initialized()

    def test_upper_tick_subtracts_net(self):
        tick = Tick(tick=60)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, True, _rewards())
        assert tick.liquidity_net == -100

    def test_seeds_outside_with_globals_at_or_below_current(self):
        tick = Tick(tick=0)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards(growth=777))
        assert tick.fee_growth_outside_0_x64 == GLOBAL_0
        assert tick.fee_growth_outside_1_x64 == GLOBAL_1
        assert tick.reward_growths_outside_x64[0].value == 777
        assert tick.reward_growths_outside_x64[1].value == 0

    def test_seeds_zero_above_current(self):
        tick = Tick(tick=60)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, True, _rewards(growth=777))
        assert tick.fee_growth_outside_0_x64.value == 0
        assert tick.reward_growths_outside_x64[0].value == 0

    def test_underflow_raises(self):
        tick = Tick(tick=0)
        with pytest.raises(LiquiditySubflow):
            tick.update(0, -1, GLOBAL_0, GLOBAL_1, False, _rewards())


class TestCross:
    """Tests for Tick.cross."""

    def test_reflects_outside_growth(self):
        tick = Tick(tick=0)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards(growth=10))

        later_0 = GLOBAL_0.advance(500)
        later_1 = GLOBAL_1.advance(50)
        net = tick.cross(later_0, later_1, _rewards(growth=30))

        assert net == 100
        assert tick.fee_growth_outside_0_x64.value == 500
        assert tick.fee_growth_outside_1_x64.value == 50
        assert tick.reward_growths_outside_x64[0].value == 20

    def test_crossing_twice_restores(self):
        tick = Tick(tick=0)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards())
        tick.cross(GLOBAL_0, GLOBAL_1, _rewards())
        tick.cross(GLOBAL_0, GLOBAL_1, _rewards())
        assert tick.fee_growth_outside_0_x64 == GLOBAL_0

    def test_uninitialized_reward_slot_untouched(self):
        tick = Tick(tick=0)
        tick.cross(GLOBAL_0, GLOBAL_1, _rewards())
        assert tick.reward_growths_outside_x64[2].value == 0

    def test_wraps_below_zero(self):
        """Outside growth larger than global wraps rather than going negative."""
        tick = Tick(tick=0, fee_growth_outside_0_x64=ModularAccumulator(5))
        tick.cross(ModularAccumulator(3), GLOBAL_1, _rewards())
        assert tick.fee_growth_outside_0_x64.value == 2**128 - 2


class TestClear:
    """Tests for Tick.clear."""

    def test_resets_everything(self):
        tick = Tick(tick=0)
        tick.update(0, 100, GLOBAL_0, GLOBAL_1, False, _rewards(growth=5))
        tick.clear()
        assert tick == Tick(tick=0)
