"""Per-tick liquidity and growth-outside bookkeeping."""

from __future__ import annotations

from dataclasses import dataclass, field

from clmm.constants import REWARD_NUM
from clmm.math.accumulator import ModularAccumulator
from clmm.math.checked import to_i128
from clmm.math.liquidity_math import add_delta
from clmm.state.pool import RewardInfo


def _zero_growths() -> list[ModularAccumulator]:
    return [ModularAccumulator.zero() for _ in range(REWARD_NUM)]


@dataclass
class Tick:
    """State for one initialized tick.

    "Outside" growth is the growth accrued on the side of the tick away from
    the current price. It is only meaningful relative to the global counter,
    and is reflected (``global - outside``) every time the price crosses.

    Attributes:
        tick: Tick index
        liquidity_net: Liquidity added when the price crosses upward (i128)
        liquidity_gross: Total liquidity referencing this tick (u128)
        fee_growth_outside_0_x64: Token0 fee growth outside
        fee_growth_outside_1_x64: Token1 fee growth outside
        reward_growths_outside_x64: Reward growth outside, one per reward slot
    """

    tick: int
    liquidity_net: int = 0
    liquidity_gross: int = 0
    fee_growth_outside_0_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    fee_growth_outside_1_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    reward_growths_outside_x64: list[ModularAccumulator] = field(default_factory=_zero_growths)

    def is_initialized(self) -> bool:
        return self.liquidity_gross != 0

    def update(
        self,
        tick_current: int,
        liquidity_delta: int,
        fee_growth_global_0_x64: ModularAccumulator,
        fee_growth_global_1_x64: ModularAccumulator,
        upper: bool,
        reward_infos: list[RewardInfo],
    ) -> bool:
        """Apply a liquidity delta from a position bounded by this tick.

        When the tick goes from empty to referenced, its outside growth is
        seeded so that all growth so far is assumed to have happened below
        the tick: globals if ``tick <= tick_current``, zero otherwise.

        Args:
            tick_current: Pool's current tick
            liquidity_delta: Signed liquidity change
            fee_growth_global_0_x64: Current global token0 fee growth
            fee_growth_global_1_x64: Current global token1 fee growth
            upper: True if this tick is the position's upper bound
            reward_infos: Pool reward slots, for seeding reward growth outside

        Returns:
            True if the tick flipped between initialized and uninitialized

        Raises:
            LiquiditySubflow: If gross liquidity would go negative
            LiquidityOverflow: If gross liquidity would overflow u128
            ArithmeticOverflow: If net liquidity leaves the i128 range
        """
        liquidity_gross_before = self.liquidity_gross
        liquidity_gross_after = add_delta(liquidity_gross_before, liquidity_delta)
        flipped = (liquidity_gross_after == 0) != (liquidity_gross_before == 0)

        if upper:
            liquidity_net = to_i128(self.liquidity_net - liquidity_delta, "liquidity_net")
        else:
            liquidity_net = to_i128(self.liquidity_net + liquidity_delta, "liquidity_net")

        if liquidity_gross_before == 0 and self.tick <= tick_current:
            self.fee_growth_outside_0_x64 = fee_growth_global_0_x64
            self.fee_growth_outside_1_x64 = fee_growth_global_1_x64
            self.reward_growths_outside_x64 = [
                info.reward_growth_global_x64 if info.initialized() else ModularAccumulator.zero()
                for info in reward_infos
            ]

        self.liquidity_gross = liquidity_gross_after
        self.liquidity_net = liquidity_net
        return flipped

    def cross(
        self,
        fee_growth_global_0_x64: ModularAccumulator,
        fee_growth_global_1_x64: ModularAccumulator,
        reward_infos: list[RewardInfo],
    ) -> int:
        """Reflect outside growth as the price crosses this tick.

        Returns:
            liquidity_net, to be added when crossing upward and subtracted
            when crossing downward
        """
        self.fee_growth_outside_0_x64 = fee_growth_global_0_x64 - self.fee_growth_outside_0_x64
        self.fee_growth_outside_1_x64 = fee_growth_global_1_x64 - self.fee_growth_outside_1_x64
        for i, info in enumerate(reward_infos):
            if not info.initialized():
                continue
            self.reward_growths_outside_x64[i] = (
                info.reward_growth_global_x64 - self.reward_growths_outside_x64[i]
            )
        return self.liquidity_net

    def clear(self) -> None:
        """Reset to the uninitialized state."""
        self.liquidity_net = 0
        self.liquidity_gross = 0
        self.fee_growth_outside_0_x64 = ModularAccumulator.zero()
        self.fee_growth_outside_1_x64 = ModularAccumulator.zero()
        self.reward_growths_outside_x64 = _zero_growths()


__all__ = ["Tick"]
