"""Aggregate (protocol) and owner-level (personal) position records."""

from __future__ import annotations

from dataclasses import dataclass, field

from clmm.constants import REWARD_NUM
from clmm.math.accumulator import ModularAccumulator


def _zero_growths() -> list[ModularAccumulator]:
    return [ModularAccumulator.zero() for _ in range(REWARD_NUM)]


@dataclass
class ProtocolPosition:
    """All liquidity on one (tick_lower, tick_upper) range of a pool.

    Attributes:
        pool_id: Owning pool
        tick_lower: Lower tick (inclusive)
        tick_upper: Upper tick (exclusive)
        liquidity: Aggregate liquidity on the range
        fee_growth_inside_0_last_x64: Token0 fee growth inside at last settlement
        fee_growth_inside_1_last_x64: Token1 fee growth inside at last settlement
        token_fees_owed_0: Token0 fees settled but not yet collected
        token_fees_owed_1: Token1 fees settled but not yet collected
        reward_growth_inside: Reward growth inside at last settlement
    """

    pool_id: str
    tick_lower: int
    tick_upper: int
    liquidity: int = 0
    fee_growth_inside_0_last_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    fee_growth_inside_1_last_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    token_fees_owed_0: int = 0
    token_fees_owed_1: int = 0
    reward_growth_inside: list[ModularAccumulator] = field(default_factory=_zero_growths)


@dataclass
class PositionRewardInfo:
    """Per-reward snapshot on a personal position."""

    growth_inside_last_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    reward_amount_owed: int = 0


def _empty_position_rewards() -> list[PositionRewardInfo]:
    return [PositionRewardInfo() for _ in range(REWARD_NUM)]


@dataclass
class PersonalPosition:
    """One owner's share of a range.

    Mirrors the ProtocolPosition for the same range but settles on its own
    cadence: fees and rewards accrue here only when the owner touches the
    position.

    Attributes:
        position_id: Unique identifier of the position
        owner: Account that owns the position
        pool_id: Owning pool
        tick_lower: Lower tick (inclusive)
        tick_upper: Upper tick (exclusive)
        liquidity: Owner's liquidity
        fee_growth_inside_0_last_x64: Token0 fee growth inside at last settlement
        fee_growth_inside_1_last_x64: Token1 fee growth inside at last settlement
        token_fees_owed_0: Token0 fees owed to the owner
        token_fees_owed_1: Token1 fees owed to the owner
        reward_infos: Per-reward snapshots and owed amounts
    """

    position_id: str
    owner: str
    pool_id: str
    tick_lower: int
    tick_upper: int
    liquidity: int = 0
    fee_growth_inside_0_last_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    fee_growth_inside_1_last_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    token_fees_owed_0: int = 0
    token_fees_owed_1: int = 0
    reward_infos: list[PositionRewardInfo] = field(default_factory=_empty_position_rewards)

    def has_owed(self) -> bool:
        """True if any fees or rewards are still owed."""
        if self.token_fees_owed_0 or self.token_fees_owed_1:
            return True
        return any(info.reward_amount_owed for info in self.reward_infos)


__all__ = ["ProtocolPosition", "PersonalPosition", "PositionRewardInfo"]
