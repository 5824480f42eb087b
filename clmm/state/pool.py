"""Pool state: price, liquidity, global growth counters and reward slots."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

from clmm.constants import REWARD_NUM
from clmm.errors import OperationDisabled
from clmm.math.accumulator import ModularAccumulator

POOL_SCHEMA_VERSION = 1


class PoolStatusBit(IntEnum):
    """Bit positions in ``Pool.status``. A set bit disables the operation."""

    OPEN_POSITION_OR_INCREASE_LIQUIDITY = 0
    DECREASE_LIQUIDITY = 1
    COLLECT_FEE = 2
    COLLECT_REWARD = 3
    SWAP = 4


class RewardState(IntEnum):
    """Lifecycle of a reward slot."""

    UNINITIALIZED = 0
    INITIALIZED = 1
    OPENING = 2
    ENDED = 3


@dataclass
class RewardInfo:
    """Emission schedule and growth counter for one reward token.

    Attributes:
        reward_state: Lifecycle state
        open_time: Emission start (unix seconds)
        end_time: Emission end (unix seconds)
        last_update_time: Time up to which growth has been accrued
        emissions_per_second_x64: Tokens per second as Q64.64
        reward_total_emissioned: Tokens emitted so far
        reward_claimed: Tokens paid out to positions so far
        token_mint: Reward token; empty while the slot is unused
        token_vault: Vault account holding the reward funding
        authority: Account allowed to manage this reward
        reward_growth_global_x64: Reward per unit of liquidity, Q64.64, wrapping
    """

    reward_state: RewardState = RewardState.UNINITIALIZED
    open_time: int = 0
    end_time: int = 0
    last_update_time: int = 0
    emissions_per_second_x64: int = 0
    reward_total_emissioned: int = 0
    reward_claimed: int = 0
    token_mint: str = ""
    token_vault: str = ""
    authority: str = ""
    reward_growth_global_x64: ModularAccumulator = field(default_factory=ModularAccumulator)

    def initialized(self) -> bool:
        return self.token_mint != ""


def _empty_rewards() -> list[RewardInfo]:
    return [RewardInfo() for _ in range(REWARD_NUM)]


@dataclass
class Pool:
    """One concentrated-liquidity pool.

    Invariants: ``liquidity >= 0``; ``MIN_SQRT_PRICE <= sqrt_price_x64 < MAX_SQRT_PRICE``;
    ``tick_current`` is the greatest tick whose sqrt price is <= ``sqrt_price_x64``.

    Attributes:
        pool_id: Pool identifier
        amm_config_index: Index of the AmmConfig that sets this pool's fees
        owner: Pool creator
        token_mint_0: Token0 mint (sorts before token_mint_1)
        token_mint_1: Token1 mint
        token_vault_0: Pool's token0 custody account
        token_vault_1: Pool's token1 custody account
        tick_spacing: Spacing between usable ticks
        liquidity: Liquidity active at the current price
        sqrt_price_x64: Current sqrt price, Q64.64
        tick_current: Current tick
        fee_growth_global_0_x64: Token0 fees per unit of liquidity, wrapping
        fee_growth_global_1_x64: Token1 fees per unit of liquidity, wrapping
        protocol_fees_token_0: Uncollected protocol fees in token0
        protocol_fees_token_1: Uncollected protocol fees in token1
        fund_fees_token_0: Uncollected fund fees in token0
        fund_fees_token_1: Uncollected fund fees in token1
        swap_in_amount_token_0: Lifetime token0 swapped in
        swap_out_amount_token_1: Lifetime token1 swapped out
        swap_in_amount_token_1: Lifetime token1 swapped in
        swap_out_amount_token_0: Lifetime token0 swapped out
        total_fees_token_0: Lifetime trade fees in token0
        total_fees_claimed_token_0: Lifetime token0 fees paid out
        total_fees_token_1: Lifetime trade fees in token1
        total_fees_claimed_token_1: Lifetime token1 fees paid out
        status: Disabled-operation bit flags, see PoolStatusBit
        reward_infos: Fixed-size list of reward slots
        open_time: Swaps are rejected before this time
        schema_version: Record layout version
    """

    pool_id: str
    amm_config_index: int
    owner: str
    token_mint_0: str
    token_mint_1: str
    token_vault_0: str
    token_vault_1: str
    tick_spacing: int
    sqrt_price_x64: int
    tick_current: int
    liquidity: int = 0
    fee_growth_global_0_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    fee_growth_global_1_x64: ModularAccumulator = field(default_factory=ModularAccumulator)
    protocol_fees_token_0: int = 0
    protocol_fees_token_1: int = 0
    fund_fees_token_0: int = 0
    fund_fees_token_1: int = 0
    swap_in_amount_token_0: int = 0
    swap_out_amount_token_1: int = 0
    swap_in_amount_token_1: int = 0
    swap_out_amount_token_0: int = 0
    total_fees_token_0: int = 0
    total_fees_claimed_token_0: int = 0
    total_fees_token_1: int = 0
    total_fees_claimed_token_1: int = 0
    status: int = 0
    reward_infos: list[RewardInfo] = field(default_factory=_empty_rewards)
    open_time: int = 0
    schema_version: int = POOL_SCHEMA_VERSION

    def get_status_by_bit(self, bit: PoolStatusBit) -> bool:
        """True if the operation guarded by ``bit`` is enabled."""
        return not (self.status >> bit) & 1

    def set_status_by_bit(self, bit: PoolStatusBit, enabled: bool) -> None:
        if enabled:
            self.status &= ~(1 << bit) & 0xFF
        else:
            self.status |= 1 << bit

    def require_enabled(self, bit: PoolStatusBit) -> None:
        """Raise OperationDisabled if the operation guarded by ``bit`` is disabled."""
        if not self.get_status_by_bit(bit):
            raise OperationDisabled(f"{bit.name.lower()} is disabled on pool {self.pool_id}")

    def reward_growths_global(self) -> list[ModularAccumulator]:
        return [info.reward_growth_global_x64 for info in self.reward_infos]

    def vault_for(self, zero: bool) -> str:
        return self.token_vault_0 if zero else self.token_vault_1

    def mint_for(self, zero: bool) -> str:
        return self.token_mint_0 if zero else self.token_mint_1


__all__ = [
    "POOL_SCHEMA_VERSION",
    "Pool",
    "PoolStatusBit",
    "RewardInfo",
    "RewardState",
]
