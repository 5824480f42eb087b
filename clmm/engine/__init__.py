"""Engine operations: pools, swaps, positions, rewards and admin commands."""

from clmm.engine.admin import AccessPolicy, AdminDispatcher, Capability
from clmm.engine.pool import (
    collect_fund_fee,
    collect_protocol_fee,
    create_pool,
    update_pool_status,
)
from clmm.engine.position import (
    PositionChange,
    close_position,
    collect_fees,
    collect_rewards,
    decrease_liquidity,
    increase_liquidity,
    modify_liquidity,
    open_position,
    update_personal_rewards,
)
from clmm.engine.quote import PoolQuoter, quote_swap
from clmm.engine.router import RouteResult, swap_router_base_in
from clmm.engine.rewards import (
    collect_remaining_rewards,
    initialize_reward,
    set_reward_params,
    transfer_reward_owner,
)
from clmm.engine.swap import PreparedSwap, SwapResult, prepare_swap, swap, swap_internal

__all__ = [
    # Pools
    "create_pool",
    "update_pool_status",
    "collect_protocol_fee",
    "collect_fund_fee",
    # Swaps
    "SwapResult",
    "swap",
    "swap_internal",
    "quote_swap",
    "PoolQuoter",
    "PreparedSwap",
    "prepare_swap",
    "RouteResult",
    "swap_router_base_in",
    # Positions
    "PositionChange",
    "modify_liquidity",
    "open_position",
    "increase_liquidity",
    "decrease_liquidity",
    "collect_fees",
    "collect_rewards",
    "update_personal_rewards",
    "close_position",
    # Rewards
    "initialize_reward",
    "set_reward_params",
    "collect_remaining_rewards",
    "transfer_reward_owner",
    # Admin
    "AccessPolicy",
    "AdminDispatcher",
    "Capability",
]
