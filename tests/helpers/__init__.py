"""Test helpers module for shared test utilities.

This module consolidates common test utilities to reduce duplication:
- constants: Account names, token mints and pool defaults
- factories: Ledger, config, pool and position factory functions
"""

from tests.helpers.constants import (
    ADMIN,
    CONFIG_OWNER,
    DEEP_LIQUIDITY,
    FUND_OWNER,
    LP,
    LP_2,
    MINT_0,
    MINT_1,
    MINT_2,
    POOL_ID,
    POOL_ID_2,
    POOL_OWNER,
    REWARD_MINT,
    REWARD_MINT_2,
    SHALLOW_LIQUIDITY,
    STARTING_BALANCE,
    STRANGER,
    TICK_SPACING,
    TRADER,
)
from tests.helpers.factories import (
    add_position,
    balances,
    fund,
    make_config,
    make_pool_ledger,
    make_route_ledger,
)

__all__ = [
    # Constants
    "ADMIN",
    "CONFIG_OWNER",
    "FUND_OWNER",
    "POOL_OWNER",
    "LP",
    "LP_2",
    "TRADER",
    "STRANGER",
    "MINT_0",
    "MINT_1",
    "MINT_2",
    "REWARD_MINT",
    "REWARD_MINT_2",
    "POOL_ID",
    "POOL_ID_2",
    "TICK_SPACING",
    "STARTING_BALANCE",
    "DEEP_LIQUIDITY",
    "SHALLOW_LIQUIDITY",
    # Factories
    "make_config",
    "make_pool_ledger",
    "make_route_ledger",
    "add_position",
    "fund",
    "balances",
]
