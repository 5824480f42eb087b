"""Factory functions for building ledgers, pools and positions in tests.

Usage:
    from tests.helpers import make_pool_ledger, add_position

    ledger = make_pool_ledger(protocol_fee_rate=120_000)
    position_id = add_position(ledger, -600, 600, 10**15)
"""

from clmm.engine.pool import create_pool
from clmm.engine.position import open_position
from clmm.ledger import Ledger, memory_ledger
from clmm.math.tick_math import get_sqrt_price_at_tick
from clmm.state.config import AmmConfig
from tests.helpers.constants import (
    CONFIG_INDEX,
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
    STARTING_BALANCE,
    TICK_SPACING,
    TRADE_FEE_RATE,
    TRADER,
)


def make_config(
    index: int = CONFIG_INDEX,
    trade_fee_rate: int = TRADE_FEE_RATE,
    protocol_fee_rate: int = 0,
    fund_fee_rate: int = 0,
    tick_spacing: int = TICK_SPACING,
) -> AmmConfig:
    """Create a fee tier owned by CONFIG_OWNER, with FUND_OWNER as fund owner."""
    return AmmConfig(
        index=index,
        owner=CONFIG_OWNER,
        trade_fee_rate=trade_fee_rate,
        protocol_fee_rate=protocol_fee_rate,
        fund_fee_rate=fund_fee_rate,
        tick_spacing=tick_spacing,
        fund_owner=FUND_OWNER,
    )


def fund(ledger: Ledger, account: str, *mints: str, amount: int = STARTING_BALANCE) -> None:
    """Mint ``amount`` of each mint (default: both pool tokens) to an account."""
    for mint in mints or (MINT_0, MINT_1):
        ledger.tokens.mint_to(account, mint, amount)


def make_pool_ledger(
    start_tick: int = 0,
    trade_fee_rate: int = TRADE_FEE_RATE,
    protocol_fee_rate: int = 0,
    fund_fee_rate: int = 0,
    tick_spacing: int = TICK_SPACING,
    open_time: int = 0,
) -> Ledger:
    """Create an in-memory ledger holding one empty pool.

    The pool starts exactly on ``start_tick``. LP, LP_2 and TRADER hold
    STARTING_BALANCE of both pool tokens; POOL_OWNER holds both reward mints.
    """
    ledger = memory_ledger()
    ledger.configs.save(
        make_config(
            trade_fee_rate=trade_fee_rate,
            protocol_fee_rate=protocol_fee_rate,
            fund_fee_rate=fund_fee_rate,
            tick_spacing=tick_spacing,
        )
    )
    create_pool(
        ledger,
        POOL_ID,
        CONFIG_INDEX,
        POOL_OWNER,
        MINT_0,
        MINT_1,
        get_sqrt_price_at_tick(start_tick),
        open_time=open_time,
    )
    for account in (LP, LP_2, TRADER):
        fund(ledger, account)
    fund(ledger, POOL_OWNER, REWARD_MINT, REWARD_MINT_2)
    return ledger


def add_position(
    ledger: Ledger,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
    owner: str = LP,
    now: int = 0,
    pool_id: str = POOL_ID,
) -> str:
    """Open a position with unbounded deposit limits and return its id."""
    change = open_position(
        ledger,
        pool_id,
        owner,
        tick_lower,
        tick_upper,
        liquidity,
        STARTING_BALANCE,
        STARTING_BALANCE,
        now=now,
    )
    return change.position_id


def make_route_ledger(liquidity: int = DEEP_LIQUIDITY) -> Ledger:
    """Create two pools that share MINT_1, each at tick 0 with one position.

    POOL_ID trades MINT_0/MINT_1 and POOL_ID_2 trades MINT_1/MINT_2. Both hold
    ``liquidity`` on [-600, 600). TRADER also holds STARTING_BALANCE of MINT_2.
    """
    ledger = make_pool_ledger()
    create_pool(
        ledger, POOL_ID_2, CONFIG_INDEX, POOL_OWNER, MINT_1, MINT_2, get_sqrt_price_at_tick(0)
    )
    for account in (LP, TRADER):
        fund(ledger, account, MINT_2)
    add_position(ledger, -600, 600, liquidity)
    add_position(ledger, -600, 600, liquidity, pool_id=POOL_ID_2)
    return ledger


def balances(ledger: Ledger, account: str) -> tuple[int, int]:
    """Token0 and token1 balance of an account."""
    return ledger.tokens.balance(account, MINT_0), ledger.tokens.balance(account, MINT_1)
