"""Pool creation, status bits and protocol/fund fee withdrawal."""

from __future__ import annotations

import structlog

from clmm.engine.settlement import Transfer, execute_transfers
from clmm.errors import InvalidConfig
from clmm.ledger.interfaces import Ledger
from clmm.math.checked import add_u64
from clmm.math.tick_math import get_tick_at_sqrt_price
from clmm.state.observation import ObservationState
from clmm.state.pool import Pool
from clmm.tick_index.index import TickIndex

logger = structlog.get_logger()


def vault_account(pool_id: str, mint: str) -> str:
    """Account id of the pool's custody account for a mint."""
    return f"{pool_id}/vault/{mint}"


def create_pool(
    ledger: Ledger,
    pool_id: str,
    amm_config_index: int,
    creator: str,
    token_mint_0: str,
    token_mint_1: str,
    sqrt_price_x64: int,
    open_time: int = 0,
) -> Pool:
    """Create an empty pool at the given price.

    Args:
        ledger: Stores to write to
        pool_id: New pool's identifier
        amm_config_index: Fee tier to use
        creator: Pool owner
        token_mint_0: Token0 mint; must sort before token_mint_1
        token_mint_1: Token1 mint
        sqrt_price_x64: Initial sqrt price (Q64.64)
        open_time: Swaps are rejected before this time

    Returns:
        The stored pool

    Raises:
        InvalidConfig: If the pool exists or the mints are not strictly ordered
        InvalidSqrtPrice: If the price is out of range
        RecordNotFound: If the config does not exist
    """
    if ledger.pools.exists(pool_id):
        raise InvalidConfig(f"Pool {pool_id} already exists")
    if token_mint_0 >= token_mint_1:
        raise InvalidConfig(f"Mints must be sorted: {token_mint_0!r} >= {token_mint_1!r}")

    config = ledger.configs.load(amm_config_index)
    tick = get_tick_at_sqrt_price(sqrt_price_x64)

    pool = Pool(
        pool_id=pool_id,
        amm_config_index=config.index,
        owner=creator,
        token_mint_0=token_mint_0,
        token_mint_1=token_mint_1,
        token_vault_0=vault_account(pool_id, token_mint_0),
        token_vault_1=vault_account(pool_id, token_mint_1),
        tick_spacing=config.tick_spacing,
        sqrt_price_x64=sqrt_price_x64,
        tick_current=tick,
        open_time=open_time,
    )
    ledger.pools.save(pool)
    ledger.tick_indexes.save(pool_id, TickIndex(tick_spacing=config.tick_spacing))
    ledger.observations.save(ObservationState(pool_id=pool_id))

    logger.info(
        "pool_created",
        pool=pool_id,
        amm_config=config.index,
        tick=tick,
        sqrt_price_x64=sqrt_price_x64,
        tick_spacing=config.tick_spacing,
    )
    return pool


def update_pool_status(ledger: Ledger, pool_id: str, status: int) -> Pool:
    """Replace the pool's disabled-operation bits (see PoolStatusBit).

    Raises:
        InvalidConfig: If status does not fit in 8 bits
    """
    if not 0 <= status <= 0xFF:
        raise InvalidConfig(f"Pool status must fit in 8 bits, got {status}")
    pool = ledger.pools.load(pool_id)
    previous = pool.status
    pool.status = status
    ledger.pools.save(pool)
    logger.info("pool_status_updated", pool=pool_id, previous=previous, status=status)
    return pool


def _collect_accrued(
    ledger: Ledger,
    pool_id: str,
    recipient: str,
    amount_0_requested: int,
    amount_1_requested: int,
    kind: str,
) -> tuple[int, int]:
    pool = ledger.pools.load(pool_id)
    accrued_0 = getattr(pool, f"{kind}_fees_token_0")
    accrued_1 = getattr(pool, f"{kind}_fees_token_1")
    amount_0 = min(amount_0_requested, accrued_0)
    amount_1 = min(amount_1_requested, accrued_1)

    setattr(pool, f"{kind}_fees_token_0", accrued_0 - amount_0)
    setattr(pool, f"{kind}_fees_token_1", accrued_1 - amount_1)
    pool.total_fees_claimed_token_0 = add_u64(pool.total_fees_claimed_token_0, amount_0)
    pool.total_fees_claimed_token_1 = add_u64(pool.total_fees_claimed_token_1, amount_1)

    transfers = []
    if amount_0:
        transfers.append(Transfer(pool.token_mint_0, pool.token_vault_0, recipient, amount_0))
    if amount_1:
        transfers.append(Transfer(pool.token_mint_1, pool.token_vault_1, recipient, amount_1))
    execute_transfers(ledger, transfers)
    ledger.pools.save(pool)

    logger.info(
        f"{kind}_fee_collected",
        pool=pool_id,
        recipient=recipient,
        amount_0=amount_0,
        amount_1=amount_1,
    )
    return amount_0, amount_1


def collect_protocol_fee(
    ledger: Ledger,
    pool_id: str,
    recipient: str,
    amount_0_requested: int,
    amount_1_requested: int,
) -> tuple[int, int]:
    """Withdraw accrued protocol fees, capped at what has accrued.

    Returns:
        (amount_0, amount_1) withdrawn
    """
    return _collect_accrued(
        ledger, pool_id, recipient, amount_0_requested, amount_1_requested, "protocol"
    )


def collect_fund_fee(
    ledger: Ledger,
    pool_id: str,
    recipient: str,
    amount_0_requested: int,
    amount_1_requested: int,
) -> tuple[int, int]:
    """Withdraw accrued fund fees, capped at what has accrued.

    Returns:
        (amount_0, amount_1) withdrawn
    """
    return _collect_accrued(
        ledger, pool_id, recipient, amount_0_requested, amount_1_requested, "fund"
    )


__all__ = [
    "collect_fund_fee",
    "collect_protocol_fee",
    "create_pool",
    "update_pool_status",
    "vault_account",
]
