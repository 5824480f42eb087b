"""Reward schedule instructions.

These are unguarded primitives; privileged callers go through
``clmm.engine.admin.AdminDispatcher``, which checks capabilities first.
"""

from __future__ import annotations

import structlog

from clmm.accounting.rewards import (
    admin_update,
    check_initialize_params,
    get_reward_info,
    initialize_reward_slot,
    normal_update,
    remaining_rewards,
    reward_amount_for_period,
    update_reward_infos,
)
from clmm.engine.settlement import Transfer, execute_transfers
from clmm.errors import InvalidConfig
from clmm.ledger.interfaces import Ledger

logger = structlog.get_logger()


def reward_vault_account(pool_id: str, mint: str) -> str:
    """Account id of the vault funding a pool's reward in ``mint``."""
    return f"{pool_id}/reward_vault/{mint}"


def _funding_transfer(ledger: Ledger, mint: str, funder: str, vault: str, amount: int) -> Transfer:
    # Gross up so the vault receives at least the owed amount
    paid = amount + ledger.tokens.inverse_transfer_fee(mint, amount)
    return Transfer(mint, funder, vault, paid)


def initialize_reward(
    ledger: Ledger,
    pool_id: str,
    funder: str,
    token_mint: str,
    open_time: int,
    end_time: int,
    emissions_per_second_x64: int,
    now: int,
    authority: str | None = None,
) -> int:
    """Start a reward schedule in the lowest free slot and fund it in full.

    Args:
        ledger: Stores and token ledger
        pool_id: Pool to reward
        funder: Account paying for the full schedule
        token_mint: Reward token
        open_time: Emission start; must not be in the past
        end_time: Emission end
        emissions_per_second_x64: Tokens per second, Q64.64
        now: Current unix time
        authority: Account managing the reward; defaults to funder

    Returns:
        Index of the reward slot

    Raises:
        RewardScheduleInvalid: If the schedule fails validation
        RewardIndexUnavailable: If all slots are in use
        RewardTokenAlreadyInUse: If the pool already emits token_mint
        InsufficientFunds: If the funder cannot cover the schedule
    """
    check_initialize_params(open_time, end_time, emissions_per_second_x64, now)
    pool = ledger.pools.load(pool_id)
    if token_mint in (pool.token_mint_0, pool.token_mint_1):
        raise InvalidConfig(f"Reward token {token_mint} is one of the pool's tokens")
    update_reward_infos(pool, now)

    vault = reward_vault_account(pool_id, token_mint)
    reward_index = initialize_reward_slot(
        pool,
        open_time,
        end_time,
        emissions_per_second_x64,
        token_mint,
        vault,
        authority or funder,
    )
    funding = reward_amount_for_period(end_time - open_time, emissions_per_second_x64, True)
    execute_transfers(ledger, [_funding_transfer(ledger, token_mint, funder, vault, funding)])
    ledger.pools.save(pool)

    logger.info(
        "reward_initialized",
        pool=pool_id,
        reward_index=reward_index,
        token_mint=token_mint,
        open_time=open_time,
        end_time=end_time,
        emissions_per_second_x64=emissions_per_second_x64,
        funding=funding,
    )
    return reward_index


def set_reward_params(
    ledger: Ledger,
    pool_id: str,
    reward_index: int,
    emissions_per_second_x64: int,
    open_time: int,
    end_time: int,
    now: int,
    funder: str,
    admin: bool = False,
) -> int:
    """Change a reward schedule and collect any extra funding it needs.

    ``admin=False`` applies the authority rules (restart an ended reward,
    raise emissions near the end, extend the end time; zeros mean
    unchanged). ``admin=True`` applies the admin rules, which may also lower
    emissions; ``open_time`` is ignored there.

    Returns:
        Funding collected from ``funder`` (before transfer fee)

    Raises:
        RewardScheduleInvalid: If the change is not allowed
        InsufficientFunds: If the funder cannot cover the extra funding
    """
    pool = ledger.pools.load(pool_id)
    update_reward_infos(pool, now)
    info = get_reward_info(pool, reward_index)

    if admin:
        funding = admin_update(info, now, emissions_per_second_x64, end_time)
    else:
        funding = normal_update(info, now, emissions_per_second_x64, open_time, end_time)

    if funding > 0:
        execute_transfers(
            ledger,
            [_funding_transfer(ledger, info.token_mint, funder, info.token_vault, funding)],
        )
    ledger.pools.save(pool)

    logger.info(
        "reward_params_set",
        pool=pool_id,
        reward_index=reward_index,
        admin=admin,
        open_time=info.open_time,
        end_time=info.end_time,
        emissions_per_second_x64=info.emissions_per_second_x64,
        funding=funding,
    )
    return funding


def collect_remaining_rewards(
    ledger: Ledger, pool_id: str, reward_index: int, recipient: str, now: int
) -> int:
    """Withdraw whatever an ended reward's vault holds beyond what positions are owed.

    Returns:
        Amount withdrawn

    Raises:
        RewardScheduleInvalid: If the reward is still emitting
    """
    pool = ledger.pools.load(pool_id)
    update_reward_infos(pool, now)
    info = get_reward_info(pool, reward_index)

    amount = remaining_rewards(info, ledger.tokens.balance(info.token_vault, info.token_mint))
    if amount > 0:
        execute_transfers(
            ledger, [Transfer(info.token_mint, info.token_vault, recipient, amount)]
        )
    ledger.pools.save(pool)

    logger.info(
        "remaining_rewards_collected",
        pool=pool_id,
        reward_index=reward_index,
        recipient=recipient,
        amount=amount,
    )
    return amount


def transfer_reward_owner(ledger: Ledger, pool_id: str, new_owner: str) -> None:
    """Hand pool ownership, and with it reward management, to a new account."""
    pool = ledger.pools.load(pool_id)
    previous = pool.owner
    pool.owner = new_owner
    for info in pool.reward_infos:
        if info.initialized() and info.authority == previous:
            info.authority = new_owner
    ledger.pools.save(pool)
    logger.info("reward_owner_transferred", pool=pool_id, previous=previous, owner=new_owner)


__all__ = [
    "collect_remaining_rewards",
    "initialize_reward",
    "reward_vault_account",
    "set_reward_params",
    "transfer_reward_owner",
]
