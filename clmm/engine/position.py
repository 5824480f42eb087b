"""Liquidity positions.

``modify_liquidity`` is the core: it updates the two boundary ticks, the
pool's active liquidity and the aggregate (protocol) position, and returns the
token amounts the change is worth. The public operations wrap it with
loading, personal-position settlement, slippage checks, token transfers and
the commit to the stores.

Every public operation calls ``update_reward_infos`` before reading reward
growth, so rewards are accrued against the liquidity that earned them.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import structlog

from clmm.accounting.fees import (
    get_fee_growth_inside,
    settle_personal_fees,
    update_protocol_position,
)
from clmm.accounting.rewards import get_reward_growths_inside, update_reward_infos
from clmm.accounting.rewards import update_personal_rewards as accrue_personal_rewards
from clmm.engine.settlement import Transfer, execute_transfers
from clmm.errors import (
    InvalidLiquidity,
    InvalidRange,
    InvariantViolation,
    TooLittleOutputReceived,
    TooMuchInputPaid,
)
from clmm.ledger.interfaces import Ledger
from clmm.math.checked import add_u64, saturating_sub, to_u128
from clmm.math.liquidity_math import (
    add_delta,
    get_delta_amounts_signed,
    get_liquidity_for_single_amount,
)
from clmm.math.tick_math import check_tick, get_sqrt_price_at_tick
from clmm.state.pool import Pool, PoolStatusBit
from clmm.state.position import PersonalPosition, ProtocolPosition
from clmm.state.tick import Tick
from clmm.tick_index.index import TickIndex

logger = structlog.get_logger()


def check_ticks(tick_lower: int, tick_upper: int, tick_spacing: int) -> None:
    """Validate a position range.

    Raises:
        InvalidRange: If tick_lower >= tick_upper
        InvalidTickIndex: If either tick is out of bounds
        InvalidTickSpacing: If either tick is off the spacing grid
    """
    if tick_lower >= tick_upper:
        raise InvalidRange(f"tick_lower {tick_lower} must be below tick_upper {tick_upper}")
    check_tick(tick_lower, tick_spacing)
    check_tick(tick_upper, tick_spacing)


@dataclass(frozen=True)
class LiquidityChange:
    """Result of ``modify_liquidity``.

    Attributes:
        amount_0: Token0 owed to the pool (negative: owed by the pool)
        amount_1: Token1 owed to the pool (negative: owed by the pool)
        flipped_lower: Lower tick changed initialized state
        flipped_upper: Upper tick changed initialized state
    """

    amount_0: int
    amount_1: int
    flipped_lower: bool = False
    flipped_upper: bool = False


def modify_liquidity(
    pool: Pool,
    tick_index: TickIndex,
    tick_lower: Tick,
    tick_upper: Tick,
    position: ProtocolPosition,
    liquidity_delta: int,
) -> LiquidityChange:
    """Apply a liquidity delta to a range.

    A zero delta ("poke") only settles fees and rewards on the position.
    All arguments are updated in place; reward growth must already be
    accrued up to the current time.

    Args:
        pool: Pool copy; active liquidity changes if the range is in range
        tick_index: Tick index copy; bits flip as ticks (un)initialize
        tick_lower: Lower tick record
        tick_upper: Upper tick record
        position: Aggregate position on the range
        liquidity_delta: Signed liquidity change

    Returns:
        The token amounts the change is worth

    Raises:
        InvalidRange: If the range is invalid
        InvalidLiquidity: If poking a position with no liquidity
        LiquiditySubflow: If removing more liquidity than the range holds
    """
    check_ticks(tick_lower.tick, tick_upper.tick, pool.tick_spacing)

    flipped_lower = flipped_upper = False
    if liquidity_delta != 0:
        flipped_lower = tick_lower.update(
            pool.tick_current,
            liquidity_delta,
            pool.fee_growth_global_0_x64,
            pool.fee_growth_global_1_x64,
            False,
            pool.reward_infos,
        )
        flipped_upper = tick_upper.update(
            pool.tick_current,
            liquidity_delta,
            pool.fee_growth_global_0_x64,
            pool.fee_growth_global_1_x64,
            True,
            pool.reward_infos,
        )
        if tick_lower.tick <= pool.tick_current < tick_upper.tick:
            pool.liquidity = add_delta(pool.liquidity, liquidity_delta)

    fee_growth_inside_0, fee_growth_inside_1 = get_fee_growth_inside(
        tick_lower,
        tick_upper,
        pool.tick_current,
        pool.fee_growth_global_0_x64,
        pool.fee_growth_global_1_x64,
    )
    reward_growths_inside = get_reward_growths_inside(
        tick_lower, tick_upper, pool.tick_current, pool.reward_infos
    )
    update_protocol_position(
        position, liquidity_delta, fee_growth_inside_0, fee_growth_inside_1, reward_growths_inside
    )

    if liquidity_delta == 0:
        return LiquidityChange(amount_0=0, amount_1=0)

    if flipped_lower:
        tick_index.flip_tick(tick_lower.tick)
    if flipped_upper:
        tick_index.flip_tick(tick_upper.tick)

    amount_0, amount_1 = get_delta_amounts_signed(
        pool.tick_current,
        pool.sqrt_price_x64,
        get_sqrt_price_at_tick(tick_lower.tick),
        get_sqrt_price_at_tick(tick_upper.tick),
        tick_lower.tick,
        tick_upper.tick,
        liquidity_delta,
    )

    # Ticks no longer referenced by any position start from scratch next time
    if liquidity_delta < 0:
        if flipped_lower:
            tick_lower.clear()
        if flipped_upper:
            tick_upper.clear()

    return LiquidityChange(
        amount_0=amount_0,
        amount_1=amount_1,
        flipped_lower=flipped_lower,
        flipped_upper=flipped_upper,
    )


# =============================================================================
# Position operations
# =============================================================================


@dataclass(frozen=True)
class PositionChange:
    """Tokens moved by a position operation (pool-side amounts).

    Attributes:
        position_id: Personal position
        liquidity: Liquidity added or removed
        amount_0: Token0 deposited (increase) or withdrawn (decrease)
        amount_1: Token1 deposited (increase) or withdrawn (decrease)
        fees_0: Token0 fees paid out
        fees_1: Token1 fees paid out
        rewards: Reward tokens paid out, one entry per reward slot
    """

    position_id: str
    liquidity: int = 0
    amount_0: int = 0
    amount_1: int = 0
    fees_0: int = 0
    fees_1: int = 0
    rewards: tuple[int, ...] = field(default_factory=tuple)


@dataclass
class _PositionRecords:
    """Copies of every record a position operation touches."""

    pool: Pool
    tick_index: TickIndex
    tick_lower: Tick
    tick_upper: Tick
    protocol: ProtocolPosition
    personal: PersonalPosition

    def commit(self, ledger: Ledger) -> None:
        pool_id = self.pool.pool_id
        ledger.ticks.save(pool_id, self.tick_lower)
        ledger.ticks.save(pool_id, self.tick_upper)
        ledger.tick_indexes.save(pool_id, self.tick_index)
        ledger.positions.save(self.protocol)
        ledger.personal_positions.save(self.personal)
        ledger.pools.save(self.pool)


def _load_records(ledger: Ledger, personal: PersonalPosition, now: int) -> _PositionRecords:
    pool = ledger.pools.load(personal.pool_id)
    update_reward_infos(pool, now)
    return _PositionRecords(
        pool=pool,
        tick_index=ledger.tick_indexes.load(pool.pool_id),
        tick_lower=ledger.ticks.get_or_init(pool.pool_id, personal.tick_lower),
        tick_upper=ledger.ticks.get_or_init(pool.pool_id, personal.tick_upper),
        protocol=ledger.positions.get_or_init(
            pool.pool_id, personal.tick_lower, personal.tick_upper
        ),
        personal=personal,
    )


def _apply(records: _PositionRecords, liquidity_delta: int) -> LiquidityChange:
    """Modify liquidity and settle the personal position against the result."""
    if liquidity_delta == 0 and records.protocol.liquidity == 0:
        # Nothing has accrued on an empty range since it was last settled
        return LiquidityChange(amount_0=0, amount_1=0)

    change = modify_liquidity(
        records.pool,
        records.tick_index,
        records.tick_lower,
        records.tick_upper,
        records.protocol,
        liquidity_delta,
    )
    personal = records.personal
    settle_personal_fees(personal, records.protocol)
    accrue_personal_rewards(personal, records.protocol.reward_growth_inside)
    personal.liquidity = add_delta(personal.liquidity, liquidity_delta)
    return change


def _deposit_transfers(
    ledger: Ledger,
    records: _PositionRecords,
    payer: str,
    amount_0: int,
    amount_1: int,
    amount_0_max: int,
    amount_1_max: int,
) -> list[Transfer]:
    pool = records.pool
    transfers = []
    deposits = ((True, amount_0, amount_0_max), (False, amount_1, amount_1_max))
    for zero, amount, amount_max in deposits:
        mint = pool.mint_for(zero)
        paid = amount + ledger.tokens.inverse_transfer_fee(mint, amount)
        if paid > amount_max:
            raise TooMuchInputPaid(f"Deposit needs {paid} {mint}, maximum {amount_max}")
        if paid - ledger.tokens.transfer_fee(mint, paid) != amount:
            raise InvariantViolation(f"Transfer fee gross-up of {amount} {mint} is inexact")
        if paid > 0:
            transfers.append(Transfer(mint, payer, pool.vault_for(zero), paid))
    return transfers


def _fee_transfers(records: _PositionRecords, recipient: str) -> tuple[list[Transfer], int, int]:
    """Pay out owed fees, if fee collection is enabled."""
    pool, personal, protocol = records.pool, records.personal, records.protocol
    if not pool.get_status_by_bit(PoolStatusBit.COLLECT_FEE):
        return [], 0, 0

    fees_0, fees_1 = personal.token_fees_owed_0, personal.token_fees_owed_1
    personal.token_fees_owed_0 = 0
    personal.token_fees_owed_1 = 0
    protocol.token_fees_owed_0 = saturating_sub(protocol.token_fees_owed_0, fees_0)
    protocol.token_fees_owed_1 = saturating_sub(protocol.token_fees_owed_1, fees_1)
    pool.total_fees_claimed_token_0 = add_u64(pool.total_fees_claimed_token_0, fees_0)
    pool.total_fees_claimed_token_1 = add_u64(pool.total_fees_claimed_token_1, fees_1)

    transfers = []
    if fees_0:
        transfers.append(Transfer(pool.token_mint_0, pool.token_vault_0, recipient, fees_0))
    if fees_1:
        transfers.append(Transfer(pool.token_mint_1, pool.token_vault_1, recipient, fees_1))
    return transfers, fees_0, fees_1


def _reward_transfers(
    ledger: Ledger, records: _PositionRecords, recipient: str
) -> tuple[list[Transfer], tuple[int, ...]]:
    """Pay out owed rewards up to each reward vault's balance."""
    pool, personal = records.pool, records.personal
    amounts = [0] * len(pool.reward_infos)
    if not pool.get_status_by_bit(PoolStatusBit.COLLECT_REWARD):
        return [], tuple(amounts)

    transfers = []
    for i, (info, owed) in enumerate(zip(pool.reward_infos, personal.reward_infos, strict=True)):
        if not info.initialized() or owed.reward_amount_owed == 0:
            continue
        amount = min(
            owed.reward_amount_owed, ledger.tokens.balance(info.token_vault, info.token_mint)
        )
        if amount == 0:
            continue
        owed.reward_amount_owed -= amount
        info.reward_claimed = add_u64(info.reward_claimed, amount, "reward claimed")
        amounts[i] = amount
        transfers.append(Transfer(info.token_mint, info.token_vault, recipient, amount))
    return transfers, tuple(amounts)


def _liquidity_from_amount(
    ledger: Ledger,
    pool: Pool,
    tick_lower: int,
    tick_upper: int,
    amount_0_max: int,
    amount_1_max: int,
    base_flag: bool | None,
) -> int:
    if base_flag is None:
        raise InvalidLiquidity("Liquidity is 0 and no base token was given")
    amount = amount_0_max if base_flag else amount_1_max
    mint = pool.mint_for(base_flag)
    net_amount = amount - ledger.tokens.transfer_fee(mint, amount)
    liquidity = get_liquidity_for_single_amount(
        pool.sqrt_price_x64,
        get_sqrt_price_at_tick(tick_lower),
        get_sqrt_price_at_tick(tick_upper),
        net_amount,
        base_flag,
    )
    if liquidity == 0:
        raise InvalidLiquidity(f"{amount} {mint} adds no liquidity to [{tick_lower}, {tick_upper})")
    return liquidity


def _add_liquidity(
    ledger: Ledger,
    personal: PersonalPosition,
    liquidity: int,
    amount_0_max: int,
    amount_1_max: int,
    now: int,
    base_flag: bool | None,
) -> PositionChange:
    records = _load_records(ledger, personal, now)
    records.pool.require_enabled(PoolStatusBit.OPEN_POSITION_OR_INCREASE_LIQUIDITY)
    check_ticks(personal.tick_lower, personal.tick_upper, records.pool.tick_spacing)

    if liquidity == 0:
        liquidity = _liquidity_from_amount(
            ledger,
            records.pool,
            personal.tick_lower,
            personal.tick_upper,
            amount_0_max,
            amount_1_max,
            base_flag,
        )
    to_u128(liquidity, "liquidity")

    change = _apply(records, liquidity)
    transfers = _deposit_transfers(
        ledger,
        records,
        personal.owner,
        change.amount_0,
        change.amount_1,
        amount_0_max,
        amount_1_max,
    )
    execute_transfers(ledger, transfers)
    records.commit(ledger)

    return PositionChange(
        position_id=personal.position_id,
        liquidity=liquidity,
        amount_0=change.amount_0,
        amount_1=change.amount_1,
    )


def open_position(
    ledger: Ledger,
    pool_id: str,
    owner: str,
    tick_lower: int,
    tick_upper: int,
    liquidity: int,
    amount_0_max: int,
    amount_1_max: int,
    now: int,
    base_flag: bool | None = None,
) -> PositionChange:
    """Open a new position and deposit its initial liquidity.

    With ``liquidity == 0`` the liquidity is derived from one token amount:
    ``amount_0_max`` if ``base_flag`` is True, ``amount_1_max`` if False.

    Raises:
        InvalidLiquidity: If the owner already holds this range, or no liquidity results
        InvalidRange: If the range is invalid
        OperationDisabled: If opening positions is disabled on the pool
        TooMuchInputPaid: If a deposit would exceed its maximum
        InsufficientFunds: If the owner cannot cover the deposit
    """
    personal = ledger.personal_positions.get_or_init(pool_id, owner, tick_lower, tick_upper)
    if ledger.personal_positions.exists(personal.position_id):
        raise InvalidLiquidity(f"Position {personal.position_id} is already open")

    result = _add_liquidity(
        ledger, personal, liquidity, amount_0_max, amount_1_max, now, base_flag
    )
    logger.info(
        "position_opened",
        pool=pool_id,
        position=personal.position_id,
        owner=owner,
        tick_lower=tick_lower,
        tick_upper=tick_upper,
        liquidity=result.liquidity,
        amount_0=result.amount_0,
        amount_1=result.amount_1,
    )
    return result


def increase_liquidity(
    ledger: Ledger,
    position_id: str,
    liquidity: int,
    amount_0_max: int,
    amount_1_max: int,
    now: int,
    base_flag: bool | None = None,
) -> PositionChange:
    """Add liquidity to an existing position, paid by its owner.

    Fees and rewards accrued so far are settled first, against the old
    liquidity.
    """
    personal = ledger.personal_positions.load(position_id)
    result = _add_liquidity(
        ledger, personal, liquidity, amount_0_max, amount_1_max, now, base_flag
    )
    logger.info(
        "liquidity_increased",
        position=position_id,
        liquidity=result.liquidity,
        amount_0=result.amount_0,
        amount_1=result.amount_1,
    )
    return result


def decrease_liquidity(
    ledger: Ledger,
    position_id: str,
    liquidity: int,
    amount_0_min: int,
    amount_1_min: int,
    now: int,
    recipient: str | None = None,
) -> PositionChange:
    """Remove liquidity and pay out the tokens together with owed fees and rewards.

    Fees and rewards are only paid while their collection is enabled on the
    pool; otherwise they stay owed. Slippage bounds apply to the withdrawn
    liquidity as received after transfer fees, not to fees or rewards.

    Raises:
        InvalidLiquidity: If removing more than the position holds
        OperationDisabled: If decreasing liquidity is disabled on the pool
        TooLittleOutputReceived: If a withdrawal would be below its minimum
    """
    personal = ledger.personal_positions.load(position_id)
    if liquidity > personal.liquidity:
        raise InvalidLiquidity(
            f"Position {position_id} holds {personal.liquidity}, cannot remove {liquidity}"
        )
    recipient = recipient or personal.owner

    records = _load_records(ledger, personal, now)
    pool = records.pool
    if liquidity > 0:
        pool.require_enabled(PoolStatusBit.DECREASE_LIQUIDITY)

    change = _apply(records, -liquidity)
    amount_0, amount_1 = -change.amount_0, -change.amount_1

    transfers = []
    withdrawals = ((True, amount_0, amount_0_min), (False, amount_1, amount_1_min))
    for zero, amount, amount_min in withdrawals:
        mint = pool.mint_for(zero)
        received = amount - ledger.tokens.transfer_fee(mint, amount)
        if received < amount_min:
            raise TooLittleOutputReceived(
                f"Withdrawal yields {received} {mint}, minimum {amount_min}"
            )
        if amount > 0:
            transfers.append(Transfer(mint, pool.vault_for(zero), recipient, amount))

    fee_transfers, fees_0, fees_1 = _fee_transfers(records, recipient)
    reward_transfers, rewards = _reward_transfers(ledger, records, recipient)
    execute_transfers(ledger, transfers + fee_transfers + reward_transfers)
    records.commit(ledger)

    logger.info(
        "liquidity_decreased",
        position=position_id,
        liquidity=liquidity,
        amount_0=amount_0,
        amount_1=amount_1,
        fees_0=fees_0,
        fees_1=fees_1,
        rewards=rewards,
    )
    return PositionChange(
        position_id=position_id,
        liquidity=liquidity,
        amount_0=amount_0,
        amount_1=amount_1,
        fees_0=fees_0,
        fees_1=fees_1,
        rewards=rewards,
    )


def collect_fees(
    ledger: Ledger, position_id: str, now: int, recipient: str | None = None
) -> PositionChange:
    """Settle and pay out a position's fees.

    Raises:
        OperationDisabled: If fee collection is disabled on the pool
    """
    personal = ledger.personal_positions.load(position_id)
    recipient = recipient or personal.owner
    records = _load_records(ledger, personal, now)
    records.pool.require_enabled(PoolStatusBit.COLLECT_FEE)

    _apply(records, 0)
    transfers, fees_0, fees_1 = _fee_transfers(records, recipient)
    execute_transfers(ledger, transfers)
    records.commit(ledger)

    logger.info("fees_collected", position=position_id, fees_0=fees_0, fees_1=fees_1)
    return PositionChange(position_id=position_id, fees_0=fees_0, fees_1=fees_1)


def collect_rewards(
    ledger: Ledger, position_id: str, now: int, recipient: str | None = None
) -> PositionChange:
    """Settle and pay out a position's rewards, capped by each vault's balance.

    Raises:
        OperationDisabled: If reward collection is disabled on the pool
    """
    personal = ledger.personal_positions.load(position_id)
    recipient = recipient or personal.owner
    records = _load_records(ledger, personal, now)
    records.pool.require_enabled(PoolStatusBit.COLLECT_REWARD)

    _apply(records, 0)
    transfers, rewards = _reward_transfers(ledger, records, recipient)
    execute_transfers(ledger, transfers)
    records.commit(ledger)

    logger.info("rewards_collected", position=position_id, rewards=rewards)
    return PositionChange(position_id=position_id, rewards=rewards)


def update_personal_rewards(ledger: Ledger, position_id: str, now: int) -> PersonalPosition:
    """Accrue fees and rewards on a position without paying anything out.

    Returns:
        The updated position
    """
    personal = ledger.personal_positions.load(position_id)
    records = _load_records(ledger, personal, now)
    _apply(records, 0)
    records.commit(ledger)
    logger.debug("personal_rewards_updated", position=position_id)
    return records.personal


def close_position(ledger: Ledger, position_id: str) -> None:
    """Delete an empty position.

    Raises:
        InvalidLiquidity: If the position still holds liquidity or is owed fees or rewards
    """
    personal = ledger.personal_positions.load(position_id)
    if personal.liquidity != 0 or personal.has_owed():
        raise InvalidLiquidity(f"Position {position_id} still holds liquidity or owed tokens")
    ledger.personal_positions.delete(position_id)
    logger.info("position_closed", position=position_id)


__all__ = [
    "LiquidityChange",
    "PositionChange",
    "check_ticks",
    "modify_liquidity",
    "open_position",
    "increase_liquidity",
    "decrease_liquidity",
    "collect_fees",
    "collect_rewards",
    "update_personal_rewards",
    "close_position",
]
