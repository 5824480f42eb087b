"""Swap execution.

``swap_internal`` walks the price across initialized ticks, one
``compute_swap_step`` segment at a time, and applies the result to in-memory
copies of the pool and crossed ticks. ``prepare_swap`` wraps it with loading,
transfer-fee handling and the oracle update; ``swap`` adds slippage checks,
token settlement and the final commit to the stores.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import structlog

from clmm.accounting.rewards import update_reward_infos
from clmm.constants import FEE_RATE_DENOMINATOR, Q64
from clmm.engine.settlement import Transfer, execute_transfers
from clmm.errors import (
    InvalidSqrtPriceLimit,
    InvariantViolation,
    OperationDisabled,
    TooLittleOutputReceived,
    TooMuchInputPaid,
    ZeroAmountSpecified,
)
from clmm.ledger.interfaces import Ledger
from clmm.math.accumulator import ModularAccumulator
from clmm.math.checked import add_u64, add_u128, sub_checked, to_u64
from clmm.math.full_math import mul_div_floor, require_fits
from clmm.math.liquidity_math import add_delta
from clmm.math.swap_math import compute_swap_step
from clmm.math.tick_math import (
    MAX_SQRT_PRICE_X64,
    MAX_TICK,
    MIN_SQRT_PRICE_X64,
    MIN_TICK,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
)
from clmm.settings import DEFAULT_SETTINGS, EngineSettings
from clmm.state.config import AmmConfig
from clmm.state.observation import ObservationState
from clmm.state.pool import Pool, PoolStatusBit
from clmm.state.tick import Tick
from clmm.tick_index.context import TickContext
from clmm.tick_index.index import TickIndex

logger = structlog.get_logger()


def default_sqrt_price_limit(zero_for_one: bool) -> int:
    """Loosest valid price limit for a direction."""
    return MIN_SQRT_PRICE_X64 + 1 if zero_for_one else MAX_SQRT_PRICE_X64 - 1


@dataclass
class SwapState:
    """Running totals of the swap loop."""

    amount_specified_remaining: int
    amount_calculated: int
    sqrt_price_x64: int
    tick: int
    fee_growth_global_x64: ModularAccumulator
    liquidity: int
    lp_fee: int = 0
    protocol_fee: int = 0
    fund_fee: int = 0
    total_fee: int = 0


@dataclass(frozen=True)
class SwapResult:
    """Outcome of a swap against a pool.

    All amounts are pool-side: what the input vault receives and what the
    output vault pays, before any token transfer fee.

    Attributes:
        zero_for_one: Direction (token0 in)
        is_base_input: True for exact input
        amount_0: Token0 moved
        amount_1: Token1 moved
        amount_in: Input token received by the pool, trade fee included
        amount_out: Output token paid by the pool
        fee_amount: Trade fee charged, including protocol and fund shares
        protocol_fee: Protocol share of the trade fee
        fund_fee: Fund share of the trade fee
        lp_fee: Share of the trade fee credited to in-range liquidity
        sqrt_price_x64: Price after the swap
        tick: Tick after the swap
        liquidity: Active liquidity after the swap
        crossed_ticks: Initialized ticks crossed, in order
    """

    zero_for_one: bool
    is_base_input: bool
    amount_0: int
    amount_1: int
    amount_in: int
    amount_out: int
    fee_amount: int
    protocol_fee: int
    fund_fee: int
    lp_fee: int
    sqrt_price_x64: int
    tick: int
    liquidity: int
    crossed_ticks: tuple[int, ...] = field(default_factory=tuple)


def _check_price_limit(pool: Pool, sqrt_price_limit_x64: int, zero_for_one: bool) -> None:
    if zero_for_one:
        valid = MIN_SQRT_PRICE_X64 < sqrt_price_limit_x64 < pool.sqrt_price_x64
    else:
        valid = pool.sqrt_price_x64 < sqrt_price_limit_x64 < MAX_SQRT_PRICE_X64
    if not valid:
        raise InvalidSqrtPriceLimit(
            f"Limit {sqrt_price_limit_x64} invalid for "
            f"{'zero_for_one' if zero_for_one else 'one_for_zero'} swap at {pool.sqrt_price_x64}"
        )


def swap_internal(
    config: AmmConfig,
    pool: Pool,
    tick_index: TickIndex,
    load_tick: Callable[[int], Tick],
    amount_specified: int,
    sqrt_price_limit_x64: int,
    zero_for_one: bool,
    is_base_input: bool,
    now: int,
    context: TickContext,
) -> tuple[SwapResult, list[Tick]]:
    """Run the swap loop against a pool.

    ``pool`` is updated in place and the crossed ticks are returned for the
    caller to persist. Both must be copies the caller can discard: an error
    partway through leaves them half-updated.

    Args:
        config: Fee tier of the pool
        pool: Pool copy to update
        tick_index: Pool's tick index
        load_tick: Returns a mutable copy of a tick record
        amount_specified: Input (exact input) or output (exact output) amount
        sqrt_price_limit_x64: Price the swap may not pass
        zero_for_one: True to swap token0 for token1
        is_base_input: True for exact input
        now: Current unix time, for reward accrual
        context: Tick-index words the swap may search

    Returns:
        (SwapResult, crossed tick records)

    Raises:
        ZeroAmountSpecified: If amount_specified is 0
        InvalidSqrtPriceLimit: If the limit is on the wrong side or out of bounds
        InsufficientTickContext: If the swap runs past the supplied words
        InvariantViolation: If the price moved against the swap direction
    """
    if amount_specified == 0:
        raise ZeroAmountSpecified("Swap amount must be non-zero")
    to_u64(amount_specified, "amount_specified")
    _check_price_limit(pool, sqrt_price_limit_x64, zero_for_one)

    update_reward_infos(pool, now)

    sqrt_price_start_x64 = pool.sqrt_price_x64
    tick_start = pool.tick_current
    state = SwapState(
        amount_specified_remaining=amount_specified,
        amount_calculated=0,
        sqrt_price_x64=pool.sqrt_price_x64,
        tick=pool.tick_current,
        fee_growth_global_x64=(
            pool.fee_growth_global_0_x64 if zero_for_one else pool.fee_growth_global_1_x64
        ),
        liquidity=pool.liquidity,
    )
    crossed: dict[int, Tick] = {}

    while state.amount_specified_remaining != 0 and state.sqrt_price_x64 != sqrt_price_limit_x64:
        sqrt_price_step_start_x64 = state.sqrt_price_x64

        tick_next, initialized = tick_index.next_initialized_tick_within_one_word(
            state.tick, zero_for_one, context
        )
        tick_next = max(MIN_TICK, min(MAX_TICK, tick_next))
        sqrt_price_next_x64 = get_sqrt_price_at_tick(tick_next)

        if zero_for_one:
            target_x64 = max(sqrt_price_next_x64, sqrt_price_limit_x64)
        else:
            target_x64 = min(sqrt_price_next_x64, sqrt_price_limit_x64)

        step = compute_swap_step(
            state.sqrt_price_x64,
            target_x64,
            state.liquidity,
            state.amount_specified_remaining,
            config.trade_fee_rate,
            is_base_input,
            zero_for_one,
        )
        state.sqrt_price_x64 = step.sqrt_price_next_x64

        if is_base_input:
            state.amount_specified_remaining = sub_checked(
                state.amount_specified_remaining,
                step.amount_in + step.fee_amount,
                "amount remaining",
            )
            state.amount_calculated = add_u64(
                state.amount_calculated, step.amount_out, "amount calculated"
            )
        else:
            state.amount_specified_remaining = sub_checked(
                state.amount_specified_remaining, step.amount_out, "amount remaining"
            )
            state.amount_calculated = add_u64(
                state.amount_calculated, step.amount_in + step.fee_amount, "amount calculated"
            )

        # Protocol and fund shares come off the trade fee before LPs are credited
        lp_fee = step.fee_amount
        if config.protocol_fee_rate > 0:
            protocol_delta = step.fee_amount * config.protocol_fee_rate // FEE_RATE_DENOMINATOR
            lp_fee -= protocol_delta
            state.protocol_fee = add_u64(state.protocol_fee, protocol_delta, "protocol fee")
        if config.fund_fee_rate > 0:
            fund_delta = step.fee_amount * config.fund_fee_rate // FEE_RATE_DENOMINATOR
            lp_fee = sub_checked(lp_fee, fund_delta, "lp fee")
            state.fund_fee = add_u64(state.fund_fee, fund_delta, "fund fee")
        state.total_fee = add_u64(state.total_fee, step.fee_amount, "total fee")

        if state.liquidity > 0:
            growth_delta = require_fits(
                mul_div_floor(lp_fee, Q64, state.liquidity), "fee growth delta"
            )
            state.fee_growth_global_x64 = state.fee_growth_global_x64.advance(growth_delta)
            state.lp_fee = add_u64(state.lp_fee, lp_fee, "lp fee")

        logger.debug(
            "swap_step",
            pool=pool.pool_id,
            tick_next=tick_next,
            initialized=initialized,
            sqrt_price_x64=state.sqrt_price_x64,
            amount_in=step.amount_in,
            amount_out=step.amount_out,
            fee_amount=step.fee_amount,
            liquidity=state.liquidity,
        )

        if state.sqrt_price_x64 == sqrt_price_next_x64:
            if initialized:
                tick = crossed.get(tick_next) or load_tick(tick_next)
                if zero_for_one:
                    liquidity_net = tick.cross(
                        state.fee_growth_global_x64, pool.fee_growth_global_1_x64, pool.reward_infos
                    )
                    liquidity_net = -liquidity_net
                else:
                    liquidity_net = tick.cross(
                        pool.fee_growth_global_0_x64, state.fee_growth_global_x64, pool.reward_infos
                    )
                crossed[tick_next] = tick
                state.liquidity = add_delta(state.liquidity, liquidity_net)
                logger.debug(
                    "tick_crossed",
                    pool=pool.pool_id,
                    tick=tick_next,
                    liquidity_net=liquidity_net,
                    liquidity=state.liquidity,
                )
            state.tick = tick_next - 1 if zero_for_one else tick_next
        elif state.sqrt_price_x64 != sqrt_price_step_start_x64:
            state.tick = get_tick_at_sqrt_price(state.sqrt_price_x64)

    if zero_for_one:
        moved_correctly = state.tick <= tick_start and state.sqrt_price_x64 <= sqrt_price_start_x64
    else:
        moved_correctly = state.tick >= tick_start and state.sqrt_price_x64 >= sqrt_price_start_x64
    if not moved_correctly:
        raise InvariantViolation(
            "Price moved against the swap direction: "
            f"{sqrt_price_start_x64} -> {state.sqrt_price_x64}"
        )

    amount_consumed = amount_specified - state.amount_specified_remaining
    if zero_for_one == is_base_input:
        amount_0, amount_1 = amount_consumed, state.amount_calculated
    else:
        amount_0, amount_1 = state.amount_calculated, amount_consumed
    amount_in, amount_out = (amount_0, amount_1) if zero_for_one else (amount_1, amount_0)

    if amount_out > 0 and state.sqrt_price_x64 == sqrt_price_start_x64:
        raise InvariantViolation("Swap produced output without moving the price")

    pool.sqrt_price_x64 = state.sqrt_price_x64
    pool.tick_current = state.tick
    pool.liquidity = state.liquidity
    if zero_for_one:
        pool.fee_growth_global_0_x64 = state.fee_growth_global_x64
        pool.protocol_fees_token_0 = add_u64(pool.protocol_fees_token_0, state.protocol_fee)
        pool.fund_fees_token_0 = add_u64(pool.fund_fees_token_0, state.fund_fee)
        pool.swap_in_amount_token_0 = add_u128(pool.swap_in_amount_token_0, amount_in)
        pool.swap_out_amount_token_1 = add_u128(pool.swap_out_amount_token_1, amount_out)
        pool.total_fees_token_0 = add_u64(pool.total_fees_token_0, state.total_fee)
    else:
        pool.fee_growth_global_1_x64 = state.fee_growth_global_x64
        pool.protocol_fees_token_1 = add_u64(pool.protocol_fees_token_1, state.protocol_fee)
        pool.fund_fees_token_1 = add_u64(pool.fund_fees_token_1, state.fund_fee)
        pool.swap_in_amount_token_1 = add_u128(pool.swap_in_amount_token_1, amount_in)
        pool.swap_out_amount_token_0 = add_u128(pool.swap_out_amount_token_0, amount_out)
        pool.total_fees_token_1 = add_u64(pool.total_fees_token_1, state.total_fee)

    result = SwapResult(
        zero_for_one=zero_for_one,
        is_base_input=is_base_input,
        amount_0=amount_0,
        amount_1=amount_1,
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=state.total_fee,
        protocol_fee=state.protocol_fee,
        fund_fee=state.fund_fee,
        lp_fee=state.lp_fee,
        sqrt_price_x64=state.sqrt_price_x64,
        tick=state.tick,
        liquidity=state.liquidity,
        crossed_ticks=tuple(crossed),
    )
    return result, list(crossed.values())


def check_swap_allowed(pool: Pool, now: int) -> None:
    """Raise OperationDisabled if the pool does not accept swaps at ``now``."""
    pool.require_enabled(PoolStatusBit.SWAP)
    if now < pool.open_time:
        raise OperationDisabled(f"Pool {pool.pool_id} opens at {pool.open_time}")


@dataclass
class PreparedSwap:
    """A swap computed against store copies, ready to settle and commit.

    Attributes:
        pool: Updated pool copy
        crossed_ticks: Updated copies of the crossed ticks
        observation: Pool's oracle ring, updated if the tick moved
        result: Pool-side amounts
        paid: Amount the payer sends, transfer fee included
        received: Amount the payer ends up with after the output transfer fee
        transfers: Token movements that settle the swap
    """

    pool: Pool
    crossed_ticks: list[Tick]
    observation: ObservationState
    result: SwapResult
    paid: int
    received: int
    transfers: list[Transfer]


def prepare_swap(
    ledger: Ledger,
    pool_id: str,
    payer: str,
    amount: int,
    sqrt_price_limit_x64: int | None,
    is_base_input: bool,
    zero_for_one: bool,
    now: int,
    context: TickContext | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> PreparedSwap:
    """Run a swap on store copies without moving tokens or saving anything.

    Token transfer fees are handled so the pool sees exactly the swap
    amounts: for exact input the payer's transfer fee on ``amount`` is
    deducted before swapping; for exact output the requested amount is
    grossed up so the payer still receives ``amount`` after the fee.

    Raises:
        OperationDisabled: If swaps are disabled or the pool is not open yet
        ZeroAmountSpecified: If nothing is left to swap after the transfer fee
    """
    pool = ledger.pools.load(pool_id)
    check_swap_allowed(pool, now)
    config = ledger.configs.load(pool.amm_config_index)
    tick_index = ledger.tick_indexes.load(pool_id)
    tokens = ledger.tokens

    mint_in = pool.mint_for(zero_for_one)
    mint_out = pool.mint_for(not zero_for_one)

    if is_base_input:
        amount_specified = amount - tokens.transfer_fee(mint_in, amount)
    else:
        amount_specified = amount + tokens.inverse_transfer_fee(mint_out, amount)
    if amount_specified <= 0:
        raise ZeroAmountSpecified(f"Nothing left to swap after transfer fee on {amount}")

    if sqrt_price_limit_x64 is None:
        sqrt_price_limit_x64 = default_sqrt_price_limit(zero_for_one)
    if context is None:
        context = TickContext.for_swap(
            pool.tick_current, pool.tick_spacing, zero_for_one, settings.swap_tick_words
        )

    tick_before = pool.tick_current
    result, crossed_ticks = swap_internal(
        config,
        pool,
        tick_index,
        lambda tick: ledger.ticks.get_or_init(pool_id, tick),
        amount_specified,
        sqrt_price_limit_x64,
        zero_for_one,
        is_base_input,
        now,
        context,
    )

    # The oracle records the tick the pool sat at until this swap moved it
    observation = ledger.observations.get_or_init(pool_id)
    if result.tick != tick_before:
        observation.update(now, tick_before)

    # Payer gross-up so the vault receives exactly amount_in
    paid = result.amount_in + tokens.inverse_transfer_fee(mint_in, result.amount_in)
    received = result.amount_out - tokens.transfer_fee(mint_out, result.amount_out)
    if paid - tokens.transfer_fee(mint_in, paid) != result.amount_in:
        raise InvariantViolation(
            f"Transfer fee gross-up of {result.amount_in} {mint_in} is inexact"
        )

    return PreparedSwap(
        pool=pool,
        crossed_ticks=crossed_ticks,
        observation=observation,
        result=result,
        paid=paid,
        received=received,
        transfers=[
            Transfer(mint_in, payer, pool.vault_for(zero_for_one), paid),
            Transfer(mint_out, pool.vault_for(not zero_for_one), payer, result.amount_out),
        ],
    )


def commit_swap(ledger: Ledger, prepared: PreparedSwap) -> None:
    """Save the records a prepared swap touched. Tokens must already be settled."""
    for tick in prepared.crossed_ticks:
        ledger.ticks.save(prepared.pool.pool_id, tick)
    ledger.observations.save(prepared.observation)
    ledger.pools.save(prepared.pool)


def swap(
    ledger: Ledger,
    pool_id: str,
    payer: str,
    amount: int,
    other_amount_threshold: int,
    sqrt_price_limit_x64: int | None,
    is_base_input: bool,
    zero_for_one: bool,
    now: int,
    context: TickContext | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> SwapResult:
    """Swap against a pool and settle tokens with the payer.

    Args:
        ledger: Stores and token ledger
        pool_id: Pool to trade against
        payer: Account paying the input and receiving the output
        amount: Amount the payer sends (exact input) or wants (exact output)
        other_amount_threshold: Minimum received (exact input) or maximum paid (exact output)
        sqrt_price_limit_x64: Price the swap may not pass; None for no limit
        is_base_input: True for exact input
        zero_for_one: True to swap token0 for token1
        now: Current unix time
        context: Tick-index words the swap may search; defaults to
            ``settings.swap_tick_words`` words in the swap direction
        settings: Engine settings

    Returns:
        The pool-side SwapResult

    Raises:
        OperationDisabled: If swaps are disabled or the pool is not open yet
        TooLittleOutputReceived: If the payer would receive less than the threshold
        TooMuchInputPaid: If the payer would pay more than the threshold
        InsufficientFunds: If the payer cannot cover the input
    """
    prepared = prepare_swap(
        ledger,
        pool_id,
        payer,
        amount,
        sqrt_price_limit_x64,
        is_base_input,
        zero_for_one,
        now,
        context,
        settings,
    )
    result = prepared.result

    if is_base_input and prepared.received < other_amount_threshold:
        raise TooLittleOutputReceived(
            f"Received {prepared.received}, minimum {other_amount_threshold}"
        )
    if not is_base_input and prepared.paid > other_amount_threshold:
        raise TooMuchInputPaid(f"Paid {prepared.paid}, maximum {other_amount_threshold}")

    execute_transfers(ledger, prepared.transfers)
    commit_swap(ledger, prepared)

    logger.info(
        "swap_executed",
        pool=pool_id,
        payer=payer,
        zero_for_one=zero_for_one,
        is_base_input=is_base_input,
        amount_in=result.amount_in,
        amount_out=result.amount_out,
        fee_amount=result.fee_amount,
        tick=result.tick,
        crossed_ticks=len(result.crossed_ticks),
    )
    return result


__all__ = [
    "PreparedSwap",
    "SwapResult",
    "SwapState",
    "check_swap_allowed",
    "commit_swap",
    "default_sqrt_price_limit",
    "prepare_swap",
    "swap",
    "swap_internal",
]
