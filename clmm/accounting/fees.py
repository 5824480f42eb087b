"""Fee growth inside a range and position fee settlement.

Global fee growth is split at every initialized tick into "outside" values,
so the growth accrued strictly inside any range is

    inside = global − below(tick_lower) − above(tick_upper)

with all arithmetic done modulo 2^128. A position's fees since its last
settlement are then ``(inside_now − inside_last) · liquidity / Q64``.
"""

from __future__ import annotations

from clmm.constants import Q64
from clmm.errors import InvalidLiquidity
from clmm.math.accumulator import ModularAccumulator
from clmm.math.checked import add_u64, to_underflow_u64
from clmm.math.full_math import U256_BITS, mul_div_floor, require_fits
from clmm.math.liquidity_math import add_delta
from clmm.state.position import PersonalPosition, ProtocolPosition
from clmm.state.tick import Tick


def growth_inside(
    global_x64: ModularAccumulator,
    lower_outside_x64: ModularAccumulator,
    upper_outside_x64: ModularAccumulator,
    tick_lower: int,
    tick_upper: int,
    tick_current: int,
) -> ModularAccumulator:
    """Growth accrued inside [tick_lower, tick_upper) for one counter."""
    if tick_current >= tick_lower:
        below = lower_outside_x64
    else:
        below = global_x64 - lower_outside_x64

    if tick_current < tick_upper:
        above = upper_outside_x64
    else:
        above = global_x64 - upper_outside_x64

    return global_x64 - below - above


def get_fee_growth_inside(
    tick_lower: Tick,
    tick_upper: Tick,
    tick_current: int,
    fee_growth_global_0_x64: ModularAccumulator,
    fee_growth_global_1_x64: ModularAccumulator,
) -> tuple[ModularAccumulator, ModularAccumulator]:
    """Token0 and token1 fee growth inside a tick range.

    Args:
        tick_lower: Lower tick record
        tick_upper: Upper tick record
        tick_current: Pool's current tick
        fee_growth_global_0_x64: Global token0 fee growth
        fee_growth_global_1_x64: Global token1 fee growth

    Returns:
        (fee_growth_inside_0, fee_growth_inside_1)
    """
    inside_0 = growth_inside(
        fee_growth_global_0_x64,
        tick_lower.fee_growth_outside_0_x64,
        tick_upper.fee_growth_outside_0_x64,
        tick_lower.tick,
        tick_upper.tick,
        tick_current,
    )
    inside_1 = growth_inside(
        fee_growth_global_1_x64,
        tick_lower.fee_growth_outside_1_x64,
        tick_upper.fee_growth_outside_1_x64,
        tick_lower.tick,
        tick_upper.tick,
        tick_current,
    )
    return inside_0, inside_1


def tokens_owed_delta(
    growth_inside_now: ModularAccumulator,
    growth_inside_last: ModularAccumulator,
    liquidity: int,
) -> int:
    """Tokens earned by ``liquidity`` between two readings of growth inside.

    A wrapped (huge) product clamps to zero instead of minting tokens.
    """
    growth_delta = (growth_inside_now - growth_inside_last).value
    return to_underflow_u64(
        require_fits(mul_div_floor(growth_delta, liquidity, Q64, U256_BITS), "tokens owed delta")
    )


def calculate_latest_token_fees(
    last_total_fees: int,
    fee_growth_inside_last_x64: ModularAccumulator,
    fee_growth_inside_latest_x64: ModularAccumulator,
    liquidity: int,
) -> int:
    """Owed fees after settling the growth since the last snapshot."""
    return add_u64(
        last_total_fees,
        tokens_owed_delta(fee_growth_inside_latest_x64, fee_growth_inside_last_x64, liquidity),
        "token fees owed",
    )


def update_protocol_position(
    position: ProtocolPosition,
    liquidity_delta: int,
    fee_growth_inside_0_x64: ModularAccumulator,
    fee_growth_inside_1_x64: ModularAccumulator,
    reward_growths_inside: list[ModularAccumulator],
) -> None:
    """Settle fees on the aggregate position, then apply the liquidity delta.

    Fees are weighted by the liquidity held *before* this change.

    Raises:
        InvalidLiquidity: If poking (delta 0) a position with no liquidity
        LiquiditySubflow: If removing more liquidity than the position holds
    """
    if position.liquidity == 0 and liquidity_delta == 0:
        raise InvalidLiquidity(
            f"Cannot poke empty position [{position.tick_lower}, {position.tick_upper})"
        )

    tokens_owed_0 = tokens_owed_delta(
        fee_growth_inside_0_x64, position.fee_growth_inside_0_last_x64, position.liquidity
    )
    tokens_owed_1 = tokens_owed_delta(
        fee_growth_inside_1_x64, position.fee_growth_inside_1_last_x64, position.liquidity
    )

    liquidity_next = add_delta(position.liquidity, liquidity_delta)
    token_fees_owed_0 = add_u64(position.token_fees_owed_0, tokens_owed_0, "token_fees_owed_0")
    token_fees_owed_1 = add_u64(position.token_fees_owed_1, tokens_owed_1, "token_fees_owed_1")

    position.liquidity = liquidity_next
    position.fee_growth_inside_0_last_x64 = fee_growth_inside_0_x64
    position.fee_growth_inside_1_last_x64 = fee_growth_inside_1_x64
    position.token_fees_owed_0 = token_fees_owed_0
    position.token_fees_owed_1 = token_fees_owed_1
    position.reward_growth_inside = list(reward_growths_inside)


def settle_personal_fees(personal: PersonalPosition, protocol: ProtocolPosition) -> None:
    """Accrue fees on a personal position up to the protocol position's snapshot.

    Must run before the personal position's liquidity changes.
    """
    personal.token_fees_owed_0 = calculate_latest_token_fees(
        personal.token_fees_owed_0,
        personal.fee_growth_inside_0_last_x64,
        protocol.fee_growth_inside_0_last_x64,
        personal.liquidity,
    )
    personal.token_fees_owed_1 = calculate_latest_token_fees(
        personal.token_fees_owed_1,
        personal.fee_growth_inside_1_last_x64,
        protocol.fee_growth_inside_1_last_x64,
        personal.liquidity,
    )
    personal.fee_growth_inside_0_last_x64 = protocol.fee_growth_inside_0_last_x64
    personal.fee_growth_inside_1_last_x64 = protocol.fee_growth_inside_1_last_x64


__all__ = [
    "growth_inside",
    "get_fee_growth_inside",
    "tokens_owed_delta",
    "calculate_latest_token_fees",
    "update_protocol_position",
    "settle_personal_fees",
]
