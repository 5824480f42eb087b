"""Time-based reward emission and per-position reward settlement.

Each reward slot emits ``emissions_per_second_x64`` tokens per second (Q64.64)
between ``open_time`` and ``end_time``, shared by whatever liquidity is active
at the time. ``update_reward_infos`` must run before anything reads reward
growth, so that growth is accrued against the liquidity that earned it.
"""

from __future__ import annotations

import structlog

from clmm.accounting.fees import growth_inside, tokens_owed_delta
from clmm.constants import (
    INCREASE_EMISSIONS_PERIOD,
    MAX_REWARD_PERIOD,
    MIN_REWARD_PERIOD,
    Q64,
    REWARD_NUM,
)
from clmm.errors import (
    RewardEmissionsUpdateNotAllowed,
    RewardIndexUnavailable,
    RewardNotInitialized,
    RewardPeriodInvalid,
    RewardScheduleInvalid,
    RewardTokenAlreadyInUse,
)
from clmm.math.accumulator import ModularAccumulator
from clmm.math.checked import add_u64, sub_checked, to_u64
from clmm.math.full_math import U256_BITS, mul_div_ceil, mul_div_floor, require_fits
from clmm.state.pool import Pool, RewardInfo, RewardState
from clmm.state.position import PersonalPosition
from clmm.state.tick import Tick

logger = structlog.get_logger()


# =============================================================================
# Emission
# =============================================================================


def update_reward_infos(pool: Pool, now: int) -> list[RewardInfo]:
    """Accrue reward growth on every open slot up to ``now``.

    Slots that are uninitialized or not yet open are skipped. Growth only
    accrues while the pool has active liquidity; time with zero liquidity is
    still consumed (its emissions are never distributed).

    Args:
        pool: Pool to update in place
        now: Current unix time

    Returns:
        The pool's reward slots after the update
    """
    for index, info in enumerate(pool.reward_infos):
        if not info.initialized():
            continue
        if now <= info.open_time:
            continue

        latest_update_time = min(now, info.end_time)
        if latest_update_time < info.last_update_time:
            # Clock went backwards relative to the last update; nothing to accrue
            continue

        if pool.liquidity != 0:
            time_delta = latest_update_time - info.last_update_time
            growth_delta = require_fits(
                mul_div_floor(time_delta, info.emissions_per_second_x64, pool.liquidity),
                f"reward {index} growth delta",
            )
            info.reward_growth_global_x64 = info.reward_growth_global_x64.advance(growth_delta)
            emitted = require_fits(
                mul_div_floor(time_delta, info.emissions_per_second_x64, Q64, U256_BITS),
                "reward emitted",
            )
            info.reward_total_emissioned = add_u64(
                info.reward_total_emissioned, to_u64(emitted, "reward emitted"), "reward emitted"
            )
            logger.debug(
                "reward_growth_accrued",
                pool=pool.pool_id,
                reward_index=index,
                time_delta=time_delta,
                growth_delta=growth_delta,
                total_emissioned=info.reward_total_emissioned,
            )

        info.last_update_time = latest_update_time
        if info.open_time <= latest_update_time < info.end_time:
            info.reward_state = RewardState.OPENING
        elif latest_update_time == info.end_time:
            info.reward_state = RewardState.ENDED

    return pool.reward_infos


def get_reward_growths_inside(
    tick_lower: Tick,
    tick_upper: Tick,
    tick_current: int,
    reward_infos: list[RewardInfo],
) -> list[ModularAccumulator]:
    """Reward growth inside a tick range, one entry per slot.

    Uninitialized slots report zero.
    """
    growths = []
    for i, info in enumerate(reward_infos):
        if not info.initialized():
            growths.append(ModularAccumulator.zero())
            continue
        growths.append(
            growth_inside(
                info.reward_growth_global_x64,
                tick_lower.reward_growths_outside_x64[i],
                tick_upper.reward_growths_outside_x64[i],
                tick_lower.tick,
                tick_upper.tick,
                tick_current,
            )
        )
    return growths


def update_personal_rewards(
    personal: PersonalPosition, reward_growths_inside: list[ModularAccumulator]
) -> None:
    """Accrue owed rewards on a personal position and advance its snapshots.

    Must run before the position's liquidity changes.
    """
    for info, growth_now in zip(personal.reward_infos, reward_growths_inside, strict=True):
        owed_delta = tokens_owed_delta(growth_now, info.growth_inside_last_x64, personal.liquidity)
        info.reward_amount_owed = add_u64(info.reward_amount_owed, owed_delta, "reward owed")
        info.growth_inside_last_x64 = growth_now


# =============================================================================
# Schedules
# =============================================================================


def reward_amount_for_period(duration: int, emissions_per_second_x64: int, round_up: bool) -> int:
    """Tokens emitted over ``duration`` seconds at the given Q64.64 rate."""
    if round_up:
        amount = mul_div_ceil(duration, emissions_per_second_x64, Q64, U256_BITS)
    else:
        amount = mul_div_floor(duration, emissions_per_second_x64, Q64, U256_BITS)
    return to_u64(require_fits(amount, "reward amount"), "reward amount")


def _check_period(open_time: int, end_time: int) -> None:
    period = end_time - open_time
    if period < MIN_REWARD_PERIOD or period > MAX_REWARD_PERIOD:
        raise RewardPeriodInvalid(
            f"Reward period {period}s outside [{MIN_REWARD_PERIOD}, {MAX_REWARD_PERIOD}]"
        )


def check_initialize_params(
    open_time: int, end_time: int, emissions_per_second_x64: int, now: int
) -> None:
    """Validate a new reward schedule.

    Raises:
        RewardScheduleInvalid: If the schedule is empty, in the past, or has zero emissions
        RewardPeriodInvalid: If the period is outside the allowed bounds
    """
    if open_time >= end_time or open_time < now or end_time < now:
        raise RewardScheduleInvalid(
            f"Invalid reward window [{open_time}, {end_time}) at time {now}"
        )
    if emissions_per_second_x64 == 0:
        raise RewardScheduleInvalid("Reward emissions must be positive")
    _check_period(open_time, end_time)


def get_reward_info(pool: Pool, reward_index: int) -> RewardInfo:
    """Look up an initialized reward slot.

    Raises:
        RewardIndexUnavailable: If the index is out of range
        RewardNotInitialized: If the slot is unused
    """
    if not 0 <= reward_index < REWARD_NUM:
        raise RewardIndexUnavailable(f"Reward index {reward_index} outside [0, {REWARD_NUM})")
    info = pool.reward_infos[reward_index]
    if not info.initialized():
        raise RewardNotInitialized(
            f"Reward {reward_index} on pool {pool.pool_id} is not initialized"
        )
    return info


def initialize_reward_slot(
    pool: Pool,
    open_time: int,
    end_time: int,
    emissions_per_second_x64: int,
    token_mint: str,
    token_vault: str,
    authority: str,
) -> int:
    """Claim the lowest free reward slot for a new schedule.

    Returns:
        Index of the slot

    Raises:
        RewardIndexUnavailable: If every slot is in use
        RewardTokenAlreadyInUse: If another slot already emits token_mint
    """
    lowest_index = next(
        (i for i, info in enumerate(pool.reward_infos) if not info.initialized()), None
    )
    if lowest_index is None:
        raise RewardIndexUnavailable(f"All {REWARD_NUM} reward slots in use on pool {pool.pool_id}")
    for info in pool.reward_infos[:lowest_index]:
        if info.token_mint == token_mint:
            raise RewardTokenAlreadyInUse(f"Pool {pool.pool_id} already emits {token_mint}")

    pool.reward_infos[lowest_index] = RewardInfo(
        reward_state=RewardState.INITIALIZED,
        open_time=open_time,
        end_time=end_time,
        last_update_time=open_time,
        emissions_per_second_x64=emissions_per_second_x64,
        token_mint=token_mint,
        token_vault=token_vault,
        authority=authority,
    )
    return lowest_index


def normal_update(
    info: RewardInfo,
    now: int,
    emissions_per_second_x64: int,
    open_time: int,
    end_time: int,
) -> int:
    """Apply an authority's schedule change to a reward slot.

    An ended reward can be restarted with a fresh schedule. A running reward
    may have its emissions raised (only within the final
    INCREASE_EMISSIONS_PERIOD) and/or its end time extended; pass 0 to leave
    either unchanged.

    Must run after ``update_reward_infos(pool, now)``.

    Returns:
        Additional funding (u64) the authority must deposit

    Raises:
        RewardScheduleInvalid: If the reward has not opened or the parameters are inconsistent
        RewardPeriodInvalid: If a restarted period or an extension is out of bounds
        RewardEmissionsUpdateNotAllowed: If raising emissions too early
    """
    if now <= info.open_time:
        raise RewardScheduleInvalid("Reward has not opened yet")

    if info.last_update_time == info.end_time:
        if open_time <= now:
            raise RewardScheduleInvalid(f"Restarted reward must open after {now}")
        if emissions_per_second_x64 == 0:
            raise RewardScheduleInvalid("Reward emissions must be positive")
        if end_time <= open_time:
            raise RewardScheduleInvalid(f"Invalid reward window [{open_time}, {end_time})")
        _check_period(open_time, end_time)
        funding = reward_amount_for_period(end_time - open_time, emissions_per_second_x64, True)
        info.open_time = open_time
        info.end_time = end_time
        info.last_update_time = open_time
        info.emissions_per_second_x64 = emissions_per_second_x64
        info.reward_state = RewardState.INITIALIZED
        return funding

    if emissions_per_second_x64 == 0 and end_time == 0:
        raise RewardScheduleInvalid("Nothing to update")
    if emissions_per_second_x64 > 0:
        if emissions_per_second_x64 <= info.emissions_per_second_x64:
            raise RewardScheduleInvalid(
                f"Emissions can only be raised above {info.emissions_per_second_x64}"
            )
        if info.end_time - now > INCREASE_EMISSIONS_PERIOD:
            raise RewardEmissionsUpdateNotAllowed(
                f"Emissions can only be raised in the last {INCREASE_EMISSIONS_PERIOD}s"
            )
    if end_time > 0:
        if end_time <= info.end_time:
            raise RewardScheduleInvalid(
                f"Reward end time {end_time} does not extend {info.end_time}"
            )
        _check_period(info.end_time, end_time)

    funding = 0
    if emissions_per_second_x64 > 0:
        emission_diff_x64 = emissions_per_second_x64 - info.emissions_per_second_x64
        funding = reward_amount_for_period(
            info.end_time - info.last_update_time, emission_diff_x64, False
        )
        info.emissions_per_second_x64 = emissions_per_second_x64

    if end_time > 0:
        funding = add_u64(
            funding,
            reward_amount_for_period(
                end_time - info.end_time, info.emissions_per_second_x64, False
            ),
            "reward funding",
        )
        info.end_time = end_time

    return funding


def admin_update(
    info: RewardInfo,
    now: int,
    emissions_per_second_x64: int,
    end_time: int,
) -> int:
    """Apply an admin's schedule change to a running reward slot.

    Unlike ``normal_update`` the admin may lower emissions or change them at
    any point before the end. Funding is only required for the part of the
    new obligation that exceeds the old one.

    Must run after ``update_reward_infos(pool, now)``.

    Returns:
        Additional funding (u64) the admin must deposit

    Raises:
        RewardScheduleInvalid: If the reward already ended or the parameters are inconsistent
    """
    if info.last_update_time == info.end_time:
        raise RewardScheduleInvalid("Reward already ended; restart it with a normal update")
    if emissions_per_second_x64 == 0:
        raise RewardScheduleInvalid("Reward emissions must be positive")
    if end_time <= max(now, info.last_update_time):
        raise RewardScheduleInvalid(f"Reward end time {end_time} is in the past")
    if end_time - info.open_time > MAX_REWARD_PERIOD:
        raise RewardPeriodInvalid(f"Reward period exceeds {MAX_REWARD_PERIOD}s")

    start = max(info.last_update_time, info.open_time)
    old_obligation = reward_amount_for_period(
        info.end_time - start, info.emissions_per_second_x64, False
    )
    new_obligation = reward_amount_for_period(end_time - start, emissions_per_second_x64, True)

    info.emissions_per_second_x64 = emissions_per_second_x64
    info.end_time = end_time
    return max(0, new_obligation - old_obligation)


def remaining_rewards(info: RewardInfo, vault_balance: int) -> int:
    """Vault balance not owed to any position once a reward has ended.

    Raises:
        RewardScheduleInvalid: If the reward is still emitting
    """
    if info.last_update_time != info.end_time:
        raise RewardScheduleInvalid("Reward is still emitting")
    outstanding = sub_checked(
        info.reward_total_emissioned, info.reward_claimed, "outstanding rewards"
    )
    return sub_checked(vault_balance, outstanding, "remaining rewards")


__all__ = [
    "update_reward_infos",
    "get_reward_growths_inside",
    "update_personal_rewards",
    "reward_amount_for_period",
    "check_initialize_params",
    "get_reward_info",
    "initialize_reward_slot",
    "normal_update",
    "admin_update",
    "remaining_rewards",
]
