"""Single-segment swap computation.

``compute_swap_step`` moves the price from ``sqrt_price_current`` toward
``sqrt_price_target`` at constant liquidity, consuming as much of the remaining
amount as that segment allows. The swap engine calls it once per segment
between initialized ticks.
"""

from __future__ import annotations

from dataclasses import dataclass

from clmm.constants import FEE_RATE_DENOMINATOR
from clmm.math.checked import sub_checked, to_u64
from clmm.math.full_math import U64_BITS, mul_div_ceil, mul_div_floor, require_fits
from clmm.math.liquidity_math import (
    get_amount_0_delta_wide,
    get_amount_1_delta_wide,
)
from clmm.math.sqrt_price_math import (
    get_next_sqrt_price_from_input,
    get_next_sqrt_price_from_output,
)


@dataclass(frozen=True)
class SwapStep:
    """Result of one swap segment.

    Attributes:
        sqrt_price_next_x64: Price after the segment
        amount_in: Input consumed, excluding fee
        amount_out: Output produced
        fee_amount: Trade fee charged on the input (includes swept dust)
    """

    sqrt_price_next_x64: int
    amount_in: int
    amount_out: int
    fee_amount: int


def _amount_in_to(
    sqrt_price_current_x64: int, sqrt_price_next_x64: int, liquidity: int, zero_for_one: bool
) -> int:
    if zero_for_one:
        return get_amount_0_delta_wide(sqrt_price_next_x64, sqrt_price_current_x64, liquidity, True)
    return get_amount_1_delta_wide(sqrt_price_current_x64, sqrt_price_next_x64, liquidity, True)


def _amount_out_to(
    sqrt_price_current_x64: int, sqrt_price_next_x64: int, liquidity: int, zero_for_one: bool
) -> int:
    if zero_for_one:
        return get_amount_1_delta_wide(
            sqrt_price_next_x64, sqrt_price_current_x64, liquidity, False
        )
    return get_amount_0_delta_wide(sqrt_price_current_x64, sqrt_price_next_x64, liquidity, False)


def compute_swap_step(
    sqrt_price_current_x64: int,
    sqrt_price_target_x64: int,
    liquidity: int,
    amount_remaining: int,
    fee_rate: int,
    is_base_input: bool,
    zero_for_one: bool,
) -> SwapStep:
    """Compute one swap segment.

    Exact input: the fee is taken out of ``amount_remaining`` first, and the
    net amount moves the price. If the target is not reached, whatever is left
    after ``amount_in`` is swept into the fee, so ``amount_in + fee_amount``
    equals ``amount_remaining`` exactly.

    Exact output: ``amount_out`` is capped at ``amount_remaining`` and the fee
    is charged on top of the required input.

    Args:
        sqrt_price_current_x64: Current sqrt price (Q64.64)
        sqrt_price_target_x64: Price the segment may not pass
        liquidity: Active liquidity for the segment
        amount_remaining: Input left to spend (exact input) or output left to receive
        fee_rate: Trade fee in parts per million
        is_base_input: True for exact input, False for exact output
        zero_for_one: Swap direction (token0 in, price falls)

    Returns:
        SwapStep with the next price and the segment's amounts
    """
    fee_complement = FEE_RATE_DENOMINATOR - fee_rate

    if is_base_input:
        amount_remaining_less_fee = require_fits(
            mul_div_floor(amount_remaining, fee_complement, FEE_RATE_DENOMINATOR, U64_BITS),
            "amount less fee",
        )
        amount_in_to_target = _amount_in_to(
            sqrt_price_current_x64, sqrt_price_target_x64, liquidity, zero_for_one
        )
        if amount_remaining_less_fee >= amount_in_to_target:
            sqrt_price_next_x64 = sqrt_price_target_x64
        else:
            sqrt_price_next_x64 = get_next_sqrt_price_from_input(
                sqrt_price_current_x64, liquidity, amount_remaining_less_fee, zero_for_one
            )
        amount_in = amount_in_to_target
        amount_out = 0
    else:
        amount_out_to_target = _amount_out_to(
            sqrt_price_current_x64, sqrt_price_target_x64, liquidity, zero_for_one
        )
        if amount_remaining >= amount_out_to_target:
            sqrt_price_next_x64 = sqrt_price_target_x64
        else:
            sqrt_price_next_x64 = get_next_sqrt_price_from_output(
                sqrt_price_current_x64, liquidity, amount_remaining, zero_for_one
            )
        amount_in = 0
        amount_out = amount_out_to_target

    reached_target = sqrt_price_next_x64 == sqrt_price_target_x64

    # Recompute whichever side was not fixed by reaching the target
    if not (reached_target and is_base_input):
        amount_in = _amount_in_to(
            sqrt_price_current_x64, sqrt_price_next_x64, liquidity, zero_for_one
        )
    if not (reached_target and not is_base_input):
        amount_out = _amount_out_to(
            sqrt_price_current_x64, sqrt_price_next_x64, liquidity, zero_for_one
        )

    if not is_base_input and amount_out > amount_remaining:
        amount_out = amount_remaining

    amount_in = to_u64(amount_in, "swap step amount_in")
    amount_out = to_u64(amount_out, "swap step amount_out")

    if is_base_input and not reached_target:
        fee_amount = sub_checked(amount_remaining, amount_in, "swap dust")
    else:
        fee_amount = require_fits(
            mul_div_ceil(amount_in, fee_rate, fee_complement, U64_BITS), "fee amount"
        )

    return SwapStep(
        sqrt_price_next_x64=sqrt_price_next_x64,
        amount_in=amount_in,
        amount_out=amount_out,
        fee_amount=fee_amount,
    )


__all__ = [
    "SwapStep",
    "compute_swap_step",
]
