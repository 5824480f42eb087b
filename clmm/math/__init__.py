"""Fixed-point math for the engine.

This package provides the numeric primitives everything else builds on:
- full_math: widening mul-div with floor/ceil rounding
- tick_math: tick <-> Q64.64 sqrt price
- liquidity_math: liquidity <-> token amounts, checked liquidity deltas
- sqrt_price_math: next price after a token amount moves through the pool
- swap_math: one swap segment
- accumulator: wrapping growth counters
"""

from clmm.math.accumulator import ModularAccumulator
from clmm.math.full_math import mul_div_ceil, mul_div_floor
from clmm.math.liquidity_math import (
    add_delta,
    get_amounts_for_liquidity,
    get_delta_amount_0_unsigned,
    get_delta_amount_1_unsigned,
    get_liquidity_for_amounts,
)
from clmm.math.swap_math import SwapStep, compute_swap_step
from clmm.math.tick_math import (
    MAX_SQRT_PRICE_X64,
    MAX_TICK,
    MIN_SQRT_PRICE_X64,
    MIN_TICK,
    get_sqrt_price_at_tick,
    get_tick_at_sqrt_price,
)

__all__ = [
    # Accumulators
    "ModularAccumulator",
    # Mul-div
    "mul_div_floor",
    "mul_div_ceil",
    # Tick math
    "MIN_TICK",
    "MAX_TICK",
    "MIN_SQRT_PRICE_X64",
    "MAX_SQRT_PRICE_X64",
    "get_sqrt_price_at_tick",
    "get_tick_at_sqrt_price",
    # Liquidity math
    "add_delta",
    "get_delta_amount_0_unsigned",
    "get_delta_amount_1_unsigned",
    "get_liquidity_for_amounts",
    "get_amounts_for_liquidity",
    # Swap step
    "SwapStep",
    "compute_swap_step",
]
