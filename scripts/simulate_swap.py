#!/usr/bin/env python3
"""Simulate a swap against a freshly built in-memory pool.

Usage:
    # 0.25% pool at price 1.0 with one full-width position, sell 1000 token0
    python scripts/simulate_swap.py --amount 1000

    # Exact output, token1 in, with a narrower position and debug logging
    python scripts/simulate_swap.py --amount 500 --exact-output --one-for-zero \\
        --tick-lower -600 --tick-upper 600 -v
"""

import argparse
import sys

import structlog

from clmm.constants import U64_MAX
from clmm.engine import AccessPolicy, AdminDispatcher, create_pool, open_position, swap
from clmm.engine.commands import CreateAmmConfig
from clmm.errors import ClmmError
from clmm.ledger import memory_ledger
from clmm.log import configure_logging
from clmm.math.tick_math import get_sqrt_price_at_tick
from clmm.settings import EngineSettings
from clmm.tick_index.context import TickContext

logger = structlog.get_logger()

ADMIN = "admin"
LP = "lp"
TRADER = "trader"
POOL_ID = "sim-pool"
MINT_0 = "token0"
MINT_1 = "token1"


def run(args: argparse.Namespace) -> int:
    ledger = memory_ledger()
    dispatcher = AdminDispatcher(ledger, AccessPolicy([ADMIN]))
    dispatcher.dispatch(
        ADMIN,
        CreateAmmConfig(
            index=0,
            owner=ADMIN,
            trade_fee_rate=args.fee_rate,
            protocol_fee_rate=args.protocol_fee_rate,
            tick_spacing=args.tick_spacing,
        ),
        now=0,
    )
    create_pool(
        ledger, POOL_ID, 0, ADMIN, MINT_0, MINT_1, get_sqrt_price_at_tick(args.start_tick)
    )

    ledger.tokens.mint_to(LP, MINT_0, U64_MAX // 2)
    ledger.tokens.mint_to(LP, MINT_1, U64_MAX // 2)
    ledger.tokens.mint_to(TRADER, MINT_0, U64_MAX // 2)
    ledger.tokens.mint_to(TRADER, MINT_1, U64_MAX // 2)

    position = open_position(
        ledger,
        POOL_ID,
        LP,
        args.tick_lower,
        args.tick_upper,
        args.liquidity,
        U64_MAX // 2,
        U64_MAX // 2,
        now=args.now,
    )
    print(
        f"Position: liquidity={position.liquidity} "
        f"amount_0={position.amount_0} amount_1={position.amount_1}"
    )

    zero_for_one = not args.one_for_zero
    context = TickContext.spanning(args.tick_lower, args.tick_upper, args.tick_spacing)
    result = swap(
        ledger,
        POOL_ID,
        TRADER,
        args.amount,
        U64_MAX if args.exact_output else 0,
        None,
        not args.exact_output,
        zero_for_one,
        now=args.now,
        context=context,
    )

    print("=" * 60)
    print(f"Direction:      {'token0 -> token1' if zero_for_one else 'token1 -> token0'}")
    print(f"Mode:           {'exact output' if args.exact_output else 'exact input'}")
    print(f"Amount in:      {result.amount_in}")
    print(f"Amount out:     {result.amount_out}")
    print(f"Fee:            {result.fee_amount} (protocol {result.protocol_fee})")
    print(f"Tick:           {result.tick}")
    print(f"Sqrt price x64: {result.sqrt_price_x64}")
    print(f"Ticks crossed:  {len(result.crossed_ticks)}")
    return 0


def main() -> int:
    """Main entry point."""
    settings = EngineSettings.from_env()
    parser = argparse.ArgumentParser(
        description="Simulate a swap against an in-memory concentrated-liquidity pool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--amount", type=int, required=True, help="Swap amount")
    parser.add_argument("--exact-output", action="store_true", help="Treat amount as output")
    parser.add_argument(
        "--one-for-zero", action="store_true", help="Swap token1 for token0 (price rises)"
    )
    parser.add_argument("--fee-rate", type=int, default=2500, help="Trade fee, ppm")
    parser.add_argument("--protocol-fee-rate", type=int, default=0, help="Protocol share, ppm")
    parser.add_argument("--tick-spacing", type=int, default=60)
    parser.add_argument("--start-tick", type=int, default=0)
    parser.add_argument("--tick-lower", type=int, default=-887 * 60)
    parser.add_argument("--tick-upper", type=int, default=887 * 60)
    parser.add_argument("--liquidity", type=int, default=10**12)
    parser.add_argument("--now", type=int, default=1, help="Unix time of the swap")
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable debug logging (per-step swap events)",
    )
    args = parser.parse_args()

    configure_logging("DEBUG" if args.verbose else settings.log_level, settings.log_json)

    try:
        return run(args)
    except ClmmError as e:
        logger.error("simulation_failed", error=str(e), error_type=type(e).__name__)
        print(f"Error: {type(e).__name__}: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
