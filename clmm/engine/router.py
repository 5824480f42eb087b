"""Exact-input swaps routed through a chain of pools.

Each hop spends what the previous hop paid out. Every hop is computed on store
copies first; tokens move and records are saved only once the final amount
clears the caller's minimum, so a failing route changes nothing.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

import structlog

from clmm.engine.settlement import execute_transfers
from clmm.engine.swap import PreparedSwap, SwapResult, commit_swap, prepare_swap
from clmm.errors import InvalidRoute, TooLittleOutputReceived
from clmm.ledger.interfaces import Ledger
from clmm.settings import DEFAULT_SETTINGS, EngineSettings
from clmm.tick_index.context import TickContext

logger = structlog.get_logger()


@dataclass(frozen=True)
class RouteResult:
    """Outcome of a routed swap.

    Attributes:
        amount_in: Amount the payer sent into the first pool
        amount_out: Amount the payer holds at the end, after transfer fees
        output_mint: Mint of ``amount_out``
        hops: Pool-side result of each hop, in route order
    """

    amount_in: int
    amount_out: int
    output_mint: str
    hops: tuple[SwapResult, ...]


def swap_router_base_in(
    ledger: Ledger,
    payer: str,
    input_mint: str,
    amount_in: int,
    amount_out_minimum: int,
    pool_ids: Sequence[str],
    now: int,
    contexts: Sequence[TickContext | None] | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> RouteResult:
    """Swap ``amount_in`` of ``input_mint`` through ``pool_ids`` in order.

    The direction of each hop follows from the mint coming in: token0 in
    swaps zero-for-one, token1 in swaps one-for-zero. Hops have no price
    limit and no per-hop minimum; only the final amount is checked.

    Args:
        ledger: Stores and token ledger
        payer: Account paying the input and receiving every hop's output
        input_mint: Mint the payer sends into the first pool
        amount_in: Amount sent into the first pool
        amount_out_minimum: Least the payer may end up with
        pool_ids: Pools to trade through; each appears at most once
        now: Current unix time
        contexts: Tick-index words per hop; None entries use the default
        settings: Engine settings

    Raises:
        InvalidRoute: If the route is empty, repeats a pool or a pool does not
            trade the mint coming in
        TooLittleOutputReceived: If the final amount is below amount_out_minimum
        InsufficientFunds: If the payer cannot cover the first hop
    """
    if not pool_ids:
        raise InvalidRoute("Route has no pools")
    if len(set(pool_ids)) != len(pool_ids):
        raise InvalidRoute(f"Route visits a pool more than once: {list(pool_ids)}")
    if contexts is not None and len(contexts) != len(pool_ids):
        raise InvalidRoute(f"Got {len(contexts)} tick contexts for {len(pool_ids)} pools")

    mint = input_mint
    amount = amount_in
    prepared: list[PreparedSwap] = []
    for hop, pool_id in enumerate(pool_ids):
        pool = ledger.pools.load(pool_id)
        if mint == pool.token_mint_0:
            zero_for_one = True
        elif mint == pool.token_mint_1:
            zero_for_one = False
        else:
            raise InvalidRoute(f"Pool {pool_id} does not trade {mint}")

        step = prepare_swap(
            ledger,
            pool_id,
            payer,
            amount,
            None,
            True,
            zero_for_one,
            now,
            contexts[hop] if contexts is not None else None,
            settings,
        )
        prepared.append(step)
        mint = pool.mint_for(not zero_for_one)
        amount = step.received

    if amount < amount_out_minimum:
        raise TooLittleOutputReceived(f"Route returned {amount}, minimum {amount_out_minimum}")

    execute_transfers(ledger, [transfer for step in prepared for transfer in step.transfers])
    for step in prepared:
        commit_swap(ledger, step)

    logger.info(
        "route_swap_executed",
        payer=payer,
        pools=list(pool_ids),
        input_mint=input_mint,
        output_mint=mint,
        amount_in=amount_in,
        amount_out=amount,
    )
    return RouteResult(
        amount_in=amount_in,
        amount_out=amount,
        output_mint=mint,
        hops=tuple(step.result for step in prepared),
    )


__all__ = ["RouteResult", "swap_router_base_in"]
