"""Read-only swap simulation."""

from __future__ import annotations

import structlog

from clmm.engine.swap import SwapResult, check_swap_allowed, default_sqrt_price_limit, swap_internal
from clmm.errors import ClmmError
from clmm.ledger.interfaces import Ledger
from clmm.settings import DEFAULT_SETTINGS, EngineSettings
from clmm.tick_index.context import TickContext

logger = structlog.get_logger()


def quote_swap(
    ledger: Ledger,
    pool_id: str,
    amount_specified: int,
    zero_for_one: bool,
    is_base_input: bool,
    now: int,
    sqrt_price_limit_x64: int | None = None,
    context: TickContext | None = None,
    settings: EngineSettings = DEFAULT_SETTINGS,
) -> SwapResult:
    """Run the swap loop without committing anything.

    Loaded records are the store's copies, so nothing written here is ever
    visible to later operations. Token transfer fees are not applied.

    Raises:
        Any error ``swap_internal`` raises
    """
    pool = ledger.pools.load(pool_id)
    check_swap_allowed(pool, now)
    config = ledger.configs.load(pool.amm_config_index)
    tick_index = ledger.tick_indexes.load(pool_id)

    if sqrt_price_limit_x64 is None:
        sqrt_price_limit_x64 = default_sqrt_price_limit(zero_for_one)
    if context is None:
        context = TickContext.for_swap(
            pool.tick_current, pool.tick_spacing, zero_for_one, settings.swap_tick_words
        )

    result, _ = swap_internal(
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
    return result


class PoolQuoter:
    """Quotes against pools held in a ledger.

    Failed quotes are logged and returned as None, for callers that compare
    many candidate pools and skip the ones that cannot fill.
    """

    def __init__(self, ledger: Ledger, settings: EngineSettings = DEFAULT_SETTINGS):
        self.ledger = ledger
        self.settings = settings

    def quote_exact_input(
        self, pool_id: str, zero_for_one: bool, amount_in: int, now: int
    ) -> int | None:
        """Output amount for an exact input, or None if the quote fails."""
        result = self._quote(pool_id, zero_for_one, amount_in, True, now)
        return None if result is None else result.amount_out

    def quote_exact_output(
        self, pool_id: str, zero_for_one: bool, amount_out: int, now: int
    ) -> int | None:
        """Input amount for an exact output, or None if the quote fails.

        A partial fill (price limit reached first) counts as a failure.
        """
        result = self._quote(pool_id, zero_for_one, amount_out, False, now)
        if result is None:
            return None
        if result.amount_out < amount_out:
            logger.debug(
                "quote_partial_fill",
                pool=pool_id,
                requested=amount_out,
                filled=result.amount_out,
            )
            return None
        return result.amount_in

    def _quote(
        self, pool_id: str, zero_for_one: bool, amount: int, is_base_input: bool, now: int
    ) -> SwapResult | None:
        try:
            return quote_swap(
                self.ledger,
                pool_id,
                amount,
                zero_for_one,
                is_base_input,
                now,
                settings=self.settings,
            )
        except ClmmError as e:
            logger.debug(
                "quote_failed",
                pool=pool_id,
                zero_for_one=zero_for_one,
                amount=amount,
                is_base_input=is_base_input,
                error=str(e),
            )
            return None


__all__ = ["PoolQuoter", "quote_swap"]
