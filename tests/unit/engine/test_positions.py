"""Tests for position operations."""

import pytest

from clmm.engine.pool import update_pool_status
from clmm.engine.position import (
    close_position,
    collect_fees,
    decrease_liquidity,
    increase_liquidity,
    modify_liquidity,
    open_position,
    update_personal_rewards,
)
from clmm.engine.swap import swap
from clmm.errors import (
    InvalidLiquidity,
    InvalidRange,
    InvalidTickSpacing,
    OperationDisabled,
    TooLittleOutputReceived,
    TooMuchInputPaid,
)
from clmm.state.pool import PoolStatusBit
from clmm.state.position import ProtocolPosition
from clmm.state.tick import Tick
from tests.helpers import (
    DEEP_LIQUIDITY,
    LP,
    LP_2,
    MINT_0,
    POOL_ID,
    STARTING_BALANCE,
    TRADER,
    add_position,
    balances,
)


def _trade(ledger, amount=10**9, zero_for_one=True):
    return swap(ledger, POOL_ID, TRADER, amount, 0, None, True, zero_for_one, now=0)


class TestOpenPosition:
    """Tests for open_position."""

    def test_in_range_deposits_both_tokens(self, pool_ledger):
        change = open_position(
            pool_ledger, POOL_ID, LP, -600, 600, 10**12, STARTING_BALANCE, STARTING_BALANCE, now=0
        )
        assert change.amount_0 > 0
        assert change.amount_1 > 0
        assert balances(pool_ledger, LP) == (
            STARTING_BALANCE - change.amount_0,
            STARTING_BALANCE - change.amount_1,
        )
        assert pool_ledger.pools.load(POOL_ID).liquidity == 10**12

    def test_below_price_deposits_token1_only(self, pool_ledger):
        position_id = add_position(pool_ledger, -1200, -600, 10**12)
        position = pool_ledger.personal_positions.load(position_id)
        b0, b1 = balances(pool_ledger, LP)
        assert b0 == STARTING_BALANCE
        assert b1 < STARTING_BALANCE
        assert position.liquidity == 10**12
        assert pool_ledger.pools.load(POOL_ID).liquidity == 0

    def test_above_price_deposits_token0_only(self, pool_ledger):
        add_position(pool_ledger, 600, 1200, 10**12)
        b0, b1 = balances(pool_ledger, LP)
        assert b0 < STARTING_BALANCE
        assert b1 == STARTING_BALANCE

    def test_ticks_and_index_initialized(self, pool_ledger):
        add_position(pool_ledger, -600, 600, 10**12)
        assert pool_ledger.ticks.initialized_ticks(POOL_ID) == [-600, 600]
        index = pool_ledger.tick_indexes.load(POOL_ID)
        assert index.initialized_ticks() == [-600, 600]
        assert pool_ledger.ticks.get_or_init(POOL_ID, 600).liquidity_net == -(10**12)

    def test_duplicate_rejected(self, liquid_ledger):
        ledger, _ = liquid_ledger
        with pytest.raises(InvalidLiquidity, match="already open"):
            add_position(ledger, -600, 600, 10**6)

    def test_same_range_other_owner(self, liquid_ledger):
        ledger, _ = liquid_ledger
        add_position(ledger, -600, 600, 10**6, owner=LP_2)
        protocol = ledger.positions.get_or_init(POOL_ID, -600, 600)
        assert protocol.liquidity == DEEP_LIQUIDITY + 10**6

    def test_inverted_range(self, pool_ledger):
        with pytest.raises(InvalidRange):
            add_position(pool_ledger, 600, -600, 10**6)

    def test_off_spacing(self, pool_ledger):
        with pytest.raises(InvalidTickSpacing):
            add_position(pool_ledger, -61, 600, 10**6)

    def test_deposit_limit(self, pool_ledger):
        with pytest.raises(TooMuchInputPaid):
            open_position(pool_ledger, POOL_ID, LP, -600, 600, 10**12, 1, STARTING_BALANCE, now=0)
        assert not pool_ledger.personal_positions.exists(f"{POOL_ID}:{LP}:-600:600")
        assert pool_ledger.pools.load(POOL_ID).liquidity == 0
        assert balances(pool_ledger, LP) == (STARTING_BALANCE, STARTING_BALANCE)

    def test_liquidity_from_base_amount(self, pool_ledger):
        """Liquidity derived from token1 never needs more than the token1 given."""
        change = open_position(
            pool_ledger, POOL_ID, LP, -600, 600, 0, STARTING_BALANCE, 10**9, now=0, base_flag=False
        )
        assert change.liquidity > 0
        assert 10**9 - 1 <= change.amount_1 <= 10**9
        assert change.amount_0 > 0

    def test_zero_liquidity_without_base(self, pool_ledger):
        with pytest.raises(InvalidLiquidity):
            open_position(pool_ledger, POOL_ID, LP, -600, 600, 0, 10**9, 10**9, now=0)

    def test_opening_disabled(self, pool_ledger):
        disabled = 1 << PoolStatusBit.OPEN_POSITION_OR_INCREASE_LIQUIDITY
        update_pool_status(pool_ledger, POOL_ID, disabled)
        with pytest.raises(OperationDisabled):
            add_position(pool_ledger, -600, 600, 10**6)

    def test_deposit_with_transfer_fee(self, pool_ledger):
        """The owner pays extra so the vault receives the full amount."""
        pool_ledger.tokens.set_transfer_fee(MINT_0, 100, 10**9)
        change = open_position(
            pool_ledger, POOL_ID, LP, -600, 600, 10**12, STARTING_BALANCE, STARTING_BALANCE, now=0
        )
        pool = pool_ledger.pools.load(POOL_ID)
        b0, _ = balances(pool_ledger, LP)
        assert pool_ledger.tokens.balance(pool.token_vault_0, MINT_0) == change.amount_0
        assert STARTING_BALANCE - b0 > change.amount_0


class TestIncreaseDecrease:
    """Tests for increase_liquidity and decrease_liquidity."""

    def test_increase(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        change = increase_liquidity(
            ledger, position_id, 10**6, STARTING_BALANCE, STARTING_BALANCE, now=0
        )
        assert change.liquidity == 10**6
        assert ledger.personal_positions.load(position_id).liquidity == DEEP_LIQUIDITY + 10**6

    def test_full_decrease_clears_ticks(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY, 0, 0, now=0)

        assert ledger.ticks.initialized_ticks(POOL_ID) == []
        assert ledger.tick_indexes.load(POOL_ID).initialized_ticks() == []
        assert ledger.pools.load(POOL_ID).liquidity == 0
        assert ledger.personal_positions.load(position_id).liquidity == 0

    def test_round_trip_loses_at_most_rounding(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY, 0, 0, now=0)
        b0, b1 = balances(ledger, LP)
        assert STARTING_BALANCE - b0 in (0, 1)
        assert STARTING_BALANCE - b1 in (0, 1)

    def test_partial_decrease(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        change = decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY // 2, 0, 0, now=0)
        assert change.amount_0 > 0
        assert change.amount_1 > 0
        assert ledger.pools.load(POOL_ID).liquidity == DEEP_LIQUIDITY - DEEP_LIQUIDITY // 2

    def test_too_much(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        with pytest.raises(InvalidLiquidity):
            decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY + 1, 0, 0, now=0)

    def test_withdrawal_minimum(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        with pytest.raises(TooLittleOutputReceived):
            decrease_liquidity(ledger, position_id, 10**6, STARTING_BALANCE, 0, now=0)
        assert ledger.pools.load(POOL_ID).liquidity == DEEP_LIQUIDITY

    def test_recipient(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        change = decrease_liquidity(ledger, position_id, 10**12, 0, 0, now=0, recipient="cold")
        assert ledger.tokens.balance("cold", MINT_0) == change.amount_0

    def test_decrease_disabled(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        update_pool_status(ledger, POOL_ID, 1 << PoolStatusBit.DECREASE_LIQUIDITY)
        with pytest.raises(OperationDisabled):
            decrease_liquidity(ledger, position_id, 10**6, 0, 0, now=0)


class TestFees:
    """Tests for fee accrual and collection."""

    def test_proportional_split(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        other_id = add_position(ledger, -600, 600, 3 * DEEP_LIQUIDITY, owner=LP_2)
        result = _trade(ledger)

        fees_1 = collect_fees(ledger, position_id, now=0).fees_0
        fees_2 = collect_fees(ledger, other_id, now=0).fees_0

        assert fees_1 > 0
        assert abs(fees_2 - 3 * fees_1) <= 3
        assert fees_1 + fees_2 <= result.fee_amount

    def test_fees_in_input_token(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger, zero_for_one=False)
        change = collect_fees(ledger, position_id, now=0)
        assert change.fees_0 == 0
        assert change.fees_1 > 0

    def test_out_of_range_earns_nothing(self, liquid_ledger):
        ledger, _ = liquid_ledger
        other_id = add_position(ledger, 600, 1200, DEEP_LIQUIDITY, owner=LP_2)
        _trade(ledger)
        change = collect_fees(ledger, other_id, now=0)
        assert (change.fees_0, change.fees_1) == (0, 0)

    def test_late_joiner_earns_only_later_fees(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger)
        other_id = add_position(ledger, -600, 600, DEEP_LIQUIDITY, owner=LP_2)
        assert collect_fees(ledger, other_id, now=0).fees_0 == 0
        assert collect_fees(ledger, position_id, now=0).fees_0 > 0

    def test_collect_twice_pays_once(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger)
        first = collect_fees(ledger, position_id, now=0)
        second = collect_fees(ledger, position_id, now=0)
        assert first.fees_0 > 0
        assert second.fees_0 == 0
        assert ledger.tokens.balance(LP, MINT_0) > 0

    def test_poke_accrues_without_paying(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger)
        before = balances(ledger, LP)
        position = update_personal_rewards(ledger, position_id, now=0)
        assert position.token_fees_owed_0 > 0
        assert balances(ledger, LP) == before

    def test_decrease_pays_fees(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger)
        change = decrease_liquidity(ledger, position_id, 10**6, 0, 0, now=0)
        assert change.fees_0 > 0
        assert ledger.personal_positions.load(position_id).token_fees_owed_0 == 0

    def test_collection_disabled_keeps_fees_owed(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger)
        update_pool_status(ledger, POOL_ID, 1 << PoolStatusBit.COLLECT_FEE)

        with pytest.raises(OperationDisabled):
            collect_fees(ledger, position_id, now=0)
        change = decrease_liquidity(ledger, position_id, 10**6, 0, 0, now=0)

        assert change.fees_0 == 0
        assert ledger.personal_positions.load(position_id).token_fees_owed_0 > 0


class TestClosePosition:
    """Tests for close_position."""

    def test_close_after_full_withdrawal(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY, 0, 0, now=0)
        close_position(ledger, position_id)
        assert not ledger.personal_positions.exists(position_id)

    def test_close_with_liquidity_rejected(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        with pytest.raises(InvalidLiquidity):
            close_position(ledger, position_id)

    def test_close_with_fees_owed_rejected(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        _trade(ledger)
        update_pool_status(ledger, POOL_ID, 1 << PoolStatusBit.COLLECT_FEE)
        decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY, 0, 0, now=0)
        with pytest.raises(InvalidLiquidity):
            close_position(ledger, position_id)

    def test_reopen_after_close(self, liquid_ledger):
        ledger, position_id = liquid_ledger
        decrease_liquidity(ledger, position_id, DEEP_LIQUIDITY, 0, 0, now=0)
        close_position(ledger, position_id)
        assert add_position(ledger, -600, 600, 10**6) == position_id


class TestModifyLiquidity:
    """Tests for the modify_liquidity core."""

    def test_empty_poke_rejected(self, pool_ledger):
        pool = pool_ledger.pools.load(POOL_ID)
        index = pool_ledger.tick_indexes.load(POOL_ID)
        position = ProtocolPosition(pool_id=POOL_ID, tick_lower=-60, tick_upper=60)
        with pytest.raises(InvalidLiquidity):
            modify_liquidity(pool, index, Tick(tick=-60), Tick(tick=60), position, 0)

    def test_returns_signed_amounts(self, pool_ledger):
        pool = pool_ledger.pools.load(POOL_ID)
        index = pool_ledger.tick_indexes.load(POOL_ID)
        lower, upper = Tick(tick=-60), Tick(tick=60)
        position = ProtocolPosition(pool_id=POOL_ID, tick_lower=-60, tick_upper=60)

        added = modify_liquidity(pool, index, lower, upper, position, 10**9)
        assert added.flipped_lower and added.flipped_upper
        assert added.amount_0 > 0 and added.amount_1 > 0
        assert index.is_initialized(-60)

        removed = modify_liquidity(pool, index, lower, upper, position, -(10**9))
        assert removed.amount_0 < 0 and removed.amount_1 < 0
        assert added.amount_0 + removed.amount_0 in (0, 1)
        assert not index.is_initialized(-60)
        assert pool.liquidity == 0
