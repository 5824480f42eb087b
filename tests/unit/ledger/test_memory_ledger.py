"""Tests for the in-memory stores and token ledger."""

import pytest

from clmm.errors import InsufficientFunds, RecordNotFound
from clmm.ledger.memory import (
    MemoryObservationStore,
    MemoryPersonalPositionStore,
    MemoryPoolStore,
    MemoryTickStore,
    MemoryTokenLedger,
    TransferFeeConfig,
    memory_ledger,
    personal_position_id,
)
from clmm.state.tick import Tick
from tests.helpers import MINT_0, MINT_1, POOL_ID, make_pool_ledger


class TestRecordStores:
    """Tests for load/save copy semantics."""

    def test_missing_pool(self):
        with pytest.raises(RecordNotFound):
            MemoryPoolStore().load("nope")

    def test_missing_record_is_a_key_error(self):
        with pytest.raises(KeyError):
            MemoryPoolStore().load("nope")

    def test_load_returns_a_copy(self):
        ledger = make_pool_ledger()
        pool = ledger.pools.load(POOL_ID)
        pool.liquidity = 123
        assert ledger.pools.load(POOL_ID).liquidity == 0

    def test_save_stores_a_copy(self):
        ledger = make_pool_ledger()
        pool = ledger.pools.load(POOL_ID)
        pool.liquidity = 5
        ledger.pools.save(pool)
        pool.liquidity = 6
        assert ledger.pools.load(POOL_ID).liquidity == 5

    def test_config_round_trip(self):
        ledger = make_pool_ledger()
        assert ledger.configs.exists(0)
        assert not ledger.configs.exists(7)
        with pytest.raises(RecordNotFound):
            ledger.configs.load(7)


class TestObservationStore:
    """Tests for MemoryObservationStore."""

    def test_unknown_pool_gets_empty_ring(self):
        state = MemoryObservationStore().get_or_init(POOL_ID)
        assert state.pool_id == POOL_ID
        assert not state.initialized

    def test_save_stores_a_copy(self):
        store = MemoryObservationStore()
        state = store.get_or_init(POOL_ID)
        state.update(100, 7)
        store.save(state)
        state.update(200, 7)
        assert len(store.get_or_init(POOL_ID).observations) == 1


class TestTickStore:
    """Tests for MemoryTickStore."""

    def test_uninitialized_tick_dropped(self):
        store = MemoryTickStore()
        store.save(POOL_ID, Tick(tick=60, liquidity_gross=10))
        store.save(POOL_ID, Tick(tick=-60))
        assert store.initialized_ticks(POOL_ID) == [60]

    def test_clearing_removes(self):
        store = MemoryTickStore()
        store.save(POOL_ID, Tick(tick=60, liquidity_gross=10))
        store.save(POOL_ID, Tick(tick=60))
        assert store.initialized_ticks(POOL_ID) == []
        assert not store.get_or_init(POOL_ID, 60).is_initialized()

    def test_scoped_by_pool(self):
        store = MemoryTickStore()
        store.save("other", Tick(tick=0, liquidity_gross=1))
        assert store.initialized_ticks(POOL_ID) == []


class TestPersonalPositionStore:
    """Tests for MemoryPersonalPositionStore."""

    def test_position_id(self):
        assert personal_position_id("pool-1", "lp", -60, 60) == "pool-1:lp:-60:60"

    def test_get_or_init_is_not_persisted(self):
        store = MemoryPersonalPositionStore()
        position = store.get_or_init("pool-1", "lp", -60, 60)
        assert position.liquidity == 0
        assert not store.exists(position.position_id)

    def test_save_load_delete(self):
        store = MemoryPersonalPositionStore()
        position = store.get_or_init("pool-1", "lp", -60, 60)
        position.liquidity = 10
        store.save(position)
        assert store.load(position.position_id).liquidity == 10

        store.delete(position.position_id)
        with pytest.raises(RecordNotFound):
            store.load(position.position_id)


class TestTokenLedger:
    """Tests for balances and transfer fees."""

    def test_debit_credit(self):
        tokens = MemoryTokenLedger()
        tokens.mint_to("a", MINT_0, 100)
        assert tokens.debit("a", MINT_0, 40) == 40
        assert tokens.balance("a", MINT_0) == 60
        assert tokens.balance("a", MINT_1) == 0

    def test_insufficient_funds(self):
        tokens = MemoryTokenLedger()
        tokens.mint_to("a", MINT_0, 10)
        with pytest.raises(InsufficientFunds):
            tokens.debit("a", MINT_0, 11)
        assert tokens.balance("a", MINT_0) == 10

    def test_transfer_fee_withheld(self):
        tokens = MemoryTokenLedger()
        tokens.set_transfer_fee(MINT_0, 100, 10**9)
        tokens.mint_to("a", MINT_0, 10**6)
        assert tokens.debit("a", MINT_0, 10**6) == 990_000

    def test_transfer_through_ledger(self):
        ledger = memory_ledger()
        ledger.tokens.set_transfer_fee(MINT_0, 100, 10**9)
        ledger.tokens.mint_to("a", MINT_0, 10**6)
        assert ledger.transfer(MINT_0, "a", "b", 10**6) == 990_000
        assert ledger.tokens.balance("b", MINT_0) == 990_000
        assert ledger.transfer(MINT_0, "a", "b", 0) == 0


class TestTransferFeeConfig:
    """Tests for fee and inverse fee computation."""

    def test_fee_rounds_up(self):
        assert TransferFeeConfig(basis_points=100, maximum_fee=10**9).fee(101) == 2

    def test_fee_capped(self):
        assert TransferFeeConfig(basis_points=100, maximum_fee=5).fee(10**6) == 5

    def test_no_fee_without_config(self):
        tokens = MemoryTokenLedger()
        assert tokens.transfer_fee(MINT_0, 10**6) == 0
        assert tokens.inverse_transfer_fee(MINT_0, 10**6) == 0

    def test_inverse_fee(self):
        tokens = MemoryTokenLedger()
        tokens.set_transfer_fee(MINT_0, 100, 10**9)
        assert tokens.inverse_transfer_fee(MINT_0, 990_000) == 10_000

    def test_inverse_fee_with_cap(self):
        tokens = MemoryTokenLedger()
        tokens.set_transfer_fee(MINT_0, 100, 5)
        assert tokens.inverse_transfer_fee(MINT_0, 10**6) == 5

    @pytest.mark.parametrize("target", [1, 7, 99, 1000, 123_457, 10**9 + 3])
    def test_inverse_is_smallest_gross_amount(self, target):
        tokens = MemoryTokenLedger()
        tokens.set_transfer_fee(MINT_0, 250, 10**6)
        gross = target + tokens.inverse_transfer_fee(MINT_0, target)
        assert gross - tokens.transfer_fee(MINT_0, gross) >= target
        assert (gross - 1) - tokens.transfer_fee(MINT_0, gross - 1) < target
