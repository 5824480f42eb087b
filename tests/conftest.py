"""Pytest configuration and fixtures."""

import pytest

from clmm.ledger import Ledger, memory_ledger
from tests.helpers import DEEP_LIQUIDITY, SHALLOW_LIQUIDITY, add_position, make_pool_ledger


@pytest.fixture
def ledger() -> Ledger:
    """Empty in-memory ledger."""
    return memory_ledger()


@pytest.fixture
def pool_ledger() -> Ledger:
    """Ledger with one empty pool at tick 0 and funded accounts."""
    return make_pool_ledger()


@pytest.fixture
def liquid_ledger() -> tuple[Ledger, str]:
    """Pool at tick 0 with one deep position on [-600, 600).

    Returns:
        (ledger, position_id)
    """
    ledger = make_pool_ledger()
    position_id = add_position(ledger, -600, 600, DEEP_LIQUIDITY)
    return ledger, position_id


@pytest.fixture
def shallow_ledger() -> tuple[Ledger, str]:
    """Pool at tick 0 with one shallow position on [-600, 600).

    Large swaps run through the position and out the other side.

    Returns:
        (ledger, position_id)
    """
    ledger = make_pool_ledger()
    position_id = add_position(ledger, -600, 600, SHALLOW_LIQUIDITY)
    return ledger, position_id
