"""In-memory store implementations.

Records are deep-copied on the way in and out, so the engine only ever holds
its own copies and a failed operation cannot leak partial mutations.
"""

from __future__ import annotations

import copy
from collections import defaultdict
from dataclasses import dataclass

from clmm.errors import InsufficientFunds, RecordNotFound
from clmm.ledger.interfaces import Ledger
from clmm.math.checked import ceiling_div, to_u64
from clmm.state.config import AmmConfig
from clmm.state.observation import ObservationState
from clmm.state.pool import Pool
from clmm.state.position import PersonalPosition, ProtocolPosition
from clmm.state.tick import Tick
from clmm.tick_index.index import TickIndex

BASIS_POINTS = 10_000


class MemoryAmmConfigStore:
    def __init__(self) -> None:
        self._configs: dict[int, AmmConfig] = {}

    def load(self, index: int) -> AmmConfig:
        if index not in self._configs:
            raise RecordNotFound(f"AMM config {index}")
        return self._configs[index].model_copy(deep=True)

    def save(self, config: AmmConfig) -> None:
        self._configs[config.index] = config.model_copy(deep=True)

    def exists(self, index: int) -> bool:
        return index in self._configs


class MemoryPoolStore:
    def __init__(self) -> None:
        self._pools: dict[str, Pool] = {}

    def load(self, pool_id: str) -> Pool:
        if pool_id not in self._pools:
            raise RecordNotFound(f"Pool {pool_id}")
        return copy.deepcopy(self._pools[pool_id])

    def save(self, pool: Pool) -> None:
        self._pools[pool.pool_id] = copy.deepcopy(pool)

    def exists(self, pool_id: str) -> bool:
        return pool_id in self._pools


class MemoryTickStore:
    def __init__(self) -> None:
        self._ticks: dict[tuple[str, int], Tick] = {}

    def get_or_init(self, pool_id: str, tick: int) -> Tick:
        stored = self._ticks.get((pool_id, tick))
        if stored is None:
            return Tick(tick=tick)
        return copy.deepcopy(stored)

    def save(self, pool_id: str, tick: Tick) -> None:
        if tick.is_initialized():
            self._ticks[(pool_id, tick.tick)] = copy.deepcopy(tick)
        else:
            self._ticks.pop((pool_id, tick.tick), None)

    def initialized_ticks(self, pool_id: str) -> list[int]:
        return sorted(t for (p, t) in self._ticks if p == pool_id)


class MemoryTickIndexStore:
    def __init__(self) -> None:
        self._indexes: dict[str, TickIndex] = {}

    def load(self, pool_id: str) -> TickIndex:
        if pool_id not in self._indexes:
            raise RecordNotFound(f"Tick index for pool {pool_id}")
        return copy.deepcopy(self._indexes[pool_id])

    def save(self, pool_id: str, index: TickIndex) -> None:
        self._indexes[pool_id] = copy.deepcopy(index)


class MemoryPositionStore:
    def __init__(self) -> None:
        self._positions: dict[tuple[str, int, int], ProtocolPosition] = {}

    def get_or_init(self, pool_id: str, tick_lower: int, tick_upper: int) -> ProtocolPosition:
        stored = self._positions.get((pool_id, tick_lower, tick_upper))
        if stored is None:
            return ProtocolPosition(pool_id=pool_id, tick_lower=tick_lower, tick_upper=tick_upper)
        return copy.deepcopy(stored)

    def save(self, position: ProtocolPosition) -> None:
        key = (position.pool_id, position.tick_lower, position.tick_upper)
        self._positions[key] = copy.deepcopy(position)


class MemoryObservationStore:
    def __init__(self) -> None:
        self._states: dict[str, ObservationState] = {}

    def get_or_init(self, pool_id: str) -> ObservationState:
        stored = self._states.get(pool_id)
        if stored is None:
            return ObservationState(pool_id=pool_id)
        return copy.deepcopy(stored)

    def save(self, state: ObservationState) -> None:
        self._states[state.pool_id] = copy.deepcopy(state)


def personal_position_id(pool_id: str, owner: str, tick_lower: int, tick_upper: int) -> str:
    return f"{pool_id}:{owner}:{tick_lower}:{tick_upper}"


class MemoryPersonalPositionStore:
    def __init__(self) -> None:
        self._positions: dict[str, PersonalPosition] = {}

    def get_or_init(
        self, pool_id: str, owner: str, tick_lower: int, tick_upper: int
    ) -> PersonalPosition:
        position_id = personal_position_id(pool_id, owner, tick_lower, tick_upper)
        stored = self._positions.get(position_id)
        if stored is None:
            return PersonalPosition(
                position_id=position_id,
                owner=owner,
                pool_id=pool_id,
                tick_lower=tick_lower,
                tick_upper=tick_upper,
            )
        return copy.deepcopy(stored)

    def load(self, position_id: str) -> PersonalPosition:
        if position_id not in self._positions:
            raise RecordNotFound(f"Position {position_id}")
        return copy.deepcopy(self._positions[position_id])

    def save(self, position: PersonalPosition) -> None:
        self._positions[position.position_id] = copy.deepcopy(position)

    def delete(self, position_id: str) -> None:
        self._positions.pop(position_id, None)

    def exists(self, position_id: str) -> bool:
        return position_id in self._positions


@dataclass(frozen=True)
class TransferFeeConfig:
    """Transfer fee charged by a token on every transfer.

    Attributes:
        basis_points: Fee rate in basis points (100 = 1%)
        maximum_fee: Cap on the fee per transfer
    """

    basis_points: int
    maximum_fee: int

    def fee(self, amount: int) -> int:
        if self.basis_points == 0 or amount == 0:
            return 0
        return min(ceiling_div(amount * self.basis_points, BASIS_POINTS), self.maximum_fee)


class MemoryTokenLedger:
    """Balances keyed by (account, mint), with optional per-mint transfer fees."""

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = defaultdict(int)
        self._fees: dict[str, TransferFeeConfig] = {}

    def set_transfer_fee(self, mint: str, basis_points: int, maximum_fee: int) -> None:
        self._fees[mint] = TransferFeeConfig(basis_points=basis_points, maximum_fee=maximum_fee)

    def mint_to(self, account: str, mint: str, amount: int) -> None:
        """Create tokens out of thin air (test and simulation setup)."""
        self.credit(account, mint, amount)

    def balance(self, account: str, mint: str) -> int:
        return self._balances.get((account, mint), 0)

    def debit(self, account: str, mint: str, amount: int) -> int:
        current = self.balance(account, mint)
        if current < amount:
            raise InsufficientFunds(f"{account} holds {current} {mint}, needs {amount}")
        self._balances[(account, mint)] = current - amount
        return amount - self.transfer_fee(mint, amount)

    def credit(self, account: str, mint: str, amount: int) -> None:
        self._balances[(account, mint)] = to_u64(
            self.balance(account, mint) + amount, f"{account} {mint} balance"
        )

    def transfer_fee(self, mint: str, amount: int) -> int:
        config = self._fees.get(mint)
        if config is None:
            return 0
        return config.fee(amount)

    def inverse_transfer_fee(self, mint: str, post_fee_amount: int) -> int:
        config = self._fees.get(mint)
        if config is None or config.basis_points == 0 or post_fee_amount == 0:
            return 0
        if config.basis_points >= BASIS_POINTS:
            return config.maximum_fee

        # Smallest pre-fee amount that delivers post_fee_amount; the net amount
        # is non-decreasing in steps of at most 1, so the search is exact
        pre = ceiling_div(post_fee_amount * BASIS_POINTS, BASIS_POINTS - config.basis_points)
        pre = min(pre, post_fee_amount + config.maximum_fee)
        while pre - config.fee(pre) < post_fee_amount:
            pre += 1
        while pre > post_fee_amount and (pre - 1) - config.fee(pre - 1) >= post_fee_amount:
            pre -= 1
        return pre - post_fee_amount


def memory_ledger() -> Ledger:
    """Build a Ledger backed entirely by in-memory stores."""
    return Ledger(
        configs=MemoryAmmConfigStore(),
        pools=MemoryPoolStore(),
        ticks=MemoryTickStore(),
        tick_indexes=MemoryTickIndexStore(),
        positions=MemoryPositionStore(),
        personal_positions=MemoryPersonalPositionStore(),
        tokens=MemoryTokenLedger(),
        observations=MemoryObservationStore(),
    )


__all__ = [
    "MemoryAmmConfigStore",
    "MemoryPoolStore",
    "MemoryTickStore",
    "MemoryTickIndexStore",
    "MemoryPositionStore",
    "MemoryPersonalPositionStore",
    "MemoryObservationStore",
    "MemoryTokenLedger",
    "TransferFeeConfig",
    "personal_position_id",
    "memory_ledger",
]
