"""Store contracts the engine reads and mutates through.

Persistence is owned by the surrounding ledger. The engine loads records,
works on them for the duration of one operation, and hands them back with
``save``; it never keeps references between calls. Implementations must give
the engine its own copy on ``load`` so that an aborted operation leaves the
stored record untouched.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from clmm.state.config import AmmConfig
from clmm.state.observation import ObservationState
from clmm.state.pool import Pool
from clmm.state.position import PersonalPosition, ProtocolPosition
from clmm.state.tick import Tick
from clmm.tick_index.index import TickIndex


class AmmConfigStore(Protocol):
    """Fee-tier configs keyed by index."""

    def load(self, index: int) -> AmmConfig:
        """Return a copy of the config.

        Raises:
            RecordNotFound: If no config has this index
        """
        ...

    def save(self, config: AmmConfig) -> None: ...

    def exists(self, index: int) -> bool: ...


class PoolStore(Protocol):
    """Pools keyed by pool id."""

    def load(self, pool_id: str) -> Pool:
        """Return a copy of the pool.

        Raises:
            RecordNotFound: If the pool does not exist
        """
        ...

    def save(self, pool: Pool) -> None: ...

    def exists(self, pool_id: str) -> bool: ...


class TickStore(Protocol):
    """Tick records keyed by (pool id, tick)."""

    def get_or_init(self, pool_id: str, tick: int) -> Tick:
        """Return a copy of the tick, or a fresh uninitialized tick."""
        ...

    def save(self, pool_id: str, tick: Tick) -> None:
        """Persist a tick; uninitialized ticks are dropped."""
        ...


class TickIndexStore(Protocol):
    """Bitmap words (default window and extension) keyed by pool id."""

    def load(self, pool_id: str) -> TickIndex:
        """Return a copy of the pool's tick index.

        Raises:
            RecordNotFound: If the pool has no index
        """
        ...

    def save(self, pool_id: str, index: TickIndex) -> None: ...


class PositionStore(Protocol):
    """Aggregate positions keyed by (pool id, tick_lower, tick_upper)."""

    def get_or_init(self, pool_id: str, tick_lower: int, tick_upper: int) -> ProtocolPosition: ...

    def save(self, position: ProtocolPosition) -> None: ...


class PersonalPositionStore(Protocol):
    """Owner positions keyed by position id."""

    def get_or_init(
        self, pool_id: str, owner: str, tick_lower: int, tick_upper: int
    ) -> PersonalPosition:
        """Return a copy of the owner's position on the range, or a fresh empty one."""
        ...

    def load(self, position_id: str) -> PersonalPosition:
        """Return a copy of the position.

        Raises:
            RecordNotFound: If the position does not exist
        """
        ...

    def save(self, position: PersonalPosition) -> None: ...

    def delete(self, position_id: str) -> None: ...

    def exists(self, position_id: str) -> bool: ...


class ObservationStore(Protocol):
    """Tick oracle rings keyed by pool id."""

    def get_or_init(self, pool_id: str) -> ObservationState:
        """Return a copy of the pool's ring, or a fresh empty one."""
        ...

    def save(self, state: ObservationState) -> None: ...


class TokenLedger(Protocol):
    """Token balances and transfers, including transfer-fee-bearing tokens.

    The engine works with pre-transfer-fee amounts and asks the ledger for
    fee-adjusted amounts where precision matters.
    """

    def balance(self, account: str, mint: str) -> int: ...

    def debit(self, account: str, mint: str, amount: int) -> int:
        """Remove ``amount`` from ``account``.

        Returns:
            The amount the counterparty receives after the token's transfer fee

        Raises:
            InsufficientFunds: If the balance is below amount
        """
        ...

    def credit(self, account: str, mint: str, amount: int) -> None: ...

    def transfer_fee(self, mint: str, amount: int) -> int:
        """Fee withheld when transferring ``amount`` of mint."""
        ...

    def inverse_transfer_fee(self, mint: str, post_fee_amount: int) -> int:
        """Fee to add so that ``post_fee_amount`` arrives after the transfer fee."""
        ...


@dataclass
class Ledger:
    """All stores one engine operation needs."""

    configs: AmmConfigStore
    pools: PoolStore
    ticks: TickStore
    tick_indexes: TickIndexStore
    positions: PositionStore
    personal_positions: PersonalPositionStore
    tokens: TokenLedger
    observations: ObservationStore

    def transfer(self, mint: str, source: str, destination: str, amount: int) -> int:
        """Move tokens between accounts; returns the amount received."""
        if amount == 0:
            return 0
        received = self.tokens.debit(source, mint, amount)
        self.tokens.credit(destination, mint, received)
        return received


__all__ = [
    "AmmConfigStore",
    "PoolStore",
    "TickStore",
    "TickIndexStore",
    "PositionStore",
    "PersonalPositionStore",
    "ObservationStore",
    "TokenLedger",
    "Ledger",
]
