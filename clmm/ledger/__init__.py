"""Store contracts and in-memory implementations."""

from clmm.ledger.interfaces import (
    AmmConfigStore,
    Ledger,
    ObservationStore,
    PersonalPositionStore,
    PoolStore,
    PositionStore,
    TickIndexStore,
    TickStore,
    TokenLedger,
)
from clmm.ledger.memory import MemoryTokenLedger, memory_ledger, personal_position_id

__all__ = [
    # Contracts
    "AmmConfigStore",
    "PoolStore",
    "TickStore",
    "TickIndexStore",
    "PositionStore",
    "PersonalPositionStore",
    "ObservationStore",
    "TokenLedger",
    "Ledger",
    # In-memory
    "MemoryTokenLedger",
    "memory_ledger",
    "personal_position_id",
]
