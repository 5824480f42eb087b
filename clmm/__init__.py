"""Concentrated-liquidity AMM engine."""

from clmm.errors import ClmmError
from clmm.ledger import Ledger, memory_ledger

__version__ = "0.1.0"
__all__ = ["ClmmError", "Ledger", "memory_ledger", "__version__"]
