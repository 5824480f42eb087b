"""Token movements at the end of an engine operation.

The whole batch is checked before the first transfer executes, so a batch
either moves every amount or raises without touching the ledger.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from clmm.errors import InsufficientFunds
from clmm.ledger.interfaces import Ledger


@dataclass(frozen=True)
class Transfer:
    """One token movement between two accounts (pre-transfer-fee amount)."""

    mint: str
    source: str
    destination: str
    amount: int


def check_transfers(ledger: Ledger, transfers: Sequence[Transfer]) -> None:
    """Replay the batch in order against current balances.

    Amounts received earlier in the batch (after transfer fees) count towards
    later debits from the same account.

    Raises:
        InsufficientFunds: If any source account is short when its transfer runs
    """
    balances: dict[tuple[str, str], int] = {}

    def _balance(account: str, mint: str) -> int:
        if (account, mint) not in balances:
            balances[(account, mint)] = ledger.tokens.balance(account, mint)
        return balances[(account, mint)]

    for transfer in transfers:
        if transfer.amount == 0:
            continue
        available = _balance(transfer.source, transfer.mint)
        if available < transfer.amount:
            raise InsufficientFunds(
                f"{transfer.source} holds {available} {transfer.mint}, needs {transfer.amount}"
            )
        balances[(transfer.source, transfer.mint)] = available - transfer.amount
        received = transfer.amount - ledger.tokens.transfer_fee(transfer.mint, transfer.amount)
        balances[(transfer.destination, transfer.mint)] = (
            _balance(transfer.destination, transfer.mint) + received
        )


def execute_transfers(ledger: Ledger, transfers: Sequence[Transfer]) -> list[int]:
    """Check then execute a batch of transfers.

    Returns:
        Amount received by each destination, in order
    """
    check_transfers(ledger, transfers)
    return [
        ledger.transfer(transfer.mint, transfer.source, transfer.destination, transfer.amount)
        for transfer in transfers
    ]


__all__ = ["Transfer", "check_transfers", "execute_transfers"]
