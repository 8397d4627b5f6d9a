"""Token transfer layer.

Pools hand the ledger a whole batch of transfers per operation. A ledger
must apply the batch completely or raise without applying anything, which
lets the pool commit its own state only after settlement succeeds.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

import structlog

from .errors import InsufficientFunds, ZeroAmount

logger = structlog.get_logger()


@dataclass(frozen=True)
class Transfer:
    """Movement of a raw token amount between two accounts."""

    token: str
    sender: str
    recipient: str
    amount: int


class Ledger(Protocol):
    """Atomic batch transfer interface."""

    def settle(self, transfers: Sequence[Transfer]) -> None: ...


class InMemoryLedger:
    """Ledger keeping balances in a dictionary.

    The batch is checked against running balances before anything is
    written, so a failing transfer leaves every balance untouched.
    """

    def __init__(self) -> None:
        self._balances: dict[tuple[str, str], int] = defaultdict(int)

    def balance_of(self, token: str, account: str) -> int:
        return self._balances.get((token, account), 0)

    def mint(self, token: str, account: str, amount: int) -> None:
        """Credit account out of thin air (test and bootstrap helper)."""
        if amount <= 0:
            raise ZeroAmount("mint amount must be positive")
        self._balances[(token, account)] += amount

    def settle(self, transfers: Sequence[Transfer]) -> None:
        """Apply transfers atomically.

        Raises:
            InsufficientFunds: If any sender cannot cover its transfers
        """
        pending: dict[tuple[str, str], int] = {}
        for transfer in transfers:
            if transfer.amount < 0:
                raise ValueError(f"Negative transfer amount: {transfer.amount}")
            source = (transfer.token, transfer.sender)
            target = (transfer.token, transfer.recipient)
            pending.setdefault(source, self.balance_of(*source))
            pending.setdefault(target, self.balance_of(*target))
            if pending[source] < transfer.amount:
                logger.debug(
                    "ledger_insufficient_funds",
                    token=transfer.token,
                    account=transfer.sender,
                    available=pending[source],
                    required=transfer.amount,
                )
                raise InsufficientFunds(
                    f"{transfer.sender} holds {pending[source]} {transfer.token}, "
                    f"needs {transfer.amount}"
                )
            pending[source] -= transfer.amount
            pending[target] += transfer.amount

        self._balances.update(pending)
