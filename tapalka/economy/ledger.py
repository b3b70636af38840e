"""
Score Ledger - The authoritative in-memory currency balance.
"""

from __future__ import annotations

from .host import Display, NullDisplay
from .outcome import FailureKind, Outcome


class ScoreLedger:
    """
    Currency balance. Never negative.

    Mutated by taps, purchases and passive accrual. Persistence is the
    engine's job; the ledger only notifies the display.
    """

    def __init__(self, balance: int = 0, display: Display | None = None):
        if balance < 0:
            raise ValueError("balance must be non-negative")
        self._balance = int(balance)
        self.display = display or NullDisplay()

    @property
    def balance(self) -> int:
        return self._balance

    def credit(self, amount: int):
        """Add currency. amount must be >= 0."""
        if amount < 0:
            raise ValueError("credit amount must be non-negative")
        self._balance += int(amount)
        self.display.balance_changed(self._balance)

    def debit(self, amount: int) -> Outcome:
        """Remove currency, or fail with INSUFFICIENT_BALANCE and change nothing."""
        if amount < 0:
            raise ValueError("debit amount must be non-negative")
        if self._balance < amount:
            return Outcome.rejected(
                FailureKind.INSUFFICIENT_BALANCE,
                f"Not enough coins ({self._balance} < {amount})",
            )
        self._balance -= int(amount)
        self.display.balance_changed(self._balance)
        return Outcome.ok()

    def can_afford(self, amount: int) -> bool:
        return self._balance >= amount

    def reset(self, balance: int):
        """Replace the balance wholesale (session-start reconciliation)."""
        if balance < 0:
            raise ValueError("balance must be non-negative")
        self._balance = int(balance)
        self.display.balance_changed(self._balance)
