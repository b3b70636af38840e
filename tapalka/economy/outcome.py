"""
Outcomes - Results of gameplay operations.

Gameplay rejections are values, not exceptions. Every operation
either fully applies or fully no-ops, and reports which with an
Outcome:
- success: whether the operation applied
- failure: which rejection kind, if it did not
- reward/balance: data for UI feedback
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum


class FailureKind(str, Enum):
    """Local, non-fatal rejection kinds."""
    INSUFFICIENT_ENERGY = "INSUFFICIENT_ENERGY"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ALREADY_MAX_LEVEL = "ALREADY_MAX_LEVEL"


@dataclass(frozen=True)
class Outcome:
    """Result of a tap, spend, debit or purchase."""
    success: bool
    failure: FailureKind | None = None
    message: str | None = None

    # For UI feedback
    reward: int = 0
    level: int | None = None

    @classmethod
    def ok(cls, reward: int = 0, level: int | None = None) -> Outcome:
        """Create a success outcome."""
        return cls(success=True, reward=reward, level=level)

    @classmethod
    def rejected(cls, failure: FailureKind, message: str) -> Outcome:
        """Create a rejection outcome."""
        return cls(success=False, failure=failure, message=message)
