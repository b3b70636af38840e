"""
Passive Income - Currency earned without tapping.

Two modes:
- Catch-up: once at session start, credit whole minutes elapsed since
  the last accrual on top of the remote balance.
- Live: a tick every max(0.2s, 60 / income_per_minute) seconds, each
  worth one unit unless the 0.2s floor applies.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable
import math

from .catalog import DEFAULT_INCOME_PER_MINUTE
from .ledger import ScoreLedger

MIN_TICK_SECONDS = 0.2

# Tolerance when turning accumulated fractional income into whole units
_CARRY_EPSILON = 1e-9


@dataclass
class PassiveIncomeProfile:
    """Server-assigned income rate and the instant income was last accounted for."""
    income_per_minute: float = DEFAULT_INCOME_PER_MINUTE
    last_accrual_at: float = 0.0  # epoch seconds


def offline_credit(profile: PassiveIncomeProfile, now: float) -> int:
    """
    Currency earned between last_accrual_at and now.

    Only whole minutes count: 12m59s at 50/min is 600, not 650.
    A clock that went backwards earns nothing.
    """
    elapsed_minutes = math.floor((now - profile.last_accrual_at) / 60)
    return int(max(0, elapsed_minutes) * profile.income_per_minute)


def live_interval(income_per_minute: float) -> float | None:
    """Seconds between live ticks, or None when income is disabled."""
    if income_per_minute <= 0:
        return None
    return max(MIN_TICK_SECONDS, 60.0 / income_per_minute)


class PassiveIncomeAccrual:
    """
    Credits passive income to the ledger.

    on_credit runs after every live tick that credited something; the
    engine uses it to write locally and schedule a rate-limited flush.
    """

    def __init__(
        self,
        profile: PassiveIncomeProfile,
        ledger: ScoreLedger,
        on_credit: Callable[[], None] | None = None,
    ):
        self.profile = profile
        self.ledger = ledger
        self._on_credit = on_credit
        self._next_due: float | None = None
        self._carry = 0.0

    @property
    def interval(self) -> float | None:
        return live_interval(self.profile.income_per_minute)

    @property
    def next_due(self) -> float | None:
        return self._next_due

    def catch_up(self, base_balance: int, now: float) -> int:
        """
        Reconcile the ledger at session start.

        The ledger is SET to base_balance + credited, never added to a
        possibly stale in-memory value. Returns the credited amount.
        """
        credited = offline_credit(self.profile, now)
        self.ledger.reset(base_balance + credited)
        self.profile.last_accrual_at = now
        return credited

    def start(self, now: float):
        """Begin live ticking from now."""
        interval = self.interval
        self._next_due = now + interval if interval is not None else None
        self._carry = 0.0

    def update_rate(self, income_per_minute: float, now: float):
        """Adopt a new server-assigned rate and restart the live tick."""
        self.profile.income_per_minute = income_per_minute
        self.start(now)

    def advance(self, now: float) -> int:
        """
        Credit every live tick due by now.

        Normally at most one tick is due per call. After a stall, all
        missed ticks are credited together. Returns the amount credited.
        """
        interval = self.interval
        if interval is None or self._next_due is None or now < self._next_due:
            return 0

        ticks = int((now - self._next_due) // interval) + 1
        self._next_due += ticks * interval

        per_tick = self.profile.income_per_minute * interval / 60.0
        self._carry += per_tick * ticks
        whole = math.floor(self._carry + _CARRY_EPSILON)
        self._carry = max(self._carry - whole, 0.0)

        if whole <= 0:
            return 0

        self.ledger.credit(whole)
        if self._on_credit:
            self._on_credit()
        return whole
