"""
Tests for passive income.

Tests:
- Offline catch-up counts whole minutes only
- Live tick interval and its 0.2s floor
- Fractional income carried between ticks
- Missed ticks credited together
"""

from ..economy.ledger import ScoreLedger
from ..economy.passive import (
    MIN_TICK_SECONDS,
    PassiveIncomeAccrual,
    PassiveIncomeProfile,
    live_interval,
    offline_credit,
)
from .conftest import START_TIME


def make_accrual(income_per_minute: float = 50.0, balance: int = 0):
    ledger = ScoreLedger(balance)
    credits = []
    profile = PassiveIncomeProfile(income_per_minute=income_per_minute, last_accrual_at=START_TIME)
    accrual = PassiveIncomeAccrual(profile, ledger, on_credit=lambda: credits.append(ledger.balance))
    return accrual, ledger, credits


class TestOfflineCredit:
    """Catch-up credit from elapsed wall time."""

    def test_partial_minute_is_dropped(self):
        """12m59s at 50/min -> 600, not 650."""
        profile = PassiveIncomeProfile(income_per_minute=50, last_accrual_at=START_TIME)
        assert offline_credit(profile, START_TIME + 12 * 60 + 59) == 600

    def test_exact_minutes(self):
        profile = PassiveIncomeProfile(income_per_minute=50, last_accrual_at=START_TIME)
        assert offline_credit(profile, START_TIME + 13 * 60) == 650

    def test_clock_behind_last_accrual_earns_nothing(self):
        profile = PassiveIncomeProfile(income_per_minute=50, last_accrual_at=START_TIME)
        assert offline_credit(profile, START_TIME - 3600) == 0

    def test_under_a_minute_earns_nothing(self):
        profile = PassiveIncomeProfile(income_per_minute=50, last_accrual_at=START_TIME)
        assert offline_credit(profile, START_TIME + 59) == 0

    def test_catch_up_sets_balance_and_accrual_time(self):
        accrual, ledger, _ = make_accrual(balance=123456)

        credited = accrual.catch_up(1000, START_TIME + 12 * 60 + 59)

        assert credited == 600
        # Replaced, not added to the stale in-memory balance
        assert ledger.balance == 1600
        assert accrual.profile.last_accrual_at == START_TIME + 12 * 60 + 59


class TestLiveInterval:
    """Seconds between live ticks."""

    def test_one_unit_per_tick_at_low_rates(self):
        assert live_interval(60) == 1.0
        assert live_interval(30) == 2.0

    def test_floor_applies_at_high_rates(self):
        assert live_interval(600) == MIN_TICK_SECONDS
        assert live_interval(300) == MIN_TICK_SECONDS

    def test_zero_rate_disables_live_ticks(self):
        assert live_interval(0) is None


class TestLiveAccrual:
    """advance() credits due ticks."""

    def test_nothing_before_first_tick(self):
        accrual, ledger, credits = make_accrual(income_per_minute=60)
        accrual.start(START_TIME)

        assert accrual.advance(START_TIME + 0.5) == 0
        assert ledger.balance == 0
        assert credits == []

    def test_one_unit_per_interval(self):
        accrual, ledger, credits = make_accrual(income_per_minute=60)
        accrual.start(START_TIME)

        assert accrual.advance(START_TIME + 1.05) == 1
        assert accrual.advance(START_TIME + 1.5) == 0
        assert accrual.advance(START_TIME + 2.05) == 1
        assert ledger.balance == 2
        assert credits == [1, 2]

    def test_floored_interval_carries_fractions(self):
        """450/min floors to 0.2s ticks worth 1.5 each; nothing is lost."""
        accrual, ledger, _ = make_accrual(income_per_minute=450)
        accrual.start(START_TIME)

        assert accrual.advance(START_TIME + 0.25) == 1
        assert accrual.advance(START_TIME + 0.45) == 2
        assert ledger.balance == 3

    def test_missed_ticks_credited_together(self):
        accrual, ledger, credits = make_accrual(income_per_minute=50)
        accrual.start(START_TIME)

        # Ticks every 1.2s: due at 1.2, 2.4, ... 12.0
        credited = accrual.advance(START_TIME + 12.5)

        assert credited == 10
        assert ledger.balance == 10
        assert len(credits) == 1

    def test_rate_change_restarts_ticking(self):
        accrual, ledger, _ = make_accrual(income_per_minute=60)
        accrual.start(START_TIME)

        accrual.update_rate(120, START_TIME + 0.9)

        assert accrual.next_due == START_TIME + 0.9 + 0.5
        assert accrual.advance(START_TIME + 1.45) == 1

    def test_zero_rate_never_credits(self):
        accrual, ledger, credits = make_accrual(income_per_minute=0)
        accrual.start(START_TIME)

        assert accrual.next_due is None
        assert accrual.advance(START_TIME + 3600) == 0
        assert ledger.balance == 0
        assert credits == []
