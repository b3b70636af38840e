"""
Tests for the upgrade purchase protocol.

Tests:
- Purchase succeeds iff level < 3 and balance >= cost
- Rejections leave balance and level untouched
- Derived constants are recomputed from the whole mapping
- Upgrades and balance are persisted as one local write
"""

from ..economy.catalog import UpgradeKind
from ..economy.energy import EnergyController, EnergyState
from ..economy.ledger import ScoreLedger
from ..economy.outcome import FailureKind
from ..economy.upgrades import UpgradeShop, UpgradeState
from ..persistence.schema import EconomySnapshot


def make_shop(balance: int):
    upgrades = UpgradeState()
    ledger = ScoreLedger(balance)
    energy = EnergyController(EnergyState(current=30.0, max=30, regen_per_second=3.0))
    rates = []
    purchases = []
    shop = UpgradeShop(
        upgrades,
        ledger,
        energy,
        on_rates_changed=rates.append,
        on_purchase=lambda kind, level: purchases.append((kind, level)),
    )
    return shop, upgrades, ledger, energy, rates, purchases


class TestUpgradeShop:
    """Purchase protocol on its own."""

    def test_capacity_purchase_with_exact_balance(self):
        """balance=500, capacity L2 -> balance 0, level 2, max energy 60."""
        shop, upgrades, ledger, energy, rates, purchases = make_shop(500)

        outcome = shop.purchase(UpgradeKind.CAPACITY)

        assert outcome.success
        assert outcome.level == 2
        assert ledger.balance == 0
        assert upgrades.level(UpgradeKind.CAPACITY) == 2
        assert energy.state.max == 60
        assert rates[-1].max_energy == 60
        assert purchases == [(UpgradeKind.CAPACITY, 2)]

    def test_capacity_purchase_short_of_cost_rejected(self):
        """balance=400, capacity L2 (500) -> rejected, nothing changes."""
        shop, upgrades, ledger, energy, rates, purchases = make_shop(400)

        outcome = shop.purchase(UpgradeKind.CAPACITY)

        assert not outcome.success
        assert outcome.failure == FailureKind.INSUFFICIENT_BALANCE
        assert ledger.balance == 400
        assert upgrades.level(UpgradeKind.CAPACITY) == 1
        assert energy.state.max == 30
        assert rates == []
        assert purchases == []

    def test_already_max_level_rejected(self):
        shop, upgrades, ledger, _, _, _ = make_shop(1_000_000)
        assert shop.purchase(UpgradeKind.TAP_POWER).success
        assert shop.purchase(UpgradeKind.TAP_POWER).success
        balance = ledger.balance

        outcome = shop.purchase(UpgradeKind.TAP_POWER)

        assert outcome.failure == FailureKind.ALREADY_MAX_LEVEL
        assert ledger.balance == balance
        assert upgrades.level(UpgradeKind.TAP_POWER) == 3

    def test_levels_are_bought_in_order(self):
        shop, upgrades, ledger, _, _, _ = make_shop(3000)
        shop.purchase(UpgradeKind.CAPACITY)
        shop.purchase(UpgradeKind.CAPACITY)
        assert upgrades.level(UpgradeKind.CAPACITY) == 3
        assert ledger.balance == 0  # 500 + 2500

    def test_regen_purchase_recomputes_every_rate(self):
        shop, upgrades, _, energy, rates, _ = make_shop(10_000)
        upgrades.levels[UpgradeKind.TAP_POWER] = 2

        shop.purchase(UpgradeKind.REGEN_SPEED)

        assert energy.state.regen_per_second == 4.5
        assert rates[-1].tap_power == 2
        assert rates[-1].max_energy == 30

    def test_next_cost(self):
        upgrades = UpgradeState()
        assert upgrades.next_cost(UpgradeKind.REGEN_SPEED) == 1000
        upgrades.levels[UpgradeKind.REGEN_SPEED] = 3
        assert upgrades.next_cost(UpgradeKind.REGEN_SPEED) is None


class TestEnginePurchase:
    """Purchases through the engine context."""

    def test_purchase_updates_tap_power(self, rich_engine):
        assert rich_engine.purchase(UpgradeKind.TAP_POWER).success
        outcome = rich_engine.tap()
        assert outcome.reward == 2

    def test_purchase_is_one_local_write(self, rich_engine, local):
        writes_before = local.write_count

        rich_engine.purchase(UpgradeKind.CAPACITY)

        assert local.write_count == writes_before + 1
        saved = EconomySnapshot.from_cache_entries(dict(local.data))
        assert saved.balance == 19_500
        assert saved.upgrades[UpgradeKind.CAPACITY] == 2

    def test_rejected_purchase_shows_notice(self, engine, display, local):
        writes_before = local.write_count

        outcome = engine.purchase(UpgradeKind.CAPACITY)

        assert outcome.failure == FailureKind.INSUFFICIENT_BALANCE
        assert display.notices[-1][0] == FailureKind.INSUFFICIENT_BALANCE
        assert local.write_count == writes_before
