"""
Upgrade purchases - Levels per kind and the purchase protocol.

Purchase steps:
1. Reject if already at MAX_LEVEL
2. Reject if the ledger cannot pay for level + 1
3. Debit, increment the level
4. Recompute ALL derived rates from the mapping and apply them
5. Notify the owner so upgrades and balance are persisted together
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Callable
import logging

from .catalog import (
    MAX_LEVEL,
    MIN_LEVEL,
    EconomyRates,
    UpgradeKind,
    cost_for_level,
    default_levels,
    derive_rates,
)
from .energy import EnergyController
from .ledger import ScoreLedger
from .outcome import FailureKind, Outcome

logger = logging.getLogger(__name__)


@dataclass
class UpgradeState:
    """
    Level per upgrade kind.

    Levels only go up; there is no downgrade path.
    """
    levels: dict[UpgradeKind, int] = field(default_factory=default_levels)

    def level(self, kind: UpgradeKind) -> int:
        return self.levels.get(UpgradeKind(kind), MIN_LEVEL)

    def is_maxed(self, kind: UpgradeKind) -> bool:
        return self.level(kind) >= MAX_LEVEL

    def next_cost(self, kind: UpgradeKind) -> int | None:
        """Price of the next level, or None when maxed."""
        if self.is_maxed(kind):
            return None
        return cost_for_level(kind, self.level(kind) + 1)

    def rates(self) -> EconomyRates:
        return derive_rates(self.levels)


class UpgradeShop:
    """Applies the purchase protocol against energy and the ledger."""

    def __init__(
        self,
        upgrades: UpgradeState,
        ledger: ScoreLedger,
        energy: EnergyController,
        on_rates_changed: Callable[[EconomyRates], None] | None = None,
        on_purchase: Callable[[UpgradeKind, int], None] | None = None,
    ):
        self.upgrades = upgrades
        self.ledger = ledger
        self.energy = energy
        self._on_rates_changed = on_rates_changed
        self._on_purchase = on_purchase

    def purchase(self, kind: UpgradeKind) -> Outcome:
        """Buy the next level of an upgrade kind."""
        kind = UpgradeKind(kind)
        level = self.upgrades.level(kind)

        if level >= MAX_LEVEL:
            return Outcome.rejected(
                FailureKind.ALREADY_MAX_LEVEL,
                f"{kind.value} is already at max level",
            )

        price = cost_for_level(kind, level + 1)
        if not self.ledger.can_afford(price):
            return Outcome.rejected(
                FailureKind.INSUFFICIENT_BALANCE,
                f"Not enough coins for {kind.value} level {level + 1} ({self.ledger.balance} < {price})",
            )

        debited = self.ledger.debit(price)
        if not debited.success:
            return debited

        self.upgrades.levels[kind] = level + 1

        # Full recompute, whichever kind changed
        rates = self.upgrades.rates()
        self.energy.apply_tier_change(rates.max_energy, rates.regen_per_second)
        if self._on_rates_changed:
            self._on_rates_changed(rates)

        logger.info("Purchased %s level %d for %d", kind.value, level + 1, price)
        if self._on_purchase:
            self._on_purchase(kind, level + 1)

        return Outcome.ok(level=level + 1)
