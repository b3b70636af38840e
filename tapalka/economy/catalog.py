"""
Upgrade Catalog - Static tier tables and derived economy rates.

Every upgrade kind has three levels. Level 1 is the free baseline;
levels 2 and 3 are bought with currency. The catalog is pure data:
lookups never mutate anything and never fail for valid input.

Derived rates are always recomputed from the full upgrade mapping,
never patched incrementally.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Mapping


class UpgradeKind(str, Enum):
    """Kinds of upgrades a player can buy."""
    CAPACITY = "capacity"  # Max energy
    REGEN_SPEED = "regen_speed"  # Regen multiplier
    TAP_POWER = "tap_power"  # Currency per tap


MIN_LEVEL = 1
MAX_LEVEL = 3

# Economy constants (not configurable at runtime)
REGEN_TICK_SECONDS = 0.1
BASE_REGEN_PER_SECOND = 3.0
DEFAULT_INCOME_PER_MINUTE = 50.0


@dataclass(frozen=True)
class UpgradeTier:
    """One row of a tier table."""
    level: int
    value: float
    cost: int | None  # None for the free baseline


TIER_TABLES: dict[UpgradeKind, tuple[UpgradeTier, ...]] = {
    UpgradeKind.CAPACITY: (
        UpgradeTier(level=1, value=30, cost=None),
        UpgradeTier(level=2, value=60, cost=500),
        UpgradeTier(level=3, value=100, cost=2500),
    ),
    UpgradeKind.REGEN_SPEED: (
        UpgradeTier(level=1, value=1.0, cost=None),
        UpgradeTier(level=2, value=1.5, cost=1000),
        UpgradeTier(level=3, value=2.5, cost=5000),
    ),
    UpgradeKind.TAP_POWER: (
        UpgradeTier(level=1, value=1, cost=None),
        UpgradeTier(level=2, value=2, cost=2000),
        UpgradeTier(level=3, value=4, cost=10000),
    ),
}


def _tier(kind: UpgradeKind, level: int) -> UpgradeTier:
    kind = UpgradeKind(kind)
    if not MIN_LEVEL <= level <= MAX_LEVEL:
        raise ValueError(f"Level {level} out of range for {kind.value}")
    return TIER_TABLES[kind][level - 1]


def value_at_level(kind: UpgradeKind, level: int) -> float:
    """Get the effect value of an upgrade kind at a level."""
    return _tier(kind, level).value


def cost_for_level(kind: UpgradeKind, level: int) -> int | None:
    """
    Get the price of reaching a level.

    Returns None for level 1 (the free baseline).
    """
    return _tier(kind, level).cost


def default_levels() -> dict[UpgradeKind, int]:
    """Baseline mapping: every kind at level 1."""
    return {kind: MIN_LEVEL for kind in UpgradeKind}


@dataclass(frozen=True)
class EconomyRates:
    """Constants derived from the upgrade mapping."""
    max_energy: int
    regen_per_second: float
    tap_power: int


def derive_rates(levels: Mapping[UpgradeKind, int]) -> EconomyRates:
    """
    Recompute all derived constants from an upgrade mapping.

    Missing kinds are treated as level 1.
    """
    def level_of(kind: UpgradeKind) -> int:
        return levels.get(kind, MIN_LEVEL)

    multiplier = value_at_level(UpgradeKind.REGEN_SPEED, level_of(UpgradeKind.REGEN_SPEED))
    return EconomyRates(
        max_energy=int(value_at_level(UpgradeKind.CAPACITY, level_of(UpgradeKind.CAPACITY))),
        regen_per_second=BASE_REGEN_PER_SECOND * multiplier,
        tap_power=int(value_at_level(UpgradeKind.TAP_POWER, level_of(UpgradeKind.TAP_POWER))),
    )


DEFAULT_RATES = derive_rates(default_levels())
