"""
Economy - Energy, currency and upgrade rules.

The economy is pure in-memory state plus rules:
1. UpgradeCatalog defines tiers and derives rate constants
2. EnergyController regenerates and spends energy
3. ScoreLedger holds the balance
4. TapProcessor couples one energy spend to one credit
5. UpgradeShop applies the purchase protocol
6. PassiveIncomeAccrual credits income live and after time away

Persistence is layered on top by the session's EconomyEngine.
"""

from .catalog import (
    UpgradeKind,
    UpgradeTier,
    EconomyRates,
    MAX_LEVEL,
    TIER_TABLES,
    value_at_level,
    cost_for_level,
    derive_rates,
)
from .outcome import Outcome, FailureKind
from .energy import EnergyController, EnergyState, EnergyPhase
from .ledger import ScoreLedger
from .taps import TapProcessor
from .upgrades import UpgradeState, UpgradeShop
from .passive import PassiveIncomeAccrual, PassiveIncomeProfile, offline_credit
from .host import Haptics, Display, NullHaptics, NullDisplay

__all__ = [
    "UpgradeKind",
    "UpgradeTier",
    "EconomyRates",
    "MAX_LEVEL",
    "TIER_TABLES",
    "value_at_level",
    "cost_for_level",
    "derive_rates",
    "Outcome",
    "FailureKind",
    "EnergyController",
    "EnergyState",
    "EnergyPhase",
    "ScoreLedger",
    "TapProcessor",
    "UpgradeState",
    "UpgradeShop",
    "PassiveIncomeAccrual",
    "PassiveIncomeProfile",
    "offline_credit",
    "Haptics",
    "Display",
    "NullHaptics",
    "NullDisplay",
]
