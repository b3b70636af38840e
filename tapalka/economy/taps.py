"""
Tap Processor - The one entry point coupling energy and currency.

A tap spends 1 energy and credits tap power. Both happen or neither
does.
"""

from __future__ import annotations
from typing import Callable

from .energy import EnergyController
from .host import Haptics, NullHaptics
from .ledger import ScoreLedger
from .outcome import Outcome

TAP_ENERGY_COST = 1


class TapProcessor:
    """
    Validates and applies a single tap.

    tap_power is read through a callable so the processor always sees
    the rates derived from the current upgrade tier.
    """

    def __init__(
        self,
        energy: EnergyController,
        ledger: ScoreLedger,
        tap_power: Callable[[], int],
        haptics: Haptics | None = None,
    ):
        self.energy = energy
        self.ledger = ledger
        self._tap_power = tap_power
        self.haptics = haptics or NullHaptics()

    def process_tap(self) -> Outcome:
        """
        Process one tap.

        Returns the reward on success. On INSUFFICIENT_ENERGY the ledger
        is not touched.
        """
        spent = self.energy.spend(TAP_ENERGY_COST)
        if not spent.success:
            return spent

        reward = self._tap_power()
        self.ledger.credit(reward)
        self.haptics.impact("medium")
        return Outcome.ok(reward=reward)
