"""
Energy Controller - Regenerating energy with exhaustion hysteresis.

State machine:
    ACTIVE --spend drives current to 0--> EXHAUSTED
    EXHAUSTED --tick observes current >= max/2--> ACTIVE

Taps are rejected while EXHAUSTED. A rejection is feedback, not a
transition.
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Callable

from .host import Display, NullDisplay
from .outcome import FailureKind, Outcome

# Rounding applied after every change so fixed-step regen lands on exact values
ENERGY_PRECISION = 6


class EnergyPhase(Enum):
    ACTIVE = "active"
    EXHAUSTED = "exhausted"


@dataclass
class EnergyState:
    """
    Current energy of a player.

    Invariants:
    - 0 <= current <= max
    - exhausted is only cleared once current >= max / 2
    """
    current: float
    max: int
    regen_per_second: float
    exhausted: bool = False

    @classmethod
    def restore(cls, persisted: float | None, maximum: int, regen_per_second: float) -> EnergyState:
        """Create from a persisted value, clamped to [0, max]; full if none."""
        current = float(maximum) if persisted is None else min(max(float(persisted), 0.0), float(maximum))
        return cls(
            current=current,
            max=maximum,
            regen_per_second=regen_per_second,
            exhausted=current <= 0,
        )

    @property
    def phase(self) -> EnergyPhase:
        return EnergyPhase.EXHAUSTED if self.exhausted else EnergyPhase.ACTIVE

    @property
    def recovery_threshold(self) -> float:
        return self.max / 2


class EnergyController:
    """
    Owns the EnergyState and advances it on a fixed tick.

    Side effects of tick():
    - display update on every tick
    - local snapshot through on_snapshot, gated by snapshot_gate
      (a rate limiter, so writes stay bounded)
    """

    def __init__(
        self,
        state: EnergyState,
        display: Display | None = None,
        on_snapshot: Callable[[], None] | None = None,
        snapshot_gate: Callable[[], bool] | None = None,
    ):
        self.state = state
        self.display = display or NullDisplay()
        self._on_snapshot = on_snapshot
        self._snapshot_gate = snapshot_gate

    @property
    def current(self) -> float:
        return self.state.current

    @property
    def exhausted(self) -> bool:
        return self.state.exhausted

    def tick(self, delta_seconds: float):
        """Regenerate for delta_seconds and clear exhaustion past max/2."""
        if delta_seconds < 0:
            raise ValueError("delta_seconds must be non-negative")

        state = self.state
        regenerated = state.current + state.regen_per_second * delta_seconds
        state.current = min(round(regenerated, ENERGY_PRECISION), float(state.max))

        if state.exhausted and state.current >= state.recovery_threshold:
            state.exhausted = False

        self._render()
        if self._on_snapshot and (self._snapshot_gate is None or self._snapshot_gate()):
            self._on_snapshot()

    def spend(self, amount: float) -> Outcome:
        """
        Spend energy for one action.

        Fails with INSUFFICIENT_ENERGY (no mutation) while exhausted or
        when current < amount.
        """
        if amount <= 0:
            raise ValueError("amount must be positive")

        state = self.state
        if state.exhausted:
            return Outcome.rejected(
                FailureKind.INSUFFICIENT_ENERGY,
                "Out of energy - wait for it to recover",
            )
        if state.current < amount:
            return Outcome.rejected(
                FailureKind.INSUFFICIENT_ENERGY,
                f"Not enough energy ({state.current:.1f} < {amount})",
            )

        state.current = max(round(state.current - amount, ENERGY_PRECISION), 0.0)
        if state.current == 0:
            state.exhausted = True

        self._render()
        return Outcome.ok()

    def apply_tier_change(self, new_max: int, new_regen_per_second: float):
        """
        Adopt new rate constants after an upgrade purchase.

        Clamps current down if it exceeds the new max. The recovery
        threshold follows the new max automatically.
        """
        state = self.state
        state.max = new_max
        state.regen_per_second = new_regen_per_second
        if state.current > new_max:
            state.current = float(new_max)
        self._render()

    def _render(self):
        state = self.state
        self.display.energy_changed(state.current, state.max, state.exhausted)
