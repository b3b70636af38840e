"""
Economy Engine - One player's economy, owned by a single context object.

The engine owns every entity (energy, ledger, upgrades, passive
profile) and every timer. Nothing lives in module globals.

EVENTS (each runs to completion, local write included, before the next):
- tick(dt)        regen, passive income, due remote flushes
- tap()           one tap
- purchase(kind)  one upgrade purchase

SESSION START:
    gateway.restore() -> offline catch-up -> regen ticking begins
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import time

from ..economy.catalog import EconomyRates, UpgradeKind, derive_rates, default_levels
from ..economy.energy import EnergyController, EnergyState
from ..economy.host import Display, Haptics, NullDisplay
from ..economy.ledger import ScoreLedger
from ..economy.outcome import Outcome
from ..economy.passive import PassiveIncomeAccrual, PassiveIncomeProfile
from ..economy.taps import TapProcessor
from ..economy.upgrades import UpgradeShop, UpgradeState
from ..persistence.gateway import (
    LOCAL_ENERGY_SNAPSHOT_SECONDS,
    PersistenceGateway,
    RestoreSource,
)
from ..persistence.scheduler import Clock, RateLimiter
from ..persistence.schema import EconomySnapshot

logger = logging.getLogger(__name__)


@dataclass
class StartReport:
    """What happened at session start."""
    source: RestoreSource
    remote_reachable: bool
    base_balance: int
    offline_credit: int
    balance: int


class EconomyEngine:
    """
    Engine context for one player.

    Usage:
        engine = EconomyEngine(gateway)
        report = engine.start()

        outcome = engine.tap()
        outcome = engine.purchase(UpgradeKind.CAPACITY)

        # Every 100ms
        engine.tick(0.1)
    """

    def __init__(
        self,
        gateway: PersistenceGateway,
        clock: Clock = time.time,
        display: Display | None = None,
        haptics: Haptics | None = None,
    ):
        self.gateway = gateway
        self.clock = clock
        self.display = display or NullDisplay()

        self.upgrades = UpgradeState()
        self.rates: EconomyRates = derive_rates(default_levels())
        self.profile = PassiveIncomeProfile()

        self.ledger = ScoreLedger(0, display=self.display)
        self.energy = EnergyController(
            EnergyState.restore(None, self.rates.max_energy, self.rates.regen_per_second),
            display=self.display,
            on_snapshot=self._write_local,
            snapshot_gate=RateLimiter(LOCAL_ENERGY_SNAPSHOT_SECONDS, clock=clock).allow,
        )
        self.taps = TapProcessor(
            self.energy,
            self.ledger,
            tap_power=lambda: self.rates.tap_power,
            haptics=haptics,
        )
        self.shop = UpgradeShop(
            self.upgrades,
            self.ledger,
            self.energy,
            on_rates_changed=self._set_rates,
            on_purchase=lambda kind, level: self._persist(),
        )
        self.passive = PassiveIncomeAccrual(
            self.profile,
            self.ledger,
            on_credit=self._persist_passive,
        )

        self.started = False

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def start(self) -> StartReport:
        """
        Restore state, run offline catch-up, and begin ticking.

        The restored balance plus catch-up is authoritative; any stale
        in-memory balance is replaced.
        """
        restored = self.gateway.restore()
        now = self.clock()
        snapshot = restored.snapshot

        self.upgrades.levels.clear()
        self.upgrades.levels.update(snapshot.upgrades)
        self._set_rates(self.upgrades.rates())
        self.energy.state = EnergyState.restore(
            snapshot.energy,
            self.rates.max_energy,
            self.rates.regen_per_second,
        )

        self.profile.income_per_minute = restored.profile.income_per_minute
        self.profile.last_accrual_at = restored.profile.last_accrual_at
        credited = self.passive.catch_up(restored.base_balance, now)
        self.passive.start(now)
        self.started = True

        self._persist()
        logger.info(
            "Session started for %s from %s: balance=%d (+%d offline)",
            self.gateway.player_id, restored.source.value, self.ledger.balance, credited,
        )
        return StartReport(
            source=restored.source,
            remote_reachable=restored.remote_reachable,
            base_balance=restored.base_balance,
            offline_credit=credited,
            balance=self.ledger.balance,
        )

    def shutdown(self) -> bool:
        """
        Send the current state to both tiers now.

        The latest snapshot is sent even when nothing is pending, which
        covers passive income credited since the last rate-limited
        flush. Returns True if it was sent.
        """
        snapshot = self.snapshot()
        self.gateway.write_local(snapshot)
        self.gateway.schedule_remote_flush(snapshot)
        return self.gateway.flush_now()

    # =========================================================================
    # Events
    # =========================================================================

    def tick(self, delta_seconds: float):
        """Advance regen by delta_seconds, credit due passive income, flush if due."""
        self._require_started()
        self.energy.tick(delta_seconds)
        self.passive.advance(self.clock())
        self.gateway.poll()

    def tap(self) -> Outcome:
        """Process one tap."""
        self._require_started()
        outcome = self.taps.process_tap()
        return self._finish(outcome)

    def purchase(self, kind: UpgradeKind) -> Outcome:
        """Buy the next level of an upgrade. Persists on success."""
        self._require_started()
        outcome = self.shop.purchase(kind)
        if not outcome.success:
            self.display.notice(outcome.failure, outcome.message)
        return outcome

    def apply_server_rate(self, income_per_minute: float):
        """
        Adopt a server-assigned passive income rate.

        Hook for a server push. The rate is never written to the remote
        store from here; it is kept in the local snapshot so an offline
        restart keeps accruing at the last known rate.
        """
        self.passive.update_rate(income_per_minute, self.clock())
        self._write_local()

    # =========================================================================
    # Snapshots
    # =========================================================================

    def snapshot(self) -> EconomySnapshot:
        return EconomySnapshot(
            balance=self.ledger.balance,
            energy=self.energy.current,
            upgrades=dict(self.upgrades.levels),
            income_per_minute=self.profile.income_per_minute,
            saved_at=self.clock(),
        )

    def _finish(self, outcome: Outcome) -> Outcome:
        if outcome.success:
            self._persist()
        else:
            self.display.notice(outcome.failure, outcome.message)
        return outcome

    def _persist(self):
        snapshot = self.snapshot()
        self.gateway.write_local(snapshot)
        self.gateway.schedule_remote_flush(snapshot)

    def _persist_passive(self):
        snapshot = self.snapshot()
        self.gateway.write_local(snapshot)
        self.gateway.schedule_passive_flush(snapshot)

    def _write_local(self):
        self.gateway.write_local(self.snapshot())

    def _set_rates(self, rates: EconomyRates):
        self.rates = rates

    def _require_started(self):
        if not self.started:
            raise RuntimeError("Engine not started - call start() first")
