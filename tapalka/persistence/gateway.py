"""
Persistence Gateway - Dual-tier persistence for one player.

TIERS:
1. Local cache: written synchronously on every mutation. Always current.
2. Remote store: written after a quiet period (debounced, single-flight).
   Lags the local tier by at most one debounce window.

RESTORE ORDER (session start):
    remote record (reconciled by passive catch-up)
    -> local snapshot
    -> defaults (max energy 30, all levels 1, balance 0)

There is no guaranteed flush on process exit. A snapshot still pending
when the process dies is lost from the remote tier; the local tier
still has it.
"""

from __future__ import annotations
from concurrent.futures import Executor, Future
from dataclasses import dataclass
from enum import Enum
import logging
import time

from ..economy.catalog import DEFAULT_INCOME_PER_MINUTE
from ..economy.passive import PassiveIncomeProfile
from .errors import CorruptLocalSnapshot, PersistenceError, RecordNotFound, RemoteUnavailable
from .local import LocalCache
from .remote import RemoteStore
from .scheduler import Clock, RateLimiter, SingleFlightScheduler
from .schema import CACHE_KEYS, EconomySnapshot

logger = logging.getLogger(__name__)

REMOTE_DEBOUNCE_SECONDS = 1.0
PASSIVE_FLUSH_INTERVAL_SECONDS = 60.0
LOCAL_ENERGY_SNAPSHOT_SECONDS = 1.0


class RestoreSource(Enum):
    """Which tier the restored balance came from."""
    REMOTE = "remote"
    LOCAL = "local"
    DEFAULTS = "defaults"


@dataclass
class RestoredState:
    """
    Everything the engine needs to start a session.

    base_balance is the balance before catch-up. profile.last_accrual_at
    marks where catch-up starts counting.
    """
    snapshot: EconomySnapshot
    profile: PassiveIncomeProfile
    base_balance: int
    source: RestoreSource
    remote_reachable: bool


class PersistenceGateway:
    """
    Coalesces and dispatches snapshots to the local and remote tiers.

    Usage:
        gateway = PersistenceGateway("42", local_cache, remote_store)
        restored = gateway.restore()

        # On every mutation
        gateway.write_local(snapshot)
        gateway.schedule_remote_flush(snapshot)

        # From the tick
        gateway.poll()

    If an executor is given, due flushes are sent from it so a slow
    remote never blocks the caller. Use a single worker to keep flushes
    ordered. Results come back as futures and are harvested by poll(),
    so flush bookkeeping only changes on the caller's thread.
    """

    def __init__(
        self,
        player_id: str,
        local: LocalCache,
        remote: RemoteStore,
        clock: Clock = time.time,
        executor: Executor | None = None,
        display_name: str | None = None,
        debounce_seconds: float = REMOTE_DEBOUNCE_SECONDS,
        passive_flush_seconds: float = PASSIVE_FLUSH_INTERVAL_SECONDS,
    ):
        self.player_id = player_id
        self.local = local
        self.remote = remote
        self.display_name = display_name
        self._clock = clock
        self._executor = executor
        self._scheduler: SingleFlightScheduler[EconomySnapshot] = SingleFlightScheduler(
            delay=debounce_seconds,
            dispatch=self._dispatch,
            clock=clock,
        )
        self._passive_limiter = RateLimiter(passive_flush_seconds, clock=clock)

        # Flush bookkeeping, only touched on the caller's thread
        self._in_flight: list[tuple[Future, EconomySnapshot]] = []
        self.flush_count = 0
        self.failed_flush_count = 0
        self.last_flushed: EconomySnapshot | None = None

    # =========================================================================
    # Local tier
    # =========================================================================

    def write_local(self, snapshot: EconomySnapshot):
        """Write the snapshot to the local cache. Unconditional and idempotent."""
        self.local.set_many(snapshot.to_cache_entries())

    def read_local(self) -> EconomySnapshot | None:
        """Read and validate the local snapshot. Raises CorruptLocalSnapshot."""
        entries = {key: self.local.get(key) for key in CACHE_KEYS}
        return EconomySnapshot.from_cache_entries(entries)

    # =========================================================================
    # Remote tier
    # =========================================================================

    @property
    def pending_flush(self) -> EconomySnapshot | None:
        return self._scheduler.pending

    def schedule_remote_flush(self, snapshot: EconomySnapshot):
        """
        Debounce a remote write.

        Cancels any pending flush; only the latest snapshot of a burst
        is ever sent.
        """
        self._scheduler.schedule(snapshot)

    def schedule_passive_flush(self, snapshot: EconomySnapshot):
        """
        Remote write for passive income ticks.

        Rate-limited independently of the debounce. A pending flush just
        picks up the newer snapshot.
        """
        if self._scheduler.refresh(snapshot):
            return
        if self._passive_limiter.allow():
            self._scheduler.schedule(snapshot)

    def poll(self) -> bool:
        """Harvest finished flushes, then send the pending snapshot if its quiet window has elapsed."""
        self._harvest()
        return self._scheduler.poll()

    def flush_now(self) -> bool:
        """Send the pending snapshot immediately."""
        return self._scheduler.flush_now()

    def _dispatch(self, snapshot: EconomySnapshot):
        fields = {
            "balance": snapshot.balance,
            "last_accrual_at": snapshot.saved_at,
        }
        if self._executor is None:
            self._record(snapshot, self._send(fields))
            return

        self._in_flight.append((self._executor.submit(self._send, fields), snapshot))

    def _send(self, fields: dict) -> bool:
        """Upsert the fields. Runs on the flush worker; touches no gateway state."""
        try:
            self.remote.upsert_record(self.player_id, fields)
        except RemoteUnavailable as e:
            # No retry: the next mutation schedules another flush
            logger.warning("Remote flush for %s failed: %s", self.player_id, e)
            return False
        return True

    def _record(self, snapshot: EconomySnapshot, sent: bool):
        if not sent:
            self.failed_flush_count += 1
            return
        self.flush_count += 1
        self.last_flushed = snapshot
        logger.debug("Flushed %s balance=%d", self.player_id, snapshot.balance)

    def _harvest(self):
        """Collect finished flushes from the executor."""
        pending = []
        for future, snapshot in self._in_flight:
            if not future.done():
                pending.append((future, snapshot))
                continue

            exc = future.exception()
            if exc is not None:
                logger.error(
                    "Remote flush for %s raised", self.player_id,
                    exc_info=(type(exc), exc, exc.__traceback__),
                )
                self._record(snapshot, False)
            else:
                self._record(snapshot, future.result())
        self._in_flight = pending

    # =========================================================================
    # Restore
    # =========================================================================

    def restore(self) -> RestoredState:
        """
        Load the player's state at session start.

        Never fails: unreachable remote falls back to the local snapshot,
        a corrupt local snapshot falls back to defaults.
        """
        now = self._clock()
        local = self._read_local_or_none()

        try:
            record = self.remote.fetch_record(self.player_id)
        except RecordNotFound:
            return self._create_remote_record(local, now)
        except RemoteUnavailable as e:
            logger.warning("Remote store unavailable for %s, using local state: %s", self.player_id, e)
            return self._restore_offline(local, now)

        profile = PassiveIncomeProfile(
            income_per_minute=record.income_per_minute,
            last_accrual_at=record.last_accrual_at if record.last_accrual_at > 0 else now,
        )
        logger.info("Restored %s from remote (balance=%d)", self.player_id, record.balance)
        return RestoredState(
            snapshot=local or EconomySnapshot(),
            profile=profile,
            base_balance=record.balance,
            source=RestoreSource.REMOTE,
            remote_reachable=True,
        )

    def _read_local_or_none(self) -> EconomySnapshot | None:
        try:
            return self.read_local()
        except CorruptLocalSnapshot as e:
            logger.warning("Corrupt local snapshot for %s, using defaults: %s", self.player_id, e)
            return None

    def _create_remote_record(self, local: EconomySnapshot | None, now: float) -> RestoredState:
        """First login: register the player with whatever balance we have locally."""
        balance = local.balance if local else 0
        fields = {
            "balance": balance,
            "income_per_minute": DEFAULT_INCOME_PER_MINUTE,
            "last_accrual_at": now,
        }
        if self.display_name:
            fields["display_name"] = self.display_name

        reachable = True
        try:
            self.remote.upsert_record(self.player_id, fields)
            logger.info("Created remote record for %s", self.player_id)
        except PersistenceError as e:
            reachable = False
            logger.warning("Could not create remote record for %s: %s", self.player_id, e)

        return RestoredState(
            snapshot=local or EconomySnapshot(),
            profile=PassiveIncomeProfile(
                income_per_minute=local.income_per_minute if local else DEFAULT_INCOME_PER_MINUTE,
                last_accrual_at=now,
            ),
            base_balance=balance,
            source=RestoreSource.LOCAL if local else RestoreSource.DEFAULTS,
            remote_reachable=reachable,
        )

    def _restore_offline(self, local: EconomySnapshot | None, now: float) -> RestoredState:
        """Remote unreachable: the local balance is current as of saved_at."""
        if local is None:
            return RestoredState(
                snapshot=EconomySnapshot(),
                profile=PassiveIncomeProfile(last_accrual_at=now),
                base_balance=0,
                source=RestoreSource.DEFAULTS,
                remote_reachable=False,
            )

        return RestoredState(
            snapshot=local,
            profile=PassiveIncomeProfile(
                income_per_minute=local.income_per_minute,
                last_accrual_at=local.saved_at if local.saved_at > 0 else now,
            ),
            base_balance=local.balance,
            source=RestoreSource.LOCAL,
            remote_reachable=False,
        )
