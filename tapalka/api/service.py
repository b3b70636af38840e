"""
API Service - Business logic layer between the API and the engine.

The service:
1. Starts and ends player sessions
2. Forwards taps and purchases to the player's engine
3. Formats engine state for the client

Gameplay rejections come back as ErrorResponse values, never as
exceptions. This layer is framework-agnostic.
"""

from __future__ import annotations
from dataclasses import dataclass

from ..economy.catalog import MAX_LEVEL, TIER_TABLES, UpgradeKind, value_at_level
from ..economy.outcome import FailureKind
from ..persistence.errors import RemoteUnavailable
from ..session import Session, SessionManager
from .schemas import (
    CatalogEntry,
    CatalogResponse,
    EconomyStateResponse,
    EnergyInfo,
    ErrorCode,
    ErrorResponse,
    LeaderboardEntry,
    LeaderboardResponse,
    PurchaseResponse,
    RestoreSourceName,
    SessionResponse,
    TapResponse,
    TierInfo,
    UpgradeInfo,
)

_FAILURE_CODES = {
    FailureKind.INSUFFICIENT_ENERGY: ErrorCode.INSUFFICIENT_ENERGY,
    FailureKind.INSUFFICIENT_BALANCE: ErrorCode.INSUFFICIENT_BALANCE,
    FailureKind.ALREADY_MAX_LEVEL: ErrorCode.ALREADY_MAX_LEVEL,
}


def _session_not_found(player_id: str) -> ErrorResponse:
    return ErrorResponse(
        error=f"No active session for player {player_id}",
        error_code=ErrorCode.SESSION_NOT_FOUND,
    )


@dataclass
class APIService:
    """
    Main API service.

    Usage:
        service = APIService(SessionManager(remote=store))

        session = service.start_session("42", display_name="Ann")
        tap = service.tap("42")
        bought = service.purchase("42", "capacity")
    """
    session_manager: SessionManager

    def start_session(self, player_id: str, display_name: str | None = None) -> SessionResponse:
        """Start or resume a session. Raises ValueError for a malformed player id."""
        session = self.session_manager.create_session(player_id, display_name=display_name)
        report = session.start_report
        return SessionResponse(
            player_id=player_id,
            restored_from=RestoreSourceName(report.source.value),
            remote_reachable=report.remote_reachable,
            offline_credit=report.offline_credit,
            state=self._state(session),
        )

    def end_session(self, player_id: str) -> bool:
        return self.session_manager.end_session(player_id, reason="player_left")

    def get_state(self, player_id: str) -> EconomyStateResponse | ErrorResponse:
        session = self._active(player_id)
        if not session:
            return _session_not_found(player_id)
        return self._state(session)

    def tap(self, player_id: str, count: int = 1) -> TapResponse | ErrorResponse:
        """Apply up to count taps, stopping at the first rejection."""
        session = self._active(player_id)
        if not session:
            return _session_not_found(player_id)

        engine = session.engine
        accepted = 0
        reward = 0
        rejection = None
        for _ in range(count):
            outcome = engine.tap()
            if not outcome.success:
                rejection = outcome
                break
            accepted += 1
            reward += outcome.reward

        return TapResponse(
            accepted=accepted,
            reward=reward,
            balance=engine.ledger.balance,
            energy=self._energy(session),
            rejected=_FAILURE_CODES[rejection.failure] if rejection else None,
            notice=rejection.message if rejection else None,
        )

    def purchase(self, player_id: str, kind: str) -> PurchaseResponse | ErrorResponse:
        session = self._active(player_id)
        if not session:
            return _session_not_found(player_id)

        try:
            upgrade_kind = UpgradeKind(kind)
        except ValueError:
            return ErrorResponse(
                error=f"Unknown upgrade kind: {kind}",
                error_code=ErrorCode.VALIDATION_ERROR,
                details={"valid_kinds": [k.value for k in UpgradeKind]},
            )

        outcome = session.engine.purchase(upgrade_kind)
        if not outcome.success:
            return ErrorResponse(
                error=outcome.message or outcome.failure.value,
                error_code=_FAILURE_CODES[outcome.failure],
            )

        return PurchaseResponse(
            kind=upgrade_kind.value,
            level=outcome.level,
            state=self._state(session),
        )

    def catalog(self) -> CatalogResponse:
        return CatalogResponse(
            upgrades=[
                CatalogEntry(
                    kind=kind.value,
                    tiers=[TierInfo(level=t.level, value=t.value, cost=t.cost) for t in tiers],
                )
                for kind, tiers in TIER_TABLES.items()
            ]
        )

    def leaderboard(self, limit: int = 10) -> LeaderboardResponse | ErrorResponse:
        try:
            records = self.session_manager.leaderboard(limit)
        except RemoteUnavailable as e:
            return ErrorResponse(
                error=f"Leaderboard unavailable: {e}",
                error_code=ErrorCode.REMOTE_UNAVAILABLE,
            )
        return LeaderboardResponse(
            entries=[
                LeaderboardEntry(
                    rank=i + 1,
                    player_id=r.player_id,
                    display_name=r.display_name,
                    avatar_url=r.avatar_url,
                    balance=r.balance,
                )
                for i, r in enumerate(records)
            ]
        )

    def list_sessions(self) -> list[str]:
        return self.session_manager.list_active_sessions()

    # =========================================================================
    # Formatting
    # =========================================================================

    def _active(self, player_id: str) -> Session | None:
        session = self.session_manager.get_session(player_id)
        if session is None or not session.is_active():
            return None
        session.touch(self.session_manager.clock())
        return session

    def _energy(self, session: Session) -> EnergyInfo:
        state = session.engine.energy.state
        return EnergyInfo(
            current=state.current,
            max=state.max,
            regen_per_second=state.regen_per_second,
            exhausted=state.exhausted,
            recovery_threshold=state.recovery_threshold,
        )

    def _state(self, session: Session) -> EconomyStateResponse:
        engine = session.engine
        upgrades = []
        for kind in UpgradeKind:
            level = engine.upgrades.level(kind)
            upgrades.append(UpgradeInfo(
                kind=kind.value,
                level=level,
                max_level=MAX_LEVEL,
                value=value_at_level(kind, level),
                next_cost=engine.upgrades.next_cost(kind),
                next_value=value_at_level(kind, level + 1) if level < MAX_LEVEL else None,
            ))

        return EconomyStateResponse(
            player_id=session.player_id,
            balance=engine.ledger.balance,
            energy=self._energy(session),
            tap_power=engine.rates.tap_power,
            income_per_minute=engine.profile.income_per_minute,
            upgrades=upgrades,
            sync_pending=engine.gateway.pending_flush is not None,
        )
