"""
Session Manager - One live economy engine per connected player.

LIFECYCLE:
1. Player opens the game -> create_session()
   - local cache + gateway + engine are built
   - engine.start(): restore, offline catch-up, regen ticking begins
2. While playing:
   - taps and purchases go to session.engine
   - run() / pump_all() drive every session's GameLoop
3. Player leaves -> end_session()
   - pending remote flush is forced out
   - session is dropped from memory

Sessions are in-memory only. Everything durable lives in the local
cache and the remote store.
"""

from __future__ import annotations
from concurrent.futures import Executor
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable
import asyncio
import logging
import re
import time

from ..economy.catalog import REGEN_TICK_SECONDS
from ..economy.host import Display, Haptics
from ..persistence.gateway import PersistenceGateway
from ..persistence.local import InMemoryLocalCache, JsonFileLocalCache, LocalCache
from ..persistence.remote import RemoteStore
from ..persistence.schema import RemoteRecord
from ..persistence.scheduler import Clock
from .engine import EconomyEngine, StartReport
from .game_loop import GameLoop

logger = logging.getLogger(__name__)

PLAYER_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{1,64}$")


class SessionState(Enum):
    """State of a player session."""
    ACTIVE = "active"
    ENDED = "ended"


@dataclass
class Session:
    """
    A player's live session.

    Contains the engine, its loop, and bookkeeping for idle cleanup.
    """
    player_id: str
    engine: EconomyEngine
    loop: GameLoop
    created_at: float
    start_report: StartReport
    state: SessionState = SessionState.ACTIVE
    last_active_at: float = 0.0

    def is_active(self) -> bool:
        return self.state == SessionState.ACTIVE

    def touch(self, now: float):
        self.last_active_at = now


def json_cache_factory(cache_dir: str | Path) -> Callable[[str], LocalCache]:
    """Local caches stored as <cache_dir>/<player_id>.json."""
    cache_dir = Path(cache_dir).expanduser()

    def factory(player_id: str) -> LocalCache:
        return JsonFileLocalCache(cache_dir / f"{player_id}.json")

    return factory


class SessionManager:
    """
    Manages player sessions.

    Responsibilities:
    - Create (or reuse) a session per player
    - Drive all game loops
    - End sessions and clean up idle ones
    """

    def __init__(
        self,
        remote: RemoteStore,
        cache_factory: Callable[[str], LocalCache] | None = None,
        clock: Clock = time.time,
        executor: Executor | None = None,
        display_factory: Callable[[str], Display] | None = None,
        haptics: Haptics | None = None,
    ):
        self.remote = remote
        self.cache_factory = cache_factory or (lambda player_id: InMemoryLocalCache())
        self.clock = clock
        self.executor = executor
        self.display_factory = display_factory
        self.haptics = haptics
        self._sessions: dict[str, Session] = {}

    def create_session(self, player_id: str, display_name: str | None = None) -> Session:
        """
        Start a session for a player.

        Returns the existing session if the player already has one.
        """
        if not PLAYER_ID_PATTERN.match(player_id):
            raise ValueError(f"Invalid player id: {player_id!r}")

        existing = self._sessions.get(player_id)
        if existing and existing.is_active():
            existing.touch(self.clock())
            return existing

        gateway = PersistenceGateway(
            player_id,
            local=self.cache_factory(player_id),
            remote=self.remote,
            clock=self.clock,
            executor=self.executor,
            display_name=display_name,
        )
        engine = EconomyEngine(
            gateway,
            clock=self.clock,
            display=self.display_factory(player_id) if self.display_factory else None,
            haptics=self.haptics,
        )
        report = engine.start()

        now = self.clock()
        session = Session(
            player_id=player_id,
            engine=engine,
            loop=GameLoop(engine, clock=self.clock),
            created_at=now,
            start_report=report,
            last_active_at=now,
        )
        self._sessions[player_id] = session
        return session

    def get_session(self, player_id: str) -> Session | None:
        """Get a player's session."""
        return self._sessions.get(player_id)

    def end_session(self, player_id: str, reason: str = "completed") -> bool:
        """
        End a session.

        Forces out any pending remote flush before the session is
        dropped. Returns False if there was no session.
        """
        session = self._sessions.pop(player_id, None)
        if not session:
            return False

        session.loop.pump()
        session.engine.shutdown()
        session.state = SessionState.ENDED
        logger.info("Ended session for %s (%s)", player_id, reason)
        return True

    def end_all(self, reason: str = "shutdown"):
        for player_id in list(self._sessions):
            self.end_session(player_id, reason=reason)

    def list_active_sessions(self) -> list[str]:
        """List player IDs with active sessions."""
        return [
            pid for pid, session in self._sessions.items()
            if session.is_active()
        ]

    def cleanup_stale_sessions(self, max_idle_seconds: float = 3600) -> list[str]:
        """End sessions with no player activity for max_idle_seconds."""
        now = self.clock()
        stale = [
            pid for pid, session in self._sessions.items()
            if now - session.last_active_at > max_idle_seconds
        ]
        for pid in stale:
            self.end_session(pid, reason="stale")
        return stale

    def pump_all(self) -> int:
        """Pump every session's loop once. Returns total steps run."""
        return sum(session.loop.pump() for session in list(self._sessions.values()))

    async def run(self, stop: asyncio.Event, tick_seconds: float = REGEN_TICK_SECONDS):
        """Pump all loops every tick until stop is set."""
        while not stop.is_set():
            self.pump_all()
            try:
                await asyncio.wait_for(stop.wait(), timeout=tick_seconds)
            except asyncio.TimeoutError:
                pass

    def leaderboard(self, limit: int = 10) -> list[RemoteRecord]:
        """Top players by balance. Raises RemoteUnavailable."""
        return self.remote.query_top(limit)
