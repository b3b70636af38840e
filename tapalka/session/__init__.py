"""
Session Module - Live economy sessions.

A session is one player's time in the game:
- Created when the player opens the game (restore + offline catch-up)
- Holds the player's EconomyEngine and its GameLoop
- Ended when the player leaves (pending remote flush forced out)

Sessions are EPHEMERAL. Durable state lives in the local cache and
the remote store.
"""

from .engine import EconomyEngine, StartReport
from .game_loop import GameLoop
from .manager import SessionManager, Session, SessionState, json_cache_factory

__all__ = [
    "EconomyEngine",
    "StartReport",
    "GameLoop",
    "SessionManager",
    "Session",
    "SessionState",
    "json_cache_factory",
]
