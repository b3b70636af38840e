"""
Persistence errors.

None of these are fatal. The gateway catches them at its boundary,
logs them and carries on with local-only state or defaults.
"""


class PersistenceError(Exception):
    """Base class for persistence failures."""


class RemoteUnavailable(PersistenceError):
    """The remote store could not be reached or rejected the call."""


class RecordNotFound(PersistenceError):
    """The remote store has no record for this player."""

    def __init__(self, player_id: str):
        super().__init__(f"No remote record for player {player_id}")
        self.player_id = player_id


class CorruptLocalSnapshot(PersistenceError):
    """The local cache held data that does not match the snapshot schema."""
