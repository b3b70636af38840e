"""
Persistence - Local snapshot + debounced remote sync.

The local cache is written on every mutation and is always current.
The remote store is the source of truth at session start and is
written after a quiet period, last snapshot wins.
"""

from .errors import PersistenceError, RemoteUnavailable, RecordNotFound, CorruptLocalSnapshot
from .schema import EconomySnapshot, RemoteRecord
from .local import LocalCache, InMemoryLocalCache, JsonFileLocalCache
from .remote import RemoteStore, InMemoryRemoteStore, SqliteRemoteStore
from .scheduler import SingleFlightScheduler, RateLimiter
from .gateway import PersistenceGateway, RestoredState, RestoreSource

__all__ = [
    "PersistenceError",
    "RemoteUnavailable",
    "RecordNotFound",
    "CorruptLocalSnapshot",
    "EconomySnapshot",
    "RemoteRecord",
    "LocalCache",
    "InMemoryLocalCache",
    "JsonFileLocalCache",
    "RemoteStore",
    "InMemoryRemoteStore",
    "SqliteRemoteStore",
    "SingleFlightScheduler",
    "RateLimiter",
    "PersistenceGateway",
    "RestoredState",
    "RestoreSource",
]
