"""
Pytest fixtures for Tapalka tests.
"""

import pytest

from ..persistence.gateway import PersistenceGateway
from ..persistence.local import InMemoryLocalCache
from ..persistence.remote import InMemoryRemoteStore
from ..persistence.schema import RemoteRecord
from ..session.engine import EconomyEngine
from ..session.manager import SessionManager

START_TIME = 1_000_000.0


class FakeClock:
    """Manually advanced clock (epoch seconds)."""

    def __init__(self, start: float = START_TIME):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class RecordingDisplay:
    """Display capability that remembers what it was told."""

    def __init__(self):
        self.energy_updates = []
        self.balances = []
        self.notices = []

    def energy_changed(self, current, maximum, exhausted):
        self.energy_updates.append((current, maximum, exhausted))

    def balance_changed(self, balance):
        self.balances.append(balance)

    def notice(self, failure, message):
        self.notices.append((failure, message))


class RecordingHaptics:
    def __init__(self):
        self.impacts = []

    def impact(self, style):
        self.impacts.append(style)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def remote() -> InMemoryRemoteStore:
    """Remote store with no records."""
    return InMemoryRemoteStore()


@pytest.fixture
def local() -> InMemoryLocalCache:
    return InMemoryLocalCache()


@pytest.fixture
def gateway(clock, local, remote) -> PersistenceGateway:
    return PersistenceGateway("player1", local=local, remote=remote, clock=clock)


@pytest.fixture
def display() -> RecordingDisplay:
    return RecordingDisplay()


@pytest.fixture
def haptics() -> RecordingHaptics:
    return RecordingHaptics()


@pytest.fixture
def engine(gateway, clock, display, haptics) -> EconomyEngine:
    """A started engine for a brand-new player."""
    engine = EconomyEngine(gateway, clock=clock, display=display, haptics=haptics)
    engine.start()
    return engine


@pytest.fixture
def rich_engine(clock, local, display) -> EconomyEngine:
    """A started engine whose remote record holds 20,000 coins."""
    store = InMemoryRemoteStore([
        RemoteRecord(
            player_id="player1",
            balance=20_000,
            income_per_minute=50,
            last_accrual_at=clock(),
        ),
    ])
    gateway = PersistenceGateway("player1", local=local, remote=store, clock=clock)
    engine = EconomyEngine(gateway, clock=clock, display=display)
    engine.start()
    return engine


@pytest.fixture
def manager(remote, clock) -> SessionManager:
    return SessionManager(remote=remote, clock=clock)
