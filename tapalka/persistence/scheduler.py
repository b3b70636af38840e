"""
Scheduling primitives driven by an injected clock.

Nothing here sleeps or starts threads. The owner calls poll() from its
tick, which keeps scheduling deterministic under a fake clock.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Callable, Generic, TypeVar
import time

T = TypeVar("T")

Clock = Callable[[], float]


class RateLimiter:
    """Allows an action at most once per min_interval seconds."""

    def __init__(self, min_interval: float, clock: Clock = time.time):
        self.min_interval = min_interval
        self._clock = clock
        self._last: float | None = None

    def allow(self) -> bool:
        now = self._clock()
        if self._last is not None and now - self._last < self.min_interval:
            return False
        self._last = now
        return True


@dataclass
class _Pending(Generic[T]):
    payload: T
    deadline: float


class SingleFlightScheduler(Generic[T]):
    """
    Debounced single-flight dispatch.

    Holds at most one pending payload. schedule() replaces it and
    pushes the deadline out to now + delay, so only the latest payload
    of a burst is dispatched, once the burst has been quiet for delay
    seconds. Intermediate payloads are never dispatched.
    """

    def __init__(self, delay: float, dispatch: Callable[[T], None], clock: Clock = time.time):
        self.delay = delay
        self._dispatch = dispatch
        self._clock = clock
        self._pending: _Pending[T] | None = None

    @property
    def pending(self) -> T | None:
        return self._pending.payload if self._pending else None

    @property
    def deadline(self) -> float | None:
        return self._pending.deadline if self._pending else None

    def schedule(self, payload: T):
        """Cancel any pending dispatch and reschedule with this payload."""
        self._pending = _Pending(payload=payload, deadline=self._clock() + self.delay)

    def refresh(self, payload: T) -> bool:
        """Swap the pending payload without moving its deadline."""
        if self._pending is None:
            return False
        self._pending.payload = payload
        return True

    def poll(self) -> bool:
        """Dispatch the pending payload if its deadline has passed."""
        if self._pending is None or self._clock() < self._pending.deadline:
            return False
        return self.flush_now()

    def flush_now(self) -> bool:
        """Dispatch the pending payload immediately, if any."""
        pending, self._pending = self._pending, None
        if pending is None:
            return False
        self._dispatch(pending.payload)
        return True
