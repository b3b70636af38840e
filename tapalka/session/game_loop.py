"""
Game Loop - Turns wall-clock time into fixed regen ticks.

The loop:
1. Measure time elapsed since the last pump
2. Run one engine tick per whole 100ms step
3. Carry the remainder to the next pump

After a long stall (suspended process, slow host) the missed steps are
applied as one large tick instead of thousands of small ones.
"""

from __future__ import annotations
from typing import TYPE_CHECKING
import logging

from ..economy.catalog import REGEN_TICK_SECONDS
from ..persistence.scheduler import Clock

if TYPE_CHECKING:
    from .engine import EconomyEngine

logger = logging.getLogger(__name__)

# Float slack when deciding whether a whole step has elapsed
_STEP_EPSILON = 1e-6


class GameLoop:
    """
    Fixed-step driver for one engine.

    Usage:
        loop = GameLoop(engine)

        # From any scheduler, as often as convenient
        loop.pump()
    """

    def __init__(
        self,
        engine: EconomyEngine,
        clock: Clock | None = None,
        tick_seconds: float = REGEN_TICK_SECONDS,
        max_steps_per_pump: int = 50,
    ):
        self.engine = engine
        self.clock = clock or engine.clock
        self.tick_seconds = tick_seconds
        self.max_steps_per_pump = max_steps_per_pump
        self.steps_run = 0
        self._last = self.clock()
        self._accumulated = 0.0

    def pump(self) -> int:
        """Run every whole step that has elapsed. Returns the number of steps."""
        now = self.clock()
        self._accumulated += max(now - self._last, 0.0)
        self._last = now

        steps = int((self._accumulated + _STEP_EPSILON) // self.tick_seconds)
        if steps <= 0:
            return 0
        self._accumulated = max(self._accumulated - steps * self.tick_seconds, 0.0)

        if steps > self.max_steps_per_pump:
            logger.debug("Loop stalled, applying %d steps as one tick", steps)
            self.engine.tick(steps * self.tick_seconds)
        else:
            for _ in range(steps):
                self.engine.tick(self.tick_seconds)

        self.steps_run += steps
        return steps
