"""
Host Capabilities - Optional hooks into the embedding platform.

The engine never checks whether a host SDK exists. It is handed
capability objects instead, and the defaults do nothing.
"""

from __future__ import annotations
from typing import Protocol, runtime_checkable

from .outcome import FailureKind


@runtime_checkable
class Haptics(Protocol):
    """Haptic feedback provided by the host (e.g. a mini-app SDK)."""

    def impact(self, style: str) -> None:
        ...


@runtime_checkable
class Display(Protocol):
    """Receives state changes the UI layer should render."""

    def energy_changed(self, current: float, maximum: int, exhausted: bool) -> None:
        ...

    def balance_changed(self, balance: int) -> None:
        ...

    def notice(self, failure: FailureKind, message: str) -> None:
        """Show a transient, user-visible notice for a rejection."""
        ...


class NullHaptics:
    def impact(self, style: str) -> None:
        pass


class NullDisplay:
    def energy_changed(self, current: float, maximum: int, exhausted: bool) -> None:
        pass

    def balance_changed(self, balance: int) -> None:
        pass

    def notice(self, failure: FailureKind, message: str) -> None:
        pass
