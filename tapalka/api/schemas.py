"""
Pydantic Schemas for API - Request/response models for OpenAPI.

These models define the exact contract between the game client and
the engine.

Error Codes:
- SESSION_NOT_FOUND: No live session for this player
- INSUFFICIENT_ENERGY: Tap rejected, energy exhausted or too low
- INSUFFICIENT_BALANCE: Purchase rejected, not enough coins
- ALREADY_MAX_LEVEL: Purchase rejected, upgrade is maxed
- REMOTE_UNAVAILABLE: Remote store could not be reached
- VALIDATION_ERROR: Malformed request
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


# =============================================================================
# Enums
# =============================================================================

class ErrorCode(str, Enum):
    """Structured error codes."""
    SESSION_NOT_FOUND = "SESSION_NOT_FOUND"
    INSUFFICIENT_ENERGY = "INSUFFICIENT_ENERGY"
    INSUFFICIENT_BALANCE = "INSUFFICIENT_BALANCE"
    ALREADY_MAX_LEVEL = "ALREADY_MAX_LEVEL"
    REMOTE_UNAVAILABLE = "REMOTE_UNAVAILABLE"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    INTERNAL_ERROR = "INTERNAL_ERROR"


class RestoreSourceName(str, Enum):
    """Where a session's balance was restored from."""
    REMOTE = "remote"
    LOCAL = "local"
    DEFAULTS = "defaults"


# =============================================================================
# Shared Models
# =============================================================================

class EnergyInfo(BaseModel):
    """Energy bar state."""
    current: float
    max: int
    regen_per_second: float
    exhausted: bool
    recovery_threshold: float = Field(description="Energy at which exhaustion clears (max / 2)")


class UpgradeInfo(BaseModel):
    """One upgrade kind as the player currently has it."""
    kind: str
    level: int
    max_level: int
    value: float
    next_cost: Optional[int] = None
    next_value: Optional[float] = None


class TierInfo(BaseModel):
    level: int
    value: float
    cost: Optional[int] = None


class CatalogEntry(BaseModel):
    kind: str
    tiers: list[TierInfo]


class EconomyStateResponse(BaseModel):
    """Full economy state for one player."""
    player_id: str
    balance: int
    energy: EnergyInfo
    tap_power: int
    income_per_minute: float
    upgrades: list[UpgradeInfo] = Field(default_factory=list)
    sync_pending: bool = Field(False, description="A remote flush is scheduled but not sent")


# =============================================================================
# Requests
# =============================================================================

class StartSessionRequest(BaseModel):
    """Start (or resume) a player's session."""
    display_name: Optional[str] = Field(None, max_length=64)


class TapRequest(BaseModel):
    """One or more taps, applied in order."""
    count: int = Field(1, ge=1, le=100, description="Taps in this batch (multi-touch)")


# =============================================================================
# Responses
# =============================================================================

class SessionResponse(BaseModel):
    """Session start result."""
    player_id: str
    restored_from: RestoreSourceName
    remote_reachable: bool
    offline_credit: int = Field(description="Coins earned while away")
    state: EconomyStateResponse


class TapResponse(BaseModel):
    """
    Result of a tap batch.

    Taps stop at the first rejection; accepted counts those applied.
    """
    accepted: int
    reward: int
    balance: int
    energy: EnergyInfo
    rejected: Optional[ErrorCode] = None
    notice: Optional[str] = None


class PurchaseResponse(BaseModel):
    """Successful upgrade purchase."""
    kind: str
    level: int
    state: EconomyStateResponse


class CatalogResponse(BaseModel):
    upgrades: list[CatalogEntry]


class LeaderboardEntry(BaseModel):
    rank: int
    player_id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None
    balance: int


class LeaderboardResponse(BaseModel):
    entries: list[LeaderboardEntry]


class EndSessionResponse(BaseModel):
    success: bool
    player_id: str


class HealthResponse(BaseModel):
    status: str = "ok"
    version: str
    environment: str
    active_sessions: int


class ErrorResponse(BaseModel):
    """Standard error response."""
    error: str
    error_code: ErrorCode
    details: Optional[dict] = None
