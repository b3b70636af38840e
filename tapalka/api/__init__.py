"""
API Module - Game client interface.

Exposes the economy engine via REST API. The client:
1. Starts a session (restore + offline catch-up)
2. Sends taps and upgrade purchases
3. Polls economy state for the energy bar and balance
4. Ends the session when the player leaves

Gameplay rejections are structured errors the client shows as a
transient notice.
"""

from .schemas import (
    # Requests
    StartSessionRequest,
    TapRequest,
    # Responses
    SessionResponse,
    EconomyStateResponse,
    TapResponse,
    PurchaseResponse,
    CatalogResponse,
    LeaderboardResponse,
    EndSessionResponse,
    HealthResponse,
    ErrorResponse,
    # Shared
    EnergyInfo,
    UpgradeInfo,
    ErrorCode,
)
from .service import APIService
from .app import create_app

__all__ = [
    # Requests
    "StartSessionRequest",
    "TapRequest",
    # Responses
    "SessionResponse",
    "EconomyStateResponse",
    "TapResponse",
    "PurchaseResponse",
    "CatalogResponse",
    "LeaderboardResponse",
    "EndSessionResponse",
    "HealthResponse",
    "ErrorResponse",
    # Shared
    "EnergyInfo",
    "UpgradeInfo",
    "ErrorCode",
    # Service
    "APIService",
    "create_app",
]
