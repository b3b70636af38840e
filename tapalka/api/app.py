"""
FastAPI Application - REST API for the game client.

Endpoints:
    GET    /api/v1/health                              Liveness
    GET    /api/v1/upgrades                            Upgrade catalog
    GET    /api/v1/leaderboard                         Top players by balance
    POST   /api/v1/players/{player_id}/session         Start session (restore + catch-up)
    DELETE /api/v1/players/{player_id}/session         End session, force remote flush
    GET    /api/v1/players/{player_id}/state           Economy state
    POST   /api/v1/players/{player_id}/tap             Tap (one or a batch)
    POST   /api/v1/players/{player_id}/upgrades/{kind} Buy next upgrade level

Every state mutation runs on the event loop thread: the endpoints
are async and a single background task pumps all game loops. Remote
flushes are handed to a one-worker thread pool so the loop never
waits on the remote store.
"""

from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Annotated, Optional, Union
import asyncio
import logging
import os

from fastapi import Body, FastAPI, Path as PathParam, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .. import __version__
from .schemas import (
    CatalogResponse,
    EconomyStateResponse,
    EndSessionResponse,
    ErrorCode,
    ErrorResponse,
    HealthResponse,
    LeaderboardResponse,
    PurchaseResponse,
    SessionResponse,
    StartSessionRequest,
    TapRequest,
    TapResponse,
)
from .service import APIService

logger = logging.getLogger(__name__)

# Environment configuration
TAPALKA_ENV = os.getenv("TAPALKA_ENV", "development")
TAPALKA_DB_PATH = os.getenv("TAPALKA_DB_PATH", str(Path.home() / ".tapalka" / "remote.db"))
TAPALKA_CACHE_DIR = os.getenv("TAPALKA_CACHE_DIR", str(Path.home() / ".tapalka" / "cache"))
ALLOWED_ORIGINS = os.getenv("ALLOWED_ORIGINS", "*").split(",")

STALE_SESSION_SECONDS = 3600
_STALE_SWEEP_SECONDS = 60.0

_STATUS_FOR_CODE = {
    ErrorCode.SESSION_NOT_FOUND: 404,
    ErrorCode.INSUFFICIENT_ENERGY: 409,
    ErrorCode.INSUFFICIENT_BALANCE: 409,
    ErrorCode.ALREADY_MAX_LEVEL: 409,
    ErrorCode.VALIDATION_ERROR: 422,
    ErrorCode.REMOTE_UNAVAILABLE: 503,
    ErrorCode.INTERNAL_ERROR: 500,
}

PlayerId = Annotated[str, PathParam(pattern=r"^[A-Za-z0-9_-]{1,64}$", description="Player identity")]


def build_default_service(executor: ThreadPoolExecutor | None = None) -> APIService:
    """Service backed by the SQLite remote store and per-player JSON caches."""
    from ..persistence.remote import SqliteRemoteStore
    from ..session import SessionManager, json_cache_factory

    manager = SessionManager(
        remote=SqliteRemoteStore(TAPALKA_DB_PATH),
        cache_factory=json_cache_factory(TAPALKA_CACHE_DIR),
        executor=executor,
    )
    return APIService(session_manager=manager)


def create_app(service: APIService | None = None, run_loops: bool = True):
    """
    Create the FastAPI application.

    Args:
        service: Optional APIService instance (builds the default SQLite-backed one if not provided)
        run_loops: Start the background task that pumps game loops

    Returns:
        FastAPI application instance
    """
    flush_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="tapalka-flush")
    api_service = service or build_default_service(executor=flush_executor)
    manager = api_service.session_manager

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        stop = asyncio.Event()
        tasks = []
        if run_loops:
            tasks.append(asyncio.create_task(manager.run(stop)))
            tasks.append(asyncio.create_task(sweep_stale_sessions(stop)))
        logger.info("Tapalka API started (%s)", TAPALKA_ENV)
        try:
            yield
        finally:
            stop.set()
            for task in tasks:
                await task
            manager.end_all()
            flush_executor.shutdown(wait=True)
            logger.info("Tapalka API stopped")

    async def sweep_stale_sessions(stop: asyncio.Event):
        while not stop.is_set():
            try:
                await asyncio.wait_for(stop.wait(), timeout=_STALE_SWEEP_SECONDS)
            except asyncio.TimeoutError:
                manager.cleanup_stale_sessions(STALE_SESSION_SECONDS)

    app = FastAPI(
        title="Tapalka Economy API",
        description="""
Tap-to-earn economy engine: energy, taps, upgrades and passive income.

## Error Codes

| Code | Description |
|------|-------------|
| `SESSION_NOT_FOUND` | Start a session first |
| `INSUFFICIENT_ENERGY` | Tap rejected, wait for energy |
| `INSUFFICIENT_BALANCE` | Purchase rejected, not enough coins |
| `ALREADY_MAX_LEVEL` | Upgrade is maxed |
| `REMOTE_UNAVAILABLE` | Remote store unreachable |
        """,
        version=__version__,
        docs_url="/api/docs",
        redoc_url="/api/redoc",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # =========================================================================
    # Error helpers
    # =========================================================================

    def make_error_response(error: ErrorResponse) -> JSONResponse:
        """Render an ErrorResponse with the status code for its error code."""
        return JSONResponse(
            status_code=_STATUS_FOR_CODE.get(error.error_code, 400),
            content=error.model_dump(mode="json"),
        )

    def respond(result):
        if isinstance(result, ErrorResponse):
            return make_error_response(result)
        return result

    # =========================================================================
    # Service Endpoints
    # =========================================================================

    @app.get("/api/v1/health", response_model=HealthResponse, tags=["Service"])
    async def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            environment=TAPALKA_ENV,
            active_sessions=len(api_service.list_sessions()),
        )

    @app.get("/api/v1/upgrades", response_model=CatalogResponse, tags=["Economy"])
    async def upgrade_catalog() -> CatalogResponse:
        """All upgrade kinds with their tier values and costs."""
        return api_service.catalog()

    @app.get(
        "/api/v1/leaderboard",
        response_model=LeaderboardResponse,
        responses={503: {"model": ErrorResponse}},
        tags=["Economy"],
    )
    async def leaderboard(
        limit: Annotated[int, Query(ge=1, le=100, description="Number of players")] = 10,
    ) -> Union[LeaderboardResponse, JSONResponse]:
        """Top players by balance, as last synced to the remote store."""
        return respond(api_service.leaderboard(limit))

    # =========================================================================
    # Session Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/players/{player_id}/session",
        response_model=SessionResponse,
        tags=["Sessions"],
        summary="Start or resume a player session",
    )
    async def start_session(
        player_id: PlayerId,
        body: Annotated[Optional[StartSessionRequest], Body()] = None,
    ) -> SessionResponse:
        """
        Restore the player's economy and credit offline income.

        Prefers the remote record, falls back to the local cache, then
        to defaults.
        """
        display_name = body.display_name if body else None
        return api_service.start_session(player_id, display_name=display_name)

    @app.delete(
        "/api/v1/players/{player_id}/session",
        response_model=EndSessionResponse,
        tags=["Sessions"],
        summary="End a player session",
    )
    async def end_session(player_id: PlayerId) -> EndSessionResponse:
        """End the session and force out any pending remote flush."""
        success = api_service.end_session(player_id)
        return EndSessionResponse(success=success, player_id=player_id)

    @app.get(
        "/api/v1/players/{player_id}/state",
        response_model=EconomyStateResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Economy"],
    )
    async def get_state(player_id: PlayerId) -> Union[EconomyStateResponse, JSONResponse]:
        return respond(api_service.get_state(player_id))

    # =========================================================================
    # Gameplay Endpoints
    # =========================================================================

    @app.post(
        "/api/v1/players/{player_id}/tap",
        response_model=TapResponse,
        responses={404: {"model": ErrorResponse}},
        tags=["Gameplay"],
    )
    async def tap(
        player_id: PlayerId,
        body: Annotated[Optional[TapRequest], Body()] = None,
    ) -> Union[TapResponse, JSONResponse]:
        """
        Tap the character.

        A rejected tap is not an HTTP error: the response carries
        `rejected` and a `notice` to show the player.
        """
        count = body.count if body else 1
        return respond(api_service.tap(player_id, count=count))

    @app.post(
        "/api/v1/players/{player_id}/upgrades/{kind}",
        response_model=PurchaseResponse,
        responses={
            404: {"model": ErrorResponse},
            409: {"model": ErrorResponse, "description": "Not enough coins or already maxed"},
            422: {"model": ErrorResponse, "description": "Unknown upgrade kind"},
        },
        tags=["Gameplay"],
    )
    async def purchase(player_id: PlayerId, kind: str) -> Union[PurchaseResponse, JSONResponse]:
        """Buy the next level of an upgrade."""
        return respond(api_service.purchase(player_id, kind))

    return app
