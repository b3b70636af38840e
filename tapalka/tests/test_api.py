"""
Tests for the API service and the HTTP endpoints.
"""

import pytest
from fastapi.testclient import TestClient

from ..api.app import create_app
from ..api.schemas import (
    ErrorCode,
    ErrorResponse,
    PurchaseResponse,
    RestoreSourceName,
    TapResponse,
)
from ..api.service import APIService
from ..persistence.schema import RemoteRecord


@pytest.fixture
def service(manager) -> APIService:
    return APIService(session_manager=manager)


@pytest.fixture
def rich_service(manager, remote, clock) -> APIService:
    remote.records["rich"] = RemoteRecord(
        player_id="rich", balance=20_000, income_per_minute=50, last_accrual_at=clock(),
    )
    return APIService(session_manager=manager)


@pytest.fixture
def client(service):
    with TestClient(create_app(service, run_loops=False)) as client:
        yield client


class TestAPIService:
    """Framework-agnostic service layer."""

    def test_start_session(self, service):
        response = service.start_session("player1")

        assert response.restored_from == RestoreSourceName.DEFAULTS
        assert response.remote_reachable
        assert response.state.balance == 0
        assert response.state.energy.current == 30
        assert response.state.energy.recovery_threshold == 15
        assert response.state.tap_power == 1

    def test_state_lists_every_upgrade(self, service):
        service.start_session("player1")
        state = service.get_state("player1")

        by_kind = {u.kind: u for u in state.upgrades}
        assert set(by_kind) == {"capacity", "regen_speed", "tap_power"}
        assert by_kind["capacity"].next_cost == 500
        assert by_kind["capacity"].next_value == 60

    def test_state_without_session(self, service):
        result = service.get_state("nobody")
        assert isinstance(result, ErrorResponse)
        assert result.error_code == ErrorCode.SESSION_NOT_FOUND

    def test_tap_batch_stops_at_rejection(self, service):
        service.start_session("player1")

        result = service.tap("player1", count=35)

        assert isinstance(result, TapResponse)
        assert result.accepted == 30
        assert result.reward == 30
        assert result.balance == 30
        assert result.rejected == ErrorCode.INSUFFICIENT_ENERGY
        assert result.notice
        assert result.energy.exhausted

    def test_tap_marks_sync_pending(self, service):
        service.start_session("player1")
        service.tap("player1")
        assert service.get_state("player1").sync_pending

    def test_purchase(self, rich_service):
        rich_service.start_session("rich")

        result = rich_service.purchase("rich", "capacity")

        assert isinstance(result, PurchaseResponse)
        assert result.level == 2
        assert result.state.balance == 19_500
        assert result.state.energy.max == 60

    def test_purchase_insufficient_balance(self, service):
        service.start_session("player1")
        result = service.purchase("player1", "tap_power")
        assert result.error_code == ErrorCode.INSUFFICIENT_BALANCE

    def test_purchase_already_max(self, rich_service):
        rich_service.start_session("rich")
        rich_service.purchase("rich", "capacity")
        rich_service.purchase("rich", "capacity")

        result = rich_service.purchase("rich", "capacity")

        assert result.error_code == ErrorCode.ALREADY_MAX_LEVEL

    def test_purchase_unknown_kind(self, service):
        service.start_session("player1")
        result = service.purchase("player1", "jetpack")
        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert "capacity" in result.details["valid_kinds"]

    def test_catalog(self, service):
        catalog = service.catalog()
        tap_power = next(e for e in catalog.upgrades if e.kind == "tap_power")
        assert [t.value for t in tap_power.tiers] == [1, 2, 4]
        assert [t.cost for t in tap_power.tiers] == [None, 2000, 10000]

    def test_leaderboard_unavailable(self, service, remote):
        remote.available = False
        result = service.leaderboard()
        assert result.error_code == ErrorCode.REMOTE_UNAVAILABLE

    def test_end_session(self, service, remote):
        service.start_session("player1")
        service.tap("player1", count=3)

        assert service.end_session("player1")
        assert remote.records["player1"].balance == 3
        assert service.list_sessions() == []


class TestEndpoints:
    """HTTP surface."""

    def test_health(self, client):
        response = client.get("/api/v1/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_upgrade_catalog(self, client):
        response = client.get("/api/v1/upgrades")
        assert response.status_code == 200
        assert len(response.json()["upgrades"]) == 3

    def test_session_lifecycle(self, client, remote):
        response = client.post("/api/v1/players/player1/session", json={"display_name": "Ann"})
        assert response.status_code == 200
        assert response.json()["restored_from"] == "defaults"

        response = client.post("/api/v1/players/player1/tap", json={"count": 2})
        assert response.status_code == 200
        assert response.json()["balance"] == 2

        response = client.get("/api/v1/players/player1/state")
        assert response.json()["balance"] == 2

        response = client.delete("/api/v1/players/player1/session")
        assert response.json()["success"]
        assert remote.records["player1"].balance == 2
        assert remote.records["player1"].display_name == "Ann"

    def test_tap_without_body_is_one_tap(self, client):
        client.post("/api/v1/players/player1/session")
        response = client.post("/api/v1/players/player1/tap")
        assert response.json()["accepted"] == 1

    def test_state_without_session_is_404(self, client):
        response = client.get("/api/v1/players/ghost/state")
        assert response.status_code == 404
        assert response.json()["error_code"] == "SESSION_NOT_FOUND"

    def test_rejected_purchase_is_409(self, client):
        client.post("/api/v1/players/player1/session")
        response = client.post("/api/v1/players/player1/upgrades/capacity")
        assert response.status_code == 409
        assert response.json()["error_code"] == "INSUFFICIENT_BALANCE"

    def test_unknown_upgrade_is_422(self, client):
        client.post("/api/v1/players/player1/session")
        response = client.post("/api/v1/players/player1/upgrades/jetpack")
        assert response.status_code == 422

    def test_malformed_player_id_rejected(self, client):
        response = client.post("/api/v1/players/bad%20id/session")
        assert response.status_code == 422

    def test_tap_count_bounds(self, client):
        client.post("/api/v1/players/player1/session")
        response = client.post("/api/v1/players/player1/tap", json={"count": 0})
        assert response.status_code == 422

    def test_leaderboard(self, client, remote):
        remote.upsert_record("top", {"balance": 10, "display_name": "Top"})
        response = client.get("/api/v1/leaderboard", params={"limit": 5})
        assert response.status_code == 200
        entries = response.json()["entries"]
        assert entries[0]["player_id"] == "top"
        assert entries[0]["rank"] == 1

    def test_openapi_documents_error_responses(self, service):
        schema = create_app(service, run_loops=False).openapi()

        purchase = schema["paths"]["/api/v1/players/{player_id}/upgrades/{kind}"]["post"]
        assert {"200", "404", "409", "422"} <= set(purchase["responses"])
        assert "ErrorResponse" in schema["components"]["schemas"]

    def test_shutdown_ends_sessions(self, service, remote):
        with TestClient(create_app(service, run_loops=False)) as client:
            client.post("/api/v1/players/player1/session")
            client.post("/api/v1/players/player1/tap", json={"count": 4})

        assert remote.records["player1"].balance == 4
        assert service.list_sessions() == []
