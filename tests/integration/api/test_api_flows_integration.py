from decimal import Decimal

import httpx
import pytest
from fastapi.testclient import TestClient

from src.api.dependencies import reset_flow_runtime_for_tests
from src.api.main import app
from src.api.routers.flows_config import build_flow_runtime

_PROFILE = {
    "status": True,
    "data": {
        "getPrimaryWallet": {
            "id": "wal_01",
            "wallet_number": "3012345678",
            "balance": 10000,
            "currency": {"code": "NGN"},
        }
    },
}

_QUOTE = {
    "status": True,
    "data": {
        "currency_code": "NGN",
        "currency_symbol": "₦",
        "actual_balance_before": 10000,
        "amount_processable": 2000,
        "platform_charge_fee": 10,
        "expected_balance_after": 7990,
        "total_amount_processable": 2010,
    },
}


class _FakeBankingService:
    def __init__(self) -> None:
        self.paths: list[str] = []
        self.process_status = 200
        self.banks_status = 200

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/api/v1")
        self.paths.append(path)
        if path == "/profile":
            return httpx.Response(200, json=_PROFILE)
        if path == "/banks":
            if self.banks_status == 401:
                return httpx.Response(401, json={"message": "Unauthenticated."})
            return httpx.Response(200, json={"status": True, "data": {"data": [{"id": "B1"}]}})
        if path == "/verify/bank-account/0123456789/B1":
            return httpx.Response(200, json={"status": True, "data": {"account_name": "Jane Doe"}})
        if path == "/customers/wallet-to-bank-transaction/initiate":
            return httpx.Response(200, json=_QUOTE)
        if path == "/customers/wallet-to-bank-transaction/process":
            if self.process_status != 200:
                return httpx.Response(
                    self.process_status,
                    json={"status": False, "message": "Invalid transaction PIN"},
                )
            return httpx.Response(
                200,
                json={
                    "status": True,
                    "data": {"data": {"reference_number": "TRX-1", "user_balance_after": 7990}},
                },
            )
        return httpx.Response(404, json={"status": False, "message": "Not found"})


@pytest.fixture
def banking_service(monkeypatch: pytest.MonkeyPatch) -> _FakeBankingService:
    monkeypatch.setenv("BANKING_API_BASE_URL", "https://bank.test/api/v1")
    monkeypatch.setenv("BANKING_API_TOKEN", "tok_test")
    service = _FakeBankingService()
    reset_flow_runtime_for_tests(build_flow_runtime(transport=httpx.MockTransport(service)))
    return service


@pytest.fixture
def client(banking_service):
    with TestClient(app) as test_client:
        yield test_client


def _advance(client: TestClient, flow_id: str, payload: dict) -> dict:
    response = client.post(f"/flows/{flow_id}/advance", json={"payload": payload})
    assert response.status_code == 200
    return response.json()


def test_bank_transfer_over_http_updates_balance(client, banking_service):
    started = client.post("/flows", json={"kind": "BANK_TRANSFER"})
    assert started.status_code == 201
    flow_id = started.json()["state"]["flow_id"]
    assert started.json()["state"]["current_step"] == "SELECTION"

    _advance(client, flow_id, {"bank_id": "B1"})
    verified = _advance(client, flow_id, {"account_number": "0123456789"})
    assert verified["state"]["verification_result"]["counterparty_name"] == "Jane Doe"
    _advance(client, flow_id, {"amount": "2000", "description": "rent"})
    quoted = _advance(client, flow_id, {})
    assert quoted["to_step"] == "AUTHORIZATION"
    assert Decimal(quoted["state"]["quote"]["total_processable"]) == Decimal("2010")
    result = _advance(client, flow_id, {"pin": "1234"})

    assert result["state"]["status"] == "COMPLETED"
    assert result["state"]["current_step"] == "RESULT"
    balance = client.get("/session/balance").json()
    assert Decimal(balance["balance"]) == Decimal("7990")
    assert balance["wallet_number"] == "3012345678"
    assert banking_service.paths[0] == "/profile"


def test_commit_rejection_is_reported_in_body(client, banking_service):
    banking_service.process_status = 400
    flow_id = client.post("/flows", json={"kind": "BANK_TRANSFER"}).json()["state"]["flow_id"]
    _advance(client, flow_id, {"bank_id": "B1"})
    _advance(client, flow_id, {"account_number": "0123456789"})
    _advance(client, flow_id, {"amount": "2000", "description": "rent"})
    _advance(client, flow_id, {})

    result = _advance(client, flow_id, {"pin": "1234"})

    assert result["to_step"] == "AUTHORIZATION"
    assert result["error"] == {
        "category": "COMMIT_FAILURE",
        "reason": "invalid_pin",
        "message": "Invalid transaction PIN",
    }
    assert Decimal(client.get("/session/balance").json()["balance"]) == Decimal("10000")


def test_second_active_flow_conflicts(client):
    assert client.post("/flows", json={"kind": "AIRTIME_PURCHASE"}).status_code == 201

    response = client.post("/flows", json={"kind": "BANK_TRANSFER"})

    assert response.status_code == 409
    assert response.json()["detail"] == "ACTIVE_FLOW_EXISTS"


def test_abandon_then_start_again(client):
    flow_id = client.post("/flows", json={"kind": "AIRTIME_PURCHASE"}).json()["state"]["flow_id"]

    abandoned = client.post(f"/flows/{flow_id}/abandon", json={"reason": "USER_CLOSED"})

    assert abandoned.json()["state"]["status"] == "ABANDONED"
    assert not abandoned.json()["primary_action_enabled"]
    assert client.post("/flows", json={"kind": "AIRTIME_PURCHASE"}).status_code == 201


def test_retreat_from_selection_abandons(client):
    flow_id = client.post("/flows", json={"kind": "AIRTIME_PURCHASE"}).json()["state"]["flow_id"]

    response = client.post(f"/flows/{flow_id}/retreat")

    assert response.json()["state"]["status"] == "ABANDONED"


def test_unknown_flow_returns_404(client):
    response = client.get("/flows/fl_missing")

    assert response.status_code == 404
    assert response.json()["detail"] == "FLOW_NOT_FOUND"


def test_unknown_kind_is_rejected(client):
    response = client.post("/flows", json={"kind": "LOTTERY"})

    assert response.status_code == 422


def test_catalog_session_expiry_logs_out(client, banking_service):
    banking_service.banks_status = 401

    response = client.get("/catalog/banks")

    assert response.status_code == 401
    assert client.get("/session/balance").json()["logged_out"] is True


def test_catalog_banks(client):
    response = client.get("/catalog/banks")

    assert response.status_code == 200
    assert response.json() == [{"id": "B1"}]


def test_session_refresh_accepts_new_token(client, banking_service):
    response = client.post("/session/refresh", json={"token": "tok_new"})

    assert response.status_code == 200
    assert Decimal(response.json()["balance"]) == Decimal("10000")
    assert response.json()["logged_out"] is False


def test_flow_api_can_be_disabled(client, monkeypatch):
    monkeypatch.setenv("FLOW_API_ENABLED", "false")

    response = client.get("/session/balance")

    assert response.status_code == 404
    assert response.json()["detail"] == "FLOW_API_DISABLED"


def test_unhandled_errors_return_problem_details(monkeypatch):
    def _boom(request: httpx.Request) -> httpx.Response:
        raise RuntimeError("unexpected")

    monkeypatch.setenv("BANKING_API_TOKEN", "tok_test")
    reset_flow_runtime_for_tests(build_flow_runtime(transport=httpx.MockTransport(_boom)))

    with TestClient(app, raise_server_exceptions=False) as client:
        response = client.post("/session/refresh")

    assert response.status_code == 500
    assert response.headers["content-type"].startswith("application/problem+json")
    assert response.json()["instance"] == "/session/refresh"
