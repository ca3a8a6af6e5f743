"""
Dues API 테스트 (FastAPI TestClient)
"""
import pytest
from fastapi.testclient import TestClient

from app.server import app
from app.club.dues.dependencies import get_dues_service, get_transaction_service
from app.club.dues.transactions import TransactionService

BASE = "/api/club/dues"


@pytest.fixture
def client(service):
    transactions = TransactionService(
        service.ledger_store, service.player_store, service.calendar
    )
    app.dependency_overrides[get_dues_service] = lambda: service
    app.dependency_overrides[get_transaction_service] = lambda: transactions
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def flaky_client(flaky_service):
    app.dependency_overrides[get_dues_service] = lambda: flaky_service
    yield TestClient(app)
    app.dependency_overrides.clear()


def register(client, player_id="p1", name="João"):
    return client.post(
        f"{BASE}/players",
        json={"player_id": player_id, "player_name": name, "year": 2025},
    )


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"


class TestPlayersAPI:
    """선수 달력 API"""

    def test_create_and_get(self, client):
        response = register(client)
        assert response.status_code == 201
        assert len(response.json()["slots"]) == 12

        response = client.get(f"{BASE}/players/p1")
        assert response.status_code == 200
        assert response.json()["player_name"] == "João"

    def test_duplicate(self, client):
        register(client)
        assert register(client).status_code == 409

    def test_not_found(self, client):
        assert client.get(f"{BASE}/players/nobody").status_code == 404
        assert client.delete(f"{BASE}/players/nobody").status_code == 404

    def test_delete(self, client):
        register(client)
        assert client.delete(f"{BASE}/players/p1").status_code == 200
        assert client.get(f"{BASE}/players/p1").status_code == 404


class TestPaymentsAPI:
    """월 납부/면제 API"""

    def test_mark_paid(self, client):
        register(client)
        response = client.post(f"{BASE}/players/p1/payments/3", json={"paid": True})
        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["slot"]["paid"] is True
        assert data["ledger"]["outcome"] == "created"

        transactions = client.get(f"{BASE}/transactions").json()
        assert transactions["total"] == 1
        assert transactions["transactions"][0]["description"] == "Mensalidade Abril - João"

    @pytest.mark.parametrize("month_index", [-1, 12])
    def test_invalid_month(self, client, month_index):
        register(client)
        response = client.post(
            f"{BASE}/players/p1/payments/{month_index}", json={"paid": True}
        )
        assert response.status_code == 400

    def test_unknown_player(self, client):
        response = client.post(f"{BASE}/players/nobody/payments/0", json={"paid": True})
        assert response.status_code == 404

    def test_partial_success_on_ledger_failure(self, flaky_client, flaky_ledger_store):
        register(flaky_client)
        flaky_ledger_store.failing = True

        response = flaky_client.post(f"{BASE}/players/p1/payments/0", json={"paid": True})
        assert response.status_code == 207
        data = response.json()
        assert data["success"] is False
        assert data["ledger_error"]["month_index"] == 0
        assert data["record"]["slots"][0]["paid"] is True

        assert flaky_client.post(f"{BASE}/players/p1/payments/0/reconcile").status_code == 503

        flaky_ledger_store.failing = False
        response = flaky_client.post(f"{BASE}/players/p1/payments/0/reconcile")
        assert response.status_code == 200
        assert response.json()["outcome"] == "created"


class TestLedgerAPI:
    """장부 / 요약 API"""

    def test_summary(self, client):
        register(client)
        client.post(f"{BASE}/players/p1/payments/0", json={"paid": True})
        client.post(
            f"{BASE}/transactions",
            json={
                "description": "Aluguel do campo",
                "amount": 20,
                "kind": "expense",
                "transaction_date": "2025-02-01T10:00:00-03:00",
            },
        )
        response = client.get(f"{BASE}/summary", params={"year": 2025})
        assert response.status_code == 200
        summary = response.json()
        assert summary["total_revenue"] == 50
        assert summary["total_expense"] == 20
        assert summary["balance"] == 30

    def test_create_transaction_validation(self, client):
        response = client.post(
            f"{BASE}/transactions",
            json={
                "description": "   ",
                "amount": 10,
                "kind": "revenue",
                "transaction_date": "2025-02-01T10:00:00-03:00",
            },
        )
        assert response.status_code == 400

    def test_delete_transaction(self, client):
        created = client.post(
            f"{BASE}/transactions",
            json={
                "description": "Rifa",
                "amount": 10,
                "kind": "revenue",
                "transaction_date": "2025-02-01T10:00:00-03:00",
            },
        ).json()
        assert client.delete(f"{BASE}/transactions/{created['id']}").status_code == 200
        assert client.delete(f"{BASE}/transactions/{created['id']}").status_code == 404

    def test_invalid_month_filter(self, client):
        response = client.get(f"{BASE}/transactions", params={"month": "2025-13"})
        assert response.status_code == 400

    def test_rebuild(self, client):
        register(client)
        response = client.post(f"{BASE}/ledger/rebuild")
        assert response.status_code == 200
        assert response.json()["success"] is True

    def test_repair_dates(self, client):
        response = client.post(f"{BASE}/transactions/repair-dates")
        assert response.json() == {"success": True, "fixed": 0}
