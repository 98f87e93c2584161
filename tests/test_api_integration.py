"""
Integration tests for the Ledger API
Tests end-to-end workflows using FastAPI TestClient
"""

import pytest
import uuid
from fastapi.testclient import TestClient

from ledger_service.api import app, LedgerSystem, get_ledger_system
from ledger_service.api import dependencies
from ledger_service.errors import StorageError
from ledger_service.storage import InMemoryLedgerStore


class BrokenLedgerStore(InMemoryLedgerStore):
    """Store failing every read"""

    def get_account(self, account_id):
        raise StorageError("database unavailable")


@pytest.fixture
def system():
    """Fresh in-memory ledger system per test"""
    return LedgerSystem(store=InMemoryLedgerStore(), max_page_limit=25)


@pytest.fixture
def client(system):
    """Create a test client wired to the test ledger system"""
    app.dependency_overrides[get_ledger_system] = lambda: system
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def account_id():
    return str(uuid.uuid4())


class TestHealthEndpoints:
    """Test basic health endpoint"""

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        data = r.json()
        assert data["status"] == "healthy"
        assert data["service"] == "ledger_service"


class TestDepositFlow:
    """Deposits through HTTP"""

    def test_deposit_truncates_and_creates_account(self, client, account_id):
        r = client.post(f"/account/{account_id}/deposit", json={"amount": 10.555})
        assert r.status_code == 200
        transaction = r.json()["transaction"]
        assert transaction["amount"] == "10.55"
        assert transaction["transaction_type"] == "deposit"
        uuid.UUID(transaction["transaction_id"])

        r = client.get(f"/account/{account_id}")
        assert r.status_code == 200
        assert r.json()["account"] == {"id": account_id, "balance": "10.55"}

    @pytest.mark.parametrize("amount", [0, -5, -0.01])
    def test_non_positive_amount(self, client, account_id, amount):
        r = client.post(f"/account/{account_id}/deposit", json={"amount": amount})
        assert r.status_code == 400
        assert r.json()["detail"] == "amount must be positive"

        r = client.get(f"/account/{account_id}/transactions")
        assert r.status_code == 404

    @pytest.mark.parametrize("amount", [1e30, "1000000000000000"])
    def test_amount_above_bound(self, client, account_id, amount):
        r = client.post(f"/account/{account_id}/deposit", json={"amount": amount})
        assert r.status_code == 400
        assert r.json()["detail"] == "amount must not exceed 999999999999999.99"

        r = client.post(f"/account/{account_id}/withdrawal", json={"amount": amount})
        assert r.status_code == 400

    def test_invalid_account_id(self, client):
        r = client.post("/account/not-a-uuid/deposit", json={"amount": 10})
        assert r.status_code == 400

    def test_malformed_body(self, client, account_id):
        r = client.post(f"/account/{account_id}/deposit", json={"value": 10})
        assert r.status_code == 422


class TestWithdrawalFlow:
    """Withdrawals through HTTP"""

    def test_withdrawal_success(self, client, account_id):
        client.post(f"/account/{account_id}/deposit", json={"amount": 20.6})

        r = client.post(f"/account/{account_id}/withdrawal", json={"amount": 10.71})
        assert r.status_code == 200
        transaction = r.json()["transaction"]
        assert transaction["amount"] == "-10.71"
        assert transaction["transaction_type"] == "withdrawal"

        r = client.get(f"/account/{account_id}")
        assert r.json()["account"]["balance"] == "9.89"

    def test_withdrawal_unknown_account(self, client, system, account_id):
        r = client.post(f"/account/{account_id}/withdrawal", json={"amount": 10})
        assert r.status_code == 404
        assert r.json()["detail"] == "create account by making a valid deposit first"

    def test_withdrawal_not_enough_funds(self, client, account_id):
        client.post(f"/account/{account_id}/deposit", json={"amount": 5})

        r = client.post(f"/account/{account_id}/withdrawal", json={"amount": 6})
        assert r.status_code == 400
        assert r.json()["detail"] == "not enough funds in account"

        r = client.get(f"/account/{account_id}")
        assert r.json()["account"]["balance"] == "5.00"

    def test_withdrawal_non_positive_amount(self, client, account_id):
        r = client.post(f"/account/{account_id}/withdrawal", json={"amount": 0})
        assert r.status_code == 400


class TestTransactionHistory:
    """Paged transaction listing"""

    def test_unknown_account(self, client, account_id):
        r = client.get(f"/account/{account_id}/transactions")
        assert r.status_code == 404

    def test_default_page_is_capped(self, client, account_id):
        for n in range(30):
            client.post(f"/account/{account_id}/deposit", json={"amount": n + 1})

        r = client.get(f"/account/{account_id}/transactions")
        assert r.status_code == 200
        data = r.json()
        assert len(data["transactions"]) == 25
        assert data["next_page"] == 1

        r = client.get(f"/account/{account_id}/transactions", params={"page": 1})
        data = r.json()
        assert len(data["transactions"]) == 5
        assert data["next_page"] == 0

    @pytest.mark.parametrize("limit", [0, -3, 100])
    def test_limit_clamped(self, client, account_id, limit):
        for _ in range(26):
            client.post(f"/account/{account_id}/deposit", json={"amount": 1})

        r = client.get(f"/account/{account_id}/transactions", params={"limit": limit})
        assert len(r.json()["transactions"]) == 25

    def test_negative_page_is_first_page(self, client, account_id):
        client.post(f"/account/{account_id}/deposit", json={"amount": 1})
        client.post(f"/account/{account_id}/deposit", json={"amount": 2})

        r = client.get(f"/account/{account_id}/transactions", params={"page": -4, "limit": 1})
        data = r.json()
        assert len(data["transactions"]) == 1
        assert data["next_page"] == 1

    def test_newest_first(self, client, account_id):
        client.post(f"/account/{account_id}/deposit", json={"amount": 20.6})
        client.post(f"/account/{account_id}/withdrawal", json={"amount": 10.71})

        r = client.get(f"/account/{account_id}/transactions")
        amounts = [t["amount"] for t in r.json()["transactions"]]
        assert amounts == ["-10.71", "20.60"]

    def test_page_beyond_end(self, client, account_id):
        client.post(f"/account/{account_id}/deposit", json={"amount": 1})

        r = client.get(f"/account/{account_id}/transactions", params={"page": 9})
        assert r.status_code == 200
        assert r.json() == {"transactions": [], "next_page": 0}

        r = client.get(f"/account/{account_id}/transactions", params={"page": 10**18})
        assert r.status_code == 200
        assert r.json() == {"transactions": [], "next_page": 0}


class TestAccountLookup:
    """Balance lookup and error mapping"""

    def test_get_creates_zero_balance_account(self, client, account_id):
        r = client.get(f"/account/{account_id}")
        assert r.status_code == 200
        assert r.json()["account"]["balance"] == "0.00"

        r = client.get(f"/account/{account_id}/transactions")
        assert r.status_code == 200
        assert r.json()["transactions"] == []

    def test_invalid_account_id(self, client):
        r = client.get("/account/12345")
        assert r.status_code == 400

    def test_storage_failure_is_internal_error(self, account_id):
        broken = LedgerSystem(store=BrokenLedgerStore())
        app.dependency_overrides[get_ledger_system] = lambda: broken
        try:
            client = TestClient(app)
            r = client.get(f"/account/{account_id}")
            assert r.status_code == 500
            assert r.json()["detail"] == "database unavailable"

            r = client.post(f"/account/{account_id}/withdrawal", json={"amount": 1})
            assert r.status_code == 500
        finally:
            app.dependency_overrides.clear()


class TestLifespan:
    """Application shutdown"""

    def test_shutdown_closes_ledger_system(self, monkeypatch):
        closed = []

        class ClosingLedgerStore(InMemoryLedgerStore):
            def close(self):
                closed.append(True)

        monkeypatch.setattr(
            dependencies, "_ledger_system", LedgerSystem(store=ClosingLedgerStore())
        )

        with TestClient(app) as client:
            assert client.get("/health").status_code == 200
            assert closed == []

        assert closed == [True]
        assert dependencies._ledger_system is None
