"""Integration tests for API endpoints"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient

from debit_gateway.domain.exceptions import (
    InsufficientFundsError,
    ServiceUnavailableError,
)

pytestmark = pytest.mark.integration


def create_card(client: TestClient, customer_id="cust-1", account_id="acc-1") -> dict:
    response = client.post(
        "/v1/debit-cards",
        json={"customer_id": customer_id, "primary_account_id": account_id},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "debit_withdrawal_total" in response.text


def test_request_id_is_propagated(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


def test_create_debit_card(client: TestClient):
    data = create_card(client)

    assert data["customer_id"] == "cust-1"
    assert data["primary_account_id"] == "acc-1"
    assert data["associated_accounts"] == ["acc-1"]
    assert data["active"] is True
    assert data["card_number"].startswith("****-****-****-")


def test_create_debit_card_unknown_customer(client: TestClient):
    response = client.post(
        "/v1/debit-cards",
        json={"customer_id": "nobody", "primary_account_id": "acc-1"},
    )
    assert response.status_code == 404


def test_create_debit_card_inactive_account(client: TestClient):
    response = client.post(
        "/v1/debit-cards",
        json={"customer_id": "cust-1", "primary_account_id": "acc-inactive"},
    )
    assert response.status_code == 400
    assert "inactive" in response.json()["detail"]


def test_create_debit_card_duplicate(client: TestClient):
    create_card(client)

    response = client.post(
        "/v1/debit-cards",
        json={"customer_id": "cust-1", "primary_account_id": "acc-1"},
    )
    assert response.status_code == 400


def test_create_debit_card_missing_field(client: TestClient):
    response = client.post("/v1/debit-cards", json={"customer_id": "cust-1"})
    assert response.status_code == 422


def test_create_debit_card_customer_service_down(client: TestClient, customer_gateway):
    async def unavailable(customer_id):
        raise ServiceUnavailableError("customer-service")

    customer_gateway.get_customer = unavailable

    response = client.post(
        "/v1/debit-cards",
        json={"customer_id": "cust-1", "primary_account_id": "acc-1"},
    )
    assert response.status_code == 503


def test_associate_account(client: TestClient):
    create_card(client)

    response = client.post(
        "/v1/debit-cards/associate",
        json={"customer_id": "cust-1", "account_id": "acc-2"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["associated_accounts"] == ["acc-1", "acc-2"]
    assert data["updated_at"] is not None


def test_associate_account_duplicate(client: TestClient):
    card = create_card(client)

    response = client.post(
        "/v1/debit-cards/associate",
        json={"customer_id": "cust-1", "account_id": "acc-1"},
    )

    assert response.status_code == 400
    assert client.get(f"/v1/debit-cards/{card['id']}").json()["associated_accounts"] == ["acc-1"]


def test_associate_account_without_card(client: TestClient):
    response = client.post(
        "/v1/debit-cards/associate",
        json={"customer_id": "cust-1", "account_id": "acc-2"},
    )
    assert response.status_code == 404


def test_get_debit_card(client: TestClient):
    card = create_card(client)

    response = client.get(f"/v1/debit-cards/{card['id']}")

    assert response.status_code == 200
    assert response.json()["id"] == card["id"]


def test_get_debit_card_not_found(client: TestClient):
    response = client.get("/v1/debit-cards/00000000-0000-0000-0000-000000000000")
    assert response.status_code == 404


def test_get_debit_card_by_customer(client: TestClient):
    card = create_card(client)

    response = client.get("/v1/debit-cards/customer/cust-1")

    assert response.status_code == 200
    assert response.json()["id"] == card["id"]


def test_transaction_waterfall(client: TestClient, transaction_gateway):
    card = create_card(client)
    client.post("/v1/debit-cards/associate", json={"customer_id": "cust-1", "account_id": "acc-2"})
    client.post("/v1/debit-cards/associate", json={"customer_id": "cust-1", "account_id": "acc-3"})
    transaction_gateway.script = {
        "acc-1": InsufficientFundsError("Insufficient funds"),
        "acc-2": InsufficientFundsError("Insufficient funds"),
    }

    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": card["id"], "amount": 100, "description": "ATM"},
    )

    assert response.status_code == 201
    data = response.json()
    assert data["account_id"] == "acc-3"
    assert data["transaction_id"] == "txn-acc-3"
    assert data["status"] == "COMPLETED"
    assert Decimal(data["amount"]) == Decimal("100")
    assert data["accounts_attempted"] == 3
    assert transaction_gateway.called_accounts == ["acc-1", "acc-2", "acc-3"]


def test_transaction_non_positive_amount(client: TestClient, transaction_gateway):
    card = create_card(client)

    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": card["id"], "amount": 0},
    )

    assert response.status_code == 400
    assert transaction_gateway.calls == []


@pytest.mark.parametrize("amount", ["1e400", "100.005", "NaN", "Infinity"])
def test_transaction_out_of_range_amount_rejected(client: TestClient, transaction_gateway, amount):
    card = create_card(client)

    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": card["id"], "amount": amount},
    )

    assert response.status_code == 422
    assert transaction_gateway.calls == []


def test_transaction_amount_keeps_cents(client: TestClient):
    card = create_card(client)

    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": card["id"], "amount": "0.10"},
    )

    assert response.status_code == 201
    assert Decimal(response.json()["amount"]) == Decimal("0.10")


def test_transaction_all_accounts_insufficient(client: TestClient, transaction_gateway):
    card = create_card(client)
    client.post("/v1/debit-cards/associate", json={"customer_id": "cust-1", "account_id": "acc-2"})
    transaction_gateway.script = {
        "acc-1": InsufficientFundsError("Insufficient funds"),
        "acc-2": InsufficientFundsError("Insufficient funds"),
    }

    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": card["id"], "amount": 100},
    )

    assert response.status_code == 422
    assert "all 2 associated accounts" in response.json()["detail"]


def test_transaction_service_unavailable(client: TestClient, transaction_gateway):
    card = create_card(client)
    client.post("/v1/debit-cards/associate", json={"customer_id": "cust-1", "account_id": "acc-2"})
    transaction_gateway.script = {"acc-1": ServiceUnavailableError("transaction-service")}

    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": card["id"], "amount": 100},
    )

    assert response.status_code == 503
    assert transaction_gateway.called_accounts == ["acc-1"]


def test_transaction_unknown_card(client: TestClient):
    response = client.post(
        "/v1/debit-cards/transactions",
        json={"debit_card_id": "missing", "amount": 10},
    )
    assert response.status_code == 404
