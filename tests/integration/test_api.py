"""Integration tests for API endpoints"""

import pytest
from fastapi.testclient import TestClient
from retail_backoffice.api.main import create_app
from retail_backoffice.domain.dispatcher import EventDispatcher


@pytest.fixture
def catalog(client: TestClient):
    """Products created through the API"""
    rice = client.post("/v1/products", json={"name": "Rice 5kg", "price": "75000", "stock": 20}).json()
    oil = client.post("/v1/products", json={"name": "Cooking Oil 2L", "price": 36000, "stock": 10}).json()
    return rice, oil


@pytest.fixture
def open_transaction(client: TestClient, catalog):
    rice, oil = catalog
    response = client.post(
        "/v1/transactions",
        json={
            "cashier_id": "cashier-1",
            "customer_id": "customer-1",
            "items": [
                {"product_id": rice["product_id"], "product_name": rice["name"], "quantity": 2, "unit_price": "15000"},
                {"product_id": oil["product_id"], "product_name": oil["name"], "quantity": 1, "unit_price": "20000"},
            ],
        },
    )
    assert response.status_code == 201
    return response.json()


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "ok"
    assert data["observers"] == ["stock_adjuster", "audit_logger", "supplier_transaction_logger"]


def test_metrics_endpoint(client: TestClient, open_transaction):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "retail_transaction_transitions_total" in response.text
    assert "http_request_duration_seconds" in response.text


def test_request_id_header(client: TestClient):
    """Test an incoming request id is echoed and one is generated otherwise"""
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"
    assert client.get("/health").headers["X-Request-ID"]


def test_create_transaction(client: TestClient, open_transaction, catalog):
    """Test POST /v1/transactions opens a sale and takes stock"""
    assert open_transaction["status"] == "MASIHDIPROSES"
    assert open_transaction["total"] == "50000.00"
    assert open_transaction["allowed_actions"] == ["complete", "cancel", "replace_items"]
    assert open_transaction["transaction_id"].startswith("TRX-")

    rice, _ = catalog
    assert client.get(f"/v1/products/{rice['product_id']}").json()["stock"] == 18


def test_create_transaction_validation(client: TestClient):
    """Test empty carts and zero quantities are rejected with 422"""
    response = client.post(
        "/v1/transactions",
        json={"cashier_id": "cashier-1", "customer_id": "customer-1", "items": []},
    )
    assert response.status_code == 422
    assert response.json()["error"] == "ValidationError"

    response = client.post(
        "/v1/transactions",
        json={
            "cashier_id": "cashier-1",
            "customer_id": "customer-1",
            "items": [{"product_id": "P1", "product_name": "Soap", "quantity": 0, "unit_price": "1000"}],
        },
    )
    assert response.status_code == 422


def test_get_transaction_not_found(client: TestClient):
    """Test GET /v1/transactions/{id} with an unknown id"""
    response = client.get("/v1/transactions/TRX-missing")
    assert response.status_code == 404
    assert response.json()["error"] == "NotFoundError"


def test_complete_then_cancel_conflicts(client: TestClient, open_transaction):
    """Test cancelling a completed sale conflicts and leaves it completed"""
    tx_id = open_transaction["transaction_id"]

    response = client.post(f"/v1/transactions/{tx_id}/complete")
    assert response.status_code == 200
    assert response.json()["status"] == "SELESAI"
    assert response.json()["allowed_actions"] == ["view_details", "print_receipt"]

    response = client.post(f"/v1/transactions/{tx_id}/cancel")
    assert response.status_code == 409
    assert client.get(f"/v1/transactions/{tx_id}").json()["status"] == "SELESAI"


def test_update_items(client: TestClient, open_transaction, catalog):
    """Test PUT /v1/transactions/{id}/items replaces the cart"""
    tx_id = open_transaction["transaction_id"]
    rice, _ = catalog

    response = client.put(
        f"/v1/transactions/{tx_id}/items",
        json={"items": [{"product_id": rice["product_id"], "product_name": rice["name"], "quantity": 4, "unit_price": "15000"}]},
    )

    assert response.status_code == 200
    assert response.json()["total"] == "60000.00"
    assert len(response.json()["items"]) == 1


def test_list_transactions(client: TestClient, open_transaction):
    """Test GET /v1/transactions filters, sort and bad parameters"""
    response = client.get("/v1/transactions", params={"status": "masihdiproses", "sort": "date_desc"})
    assert response.status_code == 200
    assert response.json()["count"] == 1

    assert client.get("/v1/transactions", params={"status": "SELESAI"}).json()["count"] == 0
    assert client.get("/v1/transactions", params={"status": "ARCHIVED"}).status_code == 422
    assert client.get("/v1/transactions", params={"sort": "random"}).status_code == 422


def test_delete_transaction(client: TestClient, open_transaction, catalog):
    """Test DELETE /v1/transactions/{id} removes the sale and returns stock"""
    tx_id = open_transaction["transaction_id"]

    assert client.delete(f"/v1/transactions/{tx_id}").status_code == 204
    assert client.get(f"/v1/transactions/{tx_id}").status_code == 404

    rice, _ = catalog
    assert client.get(f"/v1/products/{rice['product_id']}").json()["stock"] == 20


def test_payment_installments(client: TestClient, open_transaction):
    """Test paying a sale in installments over the API"""
    tx_id = open_transaction["transaction_id"]

    response = client.post("/v1/payments", json={"transaction_id": tx_id, "amount": "1000", "method": "CREDIT_CARD"})
    assert response.status_code == 201
    payment = response.json()
    assert payment["payment_id"].startswith("CC-")
    assert payment["status"] == "CICILAN"
    assert payment["outstanding"] == "1000.00"

    response = client.post(f"/v1/payments/{payment['payment_id']}/installments", json={"amount": 400})
    assert response.json()["status"] == "CICILAN"
    assert response.json()["total_paid"] == "400.00"

    response = client.post(f"/v1/payments/{payment['payment_id']}/installments", json={"amount": 600})
    assert response.json()["status"] == "LUNAS"

    response = client.post(f"/v1/payments/{payment['payment_id']}/installments", json={"amount": 50})
    assert response.status_code == 409
    assert response.json()["error"] == "AlreadyPaidError"

    response = client.get(f"/v1/transactions/{tx_id}/payment")
    assert response.status_code == 200
    assert len(response.json()["installments"]) == 2

    assert client.delete(f"/v1/payments/{payment['payment_id']}").status_code == 409


def test_payment_errors(client: TestClient, open_transaction):
    """Test payment error responses and status codes"""
    tx_id = open_transaction["transaction_id"]

    assert client.post("/v1/payments", json={"transaction_id": tx_id, "amount": "1000", "method": "GOLD"}).status_code == 422
    assert client.post("/v1/payments", json={"transaction_id": "TRX-x", "amount": "1000", "method": "CASH"}).status_code == 404

    payment = client.post("/v1/payments", json={"transaction_id": tx_id, "amount": "1000", "method": "CASH"}).json()
    response = client.post(f"/v1/payments/{payment['payment_id']}/installments", json={"amount": "-5"})
    assert response.status_code == 422
    assert response.json()["error"] == "InvalidAmountError"

    assert client.post("/v1/payments", json={"transaction_id": tx_id, "amount": "1000", "method": "CASH"}).status_code == 409
    assert client.get("/v1/payments/CASH-missing").status_code == 404
    assert client.get("/v1/payments", params={"method": "CASH"}).json()["count"] == 1


def test_suppliers(client: TestClient):
    """Test supplier saves are logged and readable"""
    response = client.post(
        "/v1/suppliers",
        json={"name": "PT Sumber Pangan", "item_type": "rice", "item_count": 100, "receipt": "JNE-001"},
    )
    assert response.status_code == 200
    supplier_id = response.json()["supplier_id"]

    client.post(
        "/v1/suppliers",
        json={"supplier_id": supplier_id, "name": "PT Sumber Pangan", "item_type": "rice", "item_count": 40, "receipt": "JNE-002"},
    )

    assert client.get(f"/v1/suppliers/{supplier_id}").json()["item_count"] == 40
    log = client.get(f"/v1/suppliers/{supplier_id}/transactions").json()
    assert [entry["shipment_info"] for entry in log["transactions"]] == ["JNE-001", "JNE-002"]
    assert client.get("/v1/suppliers/SUP-missing/transactions").status_code == 404


def test_dispatcher_is_shut_down_with_the_app():
    """Test the application lifespan stops the dispatcher on shutdown"""

    class RecordingDispatcher(EventDispatcher):
        stopped = False

        def shutdown(self):
            self.stopped = True
            super().shutdown()

    dispatcher = RecordingDispatcher(timeout_seconds=1.0)
    with TestClient(create_app(dispatcher=dispatcher)) as test_client:
        assert test_client.get("/health").json()["observers"] == []
        assert not dispatcher.stopped

    assert dispatcher.stopped


def test_products(client: TestClient, catalog):
    """Test product listing, update and deletion"""
    rice, oil = catalog

    response = client.get("/v1/products", params={"min_price": "50000"})
    assert response.status_code == 200
    assert [p["product_id"] for p in response.json()["products"]] == [rice["product_id"]]
    assert client.get("/v1/products", params={"min_stock": 15}).json()["count"] == 1

    response = client.put(f"/v1/products/{oil['product_id']}", json={"stock": 12, "category": "grocery"})
    assert response.status_code == 200
    assert response.json()["stock"] == 12
    assert response.json()["price"] == "36000.00"
    assert client.get("/v1/products", params={"category": "grocery"}).json()["count"] == 1

    assert client.put(f"/v1/products/{oil['product_id']}", json={"stock": -1}).status_code == 422
    assert client.put("/v1/products/PRD-missing", json={"stock": 1}).status_code == 404

    assert client.delete(f"/v1/products/{oil['product_id']}").status_code == 204
    assert client.get(f"/v1/products/{oil['product_id']}").status_code == 404


def test_line_item_price_is_taken_from_the_request(client: TestClient, open_transaction, catalog):
    """Test the sale keeps the unit price sent by the client even when the catalogue differs"""
    rice, _ = catalog

    [rice_line, _] = open_transaction["items"]
    assert rice_line["unit_price"] == "15000.00"
    assert client.get(f"/v1/products/{rice['product_id']}").json()["price"] == "75000.00"


def test_supplier_update_and_delete(client: TestClient):
    """Test PUT and DELETE /v1/suppliers/{id}"""
    supplier_id = client.post(
        "/v1/suppliers",
        json={"name": "PT Sumber Pangan", "item_type": "rice", "item_count": 100, "receipt": "JNE-001"},
    ).json()["supplier_id"]

    response = client.put(
        f"/v1/suppliers/{supplier_id}",
        json={"name": "PT Sumber Pangan", "item_type": "rice", "item_count": 95, "receipt": "JNE-001"},
    )
    assert response.status_code == 200
    assert response.json()["item_count"] == 95
    assert len(client.get(f"/v1/suppliers/{supplier_id}/transactions").json()["transactions"]) == 1

    missing = {"name": "PT Lain", "item_type": "oil", "item_count": 1, "receipt": "JNE-9"}
    assert client.put("/v1/suppliers/SUP-missing", json=missing).status_code == 404

    assert client.delete(f"/v1/suppliers/{supplier_id}").status_code == 204
    assert client.get(f"/v1/suppliers/{supplier_id}").status_code == 404
    assert client.delete(f"/v1/suppliers/{supplier_id}").status_code == 404


def test_customers(client: TestClient):
    """Test the customer registry endpoints"""
    response = client.post("/v1/customers", json={"name": "John Doe", "phone": "1234567890", "address": "123 Main St"})
    assert response.status_code == 201
    john = response.json()
    assert john["customer_id"].startswith("CUS-")
    client.post("/v1/customers", json={"name": "Jane Smith", "phone": "0987654321"})

    listing = client.get("/v1/customers", params={"sort": "name"}).json()
    assert [c["name"] for c in listing["customers"]] == ["Jane Smith", "John Doe"]
    assert client.get("/v1/customers", params={"name": "jane"}).json()["count"] == 1
    assert client.get("/v1/customers", params={"joined_after": john["joined_at"]}).json()["count"] == 0
    assert client.get("/v1/customers", params={"joined_before": "not-a-date"}).status_code == 422

    response = client.put(f"/v1/customers/{john['customer_id']}", json={"phone": "555"})
    assert response.json()["phone"] == "555"
    assert response.json()["joined_at"] == john["joined_at"]

    assert client.delete(f"/v1/customers/{john['customer_id']}").status_code == 204
    assert client.get(f"/v1/customers/{john['customer_id']}").status_code == 404
