"""
HTTP surface of the engine.
"""
import pytest

from inventory_engine.blueprints.inventory import routes
from inventory_engine.engine import build_engine
from inventory_engine.engine.results import RESULT_EMPTY, RESULT_FAILED, RESULT_OK
from inventory_engine.models import Product
from inventory_engine.test import doubles


@pytest.fixture
def unavailable_store(monkeypatch, app):
    """Route handlers build their engine over a repository whose every call fails."""
    monkeypatch.setattr(routes, "_engine", lambda: build_engine(doubles.UnavailableRepository(), app.config))


def test_index(client):
    response = client.get("/")
    assert response.status_code == 200
    assert response.get_json()["status"] == "ok"


def test_low_stock_report(client, make_product):
    make_product(stock=3, threshold=5, sku="LOW-B")
    make_product(stock=1, threshold=5, sku="LOW-A")
    make_product(stock=30, threshold=5, sku="FINE")

    response = client.get("/api/products/low-stock")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "ok"
    assert [p["sku"] for p in body["products"]] == ["LOW-A", "LOW-B"]


def test_low_stock_report_rejects_bad_limit(client):
    response = client.get("/api/products/low-stock?limit=zero")

    assert response.status_code == 400
    assert response.get_json()["error"] == "validation_error"


def test_low_stock_report_degrades_when_store_is_down(client, unavailable_store):
    response = client.get("/api/products/low-stock")
    body = response.get_json()

    assert response.status_code == 503
    assert body["status"] == "failed"
    assert body["products"] == []


def test_replenishment_recommendations(client, make_supplier, make_product, make_order):
    supplier = make_supplier("Acme Wholesale")
    item = make_product(stock=10, threshold=10)
    make_order(supplier, [(item, 1, "1.00")], status="received")

    response = client.get("/api/replenishment?buffer_factor=1.2")
    body = response.get_json()

    assert response.status_code == 200
    assert body["status"] == "ok"
    assert body["recommended_quantities"] == [2]
    assert body["recommended_suppliers"] == [{"supplier_id": supplier.id, "name": "Acme Wholesale"}]


def test_replenishment_empty_is_distinct_from_failure(client, make_product):
    make_product(stock=100, threshold=5)

    body = client.get("/api/replenishment").get_json()

    assert body["status"] == "empty"
    assert body["products"] == []


def test_replenishment_failure_is_reported(client, unavailable_store):
    response = client.get("/api/replenishment")

    assert response.status_code == 503
    assert response.get_json()["status"] == "failed"


def test_replenishment_rejects_non_positive_buffer(client):
    response = client.get("/api/replenishment?buffer_factor=-1")
    assert response.status_code == 400


def test_true_cost_endpoint(client, make_supplier, make_product, make_order):
    supplier = make_supplier()
    item = make_product(base_cost="4.20")
    make_order(supplier, [(item, 50, "5.00"), (make_product(), 30, "2.50"), (make_product(), 150, "0.90")], freight="23.00")

    response = client.get(f"/api/products/{item.id}/true-cost")
    body = response.get_json()

    assert response.status_code == 200
    assert body["allocated_freight"] == "12.50"
    assert body["true_cost"] == "16.70"


def test_true_cost_for_unknown_product(client):
    response = client.get("/api/products/777/true-cost")

    assert response.status_code == 404
    assert response.get_json()["true_cost"] == "0.00"


def test_true_cost_rejects_malformed_id(client):
    response = client.get("/api/products/abc/true-cost")
    assert response.status_code == 400


def test_freight_allocation_endpoint(client, make_supplier, make_product, make_order):
    supplier = make_supplier()
    order = make_order(supplier, [(make_product(), 1, "0.00"), (make_product(), 1, "0.00")], freight="10.00")

    body = client.get(f"/api/purchase-orders/{order.id}/freight-allocation").get_json()

    assert [a["allocated_freight"] for a in body["allocations"]] == ["5.00", "5.00"]
    assert body["total"] == "10.00"


def test_freight_allocation_for_missing_order(client):
    assert client.get("/api/purchase-orders/31337/freight-allocation").status_code == 404


def test_total_freight_distributed(client, make_supplier, make_product, make_order):
    supplier = make_supplier()
    make_order(supplier, [(make_product(), 1, "1.00")], freight="23.00")
    make_order(supplier, [(make_product(), 1, "1.00")], freight="7.50")

    body = client.get("/api/freight/total-distributed").get_json()

    assert body["total_freight_distributed"] == "30.50"


def test_receive_endpoint_applies_stock_once(client, session, make_supplier, make_product, make_order):
    supplier = make_supplier()
    item = make_product(stock=1)
    order = make_order(supplier, [(item, 4, "1.00")])

    first = client.post(f"/api/purchase-orders/{order.id}/receive")
    second = client.post(f"/api/purchase-orders/{order.id}/receive")

    assert first.status_code == 200
    assert first.get_json()["applied"] is True
    assert first.get_json()["stock_changes"] == [{"product_id": item.id, "delta": 4, "stock_quantity": 5}]
    assert second.status_code == 200
    assert second.get_json()["applied"] is False

    session.expire_all()
    assert session.get(Product, item.id).stock_quantity == 5


def test_receive_unknown_order(client):
    response = client.post("/api/purchase-orders/404/receive")
    assert response.status_code == 404


def test_cancel_endpoint(client, make_supplier, make_product, make_order):
    supplier = make_supplier()
    order = make_order(supplier, [(make_product(), 1, "1.00")])

    body = client.post(f"/api/purchase-orders/{order.id}/cancel").get_json()

    assert body["applied"] is True
    assert body["status"] == "cancelled"


@pytest.mark.parametrize(
    "method, path",
    [
        ("get", "/api/products/%C2%B2/true-cost"),
        ("get", "/api/purchase-orders/%C2%B2/freight-allocation"),
        ("post", "/api/purchase-orders/%C2%B2/receive"),
        ("post", "/api/purchase-orders/%C2%B2/cancel"),
    ],
)
def test_superscript_digit_ids_are_rejected(client, method, path):
    response = getattr(client, method)(path)

    assert response.status_code == 400
    assert response.get_json()["error"] == "validation_error"


def test_low_stock_report_with_nothing_low_is_empty(client, make_product):
    make_product(stock=50, threshold=5)

    body = client.get("/api/products/low-stock").get_json()

    assert body["status"] == RESULT_EMPTY
    assert body["products"] == []


def test_total_freight_distributed_reports_status(client):
    body = client.get("/api/freight/total-distributed").get_json()

    assert body["status"] == RESULT_OK
    assert body["total_freight_distributed"] == "0.00"


def test_total_freight_distributed_degrades_when_store_is_down(client, unavailable_store):
    response = client.get("/api/freight/total-distributed")
    body = response.get_json()

    assert response.status_code == 503
    assert body["status"] == RESULT_FAILED
    assert body["total_freight_distributed"] == "0.00"
