from __future__ import annotations

import re

import pytest
from bson import ObjectId
from bson.decimal128 import Decimal128
from fastapi.testclient import TestClient

from src.adapters.mongo_client import MongoClusterRegistry
from src.app.dependencies import get_cluster_registry
from src.app.main import app
from tests.fakes import FakeCollection, FakeMongoClient, client_factory


@pytest.fixture()
def clients():
    return {
        "mongodb://bhawarchi": FakeMongoClient("mongodb://bhawarchi"),
        "mongodb://bansari": FakeMongoClient("mongodb://bansari"),
    }


@pytest.fixture()
def client(clients):
    registry = MongoClusterRegistry(
        {"bhawarchi": "mongodb://bhawarchi", "bansari": "mongodb://bansari"},
        client_factory=client_factory(clients),
    )
    registry.connect()
    app.dependency_overrides[get_cluster_registry] = lambda: registry
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.pop(get_cluster_registry, None)


def _seed(clients, uri, database, collection, documents):
    clients[uri].storage.setdefault(database, {})[collection] = FakeCollection(documents)


def test_health(client: TestClient):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_orders_default_to_bansari(client: TestClient, clients):
    _seed(clients, "mongodb://bansari", "Bansari_Restaurant", "orders", [{"phone": "555-0001"}])
    _seed(clients, "mongodb://bhawarchi", "bhawarchi", "orders", [{"phone": "555-0002"}])

    default = client.get("/api/orders")
    bhawarchi = client.get("/api/orders", params={"restaurant": "BHAWARCHI"})

    assert default.status_code == 200
    assert default.json() == [{"phone": "555-0001"}]
    assert bhawarchi.json() == [{"phone": "555-0002"}]


def test_orders_failure_returns_error_details(client: TestClient, clients):
    _seed(clients, "mongodb://bansari", "Bansari_Restaurant", "orders", [])
    clients["mongodb://bansari"].storage["Bansari_Restaurant"]["orders"].error = "socket timeout"

    response = client.get("/api/orders")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch orders", "details": "socket timeout"}


def test_reservations(client: TestClient, clients):
    _seed(clients, "mongodb://bhawarchi", "bhawarchi", "reservations", [{"name": "Asha", "party_size": 2}])

    response = client.get("/api/reservations", params={"restaurant": "bhawarchi"})

    assert response.status_code == 200
    assert response.json() == [{"name": "Asha", "party_size": 2}]


def test_reservations_failure_has_no_details(client: TestClient, clients):
    _seed(clients, "mongodb://bansari", "Bansari_Restaurant", "reservations", [])
    clients["mongodb://bansari"].storage["Bansari_Restaurant"]["reservations"].error = "boom"

    response = client.get("/api/reservations")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch reservations"}


def test_stats(client: TestClient, clients):
    _seed(
        clients,
        "mongodb://bansari",
        "Bansari_Restaurant",
        "orders",
        [
            {"items": [{"price": 10, "quantity": 2, "status": "confirmed"}]},
            {"items": [{"price": 5, "status": "delivered"}]},
        ],
    )

    response = client.get("/api/stats", params={"restaurant": "bansari"})

    assert response.status_code == 200
    assert response.json() == {
        "restaurant": "bansari",
        "total_orders": 2,
        "confirmed_orders": 1,
        "delivered_orders": 1,
        "revenue": 25,
    }


def test_create_order_then_fetch_latest(client: TestClient):
    first = client.post(
        "/api/orders",
        params={"restaurant": "bhawarchi"},
        json={"phone": "555-1234", "items": [{"name": "Dosa", "price": 8, "quantity": 1}]},
    )
    second = client.post(
        "/api/orders",
        params={"restaurant": "bhawarchi"},
        json={"phone": "555-1234", "name": "Ravi", "items": [{"name": "Idli", "price": 4}]},
    )

    assert first.status_code == 200
    body = second.json()
    assert body["message"] == "Order created successfully"
    assert body["order"]["phone"] == "555-1234"
    assert body["order"]["status"] == "confirmed"
    assert body["order"]["phone_source"] == "provided_by_customer"
    assert "_id" not in body["order"]

    latest = client.get("/api/orders/555-1234", params={"restaurant": "bhawarchi"})
    assert latest.status_code == 200
    assert latest.json()["name"] == "Ravi"
    assert latest.json()["items"] == [{"name": "Idli", "price": 4}]


def test_create_order_generates_phone(client: TestClient):
    response = client.post("/api/orders", json={"phone": "unknown", "caller_phone": "+15550001111"})

    order = response.json()["order"]
    assert re.fullmatch(r"call_\d+", order["phone"])
    assert order["phone_source"] == "extracted_from_call"


def test_latest_order_not_found(client: TestClient):
    response = client.get("/api/orders/000-0000")
    assert response.status_code == 404
    assert response.json() == {"message": "Order not found"}


def test_cluster_info(client: TestClient, clients):
    _seed(clients, "mongodb://bhawarchi", "bhawarchi", "orders", [])
    _seed(clients, "mongodb://bhawarchi", "bhawarchi", "reservations", [])

    response = client.get("/api/debug/cluster-info", params={"restaurant": "Bhawarchi"})

    assert response.status_code == 200
    assert response.json() == {
        "restaurant": "Bhawarchi",
        "cluster": "Bhawarchi (alcohal)",
        "databases": ["bhawarchi"],
        "current_database": "bhawarchi",
        "collections": ["orders", "reservations"],
    }


def test_cluster_info_failure(client: TestClient, clients):
    clients["mongodb://bansari"].list_error = "not authorized"

    response = client.get("/api/debug/cluster-info")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch cluster info", "details": "not authorized"}


def test_lifespan_connects_and_closes_clusters(clients, monkeypatch):
    registry = MongoClusterRegistry(
        {"bhawarchi": "mongodb://bhawarchi", "bansari": "mongodb://bansari"},
        client_factory=client_factory(clients),
    )
    monkeypatch.setattr("src.app.main.get_cluster_registry", lambda: registry)

    with TestClient(app) as test_client:
        assert registry.is_connected
        assert test_client.get("/health").status_code == 200

    assert not registry.is_connected
    assert all(client.closed for client in clients.values())


def test_reservations_render_object_ids_as_strings(client: TestClient, clients):
    table_id = ObjectId()
    _seed(clients, "mongodb://bansari", "Bansari_Restaurant", "reservations", [{"table_id": table_id, "party_size": 2}])

    response = client.get("/api/reservations")

    assert response.status_code == 200
    assert response.json() == [{"table_id": str(table_id), "party_size": 2}]


def test_orders_render_decimal_prices_as_strings(client: TestClient, clients):
    _seed(
        clients,
        "mongodb://bansari",
        "Bansari_Restaurant",
        "orders",
        [{"phone": "555-0001", "items": [{"name": "Thali", "price": Decimal128("12.50")}]}],
    )

    listed = client.get("/api/orders")
    latest = client.get("/api/orders/555-0001")

    assert listed.status_code == 200
    assert listed.json()[0]["items"] == [{"name": "Thali", "price": "12.50"}]
    assert latest.json()["items"] == [{"name": "Thali", "price": "12.50"}]


def test_unencodable_documents_return_json_error(client: TestClient, clients):
    _seed(clients, "mongodb://bansari", "Bansari_Restaurant", "reservations", [{"slot": object()}])

    response = client.get("/api/reservations")

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to fetch reservations"}


def test_stats_with_string_prices_and_odd_items(client: TestClient, clients):
    _seed(
        clients,
        "mongodb://bansari",
        "Bansari_Restaurant",
        "orders",
        [
            {"items": [{"price": "10", "quantity": 2}]},
            {"items": ["not-an-item", {"price": 5}]},
        ],
    )

    response = client.get("/api/stats")

    assert response.status_code == 200
    assert response.json()["revenue"] == 25
    assert isinstance(response.json()["revenue"], int)


def test_empty_stats_revenue_is_integer_zero(client: TestClient):
    response = client.get("/api/stats")

    assert response.status_code == 200
    body = response.json()
    assert body["total_orders"] == 0
    assert body["revenue"] == 0
    assert isinstance(body["revenue"], int)


def test_create_order_stores_items_as_sent(client: TestClient, clients):
    response = client.post(
        "/api/orders",
        json={"phone": "555-4321", "items": [{"name": "Chai", "price": 8, "quantity": 2}, {"name": "Lassi", "price": "n/a"}]},
    )

    assert response.status_code == 200
    assert response.json()["order"]["items"] == [
        {"name": "Chai", "price": 8, "quantity": 2},
        {"name": "Lassi", "price": "n/a"},
    ]
    stored = clients["mongodb://bansari"].storage["Bansari_Restaurant"]["orders"].documents[0]
    assert isinstance(stored["items"][0]["quantity"], int)
    assert isinstance(stored["items"][0]["price"], int)
    assert stored["items"][1]["price"] == "n/a"
