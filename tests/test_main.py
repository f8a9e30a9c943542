"""Tests for the FastAPI view adapter."""

import threading

import pytest
from fastapi.testclient import TestClient

import main
from errors import CartLocked
from main import digits_only, http_error
from storefront import Storefront


def serve(monkeypatch, backend):
    monkeypatch.setattr(main, "storefront", Storefront(backend))
    return TestClient(main.app)


@pytest.fixture
def client(static_backend, monkeypatch):
    with serve(monkeypatch, static_backend) as client:
        yield client


@pytest.fixture
def remote_client(api_backend, monkeypatch):
    with serve(monkeypatch, api_backend) as client:
        yield client


FORM = {
    "name": "Asha Rao",
    "email": "asha@example.com",
    "mobile": "98765 43210",
    "address1": "12 Marine Drive",
    "address2": "Churchgate",
    "pincode": "400-001",
}


class TestRoot:
    def test_root(self, client):
        response = client.get("/")
        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ok"
        assert data["catalog_loaded"] is True


class TestProducts:
    def test_list(self, client):
        response = client.get("/api/products")
        assert response.status_code == 200
        data = response.json()
        assert [item["product"]["id"] for item in data] == [1, 2, 3]
        assert data[0]["available_stock"] == 2

    def test_search(self, client):
        response = client.get("/api/products", params={"q": "pearl", "category": "Earrings"})
        assert [item["product"]["id"] for item in response.json()] == [3]

    def test_categories(self, client):
        assert client.get("/api/categories").json() == ["All", "Rings", "Necklaces", "Earrings"]

    def test_unavailable_then_reload(self, fake_api, api_backend, monkeypatch):
        fake_api.products_status = 500
        with serve(monkeypatch, api_backend) as client:
            response = client.get("/api/products")
            assert response.status_code == 503
            assert client.get("/api/categories").status_code == 503

            assert client.post("/api/catalog/reload").status_code == 503

            fake_api.products_status = 200
            response = client.post("/api/catalog/reload")
            assert response.status_code == 200
            assert client.get("/api/products").status_code == 200


class TestCart:
    def test_add_change_remove(self, client):
        response = client.post("/api/cart/items/2")
        assert response.status_code == 200
        assert response.json()["totals"] == {"subtotal": 28000, "count": 1}

        response = client.patch("/api/cart/items/2", json={"delta": 1})
        assert response.json()["items"][0]["quantity"] == 2

        response = client.patch("/api/cart/items/2", json={"delta": -2})
        assert response.json()["items"] == []

        assert client.delete("/api/cart/items/2").status_code == 200

    def test_out_of_stock(self, client):
        response = client.post("/api/cart/items/3")
        assert response.status_code == 409
        assert "Pearl Hoops" in response.json()["detail"]

    def test_change_missing_line(self, client):
        response = client.patch("/api/cart/items/1", json={"delta": 1})
        assert response.status_code == 404


class TestCheckout:
    def test_form_digits_filtered(self, client):
        response = client.put("/api/checkout/form", json=FORM)
        assert response.status_code == 200
        data = response.json()
        assert data["mobile"] == "9876543210"
        assert data["pincode"] == "400001"

    def test_partial_update(self, client):
        client.put("/api/checkout/form", json={"name": "Asha"})
        client.put("/api/checkout/form", json={"email": "asha@example.com"})
        data = client.get("/api/checkout/form").json()
        assert data["name"] == "Asha"
        assert data["email"] == "asha@example.com"

    def test_summary(self, client):
        client.post("/api/cart/items/1")
        client.put("/api/checkout/form", json={"pincode": "560001"})
        data = client.get("/api/checkout/summary").json()
        assert data["subtotal"] == 45000
        assert data["shipping_cost"] == 200
        assert data["shipping_zone"] == "metro"
        assert data["total"] == 45200
        assert data["state"] == "idle"

    def test_empty_cart(self, client):
        client.put("/api/checkout/form", json=FORM)
        response = client.post("/api/checkout")
        assert response.status_code == 422
        assert response.json()["detail"] == "Your cart is empty!"

    def test_missing_fields(self, client):
        client.post("/api/cart/items/1")
        response = client.post("/api/checkout")
        assert response.status_code == 422
        assert response.json()["detail"] == "Please fill in all fields!"

    def test_place_order(self, remote_client, fake_api):
        remote_client.post("/api/cart/items/1")
        remote_client.put("/api/checkout/form", json=FORM)

        response = remote_client.post("/api/checkout")
        assert response.status_code == 200
        assert response.json() == {"order_id": "1001", "total": 45200, "item_count": 1}
        assert remote_client.get("/api/cart").json()["items"] == []
        assert remote_client.get("/api/checkout/form").json()["name"] == ""
        assert remote_client.get("/api/products").json()[0]["available_stock"] == 1

    def test_rejected(self, remote_client, fake_api):
        fake_api.reject_reason = "Out of stock"
        remote_client.post("/api/cart/items/1")
        remote_client.put("/api/checkout/form", json=FORM)

        response = remote_client.post("/api/checkout")
        assert response.status_code == 400
        assert "Out of stock" in response.json()["detail"]
        assert remote_client.get("/api/cart").json()["totals"]["count"] == 1

    def test_server_unreachable(self, remote_client, fake_api):
        fake_api.orders_status = 500
        remote_client.post("/api/cart/items/1")
        remote_client.put("/api/checkout/form", json=FORM)

        response = remote_client.post("/api/checkout")
        assert response.status_code == 502
        assert response.json()["detail"].startswith("Could not reach the store server")
        assert remote_client.get("/api/checkout/form").json()["mobile"] == "9876543210"

    def test_cancel(self, client):
        client.put("/api/checkout/form", json=FORM)
        assert client.delete("/api/checkout/form").json()["name"] == ""


def test_digits_only():
    assert digits_only("+91 98765-43210", 10) == "9198765432"


class TestCheckoutInFlight:
    def test_cart_changes_refused(self, gated_backend, filled_form, monkeypatch):
        with serve(monkeypatch, gated_backend) as client:
            client.post("/api/cart/items/1")
            client.put("/api/checkout/form", json=filled_form.model_dump())
            responses = []
            thread = threading.Thread(target=lambda: responses.append(client.post("/api/checkout")))
            thread.start()
            assert gated_backend.entered.wait(timeout=5)

            assert client.post("/api/cart/items/2").status_code == 409
            assert client.post("/api/checkout").status_code == 409
            assert client.put("/api/checkout/form", json={"name": "X"}).status_code == 409

            gated_backend.release.set()
            thread.join(timeout=5)

            assert responses[0].status_code == 200
            assert [item.id for item in gated_backend.orders[0].items] == [1]
            assert client.get("/api/cart").json()["items"] == []


def test_cart_locked_maps_to_conflict():
    assert http_error(CartLocked()).status_code == 409
