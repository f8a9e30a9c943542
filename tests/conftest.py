"""Pytest fixtures for storefront tests."""

import threading

import httpx
import pytest
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from fastapi.testclient import TestClient

from backends import HttpStoreBackend, StaticStoreBackend
from schemas import CheckoutForm, Product
from storefront import Storefront


class FakeStoreApi:
    """Stand-in for the remote store API, served through TestClient."""

    def __init__(self, products):
        self.products = {p.id: p.model_copy() for p in products}
        self.orders = []
        self.products_override = None
        self.products_status = 200
        self.orders_status = 200
        self.reject_reason = None
        self.app = FastAPI()

        @self.app.get("/api/products")
        def list_products():
            if self.products_override is not None:
                return JSONResponse(self.products_override, status_code=self.products_status)
            data = [p.model_dump() for p in self.products.values()]
            return JSONResponse({"success": True, "data": data}, status_code=self.products_status)

        @self.app.post("/api/orders")
        def create_order(payload: dict):
            self.orders.append(payload)
            if self.orders_status != 200:
                return JSONResponse({"detail": "boom"}, status_code=self.orders_status)
            if self.reject_reason:
                return {"success": False, "error": self.reject_reason}
            for item in payload["items"]:
                prod = self.products.get(item["id"])
                if prod is None or prod.stock_quantity < item["quantity"]:
                    return {"success": False, "error": f"Insufficient stock for {item['name']}"}
            for item in payload["items"]:
                self.products[item["id"]].stock_quantity -= item["quantity"]
            return {"success": True, "order": {"id": 1000 + len(self.orders)}}


@pytest.fixture
def products():
    return [
        Product(id=1, category="Rings", name="Diamond Solitaire Ring", price=45000,
                story="Brilliant-cut diamond", stock_quantity=2),
        Product(id=2, category="Necklaces", name="Pearl Strand Necklace", price=28000,
                story="Freshwater pearls", stock_quantity=5),
        Product(id=3, category="Earrings", name="Pearl Hoops", price=22000,
                story="Cultured pearls", stock_quantity=0),
    ]


@pytest.fixture
def fake_api(products):
    return FakeStoreApi(products)


@pytest.fixture
def api_backend(fake_api):
    """HttpStoreBackend wired to the fake API."""
    with TestClient(fake_api.app) as client:
        yield HttpStoreBackend(client=client)


@pytest.fixture
def unreachable_backend():
    """Factory for a backend whose every request fails with the given httpx error."""
    clients = []

    def make(exc_type=httpx.ConnectError):
        def handler(request):
            raise exc_type("connection refused", request=request)

        client = httpx.Client(base_url="http://store.invalid", transport=httpx.MockTransport(handler))
        clients.append(client)
        return HttpStoreBackend(client=client)

    yield make
    for client in clients:
        client.close()


@pytest.fixture
def static_backend(products):
    return StaticStoreBackend(products)


@pytest.fixture
def storefront(static_backend):
    store = Storefront(static_backend)
    store.load_catalog()
    return store


@pytest.fixture
def remote_storefront(api_backend):
    store = Storefront(api_backend)
    store.load_catalog()
    return store


@pytest.fixture
def filled_form():
    return CheckoutForm(
        name="Asha Rao",
        email="asha@example.com",
        mobile="9876543210",
        address1="12 Marine Drive",
        address2="Churchgate",
        pincode="400001",
    )


class GatedBackend(StaticStoreBackend):
    """Holds every order inside submit_order until ``release`` is set."""

    def __init__(self, products, hold=5.0):
        super().__init__(products)
        self.entered = threading.Event()
        self.release = threading.Event()
        self.hold = hold

    def submit_order(self, order):
        self.entered.set()
        self.release.wait(timeout=self.hold)
        return super().submit_order(order)


@pytest.fixture
def gated_backend(products):
    backend = GatedBackend(products)
    yield backend
    backend.release.set()


@pytest.fixture
def gated_storefront(gated_backend, filled_form):
    store = Storefront(gated_backend)
    store.load_catalog()
    store.add_to_cart(1)
    store.update_form(**filled_form.model_dump())
    return store
