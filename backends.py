"""Product and order sources for the storefront session.

HttpStoreBackend talks to the remote store API:

    GET  /api/products  -> {"success": bool, "data": [Product, ...]}
    POST /api/orders    -> {"success": bool, "order": {"id": ...}, "error": str}

StaticStoreBackend serves a fixed fixture catalog and accepts orders in
memory. It is used for development when no API URL is configured.
"""

import logging
import uuid
from typing import List, Optional, Protocol

import httpx
from pydantic import ValidationError

from errors import FetchError, TransportFailure
from schemas import OrderRequest, OrderResponse, Product, ProductListResponse

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 10.0

FIXTURE_PRODUCTS: List[Product] = [
    # Rings
    Product(id=1, category="Rings", name="Diamond Solitaire Ring", price=45000, stock_quantity=5,
            story="Timeless elegance with a brilliant-cut diamond set in 18K gold"),
    Product(id=2, category="Rings", name="Emerald Cluster Ring", price=38000, stock_quantity=4,
            story="Vibrant emeralds surrounded by sparkling diamonds"),
    Product(id=3, category="Rings", name="Ruby Eternity Band", price=52000, stock_quantity=3,
            story="Continuous row of precious rubies symbolizing eternal love"),
    # Necklaces
    Product(id=4, category="Necklaces", name="Pearl Strand Necklace", price=28000, stock_quantity=8,
            story="Lustrous freshwater pearls in a classic design"),
    Product(id=5, category="Necklaces", name="Sapphire Pendant", price=42000, stock_quantity=5,
            story="Deep blue sapphire centerpiece on delicate gold chain"),
    Product(id=6, category="Necklaces", name="Diamond Rivière", price=95000, stock_quantity=2,
            story="Graduated diamond necklace showcasing exceptional brilliance"),
    # Earrings
    Product(id=7, category="Earrings", name="Diamond Studs", price=35000, stock_quantity=10,
            story="Classic round brilliant diamonds in platinum settings"),
    Product(id=8, category="Earrings", name="Sapphire Drop Earrings", price=48000, stock_quantity=4,
            story="Elegant drops featuring Ceylon sapphires and diamonds"),
    Product(id=9, category="Earrings", name="Pearl Hoops", price=22000, stock_quantity=12,
            story="Modern hoops adorned with cultured pearls"),
]


class StoreBackend(Protocol):
    def fetch_products(self) -> List[Product]: ...

    def submit_order(self, order: OrderRequest) -> OrderResponse: ...


class HttpStoreBackend:
    """Blocking client for the remote store API."""

    def __init__(
        self,
        base_url: str = "",
        timeout: float = DEFAULT_TIMEOUT,
        client: Optional[httpx.Client] = None,
    ):
        self._owns_client = client is None
        self._client = client or httpx.Client(base_url=base_url, timeout=timeout)

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    def __enter__(self) -> "HttpStoreBackend":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def fetch_products(self) -> List[Product]:
        """Fetch the full catalog.

        Raises:
            FetchError: on transport errors, non-2xx status, success=false,
                or a body that does not match the product schema.
        """
        try:
            response = self._client.get("/api/products")
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPStatusError as e:
            logger.warning("Product fetch returned HTTP %s", e.response.status_code)
            raise FetchError(f"server returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Store API unavailable: %s", e)
            raise FetchError(str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise FetchError("malformed response body") from e

        if not isinstance(body, dict) or body.get("success") is not True:
            raise FetchError("server reported failure")
        if not isinstance(body.get("data"), list):
            raise FetchError("product list missing from response")
        try:
            return ProductListResponse.model_validate(body).data
        except ValidationError as e:
            logger.warning("Product list failed validation: %s", e)
            raise FetchError("product data is invalid") from e

    def submit_order(self, order: OrderRequest) -> OrderResponse:
        """Post an order.

        A well-formed body is returned as-is, whether or not it reports
        success; deciding what a rejection means is left to the caller.

        Raises:
            TransportFailure: on network errors, timeouts, non-2xx status,
                or a malformed body.
        """
        try:
            response = self._client.post("/api/orders", json=order.model_dump())
            response.raise_for_status()
            body = response.json()
        except httpx.TimeoutException as e:
            logger.error("Order submission timed out: %s", e)
            raise TransportFailure("request timed out") from e
        except httpx.HTTPStatusError as e:
            logger.error("Order submission returned HTTP %s", e.response.status_code)
            raise TransportFailure(f"server returned HTTP {e.response.status_code}") from e
        except httpx.RequestError as e:
            logger.error("Store API unavailable: %s", e)
            raise TransportFailure(str(e) or e.__class__.__name__) from e
        except ValueError as e:
            raise TransportFailure("malformed response body") from e

        try:
            return OrderResponse.model_validate(body)
        except ValidationError as e:
            raise TransportFailure("malformed response body") from e


class StaticStoreBackend:
    """In-memory catalog and order sink.

    Orders are checked and deducted against the held stock the same way the
    store API does, so reloading after an order shows the reduced stock.
    """

    def __init__(self, products: Optional[List[Product]] = None):
        source = FIXTURE_PRODUCTS if products is None else products
        self._products = {p.id: p.model_copy() for p in source}
        self.orders: List[OrderRequest] = []

    def fetch_products(self) -> List[Product]:
        return [p.model_copy() for p in self._products.values()]

    def submit_order(self, order: OrderRequest) -> OrderResponse:
        for item in order.items:
            prod = self._products.get(item.id)
            if prod is None:
                return OrderResponse(success=False, error=f"Product not found: {item.id}")
            if prod.stock_quantity < item.quantity:
                return OrderResponse(success=False, error=f"Insufficient stock for {prod.name}")

        for item in order.items:
            self._products[item.id].stock_quantity -= item.quantity

        self.orders.append(order)
        order_id = uuid.uuid4().hex[:12].upper()
        logger.info("Accepted order %s for %s", order_id, order.total)
        return OrderResponse(success=True, order={"id": order_id})
