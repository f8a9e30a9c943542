import logging
import os
import re
from contextlib import asynccontextmanager
from typing import List, Optional

from fastapi import FastAPI, HTTPException, Query
from fastapi.concurrency import run_in_threadpool
from fastapi.middleware.cors import CORSMiddleware
from pydantic import BaseModel

from backends import DEFAULT_TIMEOUT, HttpStoreBackend, StaticStoreBackend, StoreBackend
from catalog import ALL_CATEGORIES
from errors import (
    CartLocked,
    CheckoutValidationError,
    FetchError,
    FormLocked,
    LineNotFound,
    OutOfStock,
    ServerRejected,
    StorefrontError,
    SubmissionInProgress,
    TransportFailure,
)
from schemas import CartLine, CartTotals, CheckoutForm, OrderConfirmation
from storefront import CheckoutSummary, ProductView, Storefront

logger = logging.getLogger(__name__)

STATUS_BY_ERROR = [
    (OutOfStock, 409),
    (LineNotFound, 404),
    (CheckoutValidationError, 422),
    (FormLocked, 409),
    (CartLocked, 409),
    (SubmissionInProgress, 409),
    (ServerRejected, 400),
    (TransportFailure, 502),
    (FetchError, 503),
]


def build_backend() -> StoreBackend:
    api_url = os.getenv("STORE_API_URL")
    if not api_url:
        # No API configured, serve the fixture catalog for development
        logger.info("STORE_API_URL not set, using static catalog")
        return StaticStoreBackend()
    timeout = float(os.getenv("STORE_API_TIMEOUT", DEFAULT_TIMEOUT))
    return HttpStoreBackend(base_url=api_url, timeout=timeout)


def http_error(exc: StorefrontError) -> HTTPException:
    for error_type, status_code in STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=500, detail=str(exc))


def digits_only(value: str, limit: int) -> str:
    return re.sub(r"\D", "", value)[:limit]


class CartOut(BaseModel):
    items: List[CartLine]
    totals: CartTotals


class QuantityChange(BaseModel):
    delta: int


class FormUpdate(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    mobile: Optional[str] = None
    address1: Optional[str] = None
    address2: Optional[str] = None
    pincode: Optional[str] = None


storefront = Storefront(build_backend())


@asynccontextmanager
async def lifespan(_app: FastAPI):
    try:
        await run_in_threadpool(storefront.load_catalog)
    except FetchError as e:
        # products stay unavailable until /api/catalog/reload succeeds
        logger.warning("Starting without a catalog: %s", e.reason)
    yield


app = FastAPI(title="Lumière Storefront", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def require_catalog():
    if not storefront.catalog.loaded:
        raise HTTPException(
            status_code=503,
            detail=f"Products unavailable: {storefront.catalog.load_error or 'not loaded'}",
        )


def cart_out() -> CartOut:
    return CartOut(items=storefront.cart.lines(), totals=storefront.cart_totals())


@app.get("/")
def root():
    return {
        "name": "Lumière Storefront",
        "status": "ok",
        "catalog_loaded": storefront.catalog.loaded,
        "catalog_error": storefront.catalog.load_error,
    }


# -----------------
# Catalog Endpoints
# -----------------
@app.get("/api/products", response_model=List[ProductView])
def list_products(
    q: str = Query(default="", description="Search by name or category"),
    category: str = ALL_CATEGORIES,
):
    require_catalog()
    return storefront.products(q, category)


@app.get("/api/categories", response_model=List[str])
def list_categories():
    require_catalog()
    return storefront.catalog.categories()


@app.post("/api/catalog/reload", response_model=List[ProductView])
def reload_catalog():
    try:
        storefront.load_catalog()
    except FetchError as e:
        raise http_error(e)
    return storefront.products()


# --------------
# Cart Endpoints
# --------------
@app.get("/api/cart", response_model=CartOut)
def get_cart():
    return cart_out()


@app.post("/api/cart/items/{product_id}", response_model=CartOut)
def add_item(product_id: int):
    try:
        storefront.add_to_cart(product_id)
    except (OutOfStock, CartLocked) as e:
        raise http_error(e)
    return cart_out()


@app.patch("/api/cart/items/{product_id}", response_model=CartOut)
def change_item(product_id: int, payload: QuantityChange):
    try:
        storefront.change_quantity(product_id, payload.delta)
    except (OutOfStock, LineNotFound, CartLocked) as e:
        raise http_error(e)
    return cart_out()


@app.delete("/api/cart/items/{product_id}", response_model=CartOut)
def remove_item(product_id: int):
    try:
        storefront.remove_from_cart(product_id)
    except CartLocked as e:
        raise http_error(e)
    return cart_out()


# ------------------
# Checkout Endpoints
# ------------------
@app.get("/api/checkout/form", response_model=CheckoutForm)
def get_form():
    return storefront.form


@app.put("/api/checkout/form", response_model=CheckoutForm)
def update_form(payload: FormUpdate):
    fields = payload.model_dump(exclude_none=True)
    if "mobile" in fields:
        fields["mobile"] = digits_only(fields["mobile"], 10)
    if "pincode" in fields:
        fields["pincode"] = digits_only(fields["pincode"], 6)
    try:
        return storefront.update_form(**fields)
    except FormLocked as e:
        raise http_error(e)


@app.delete("/api/checkout/form", response_model=CheckoutForm)
def cancel_checkout():
    try:
        return storefront.reset_form()
    except FormLocked as e:
        raise http_error(e)


@app.get("/api/checkout/summary", response_model=CheckoutSummary)
def checkout_summary():
    return storefront.summary()


@app.post("/api/checkout", response_model=OrderConfirmation)
def place_order():
    try:
        return storefront.place_order()
    except StorefrontError as e:
        raise http_error(e)


if __name__ == "__main__":
    import uvicorn

    logging.basicConfig(level=logging.INFO)
    port = int(os.getenv("PORT", 8000))
    uvicorn.run(app, host="0.0.0.0", port=port)
