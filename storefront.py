"""Session state for one shopper.

The Storefront owns the catalog, cart, checkout form and order submitter
and is the only object the view layer talks to. Availability is computed in
one place and shared by the mutation guards and the product listing.
"""

import logging
import threading
from contextlib import contextmanager
from typing import List, Optional

from pydantic import BaseModel

from backends import StoreBackend
from cart import CartStore
from catalog import ALL_CATEGORIES, CatalogStore
from checkout import REQUIRED_FIELDS
from errors import CartLocked, FormLocked
from orders import OrderSubmitter, SubmitState
from schemas import CartLine, CartTotals, CheckoutForm, OrderConfirmation, Product
from shipping import shipping_tier, shipping_zone

logger = logging.getLogger(__name__)


class ProductView(BaseModel):
    product: Product
    in_cart: int
    available_stock: int


class CheckoutSummary(BaseModel):
    subtotal: int
    count: int
    shipping_cost: int
    shipping_zone: Optional[str] = None
    total: int
    state: SubmitState


class Storefront:
    def __init__(self, backend: StoreBackend):
        self.backend = backend
        self.catalog = CatalogStore(backend)
        self.cart = CartStore(self.catalog)
        self.form = CheckoutForm()
        # view routes run on worker threads; cart, form and the move to
        # SUBMITTING all go through this lock
        self._lock = threading.Lock()
        self.submitter = OrderSubmitter(backend, self.catalog, self.cart, session_lock=self._lock)

    @contextmanager
    def _editing(self, locked_error):
        with self._lock:
            if self.submitter.is_submitting:
                raise locked_error()
            yield

    # Catalog

    def load_catalog(self) -> List[Product]:
        return self.catalog.load()

    def available_stock(self, product_id: int) -> int:
        return self.cart.available_stock(product_id)

    def products(self, query: str = "", category: str = ALL_CATEGORIES) -> List[ProductView]:
        return [
            ProductView(
                product=p,
                in_cart=self.cart.quantity(p.id),
                available_stock=self.available_stock(p.id),
            )
            for p in self.catalog.search(query, category)
        ]

    # Cart

    def add_to_cart(self, product_id: int) -> CartLine:
        with self._editing(CartLocked):
            return self.cart.add(product_id)

    def change_quantity(self, product_id: int, delta: int) -> None:
        with self._editing(CartLocked):
            self.cart.change_quantity(product_id, delta)

    def remove_from_cart(self, product_id: int) -> None:
        with self._editing(CartLocked):
            self.cart.remove(product_id)

    def cart_totals(self) -> CartTotals:
        return self.cart.totals()

    # Checkout

    def update_form(self, **fields: str) -> CheckoutForm:
        unknown = set(fields) - set(REQUIRED_FIELDS)
        if unknown:
            raise ValueError(f"Unknown checkout fields: {', '.join(sorted(unknown))}")
        with self._editing(FormLocked):
            for name, value in fields.items():
                setattr(self.form, name, value)
        return self.form

    def reset_form(self) -> CheckoutForm:
        """Cancel checkout; cart contents are kept."""
        with self._editing(FormLocked):
            for name in REQUIRED_FIELDS:
                setattr(self.form, name, "")
        return self.form

    def summary(self) -> CheckoutSummary:
        totals = self.cart.totals()
        shipping_cost = shipping_tier(self.form.pincode)
        return CheckoutSummary(
            subtotal=totals.subtotal,
            count=totals.count,
            shipping_cost=shipping_cost,
            shipping_zone=shipping_zone(self.form.pincode),
            total=totals.subtotal + shipping_cost,
            state=self.submitter.state,
        )

    def place_order(self) -> OrderConfirmation:
        return self.submitter.submit(self.form)
