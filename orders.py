"""Order submission.

    IDLE -> SUBMITTING -> SUCCEEDED | FAILED -> IDLE

The terminal state is recorded in ``last_outcome`` and acknowledged before
``submit`` returns or raises, so a failed attempt can be retried at once.
Only one order may be in flight per session.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from backends import StoreBackend
from cart import CartStore
from catalog import CatalogStore
from checkout import REQUIRED_FIELDS, validate_checkout
from errors import FetchError, OrderSubmitError, ServerRejected, SubmissionInProgress, TransportFailure
from schemas import CheckoutForm, OrderConfirmation, OrderItem, OrderRequest
from shipping import shipping_tier

logger = logging.getLogger(__name__)


class SubmitState(str, Enum):
    IDLE = "idle"
    SUBMITTING = "submitting"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


def build_order_request(form: CheckoutForm, cart: CartStore) -> OrderRequest:
    totals = cart.totals()
    shipping_cost = shipping_tier(form.pincode)
    return OrderRequest(
        customer=form.model_copy(),
        items=[
            OrderItem(
                id=line.id,
                name=line.name,
                category=line.category,
                price=line.price,
                quantity=line.quantity,
            )
            for line in cart.lines()
        ],
        subtotal=totals.subtotal,
        shipping_cost=shipping_cost,
        total=totals.subtotal + shipping_cost,
    )


class OrderSubmitter:
    """Places orders for one session.

    ``session_lock`` is shared with whatever mutates the cart and form.
    Moving to SUBMITTING happens under it, so once an order is in flight no
    other order can start and the cart it was built from cannot change.
    """

    def __init__(
        self,
        backend: StoreBackend,
        catalog: CatalogStore,
        cart: CartStore,
        session_lock: Optional[threading.Lock] = None,
    ):
        self._backend = backend
        self._catalog = catalog
        self._cart = cart
        self._lock = session_lock or threading.Lock()
        self.state = SubmitState.IDLE
        self.last_outcome: Optional[SubmitState] = None
        self.last_error: Optional[OrderSubmitError] = None

    @property
    def is_submitting(self) -> bool:
        return self.state is SubmitState.SUBMITTING

    def submit(self, form: CheckoutForm) -> OrderConfirmation:
        """Validate and place an order for the current cart.

        On success the cart is cleared, ``form`` is reset in place and the
        catalog is reloaded to pick up server-side stock changes. On failure
        cart and form are left exactly as they were. Either way the
        submitter is back in IDLE when this returns or raises.

        Raises:
            SubmissionInProgress: another order is in flight.
            CheckoutValidationError: the form or cart failed the gate.
            ServerRejected: the API refused the order.
            TransportFailure: the API could not be reached or answered badly.
        """
        with self._lock:
            if self.is_submitting:
                raise SubmissionInProgress()
            validate_checkout(form, self._cart.lines())
            request = build_order_request(form, self._cart)
            self.state = SubmitState.SUBMITTING

        try:
            confirmation = self._send(request)
            with self._lock:
                self._cart.clear()
                for field in REQUIRED_FIELDS:
                    setattr(form, field, "")
            self.last_outcome = SubmitState.SUCCEEDED
            self.last_error = None
            self._reload_catalog(confirmation.order_id)
        finally:
            self.state = SubmitState.IDLE

        logger.info("Order %s placed, total %s", confirmation.order_id, confirmation.total)
        return confirmation

    def _send(self, request: OrderRequest) -> OrderConfirmation:
        try:
            response = self._backend.submit_order(request)
            if not response.success:
                raise ServerRejected(response.error)
            if response.order is None:
                raise TransportFailure("order id missing from response")
        except OrderSubmitError as e:
            logger.warning("Order failed: %s", e)
            self.last_error = e
            self.last_outcome = SubmitState.FAILED
            raise
        except Exception:
            self.last_error = None
            self.last_outcome = SubmitState.FAILED
            raise

        return OrderConfirmation(
            order_id=str(response.order.id),
            total=request.total,
            item_count=sum(item.quantity for item in request.items),
        )

    def _reload_catalog(self, order_id: str) -> None:
        try:
            self._catalog.load()
        except FetchError:
            # the order stands; stale stock is corrected on the next reload
            logger.warning("Catalog reload after order %s failed", order_id)
