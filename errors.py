"""Exceptions raised by the storefront session."""


class StorefrontError(Exception):
    """Base exception for all storefront errors."""

    pass


class FetchError(StorefrontError):
    """Raised when the product catalog could not be fetched."""

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(f"Could not load products: {reason}")


class OutOfStock(StorefrontError):
    """Raised when a cart increment would exceed available stock."""

    def __init__(self, product_id: int, name: str | None = None):
        self.product_id = product_id
        label = name or f"product {product_id}"
        super().__init__(f"Sorry, no more stock available for {label}")


class LineNotFound(StorefrontError):
    """Raised when changing the quantity of a product that is not in the cart."""

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Product {product_id} is not in the cart")


class CheckoutValidationError(StorefrontError):
    """Base for checkout gate failures. One is reported per attempt."""

    message = "Checkout details are invalid"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.message)


class EmptyCart(CheckoutValidationError):
    message = "Your cart is empty!"


class MissingFields(CheckoutValidationError):
    message = "Please fill in all fields!"

    def __init__(self, fields: list[str]):
        self.fields = fields
        super().__init__()


class BadMobile(CheckoutValidationError):
    message = "Mobile number must be 10 digits!"


class BadPincode(CheckoutValidationError):
    message = "Pin code must be 6 digits!"


class OrderSubmitError(StorefrontError):
    """Base for order submission failures."""

    pass


class ServerRejected(OrderSubmitError):
    """The store API answered but refused the order."""

    def __init__(self, reason: str | None = None):
        self.reason = reason or "Order was rejected"
        super().__init__(f"Order rejected: {self.reason}")


class TransportFailure(OrderSubmitError):
    """The store API could not be reached or returned something unusable."""

    def __init__(self, detail: str):
        self.detail = detail
        super().__init__(f"Could not reach the store server: {detail}")


class SubmissionInProgress(StorefrontError):
    """Raised when an order is submitted while another is in flight."""

    def __init__(self):
        super().__init__("An order is already being placed")


class FormLocked(StorefrontError):
    """Raised when the checkout form is edited while an order is in flight."""

    def __init__(self):
        super().__init__("Checkout form is read-only while the order is being placed")


class CartLocked(StorefrontError):
    """Raised when the cart is changed while an order is in flight."""

    def __init__(self):
        super().__init__("Cart cannot be changed while the order is being placed")
