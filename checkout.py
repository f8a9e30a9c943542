"""Checkout gate.

Rules are evaluated in a fixed order and the first failure is raised, so the
shopper sees exactly one problem per attempt. Values are checked as given;
stripping non-digits from mobile and pincode is up to the input layer.
"""
from typing import Sequence

from errors import BadMobile, BadPincode, EmptyCart, MissingFields
from schemas import CartLine, CheckoutForm

REQUIRED_FIELDS = ("name", "email", "mobile", "address1", "address2", "pincode")
MOBILE_LENGTH = 10
PINCODE_LENGTH = 6


def validate_checkout(form: CheckoutForm, lines: Sequence[CartLine]) -> None:
    if not lines:
        raise EmptyCart()

    missing = [f for f in REQUIRED_FIELDS if not getattr(form, f)]
    if missing:
        raise MissingFields(missing)

    if len(form.mobile) != MOBILE_LENGTH:
        raise BadMobile()

    if len(form.pincode) != PINCODE_LENGTH:
        raise BadPincode()
