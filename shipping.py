"""Shipping fee tiers keyed on the postal code's metro prefix."""
from typing import Optional

METRO_PREFIXES = frozenset({"400", "110", "560", "600", "700"})
METRO_FEE = 200
NON_METRO_FEE = 500
PINCODE_LENGTH = 6


def _is_complete(pincode: Optional[str]) -> bool:
    return bool(pincode) and len(pincode) == PINCODE_LENGTH and pincode.isdigit()


def shipping_zone(pincode: Optional[str]) -> Optional[str]:
    """Return "metro", "non-metro", or None while the pincode is incomplete."""
    if not _is_complete(pincode):
        return None
    return "metro" if pincode[:3] in METRO_PREFIXES else "non-metro"


def shipping_tier(pincode: Optional[str]) -> int:
    """Shipping fee for a pincode.

    0 means the fee cannot be determined yet, not free shipping.
    """
    zone = shipping_zone(pincode)
    if zone is None:
        return 0
    return METRO_FEE if zone == "metro" else NON_METRO_FEE
