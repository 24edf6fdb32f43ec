"""Price breakdown for print orders."""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Dict


SHIPPING_FLAT_FEE = 4.99
TAX_RATE = 0.08


@dataclass(frozen=True)
class PriceBreakdown:
    """Subtotal, shipping, tax and total for one order line."""

    subtotal: float
    shipping: float
    tax: float
    total: float

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)


def calculate_total_price(
    unit_price: float,
    quantity: int,
    include_tax_and_shipping: bool = False,
) -> PriceBreakdown:
    """
    Compute the price breakdown for ``quantity`` prints at ``unit_price``.

    Without tax and shipping the total is the plain subtotal; this is the
    live figure shown while choosing a product. At checkout a flat shipping
    fee and a percentage tax on the subtotal are added.

    No rounding is applied; callers format for display.

    Args:
        unit_price: Price of one print
        quantity: Number of prints
        include_tax_and_shipping: Add flat shipping and tax

    Returns:
        PriceBreakdown
    """
    subtotal = unit_price * quantity
    shipping = SHIPPING_FLAT_FEE if include_tax_and_shipping else 0.0
    tax = subtotal * TAX_RATE if include_tax_and_shipping else 0.0
    total = subtotal + shipping + tax

    return PriceBreakdown(
        subtotal=subtotal,
        shipping=shipping,
        tax=tax,
        total=total,
    )


def format_price(amount: float) -> str:
    """Format an amount as US dollars, e.g. ``$1,234.50``."""
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"
