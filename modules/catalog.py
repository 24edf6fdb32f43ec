"""
Product catalog: print products, sizes, prices and display filters.

The pricing table is the single source for unit prices; both the
``/api/pricing`` endpoint and the wizard's product step read from it.
"""

from __future__ import annotations

from typing import Dict

from core.exceptions import ValidationError


DEFAULT_PRODUCT_SIZE = "medium"

MIN_QUANTITY = 1
MAX_QUANTITY = 100

# Unit prices in USD, keyed by [product_type][product_size]
PRODUCT_PRICING: Dict[str, Dict[str, float]] = {
    "postcard": {
        "small": 1.50,
        "medium": 2.50,
        "large": 3.50,
    },
    "poster": {
        "small": 12.99,
        "medium": 19.99,
        "large": 29.99,
    },
}

# CSS filter token -> label. Applied by the viewer only, never to stored bytes.
FILTERS: Dict[str, str] = {
    "none": "None",
    "grayscale(100%)": "B&W",
    "sepia(70%)": "Sepia",
    "brightness(120%)": "Bright",
    "contrast(150%)": "Contrast",
    "saturate(200%)": "Vibrant",
}
DEFAULT_FILTER = "none"

ROTATION_STEP = 90


def get_pricing_table() -> Dict[str, Dict[str, float]]:
    """Return a copy of the pricing table, safe to serialize or mutate."""
    return {product: dict(sizes) for product, sizes in PRODUCT_PRICING.items()}


def get_unit_price(product_type: str, product_size: str) -> float:
    """
    Look up the unit price for a product.

    Raises:
        ValidationError: If the product type or size is unknown
    """
    if not isinstance(product_type, str) or product_type not in PRODUCT_PRICING:
        raise ValidationError(f"Unknown product type: {product_type}", field="productType")
    sizes = PRODUCT_PRICING[product_type]
    if not isinstance(product_size, str) or product_size not in sizes:
        raise ValidationError(f"Unknown product size: {product_size}", field="productSize")
    return sizes[product_size]


def is_valid_filter(token: str) -> bool:
    return isinstance(token, str) and token in FILTERS


def is_valid_quantity(quantity: int) -> bool:
    if isinstance(quantity, bool) or not isinstance(quantity, int):
        return False
    return MIN_QUANTITY <= quantity <= MAX_QUANTITY
