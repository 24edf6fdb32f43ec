"""
Order wizard state.

The wizard is a strictly linear four-step flow:

    UPLOAD -> EDIT -> PRODUCT -> CHECKOUT

WizardState is an immutable value. Every transition returns a new state
(or raises WizardTransitionError), so the HTTP layer can load a state from
the session, apply one transition and store the result without sharing any
mutable object between requests.

Lifecycle:
    1. UPLOAD:   image_uploaded() records the image, continue_to_edit()
    2. EDIT:     rotate_left()/rotate_right()/set_filter(), continue_to_product()
    3. PRODUCT:  select_product(), continue_to_checkout()
    4. CHECKOUT: checkout_breakdown(), order_placed() -> back to a fresh UPLOAD

back() moves one step back keeping every field. start_over() discards all
in-progress data from any step. Neither touches uploaded files or records.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from enum import IntEnum
from typing import Any, Dict, Optional

from core.exceptions import ValidationError, WizardTransitionError
from modules.catalog import (
    DEFAULT_FILTER,
    DEFAULT_PRODUCT_SIZE,
    MAX_QUANTITY,
    MIN_QUANTITY,
    ROTATION_STEP,
    get_unit_price,
    is_valid_filter,
    is_valid_quantity,
)
from modules.pricing import PriceBreakdown, calculate_total_price


class WizardStep(IntEnum):
    """Wizard steps in order. Values match the progress bar numbering."""

    UPLOAD = 1
    EDIT = 2
    PRODUCT = 3
    CHECKOUT = 4

    @property
    def label(self) -> str:
        return self.name.title()


@dataclass(frozen=True)
class WizardState:
    """All fields of the in-progress order, colocated in one value."""

    step: WizardStep = WizardStep.UPLOAD
    image_id: Optional[int] = None
    image_url: Optional[str] = None
    rotation: int = 0
    filter: str = DEFAULT_FILTER
    product_type: Optional[str] = None
    product_size: Optional[str] = None
    quantity: int = 1
    unit_price: float = 0.0
    subtotal: float = 0.0

    # ------------------------------------------------------------------
    # Guards
    # ------------------------------------------------------------------

    def require_step(self, *allowed: WizardStep, action: str) -> None:
        if self.step not in allowed:
            names = ", ".join(step.label for step in allowed)
            raise WizardTransitionError(
                f"Cannot {action} from the {self.step.label} step (allowed: {names})",
                current_step=int(self.step),
            )

    @property
    def has_image(self) -> bool:
        return self.image_id is not None and self.image_url is not None

    # ------------------------------------------------------------------
    # Step 1: Upload
    # ------------------------------------------------------------------

    def image_uploaded(self, image_id: int, image_url: str) -> "WizardState":
        self.require_step(WizardStep.UPLOAD, action="attach an image")
        return replace(self, image_id=image_id, image_url=image_url)

    def continue_to_edit(self) -> "WizardState":
        self.require_step(WizardStep.UPLOAD, action="continue to editing")
        if not self.has_image:
            raise WizardTransitionError(
                "Upload an image before continuing",
                current_step=int(self.step),
            )
        return replace(self, step=WizardStep.EDIT)

    # ------------------------------------------------------------------
    # Step 2: Edit (display-only transforms)
    # ------------------------------------------------------------------

    def rotate_left(self) -> "WizardState":
        self.require_step(WizardStep.EDIT, action="rotate the image")
        return replace(self, rotation=self.rotation - ROTATION_STEP)

    def rotate_right(self) -> "WizardState":
        self.require_step(WizardStep.EDIT, action="rotate the image")
        return replace(self, rotation=self.rotation + ROTATION_STEP)

    def set_filter(self, token: str) -> "WizardState":
        self.require_step(WizardStep.EDIT, action="change the filter")
        if not is_valid_filter(token):
            raise ValidationError(f"Unknown filter: {token}", field="filter")
        return replace(self, filter=token)

    def continue_to_product(
        self,
        rotation: Optional[int] = None,
        filter: Optional[str] = None,
    ) -> "WizardState":
        """Any rotation/filter combination is accepted, including the defaults."""
        self.require_step(WizardStep.EDIT, action="continue to product selection")
        state = self
        if rotation is not None:
            if rotation % ROTATION_STEP != 0:
                raise ValidationError(
                    f"Rotation must be a multiple of {ROTATION_STEP} degrees",
                    field="rotation",
                )
            state = replace(state, rotation=rotation)
        if filter is not None:
            state = state.set_filter(filter)
        return replace(state, step=WizardStep.PRODUCT)

    # ------------------------------------------------------------------
    # Step 3: Product
    # ------------------------------------------------------------------

    def select_product(
        self,
        product_type: str,
        product_size: Optional[str] = None,
        quantity: Optional[int] = None,
    ) -> "WizardState":
        """
        Choose product, size and quantity and reprice the live subtotal.

        Size falls back to the current choice, then to medium. Quantity
        falls back to the current value.
        """
        self.require_step(WizardStep.PRODUCT, action="select a product")

        size = product_size or self.product_size or DEFAULT_PRODUCT_SIZE
        count = self.quantity if quantity is None else quantity
        if isinstance(count, bool) or not isinstance(count, int):
            raise ValidationError("Quantity must be a whole number", field="quantity")
        if not is_valid_quantity(count):
            raise ValidationError(
                f"Quantity must be between {MIN_QUANTITY} and {MAX_QUANTITY}",
                field="quantity",
            )

        unit_price = get_unit_price(product_type, size)
        subtotal = calculate_total_price(unit_price, count).subtotal

        return replace(
            self,
            product_type=product_type,
            product_size=size,
            quantity=count,
            unit_price=unit_price,
            subtotal=subtotal,
        )

    def continue_to_checkout(self) -> "WizardState":
        self.require_step(WizardStep.PRODUCT, action="continue to checkout")
        if self.product_type is None:
            raise WizardTransitionError(
                "Choose a product type before continuing",
                current_step=int(self.step),
            )
        # Size has a default even if the customer never touched it
        size = self.product_size or DEFAULT_PRODUCT_SIZE
        return replace(self, product_size=size, step=WizardStep.CHECKOUT)

    # ------------------------------------------------------------------
    # Step 4: Checkout
    # ------------------------------------------------------------------

    def checkout_breakdown(self) -> PriceBreakdown:
        self.require_step(WizardStep.CHECKOUT, action="price the order")
        return calculate_total_price(self.unit_price, self.quantity, True)

    def order_placed(self) -> "WizardState":
        self.require_step(WizardStep.CHECKOUT, action="complete the order")
        return WizardState()

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    def advance(self) -> "WizardState":
        """Continue from the current step using that step's own gate."""
        if self.step == WizardStep.UPLOAD:
            return self.continue_to_edit()
        if self.step == WizardStep.EDIT:
            return self.continue_to_product()
        if self.step == WizardStep.PRODUCT:
            return self.continue_to_checkout()
        raise WizardTransitionError(
            "Checkout is the last step; place the order to finish",
            current_step=int(self.step),
        )

    def back(self) -> "WizardState":
        if self.step == WizardStep.UPLOAD:
            raise WizardTransitionError(
                "Already at the first step", current_step=int(self.step)
            )
        return replace(self, step=WizardStep(self.step - 1))

    def start_over(self) -> "WizardState":
        return WizardState()

    # ------------------------------------------------------------------
    # Serialization (session storage and API responses)
    # ------------------------------------------------------------------

    def to_dict(self) -> Dict[str, Any]:
        return {
            "step": int(self.step),
            "stepName": self.step.label,
            "imageId": self.image_id,
            "imageUrl": self.image_url,
            "rotation": self.rotation,
            "filter": self.filter,
            "productType": self.product_type,
            "productSize": self.product_size,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "subtotal": self.subtotal,
        }

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "WizardState":
        """Rebuild from session data; missing or empty data gives a fresh state."""
        if not data:
            return cls()
        return cls(
            step=WizardStep(int(data.get("step", WizardStep.UPLOAD))),
            image_id=data.get("imageId"),
            image_url=data.get("imageUrl"),
            rotation=int(data.get("rotation", 0)),
            filter=data.get("filter", DEFAULT_FILTER),
            product_type=data.get("productType"),
            product_size=data.get("productSize"),
            quantity=int(data.get("quantity", 1)),
            unit_price=float(data.get("unitPrice", 0.0)),
            subtotal=float(data.get("subtotal", 0.0)),
        )


def build_order_payload(state: WizardState, customer: Dict[str, Any]) -> Dict[str, Any]:
    """
    Assemble the order body submitted at checkout.

    ``totalPrice`` is the breakdown total including shipping and tax, and
    the same shipping/tax/total are copied into ``customerInfo``.
    """
    breakdown = state.checkout_breakdown()
    return {
        "imageId": state.image_id,
        "productType": state.product_type,
        "productSize": state.product_size,
        "quantity": state.quantity,
        "unitPrice": state.unit_price,
        "totalPrice": breakdown.total,
        "rotation": state.rotation,
        "filter": state.filter,
        "customerInfo": {
            **customer,
            "shipping": breakdown.shipping,
            "tax": breakdown.tax,
            "total": breakdown.total,
        },
    }
