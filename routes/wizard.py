"""
Order wizard routes.

The wizard state lives in the Flask session. Each request loads it, applies
exactly one transition and stores the result:

- GET  /wizard             - current state (+ price breakdown from step 3)
- POST /wizard/upload      - upload the image (step 1)
- POST /wizard/edit        - rotate left/right, pick a filter (step 2)
- POST /wizard/product     - choose product, size, quantity (step 3)
- POST /wizard/next        - continue to the next step
- POST /wizard/back        - return to the previous step
- POST /wizard/start-over  - discard everything, back to step 1
- POST /wizard/checkout    - place the order and reset (step 4)

Start over never deletes an image that was already uploaded.
"""

from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request, session

from core.exceptions import ValidationError
from models.wizard import WizardState, WizardStep, build_order_payload
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

wizard_bp = Blueprint("wizard", __name__, url_prefix="/wizard")

SESSION_KEY = "wizard"


def _load_state() -> WizardState:
    return WizardState.from_dict(session.get(SESSION_KEY))


def _save_state(state: WizardState) -> None:
    session[SESSION_KEY] = state.to_dict()
    session.modified = True


def _json_body() -> Dict[str, Any]:
    body = request.get_json(silent=True)
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Expected a JSON object")
    return body


def _state_response(state: WizardState, status: int = 200, **extra):
    body: Dict[str, Any] = {"wizard": state.to_dict()}
    if state.step == WizardStep.PRODUCT and state.product_type:
        body["breakdown"] = {
            "subtotal": state.subtotal,
            "shipping": 0.0,
            "tax": 0.0,
            "total": state.subtotal,
        }
    elif state.step == WizardStep.CHECKOUT:
        body["breakdown"] = state.checkout_breakdown().to_dict()
    body.update(extra)
    return jsonify(body), status


@wizard_bp.route("", methods=["GET"])
def show():
    return _state_response(_load_state())


@wizard_bp.route("/upload", methods=["POST"])
def upload():
    """Upload the image for this order. Replaces an earlier upload reference."""
    state = _load_state()
    # Check the step first so a rejected transition never stores a file
    state.require_step(WizardStep.UPLOAD, action="upload an image")

    image = current_app.config["UPLOAD_SERVICE"].handle_upload(request.files.get("image"))
    state = state.image_uploaded(image.id, image.url)
    _save_state(state)

    logger.info(f"Wizard image set to {image.id}")
    return _state_response(state, 201, image=image.to_dict())


@wizard_bp.route("/edit", methods=["POST"])
def edit():
    """
    Apply display-only edits.

    Body:
        {"rotate": "left" | "right"} and/or {"filter": "<token>"}
    """
    body = _json_body()
    state = _load_state()
    state.require_step(WizardStep.EDIT, action="edit the image")

    rotate = body.get("rotate")
    if rotate == "left":
        state = state.rotate_left()
    elif rotate == "right":
        state = state.rotate_right()
    elif rotate is not None:
        raise ValidationError("rotate must be 'left' or 'right'", field="rotate")

    if "filter" in body:
        state = state.set_filter(body["filter"])

    _save_state(state)
    return _state_response(state)


@wizard_bp.route("/product", methods=["POST"])
def product():
    """
    Choose the product.

    Body:
        {"productType": "postcard" | "poster",
         "productSize": "small" | "medium" | "large",   (optional)
         "quantity": 1..100}                             (optional)
    """
    body = _json_body()
    state = _load_state()

    product_type = body.get("productType")
    if not product_type:
        raise ValidationError("productType is required", field="productType")
    if not isinstance(product_type, str):
        raise ValidationError("productType must be a string", field="productType")

    product_size = body.get("productSize")
    if product_size is not None and not isinstance(product_size, str):
        raise ValidationError("productSize must be a string", field="productSize")

    state = state.select_product(
        product_type,
        product_size=product_size,
        quantity=body.get("quantity"),
    )
    _save_state(state)
    return _state_response(state)


@wizard_bp.route("/next", methods=["POST"])
def next_step():
    state = _load_state().advance()
    _save_state(state)
    return _state_response(state)


@wizard_bp.route("/back", methods=["POST"])
def back():
    state = _load_state().back()
    _save_state(state)
    return _state_response(state)


@wizard_bp.route("/start-over", methods=["POST"])
def start_over():
    """Discard all in-progress data. Uploaded files and records are kept."""
    previous = _load_state()
    state = previous.start_over()
    _save_state(state)

    if previous.image_id is not None:
        logger.info(f"Wizard restarted; image {previous.image_id} left in storage")
    return _state_response(state)


@wizard_bp.route("/checkout", methods=["POST"])
def checkout():
    """
    Place the order with the shipping and payment fields in the body.

    On success the wizard is reset to step 1 and the response carries the
    order plus how long the client should show the confirmation.
    """
    customer = _json_body()
    state = _load_state()

    payload = build_order_payload(state, customer)
    order = current_app.config["ORDER_SERVICE"].place_order(payload)

    state = state.order_placed()
    _save_state(state)

    return _state_response(
        state,
        201,
        order=order.to_dict(),
        resetAfterSeconds=current_app.config.get("ORDER_RESET_DELAY_SECONDS", 2),
    )
