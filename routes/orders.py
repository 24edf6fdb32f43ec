"""
Order routes.

POST /api/orders takes the checkout body (order fields without id and
orderedAt) and stores it. GET /api/orders/<id> returns a placed order.
"""

from flask import Blueprint, current_app, jsonify, request

from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

orders_bp = Blueprint("orders", __name__)


@orders_bp.route("/api/orders", methods=["POST"])
def create_order():
    """
    Place an order.

    Returns:
        201 with the Order record; 400 if the body does not match the
        order schema; 500 on persistence failure
    """
    payload = request.get_json(silent=True)
    order = current_app.config["ORDER_SERVICE"].place_order(payload)
    return jsonify(order.to_dict()), 201


@orders_bp.route("/api/orders/<int:order_id>", methods=["GET"])
def get_order(order_id: int):
    order = current_app.config["ORDER_SERVICE"].get_order(order_id)
    return jsonify(order.to_dict())
