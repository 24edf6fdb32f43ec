"""
Order placement.

Validates a checkout payload against OrderCreate and stores the order.
No payment gateway is contacted; card fields are captured as submitted.

Prices (unit price, shipping, tax, total) are stored exactly as the
checkout computed them. They are not recomputed here.
"""

from __future__ import annotations

from typing import Any, Dict

from pydantic import ValidationError as PydanticValidationError

from core.exceptions import NotFoundError, ValidationError
from models.records import OrderRecord
from models.schemas import OrderCreate, format_validation_error
from modules.sanitize import sanitize_fields
from services.storage import Repository
from services.upload_service import utc_timestamp
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class OrderService:
    """Creates and reads orders through the repository."""

    def __init__(self, repository: Repository):
        self.repository = repository

    def place_order(self, payload: Any) -> OrderRecord:
        """
        Validate and store one order.

        Args:
            payload: Decoded JSON body (order fields without id/orderedAt)

        Returns:
            The stored OrderRecord

        Raises:
            ValidationError: Payload does not match the order schema
            StorageError: Persistence failed
        """
        if not isinstance(payload, dict):
            raise ValidationError("Validation error: Expected a JSON object")

        data: Dict[str, Any] = dict(payload)
        customer = data.get("customerInfo")
        if isinstance(customer, dict):
            data["customerInfo"] = sanitize_fields(customer)
        data["orderedAt"] = utc_timestamp()

        try:
            order_data = OrderCreate.model_validate(data)
        except PydanticValidationError as e:
            message = format_validation_error(e)
            logger.warning(f"Rejected order payload: {message}")
            raise ValidationError(message) from e

        order = self.repository.create_order(order_data)
        logger.info(
            f"Order {order.id} placed: {order.quantity} x {order.product_type}/"
            f"{order.product_size} for image {order.image_id}, total {order.total_price}"
        )
        return order

    def get_order(self, order_id: int) -> OrderRecord:
        order = self.repository.get_order(order_id)
        if order is None:
            raise NotFoundError("Order", order_id)
        return order
