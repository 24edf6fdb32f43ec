"""
Persisted record models.

Three append-only entities: User, ImageRecord and OrderRecord. Records are
frozen once created; the repository assigns ``id``.

Wire format:
    to_dict() produces the camelCase JSON shape returned by the API.
    Decimal columns (sizeMb, unitPrice, totalPrice) are decimal strings,
    the same way a relational numeric column round-trips.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Any


@dataclass(frozen=True)
class User:
    """A registered customer account."""

    id: int
    """Server-assigned identifier."""

    username: str
    """Unique, non-empty login name."""

    password: str
    """Opaque credential string, stored as given."""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "username": self.username,
            "password": self.password,
        }


@dataclass(frozen=True)
class ImageRecord:
    """
    Metadata for one uploaded image.

    The stored bytes under ``file_name`` are exactly what the customer
    uploaded; edits chosen later in the wizard are never applied to them.
    """

    id: int
    file_name: str
    """Generated storage name (random id + original extension)."""

    original_file_name: str
    mime_type: str
    """``image/jpeg`` or ``image/png``."""

    size_mb: str
    """File size in MiB as a decimal string."""

    uploaded_at: str
    """ISO-8601 timestamp of the upload."""

    @property
    def url(self) -> str:
        return f"/api/images/file/{self.file_name}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "fileName": self.file_name,
            "originalFileName": self.original_file_name,
            "mimeType": self.mime_type,
            "sizeMb": self.size_mb,
            "uploadedAt": self.uploaded_at,
        }


@dataclass(frozen=True)
class OrderRecord:
    """
    A placed print order.

    Prices are the figures the checkout submitted (unit price, and the
    total including shipping and tax). They are stored as given.
    """

    id: int
    image_id: int
    """Referenced image. Not checked against the images table."""

    product_type: str
    product_size: str
    quantity: int
    unit_price: str
    total_price: str
    rotation: int
    """Display rotation in degrees, any multiple of 90."""

    filter: str
    """CSS filter token applied by the viewer."""

    customer_info: Dict[str, Any] = field(default_factory=dict)
    """Shipping and payment capture plus shipping/tax/total."""

    ordered_at: str = ""

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "imageId": self.image_id,
            "productType": self.product_type,
            "productSize": self.product_size,
            "quantity": self.quantity,
            "unitPrice": self.unit_price,
            "totalPrice": self.total_price,
            "rotation": self.rotation,
            "filter": self.filter,
            "customerInfo": dict(self.customer_info),
            "orderedAt": self.ordered_at,
        }
