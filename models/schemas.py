"""
Insert payload schemas.

These pydantic models validate data before it reaches the repository:
ImageCreate (built server-side from an upload), OrderCreate (the checkout
body plus the server-stamped ``orderedAt``) and UserCreate.

Field names are snake_case in Python and camelCase on the wire.
"""

from __future__ import annotations

from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    EmailStr,
    Field,
    ValidationError as PydanticValidationError,
    field_validator,
)
from pydantic.alias_generators import to_camel

from modules.catalog import MAX_QUANTITY, MIN_QUANTITY, ROTATION_STEP


ProductType = Literal["postcard", "poster"]
ProductSize = Literal["small", "medium", "large"]
MimeType = Literal["image/jpeg", "image/png"]
FilterToken = Literal[
    "none",
    "grayscale(100%)",
    "sepia(70%)",
    "brightness(120%)",
    "contrast(150%)",
    "saturate(200%)",
]


def to_decimal_string(value: Any) -> str:
    """
    Normalize a number or numeric string to a decimal string.

    Floats keep their shortest repr (``2.5`` -> ``"2.5"``) so a stored
    price reads back exactly as it was submitted.
    """
    if isinstance(value, bool):
        raise ValueError("Expected a number")
    if isinstance(value, (int, float)):
        text = repr(value) if isinstance(value, float) else str(value)
    elif isinstance(value, str):
        text = value.strip()
    else:
        raise ValueError("Expected a number")

    try:
        number = Decimal(text)
    except InvalidOperation:
        raise ValueError("Expected a number") from None
    if not number.is_finite():
        raise ValueError("Expected a finite number")
    if number < 0:
        raise ValueError("Must be greater than or equal to 0")
    return text


class CamelModel(BaseModel):
    """Base model: camelCase aliases, accepts either spelling on input."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class UserCreate(CamelModel):
    username: str = Field(min_length=1)
    password: str = Field(min_length=1)


class ImageCreate(CamelModel):
    file_name: str = Field(min_length=1)
    original_file_name: str = Field(min_length=1)
    mime_type: MimeType
    size_mb: str
    uploaded_at: str = Field(min_length=1)

    @field_validator("size_mb", mode="before")
    @classmethod
    def _normalize_size(cls, value: Any) -> str:
        return to_decimal_string(value)


class CustomerInfo(CamelModel):
    """Shipping address and payment capture. Payment is never charged."""

    first_name: str = Field(min_length=1)
    last_name: str = Field(min_length=1)
    email: EmailStr
    address: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    zip: str = Field(min_length=1)
    country: str = Field(min_length=1)
    card_number: str = Field(min_length=1)
    exp_date: str = Field(min_length=1)
    cvc: str = Field(min_length=1)
    shipping: float = Field(ge=0)
    tax: float = Field(ge=0)
    total: float = Field(ge=0)


class OrderCreate(CamelModel):
    image_id: int = Field(ge=1)
    product_type: ProductType
    product_size: ProductSize
    quantity: int = Field(ge=MIN_QUANTITY, le=MAX_QUANTITY)
    unit_price: str
    total_price: str
    rotation: int
    filter: FilterToken
    customer_info: CustomerInfo
    ordered_at: str = Field(min_length=1)

    @field_validator("unit_price", "total_price", mode="before")
    @classmethod
    def _normalize_price(cls, value: Any) -> str:
        return to_decimal_string(value)

    @field_validator("rotation")
    @classmethod
    def _check_rotation(cls, value: int) -> int:
        if value % ROTATION_STEP != 0:
            raise ValueError(f"Rotation must be a multiple of {ROTATION_STEP} degrees")
        return value


def format_validation_error(exc: PydanticValidationError) -> str:
    """
    Render a pydantic error as one human-readable line.

    Example:
        Validation error: Input should be 'postcard' or 'poster' at "productType"
    """
    parts = []
    for error in exc.errors():
        location = ".".join(str(part) for part in error.get("loc", ()))
        message = error.get("msg", "Invalid value")
        if location:
            parts.append(f'{message} at "{location}"')
        else:
            parts.append(message)
    return "Validation error: " + "; ".join(parts)
