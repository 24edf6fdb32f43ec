"""
Data models for the print shop.

This module contains:
- User, ImageRecord, OrderRecord: frozen records returned by the repository
- UserCreate, ImageCreate, OrderCreate: pydantic insert payload schemas
- WizardState, WizardStep: the immutable order wizard state
"""

from .records import User, ImageRecord, OrderRecord
from .schemas import (
    UserCreate,
    ImageCreate,
    OrderCreate,
    CustomerInfo,
    format_validation_error,
)
from .wizard import WizardState, WizardStep, build_order_payload

__all__ = [
    # Records
    "User",
    "ImageRecord",
    "OrderRecord",
    # Insert schemas
    "UserCreate",
    "ImageCreate",
    "OrderCreate",
    "CustomerInfo",
    "format_validation_error",
    # Wizard
    "WizardState",
    "WizardStep",
    "build_order_payload",
]
