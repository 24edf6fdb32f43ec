"""
Core module for the print shop.

Contains fundamental infrastructure components:
- exceptions: Custom exception hierarchy mapped to HTTP status codes
"""

from .exceptions import (
    PrintShopError,
    ValidationError,
    NotFoundError,
    WizardTransitionError,
    ImageProcessingError,
    StorageError,
)

__all__ = [
    "PrintShopError",
    "ValidationError",
    "NotFoundError",
    "WizardTransitionError",
    "ImageProcessingError",
    "StorageError",
]
