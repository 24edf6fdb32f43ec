"""
Custom exceptions for the print shop.

Exception Hierarchy:
    PrintShopError (base)
    ├── ValidationError        - Bad client input (400)
    ├── NotFoundError          - Unknown record or file (404)
    ├── WizardTransitionError  - Step not reachable from current step (409)
    ├── ImageProcessingError   - Upload is not a readable image (500)
    └── StorageError           - Persistence failure (500)

Usage:
    Client errors (4xx) surface their message to the caller.
    Server errors (5xx) are logged with details and answered with a
    generic message.
"""

from typing import Optional, Dict, Any


class PrintShopError(Exception):
    """
    Base exception for all print shop errors.

    Every subclass carries the HTTP status it maps to, so route handlers
    can let these propagate to the single app-level error handler.
    """

    status_code = 500
    public_message = "An unexpected error occurred"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        """
        Initialize the exception.

        Args:
            message: Human-readable error message
            details: Optional dictionary with additional context for debugging
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    @property
    def is_client_error(self) -> bool:
        return 400 <= self.status_code < 500

    def to_response(self) -> Dict[str, Any]:
        """Body returned to the client. 5xx errors never leak their detail."""
        if self.is_client_error:
            return {"message": self.message}
        return {"message": self.public_message}


# =============================================================================
# CLIENT ERRORS - request is rejected, nothing is persisted
# =============================================================================

class ValidationError(PrintShopError):
    """
    Client input failed validation.

    Raised for a missing upload, a disallowed MIME type, an oversized file,
    or an order payload that does not match the order schema.
    """

    status_code = 400

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else None
        super().__init__(message, details)
        self.field = field


class NotFoundError(PrintShopError):
    """A record or stored file does not exist."""

    status_code = 404

    def __init__(self, resource: str, identifier: Any):
        message = f"{resource} not found"
        super().__init__(message, {"resource": resource, "id": identifier})
        self.resource = resource
        self.identifier = identifier


class WizardTransitionError(PrintShopError):
    """
    The requested wizard action is not allowed from the current step.

    For example continuing to checkout without having chosen a product type,
    or going back from the upload step.
    """

    status_code = 409

    def __init__(self, message: str, current_step: int):
        super().__init__(message, {"current_step": current_step})
        self.current_step = current_step


# =============================================================================
# SERVER ERRORS - logged with details, generic message to the client
# =============================================================================

class ImageProcessingError(PrintShopError):
    """The uploaded file could not be read as an image."""

    status_code = 500
    public_message = "Failed to process image"

    def __init__(self, file_name: str, reason: str):
        message = f"Failed to process image {file_name}: {reason}"
        super().__init__(message, {"file_name": file_name, "reason": reason})
        self.file_name = file_name


class StorageError(PrintShopError):
    """A repository operation failed unexpectedly."""

    status_code = 500
    public_message = "Failed to store record"

    def __init__(self, operation: str, reason: str):
        message = f"Storage operation '{operation}' failed: {reason}"
        super().__init__(message, {"operation": operation})
        self.operation = operation
