"""
Services layer for the print shop.

This module contains the business logic services:
- Repository: record persistence (in-memory or SQLAlchemy)
- ImageUploadService: upload validation, storage and retrieval
- OrderService: order validation and placement

Request Model:
    Each Flask request uses the services stored in app.config.
    The repository is the only shared mutable state; both backends
    assign identifiers without collisions under concurrent requests.
"""

from .storage import (
    Repository,
    MemoryRepository,
    DatabaseRepository,
    create_repository,
)
from .upload_service import ImageUploadService
from .order_service import OrderService

__all__ = [
    "Repository",
    "MemoryRepository",
    "DatabaseRepository",
    "create_repository",
    "ImageUploadService",
    "OrderService",
]
