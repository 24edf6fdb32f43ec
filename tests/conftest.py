"""Shared fixtures: app instances for both storage backends and test images."""

import io
import os

import pytest
from PIL import Image

from app import create_app
from config import TestingConfig


def make_image_bytes(fmt: str = "PNG", size=(16, 16), noise: bool = False) -> bytes:
    """Encode a small image in memory. ``noise`` makes it incompressible."""
    if noise:
        img = Image.frombytes("RGB", size, os.urandom(size[0] * size[1] * 3))
    else:
        img = Image.new("RGB", size, (200, 120, 40))
    buffer = io.BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


def upload_data(content: bytes, filename: str = "photo.png", mimetype: str = "image/png"):
    """Multipart form data for the ``image`` field."""
    return {"image": (io.BytesIO(content), filename, mimetype)}


CUSTOMER = {
    "firstName": "Jane",
    "lastName": "Doe",
    "email": "jane@example.com",
    "address": "1 Main St",
    "city": "Springfield",
    "state": "IL",
    "zip": "62701",
    "country": "US",
    "cardNumber": "4242424242424242",
    "expDate": "12/30",
    "cvc": "123",
}


def _config_for(tmp_path, backend: str):
    class _Config(TestingConfig):
        UPLOAD_FOLDER = str(tmp_path / "uploads")
        STORAGE_BACKEND = backend
        DATABASE_URL = f"sqlite:///{tmp_path / 'test.db'}"

    return _Config


# Fixtures

@pytest.fixture
def png_bytes():
    return make_image_bytes("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image_bytes("JPEG")


@pytest.fixture(params=["memory", "database"])
def app(request, tmp_path):
    """App instance, once per storage backend."""
    application = create_app(_config_for(tmp_path, request.param))
    yield application
    application.config["REPOSITORY"].close()


@pytest.fixture
def memory_app(tmp_path):
    application = create_app(_config_for(tmp_path, "memory"))
    yield application


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def memory_client(memory_app):
    return memory_app.test_client()


@pytest.fixture
def upload_dir(app):
    return app.config["UPLOAD_FOLDER"]


@pytest.fixture
def order_payload():
    """A valid POST /api/orders body for postcard/medium x3."""
    return {
        "imageId": 1,
        "productType": "postcard",
        "productSize": "medium",
        "quantity": 3,
        "unitPrice": 2.5,
        "totalPrice": 13.09,
        "rotation": 180,
        "filter": "sepia(70%)",
        "customerInfo": {**CUSTOMER, "shipping": 4.99, "tax": 0.6, "total": 13.09},
    }
