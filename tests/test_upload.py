"""
Tests for image upload, lookup and file serving.

Runs against both storage backends via the ``app`` fixture.
"""

import io
import os

import pytest
from werkzeug.datastructures import FileStorage

from core.exceptions import StorageError, ValidationError
from services.upload_service import format_size_mb
from conftest import make_image_bytes, upload_data


def _stored_files(upload_dir):
    return sorted(os.listdir(upload_dir))


class TestUploadAccepted:
    """Valid JPEG/PNG uploads."""

    def test_png_upload_creates_record_and_file(self, client, upload_dir, png_bytes):
        """A valid PNG is stored, recorded and retrievable."""
        response = client.post(
            "/api/images/upload",
            data=upload_data(png_bytes, "holiday.png", "image/png"),
            content_type="multipart/form-data",
        )

        assert response.status_code == 201
        image = response.get_json()
        assert image["id"] == 1
        assert image["mimeType"] == "image/png"
        assert image["originalFileName"] == "holiday.png"
        assert image["fileName"].endswith(".png")
        assert image["fileName"] != "holiday.png"
        assert image["uploadedAt"].endswith("Z")
        assert float(image["sizeMb"]) == pytest.approx(len(png_bytes) / (1024 * 1024))

        assert _stored_files(upload_dir) == [image["fileName"]]

        file_response = client.get(f"/api/images/file/{image['fileName']}")
        assert file_response.status_code == 200
        assert file_response.mimetype == "image/png"
        assert file_response.data == png_bytes

    def test_jpeg_upload(self, client, jpeg_bytes):
        response = client.post(
            "/api/images/upload",
            data=upload_data(jpeg_bytes, "portrait.jpg", "image/jpeg"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 201
        assert response.get_json()["mimeType"] == "image/jpeg"

    def test_generated_names_are_unique(self, client, png_bytes):
        names = set()
        for _ in range(5):
            response = client.post(
                "/api/images/upload",
                data=upload_data(png_bytes),
                content_type="multipart/form-data",
            )
            names.add(response.get_json()["fileName"])
        assert len(names) == 5

    def test_stored_bytes_unchanged(self, app, client, upload_dir):
        """The file on disk is byte-for-byte what was uploaded."""
        content = make_image_bytes("PNG", size=(64, 48), noise=True)
        response = client.post(
            "/api/images/upload",
            data=upload_data(content),
            content_type="multipart/form-data",
        )
        file_name = response.get_json()["fileName"]
        with open(os.path.join(upload_dir, file_name), "rb") as f:
            assert f.read() == content


class TestUploadRejected:
    """Rejections happen before anything is written."""

    def test_missing_file(self, client, upload_dir):
        response = client.post(
            "/api/images/upload", data={}, content_type="multipart/form-data"
        )
        assert response.status_code == 400
        assert response.get_json()["message"] == "No file uploaded"
        assert _stored_files(upload_dir) == []

    def test_wrong_mime_type(self, client, upload_dir):
        """A non-image MIME type is rejected with 400 and no file persisted."""
        response = client.post(
            "/api/images/upload",
            data=upload_data(b"%PDF-1.4 not an image", "doc.pdf", "application/pdf"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert "Only JPEG and PNG" in response.get_json()["message"]
        assert _stored_files(upload_dir) == []

    def test_gif_rejected(self, client, upload_dir):
        response = client.post(
            "/api/images/upload",
            data=upload_data(make_image_bytes("GIF"), "anim.gif", "image/gif"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert _stored_files(upload_dir) == []

    def test_file_over_10mb(self, client, upload_dir):
        """A file just over 10 MiB is rejected with 400."""
        content = b"\x89PNG" + b"\0" * (10 * 1024 * 1024)
        response = client.post(
            "/api/images/upload",
            data=upload_data(content, "huge.png", "image/png"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert "too large" in response.get_json()["message"]
        assert _stored_files(upload_dir) == []

    def test_request_over_body_limit(self, client, upload_dir):
        """Bodies past MAX_CONTENT_LENGTH are answered with 400, not 413."""
        content = b"\0" * (11 * 1024 * 1024)
        response = client.post(
            "/api/images/upload",
            data=upload_data(content, "huge.png", "image/png"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 400
        assert "too large" in response.get_json()["message"]
        assert _stored_files(upload_dir) == []


class TestUploadCleanup:
    """Failures after the file is written remove it again."""

    def test_unreadable_image_removed(self, client, upload_dir):
        """Bytes that are not an image: 500 and no orphaned file."""
        response = client.post(
            "/api/images/upload",
            data=upload_data(b"definitely not a png", "fake.png", "image/png"),
            content_type="multipart/form-data",
        )
        assert response.status_code == 500
        assert response.get_json()["message"] == "Failed to process image"
        assert _stored_files(upload_dir) == []

    def test_storage_failure_removes_file(self, app, client, upload_dir, png_bytes, monkeypatch):
        """Record creation failing after the write leaves no file behind."""
        def failing_create(data):
            raise StorageError("create_image", "disk full")

        monkeypatch.setattr(app.config["REPOSITORY"], "create_image", failing_create)

        response = client.post(
            "/api/images/upload",
            data=upload_data(png_bytes),
            content_type="multipart/form-data",
        )
        assert response.status_code == 500
        assert "disk full" not in response.get_json()["message"]
        assert _stored_files(upload_dir) == []

    def test_unexpected_error_removes_file(self, app, client, upload_dir, png_bytes, monkeypatch):
        def exploding_create(data):
            raise RuntimeError("boom")

        monkeypatch.setattr(app.config["REPOSITORY"], "create_image", exploding_create)

        response = client.post(
            "/api/images/upload",
            data=upload_data(png_bytes),
            content_type="multipart/form-data",
        )
        assert response.status_code == 500
        assert response.get_json()["message"] == "An unexpected error occurred"
        assert _stored_files(upload_dir) == []


class TestImageLookup:
    """GET /api/images/<id> and /api/images/file/<name>."""

    def test_get_image_by_id(self, client, png_bytes):
        created = client.post(
            "/api/images/upload",
            data=upload_data(png_bytes),
            content_type="multipart/form-data",
        ).get_json()

        response = client.get(f"/api/images/{created['id']}")
        assert response.status_code == 200
        assert response.get_json() == created

    def test_repeated_get_is_byte_identical(self, client, png_bytes):
        """Reads never mutate the record."""
        created = client.post(
            "/api/images/upload",
            data=upload_data(png_bytes),
            content_type="multipart/form-data",
        ).get_json()

        first = client.get(f"/api/images/{created['id']}").data
        second = client.get(f"/api/images/{created['id']}").data
        assert first == second

    def test_non_numeric_id(self, client):
        response = client.get("/api/images/abc")
        assert response.status_code == 400
        assert response.get_json()["message"] == "Invalid image ID"

    def test_unknown_id(self, client):
        response = client.get("/api/images/42")
        assert response.status_code == 404
        assert response.get_json()["message"] == "Image not found"

    def test_unknown_file(self, client):
        response = client.get("/api/images/file/missing.png")
        assert response.status_code == 404

    def test_file_outside_upload_folder(self, client):
        response = client.get("/api/images/file/..%2Fconfig.py")
        assert response.status_code == 404


class _AcceptAllProbe:
    """Stands in for the Pillow check so size limits can use filler bytes."""

    def inspect(self, path):
        return {"format": "PNG", "width": 1, "height": 1, "mode": "RGB"}


class TestSizeLimit:
    """The 10 MiB limit is inclusive."""

    def test_exactly_max_bytes_accepted(self, app, client, upload_dir, monkeypatch):
        service = app.config["UPLOAD_SERVICE"]
        monkeypatch.setattr(service, "probe", _AcceptAllProbe())
        content = b"\0" * app.config["MAX_IMAGE_BYTES"]

        response = client.post(
            "/api/images/upload",
            data=upload_data(content, "limit.png", "image/png"),
            content_type="multipart/form-data",
        )

        assert response.status_code == 201
        assert response.get_json()["sizeMb"] == "10"
        assert len(_stored_files(upload_dir)) == 1

    def test_one_byte_over_rejected(self, app, client, upload_dir, monkeypatch):
        service = app.config["UPLOAD_SERVICE"]
        monkeypatch.setattr(service, "probe", _AcceptAllProbe())
        content = b"\0" * (app.config["MAX_IMAGE_BYTES"] + 1)

        response = client.post(
            "/api/images/upload",
            data=upload_data(content, "limit.png", "image/png"),
            content_type="multipart/form-data",
        )

        assert response.status_code == 400
        assert "Maximum size is 10 MB" in response.get_json()["message"]
        assert _stored_files(upload_dir) == []

    def test_validate_boundary(self, memory_app):
        service = memory_app.config["UPLOAD_SERVICE"]
        limit = service.max_bytes

        at_limit = FileStorage(io.BytesIO(b"\0" * limit), "a.png", content_type="image/png")
        assert service.validate(at_limit) == limit

        over = FileStorage(io.BytesIO(b"\0" * (limit + 1)), "a.png", content_type="image/png")
        with pytest.raises(ValidationError):
            service.validate(over)


class TestFormatSizeMb:
    """Sizes read the same as the numbers the storefront client shows."""

    @pytest.mark.parametrize("size_bytes,expected", [
        (2 * 1024 * 1024, "2"),
        (1536 * 1024, "1.5"),
        (52, "0.000049591064453125"),
        (1, "9.5367431640625e-7"),
    ])
    def test_format(self, size_bytes, expected):
        assert format_size_mb(size_bytes) == expected
