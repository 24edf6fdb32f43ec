"""
Image upload handling.

Validates an uploaded file, stores it under a generated name, confirms it is
a readable image and records it in the repository.

Flow:
    1. Validate presence, MIME type and size (nothing written yet)
    2. Save bytes as <random-id><ext> in the upload folder
    3. Probe the file once with Pillow
    4. Validate the ImageCreate payload and create the record

Any failure after step 2 removes the stored file before the error
propagates, so failed uploads never leave files behind.

The stored bytes are never modified afterwards. Rotation and filters are
applied by the viewer only.
"""

from __future__ import annotations

import os
import secrets
from datetime import datetime, timezone
from decimal import Decimal
from pathlib import Path
from typing import Optional

from pydantic import ValidationError as PydanticValidationError
from werkzeug.datastructures import FileStorage
from werkzeug.security import safe_join
from werkzeug.utils import secure_filename

from core.exceptions import NotFoundError, ValidationError
from models.records import ImageRecord
from models.schemas import ImageCreate, format_validation_error
from modules.image_probe import ImageProbe
from services.storage import Repository
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

# Constants
ALLOWED_MIME_TYPES = {
    "image/jpeg": ".jpg",
    "image/png": ".png",
}
MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MiB
MAX_FILENAME_LENGTH = 255
STORAGE_ID_BYTES = 16


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with milliseconds, e.g. 2025-01-02T03:04:05.678Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def format_size_mb(size_bytes: int) -> str:
    """
    File size in MiB as a decimal string.

    Same text as a JavaScript number: ``2`` rather than ``2.0``, positional
    notation down to 1e-6 and an unpadded exponent below that
    (``9.5367431640625e-7`` for one byte).
    """
    size_mb = size_bytes / (1024 * 1024)
    if size_mb.is_integer():
        return str(int(size_mb))
    shortest = Decimal(repr(size_mb))
    if size_mb >= 1e-6:
        return format(shortest, "f")
    return format(shortest, "e")


def _stream_size(file_storage: FileStorage) -> int:
    """Measure the uploaded stream without consuming it."""
    stream = file_storage.stream
    position = stream.tell()
    stream.seek(0, os.SEEK_END)
    size = stream.tell()
    stream.seek(position)
    return size


class ImageUploadService:
    """
    Accepts uploads and serves stored image files.

    Attributes:
        upload_folder: Directory holding stored uploads
        max_bytes: Largest accepted file size
    """

    def __init__(
        self,
        repository: Repository,
        upload_folder: str | Path,
        probe: Optional[ImageProbe] = None,
        max_bytes: int = MAX_IMAGE_BYTES,
    ):
        self.repository = repository
        self.upload_folder = Path(upload_folder)
        self.upload_folder.mkdir(parents=True, exist_ok=True)
        self.probe = probe or ImageProbe()
        self.max_bytes = max_bytes

    # ------------------------------------------------------------------
    # Upload
    # ------------------------------------------------------------------

    def validate(self, file_storage: Optional[FileStorage]) -> int:
        """
        Check an upload before anything is written.

        Returns:
            File size in bytes

        Raises:
            ValidationError: Missing file, wrong MIME type or too large
        """
        if file_storage is None or not file_storage.filename:
            raise ValidationError("No file uploaded", field="image")

        if file_storage.mimetype not in ALLOWED_MIME_TYPES:
            raise ValidationError(
                "Invalid file type. Only JPEG and PNG are allowed.", field="image"
            )

        size = _stream_size(file_storage)
        if size > self.max_bytes:
            max_mb = self.max_bytes / (1024 * 1024)
            actual_mb = size / (1024 * 1024)
            raise ValidationError(
                f"File too large ({actual_mb:.1f} MB). Maximum size is {max_mb:.0f} MB.",
                field="image",
            )

        return size

    def storage_name(self, original_name: str, mime_type: str) -> str:
        """Generate a unique storage name keeping the original extension."""
        extension = os.path.splitext(secure_filename(original_name))[1].lower()
        if not extension:
            extension = ALLOWED_MIME_TYPES[mime_type]
        return f"{secrets.token_urlsafe(STORAGE_ID_BYTES)}{extension}"

    def handle_upload(self, file_storage: Optional[FileStorage]) -> ImageRecord:
        """
        Validate, store, probe and record one uploaded image.

        Raises:
            ValidationError: Input rejected (nothing stored)
            ImageProcessingError: File is not a readable image (file removed)
            StorageError: Record could not be created (file removed)
        """
        size = self.validate(file_storage)

        original_name = file_storage.filename[:MAX_FILENAME_LENGTH]
        mime_type = file_storage.mimetype
        stored_name = self.storage_name(original_name, mime_type)
        stored_path = self.upload_folder / stored_name

        logger.info(f"Saving uploaded image: {stored_name} ({size} bytes)")
        file_storage.save(stored_path)

        try:
            info = self.probe.inspect(stored_path)
            logger.debug(f"Image probe: {info}")

            payload = ImageCreate(
                file_name=stored_name,
                original_file_name=original_name,
                mime_type=mime_type,
                size_mb=format_size_mb(size),
                uploaded_at=utc_timestamp(),
            )
            image = self.repository.create_image(payload)
        except PydanticValidationError as e:
            self._discard(stored_path)
            raise ValidationError(format_validation_error(e)) from e
        except Exception:
            self._discard(stored_path)
            raise

        logger.info(f"Image {image.id} recorded for {stored_name}")
        return image

    def _discard(self, path: Path) -> None:
        """Remove a stored file after a failed upload."""
        try:
            path.unlink(missing_ok=True)
            logger.info(f"Removed orphaned upload: {path.name}")
        except OSError as e:
            logger.error(f"Failed to clean up file {path.name}: {e}")

    # ------------------------------------------------------------------
    # Retrieval
    # ------------------------------------------------------------------

    def get_image(self, image_id: int) -> ImageRecord:
        image = self.repository.get_image(image_id)
        if image is None:
            raise NotFoundError("Image", image_id)
        return image

    def resolve_file(self, file_name: str) -> Path:
        """
        Path of a stored upload.

        Raises:
            NotFoundError: File absent, or the name points outside the folder
        """
        joined = safe_join(str(self.upload_folder), file_name)
        if joined is None or not os.path.isfile(joined):
            raise NotFoundError("Image file", file_name)
        return Path(joined)
