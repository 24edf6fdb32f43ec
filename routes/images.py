"""
Image routes.

Handles upload (multipart field ``image``), record lookup and serving the
stored bytes. Files are served exactly as uploaded.
"""

from flask import Blueprint, current_app, jsonify, request, send_file

from core.exceptions import ValidationError
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

images_bp = Blueprint("images", __name__)


def _upload_service():
    return current_app.config["UPLOAD_SERVICE"]


@images_bp.route("/api/images/upload", methods=["POST"])
def upload():
    """
    Accept one JPEG or PNG image up to 10 MB.

    Returns:
        201 with the Image record; 400 for a missing, wrong-type or
        oversized file; 500 if the file cannot be processed
    """
    logger.debug(
        f"Upload request: fields={list(request.form.keys())}, "
        f"files={list(request.files.keys())}, content_type={request.content_type}"
    )

    image = _upload_service().handle_upload(request.files.get("image"))
    return jsonify(image.to_dict()), 201


@images_bp.route("/api/images/<image_id>", methods=["GET"])
def get_image(image_id: str):
    """Image record by numeric id."""
    try:
        key = int(image_id)
    except ValueError:
        raise ValidationError("Invalid image ID", field="id")

    image = _upload_service().get_image(key)
    return jsonify(image.to_dict())


@images_bp.route("/api/images/file/<file_name>", methods=["GET"])
def get_image_file(file_name: str):
    """Raw stored bytes with a content type derived from the extension."""
    path = _upload_service().resolve_file(file_name)
    return send_file(path)
