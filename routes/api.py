"""
API routes (catalog and health).

Handles:
- /api/pricing - Unit price table for every product and size
- /health - Health check endpoint
"""

from pathlib import Path

from flask import Blueprint, current_app, jsonify

from modules.catalog import get_pricing_table
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)

api_bp = Blueprint("api", __name__)


@api_bp.route("/api/pricing", methods=["GET"])
def pricing():
    """Unit prices keyed by product type, then size."""
    return jsonify(get_pricing_table())


@api_bp.route("/health", methods=["GET"])
def health():
    """Health check endpoint with service status."""
    health_status = {
        "status": "ok",
        "environment": current_app.config.get("ENVIRONMENT", "unknown"),
        "checks": {}
    }

    # Check repository
    repository = current_app.config.get("REPOSITORY")
    if repository:
        health_status["checks"]["storage"] = repository.backend_name
    else:
        health_status["checks"]["storage"] = "not_available"
        health_status["status"] = "degraded"

    # Check upload folder
    upload_folder = Path(current_app.config["UPLOAD_FOLDER"])
    if upload_folder.is_dir():
        health_status["checks"]["uploads"] = "ok"
    else:
        health_status["checks"]["uploads"] = "missing"
        health_status["status"] = "degraded"

    status_code = 200 if health_status["status"] == "ok" else 503
    return health_status, status_code
