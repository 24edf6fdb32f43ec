"""
Print shop - Flask Application Entry Point.

This is a slim app factory that:
1. Loads configuration (.env + config classes)
2. Configures request-aware logging
3. Creates the repository (in-memory or database)
4. Creates the upload and order services
5. Registers route blueprints
6. Sets up JSON error handlers

ARCHITECTURE:
    Flask request handling (one short request/response per call)
    ├── ImageUploadService -> uploads folder + Repository
    ├── OrderService       -> Repository
    └── Wizard state       -> Flask session (one value per customer)

The repository is the only state shared between requests.
"""

from __future__ import annotations

import atexit
import logging
import os
import weakref
from pathlib import Path
from typing import Optional, Union

from dotenv import load_dotenv
from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException, RequestEntityTooLarge

from config import config_for_environment
from logging_config import setup_logging, get_logger, assign_request_id
from core.exceptions import PrintShopError
from services.storage import create_repository
from services.upload_service import ImageUploadService
from services.order_service import OrderService
from routes import register_blueprints


# Module logger (configured after setup_logging)
logger = get_logger(__name__)


# Repositories of every app built in this process, closed once at exit
_open_repositories: "weakref.WeakSet" = weakref.WeakSet()


@atexit.register
def _close_repositories() -> None:
    """Cleanup on interpreter shutdown."""
    repositories = list(_open_repositories)
    if repositories:
        logger.info("Shutting down...")
    for repository in repositories:
        repository.close()


def create_app(config_object: Optional[Union[str, type]] = None) -> Flask:
    """
    Application factory - creates and configures Flask app.

    Args:
        config_object: Config class or dotted path. Defaults to the
                       class for FLASK_ENV (production, development,
                       testing); tests pass TestingConfig.

    Returns:
        Configured Flask application

    Raises:
        ValueError: If STORAGE_BACKEND is unknown
        StorageError: If the database tables cannot be created
    """
    # Use override=True so .env file always takes precedence over shell environment
    env_file = Path(__file__).parent / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=True)
    else:
        load_dotenv(override=True)

    app = Flask(__name__)
    app.config.from_object(
        config_object or config_for_environment(os.environ.get("FLASK_ENV", "development"))
    )

    # Configure logging
    log_level = logging.DEBUG if app.config.get("DEBUG") else logging.INFO
    enable_file_logging = app.config.get("ENVIRONMENT") == "production"

    root_logger = setup_logging(
        log_level=log_level,
        enable_file_logging=enable_file_logging
    )

    # Set Flask's logger to use our configured logger
    app.logger.handlers = root_logger.handlers
    app.logger.setLevel(log_level)

    logger.info(f"Starting print shop in {app.config.get('ENVIRONMENT')} mode")

    # Ensure upload folder exists
    upload_folder = Path(app.config["UPLOAD_FOLDER"])
    upload_folder.mkdir(parents=True, exist_ok=True)

    # =========================================================================
    # SERVICES INITIALIZATION
    # =========================================================================

    repository = create_repository(app.config)
    app.config["REPOSITORY"] = repository
    logger.info(f"Repository initialized ({repository.backend_name})")

    app.config["UPLOAD_SERVICE"] = ImageUploadService(
        repository,
        upload_folder,
        max_bytes=app.config.get("MAX_IMAGE_BYTES", 10 * 1024 * 1024),
    )
    app.config["ORDER_SERVICE"] = OrderService(repository)
    logger.info("Upload and order services initialized")

    # =========================================================================
    # CLEANUP REGISTRATION
    # =========================================================================

    _open_repositories.add(repository)

    # =========================================================================
    # REQUEST CONTEXT
    # =========================================================================

    @app.before_request
    def tag_request():
        assign_request_id()

    # =========================================================================
    # REGISTER BLUEPRINTS
    # =========================================================================

    register_blueprints(app)

    # =========================================================================
    # ERROR HANDLERS
    # =========================================================================

    @app.errorhandler(PrintShopError)
    def handle_print_shop_error(e: PrintShopError):
        if e.is_client_error:
            logger.warning(f"{e.status_code} {type(e).__name__}: {e}")
        else:
            logger.error(f"{e.status_code} {type(e).__name__}: {e}", exc_info=True)
        return jsonify(e.to_response()), e.status_code

    @app.errorhandler(RequestEntityTooLarge)
    def handle_file_too_large(e):
        max_mb = app.config.get("MAX_IMAGE_BYTES", 10 * 1024 * 1024) / (1024 * 1024)
        logger.warning("Rejected request body over the size limit")
        return jsonify({"message": f"File too large. Maximum size is {max_mb:.0f} MB."}), 400

    @app.errorhandler(HTTPException)
    def handle_http_error(e: HTTPException):
        return jsonify({"message": e.description or e.name}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e: Exception):
        logger.error(f"500 error: {e}", exc_info=True)
        return jsonify({"message": "An unexpected error occurred"}), 500

    logger.info("Application initialized successfully")
    return app


if __name__ == "__main__":
    app = create_app()
    debug_mode = os.environ.get("FLASK_DEBUG", "1") == "1"
    app.run(debug=debug_mode)
