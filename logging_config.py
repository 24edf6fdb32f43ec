"""
Centralized logging configuration for the print shop.

Every log line carries the id of the request that produced it, so the
upload, probe and record-creation messages of one request can be followed
together when several requests run at once.

Features:
    - Request id in all log messages ("-" outside a request)
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages
    - get_logger() for consistent logger naming

Log Format:
    2025-12-03 10:15:30 [INFO    ] [-] print_shop.app - Starting application
    2025-12-03 10:15:31 [INFO    ] [3f9c2a1b] print_shop.services.upload_service - Saving uploaded image

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("This message includes the request id automatically")
"""

import logging
import sys
import uuid
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from flask import g, has_request_context


APP_LOGGER_NAME = "print_shop"
NO_REQUEST = "-"


# =============================================================================
# REQUEST CONTEXT FILTER
# =============================================================================

class RequestContextFilter(logging.Filter):
    """
    Logging filter that adds the current request id to every record.

    The id is assigned by assign_request_id() at the start of each request
    and stored on flask.g. Records emitted outside a request get "-".
    """

    def filter(self, record: logging.LogRecord) -> bool:
        request_id = NO_REQUEST
        if has_request_context():
            request_id = getattr(g, "request_id", NO_REQUEST)
        record.request_id = request_id

        # Never drops records, only adds context
        return True


def assign_request_id() -> str:
    """Give the current request a short id (call from before_request)."""
    g.request_id = uuid.uuid4().hex[:8]
    return g.request_id


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with request context.

    This sets up:
    1. Console handler (always enabled) - for immediate feedback
    2. Rotating file handler (optional) - for persistent logs
    3. Error file handler (optional) - for ERROR/CRITICAL only
    4. Request context filter - adds request id to all messages

    Args:
        app_name: Name of the root logger (default: "print_shop")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured root logger instance
    """
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False  # Prevent duplicate logs to root logger

    # Remove any existing handlers (allows re-configuration)
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(request_id)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )
    request_filter = RequestContextFilter()

    # ---------------------------------------------------------------------
    # Console Handler (always enabled)
    # ---------------------------------------------------------------------
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(request_filter)
    logger.addHandler(console_handler)

    # ---------------------------------------------------------------------
    # File Handlers (optional)
    # ---------------------------------------------------------------------
    if enable_file_logging:
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"
        log_dir.mkdir(parents=True, exist_ok=True)

        # Main application log (all levels)
        app_log_file = log_dir / f"{app_name}.log"
        file_handler = RotatingFileHandler(
            filename=app_log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB per file
            backupCount=5,
            encoding="utf-8"
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(request_filter)
        logger.addHandler(file_handler)

        # Error log (ERROR and CRITICAL only)
        error_log_file = log_dir / f"{app_name}_error.log"
        error_handler = RotatingFileHandler(
            filename=error_log_file,
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(request_filter)
        logger.addHandler(error_handler)

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger under the application namespace.

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance, e.g. "print_shop.services.storage" for
        "services.storage"
    """
    if not name.startswith(APP_LOGGER_NAME):
        name = f"{APP_LOGGER_NAME}.{name}"
    return logging.getLogger(name)
