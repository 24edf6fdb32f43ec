"""
Configuration for the print shop.

Values come from environment variables (optionally via a .env file) with
development defaults. STORAGE_BACKEND selects the repository:
"memory" (lost on restart) or "database" (SQLAlchemy, DATABASE_URL).
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env file early so environment variables are available for Config class
# This must happen before the Config class is defined
load_dotenv(override=True)

# Base directory (where this file lives)
BASE_DIR = Path(__file__).resolve().parent


class Config:
    """Default configuration for the Flask application."""

    # Flask settings
    SECRET_KEY = os.environ.get("FLASK_SECRET_KEY", "dev-secret-key")
    SESSION_COOKIE_NAME = "print_shop_session"
    ENVIRONMENT = os.environ.get("FLASK_ENV", "development")
    DEBUG = os.environ.get("FLASK_DEBUG", "1") == "1"

    # Uploads
    UPLOAD_FOLDER = os.environ.get("UPLOAD_FOLDER", str(BASE_DIR / "uploads"))
    MAX_IMAGE_BYTES = 10 * 1024 * 1024  # 10 MiB per image
    # Whole request limit: the image plus multipart framing
    MAX_CONTENT_LENGTH = MAX_IMAGE_BYTES + 64 * 1024

    # Storage
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "memory")
    DATABASE_URL = os.environ.get(
        "DATABASE_URL", f"sqlite:///{BASE_DIR / 'printshop.db'}"
    )
    SQLALCHEMY_ECHO = os.environ.get("SQLALCHEMY_ECHO", "0") == "1"

    # Seconds the client shows the confirmation before the wizard restarts
    ORDER_RESET_DELAY_SECONDS = 2


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False
    TESTING = False
    STORAGE_BACKEND = os.environ.get("STORAGE_BACKEND", "database")
    SESSION_COOKIE_SECURE = True
    SESSION_COOKIE_HTTPONLY = True
    SESSION_COOKIE_SAMESITE = 'Lax'
    PERMANENT_SESSION_LIFETIME = 3600  # 1 hour


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    TESTING = False


class TestingConfig(Config):
    """Testing configuration."""
    DEBUG = False
    TESTING = True
    STORAGE_BACKEND = "memory"
    DATABASE_URL = "sqlite://"


CONFIG_BY_ENVIRONMENT = {
    "production": ProductionConfig,
    "development": DevelopmentConfig,
    "testing": TestingConfig,
}


def config_for_environment(environment: str) -> type:
    """Config class for a FLASK_ENV value; unknown names get the base Config."""
    return CONFIG_BY_ENVIRONMENT.get((environment or "").lower(), Config)
