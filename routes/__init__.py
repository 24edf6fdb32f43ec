"""
Flask route blueprints for the print shop.

This module contains all route handlers organized by functionality:
- api: pricing table and health check
- images: image upload, record lookup and file serving
- orders: order placement and lookup
- wizard: session-backed four-step order flow

Each blueprint is registered with the Flask app in create_app().
"""

from .api import api_bp
from .images import images_bp
from .orders import orders_bp
from .wizard import wizard_bp

__all__ = [
    "api_bp",
    "images_bp",
    "orders_bp",
    "wizard_bp",
]


def register_blueprints(app):
    """
    Register all blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(api_bp)
    app.register_blueprint(images_bp)
    app.register_blueprint(orders_bp)
    app.register_blueprint(wizard_bp)
