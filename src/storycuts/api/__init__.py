"""
HTTP layer: route registration and request helpers.
"""

from .routes import register_routes

__all__ = ["register_routes"]
