"""
API v1 package.

Contains versioned operator routes for the fulfillment engine.
"""

from src.api.v1.routes import router

__all__ = ["router"]
