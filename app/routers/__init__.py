"""
API route handlers for the InstaProperty API.
Provides organized routing for different API endpoints.
"""

from .auth import router as auth_router
from .listings import router as listings_router
from .images import router as images_router
from .mirror import router as mirror_router

__all__ = ["auth_router", "listings_router", "images_router", "mirror_router"]
