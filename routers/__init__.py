"""
Routers Module

API routers for the Voice Personalization application.
"""

from .auth import router as auth_router
from .corrections import router as corrections_router

__all__ = ["auth_router", "corrections_router"]
