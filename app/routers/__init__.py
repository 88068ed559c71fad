# app/routers/__init__.py
"""
API routers.
"""

from app.routers.analytics import router as analytics_router
from app.routers.editorial import router as editorial_router

__all__ = [
    "analytics_router",
    "editorial_router",
]
