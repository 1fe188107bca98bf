"""
API v1 routes package.
"""

from .health_routes import router as health_router
from .breathing_routes import router as breathing_router
from .progress_routes import router as progress_router

__all__ = [
    "health_router",
    "breathing_router",
    "progress_router"
]
