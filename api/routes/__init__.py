"""
API Routes Package for the Kitchen Kompanion Assistant Service
"""

from .health import router as health_router
from .assistant import router as assistant_router
from .backend import router as backend_router

__all__ = [
    "health_router",
    "assistant_router",
    "backend_router",
]
