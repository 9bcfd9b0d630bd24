# src/media_anchor/api/v1/endpoints/__init__.py
"""API endpoint modules for version 1."""

from .system import router as system_router
from .videos import router as videos_router

__all__ = [
    "system_router",
    "videos_router",
]
