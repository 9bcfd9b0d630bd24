# src/media_anchor/models/__init__.py
"""SQLAlchemy models for the Media Anchor service."""

from .media_submission import MEDIA_TYPES, MediaSubmission

__all__ = ["MEDIA_TYPES", "MediaSubmission"]
