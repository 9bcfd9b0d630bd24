"""Pydantic schemas for API responses."""

from .submission import PublicConfigResponse, SubmissionResponse

__all__ = ["PublicConfigResponse", "SubmissionResponse"]
