"""Service layer for the submission pipeline."""
