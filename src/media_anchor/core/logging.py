"""Logging setup shared by the API process and the scripts."""

from __future__ import annotations

import logging

from media_anchor.core.settings import settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(level: str | None = None) -> None:
    """Configure the root logger once for the process."""
    resolved = (level or settings.log_level).upper()
    if settings.debug:
        resolved = "DEBUG"
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
