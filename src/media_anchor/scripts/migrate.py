# src/media_anchor/scripts/migrate.py
"""Apply Alembic migrations to the configured submission database."""
from __future__ import annotations

import argparse
import logging
from pathlib import Path

from alembic import command
from alembic.config import Config

from media_anchor.core.logging import setup_logging
from media_anchor.core.settings import settings

MIGRATIONS_DIR = Path(__file__).resolve().parents[3] / "migrations"

logger = logging.getLogger(__name__)


def alembic_config(database_url: str | None = None) -> Config:
    cfg = Config(str(MIGRATIONS_DIR / "alembic.ini"))
    cfg.set_main_option("script_location", str(MIGRATIONS_DIR))
    cfg.set_main_option("sqlalchemy.url", database_url or settings.database_url)
    return cfg


def run_upgrade(revision: str = "head", *, sql: bool = False) -> None:
    logger.info("Upgrading database to %s", revision)
    command.upgrade(alembic_config(), revision, sql=sql)


def main() -> None:
    parser = argparse.ArgumentParser(description="Upgrade the submission database schema")
    parser.add_argument("revision", nargs="?", default="head")
    parser.add_argument("--sql", action="store_true", help="Print SQL instead of executing it")
    args = parser.parse_args()

    setup_logging()
    run_upgrade(args.revision, sql=args.sql)


if __name__ == "__main__":
    main()
