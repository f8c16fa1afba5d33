"""Prepare a fresh install: make sure the SQLite directory exists, then migrate."""
from __future__ import annotations

import logging
from pathlib import Path

from sqlalchemy.engine import make_url

from app.config import get_settings
from app.database import run_migrations
from app.logging_config import configure_logging


logger = logging.getLogger("scripts.initial_setup")


def sqlite_directory(database_url: str) -> Path | None:
    """Directory holding the SQLite file, or None for in-memory or server databases."""
    url = make_url(database_url)
    if url.get_backend_name() != "sqlite":
        return None
    if not url.database or url.database == ":memory:":
        return None
    return Path(url.database).expanduser().parent


def main() -> None:
    configure_logging()
    settings = get_settings()

    db_dir = sqlite_directory(settings.database_url)
    if db_dir is not None:
        db_dir.mkdir(parents=True, exist_ok=True)
        logger.info("Using SQLite directory %s", db_dir.resolve())

    run_migrations()
    logger.info("Database initialised at %s", make_url(settings.database_url).render_as_string(hide_password=True))


if __name__ == "__main__":
    main()
