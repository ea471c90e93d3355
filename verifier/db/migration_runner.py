"""Utilities to run ledger Alembic migrations programmatically."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config
from sqlalchemy import Engine
from sqlalchemy.exc import SQLAlchemyError

from .interfaces import LedgerError

logger = logging.getLogger(__name__)

MIGRATIONS_DIRECTORY = Path(__file__).resolve().parent / "migrations"


def db_build_alembic_config(database_url: str | None = None) -> Config:
    """Build an Alembic config pointing at the packaged ledger migrations.

    Args:
        database_url: Optional SQLAlchemy URL for offline or standalone runs.

    Returns:
        Config: Alembic configuration without an ini file.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    config = Config()
    config.set_main_option("script_location", str(MIGRATIONS_DIRECTORY))
    if database_url is not None:
        config.set_main_option("sqlalchemy.url", database_url)
    return config


def db_ledger_upgrade_schema(engine: Engine, revision: str = "head") -> None:
    """Apply ledger migrations on the given engine.

    Re-running on an up-to-date database is a no-op.

    Args:
        engine: SQLAlchemy engine owning the ledger database.
        revision: Target Alembic revision.

    Returns:
        None: Schema is migrated as a side effect.

    Raises:
        LedgerError: Raised when migration fails.
    """

    config = db_build_alembic_config()
    try:
        with engine.begin() as connection:
            config.attributes["connection"] = connection
            command.upgrade(config, revision)
    except SQLAlchemyError as error:
        raise LedgerError("failed to apply ledger migrations") from error
    logger.debug("Ledger schema upgraded to %s on %s", revision, engine.url.render_as_string(hide_password=True))
