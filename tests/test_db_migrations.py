"""Regression tests for the packaged job ledger Alembic migrations."""

from __future__ import annotations

from pathlib import Path

from alembic import command
from sqlalchemy import create_engine, inspect, text

from verifier.db import LEDGER_TABLE_NAME, db_build_alembic_config, db_create_engine, db_ledger_upgrade_schema
from verifier.db.migration_runner import MIGRATIONS_DIRECTORY


def test_migrations_apply_and_are_idempotent(tmp_path: Path) -> None:
    """Apply migrations on a fresh SQLite DB and verify idempotent re-run.

    Args:
        tmp_path: Pytest temporary directory fixture.

    Returns:
        None: Assertions validate migration behavior.

    Raises:
        AssertionError: Raised when expected migration artifacts are missing.
    """

    engine = db_create_engine(f"sqlite:///{tmp_path / 'history.db'}")
    try:
        db_ledger_upgrade_schema(engine)
        db_ledger_upgrade_schema(engine)

        inspector = inspect(engine)
        assert {LEDGER_TABLE_NAME, "alembic_version"}.issubset(set(inspector.get_table_names()))

        index_names = {index["name"] for index in inspector.get_indexes(LEDGER_TABLE_NAME)}
        assert {
            "ix_verification_history_job_id",
            "ix_verification_history_class_hash",
            "ix_verification_history_network",
            "ix_verification_history_status",
            "ix_verification_history_submitted_at",
        }.issubset(index_names)

        unique_constraint_names = {
            constraint["name"] for constraint in inspector.get_unique_constraints(LEDGER_TABLE_NAME)
        }
        assert "uq_verification_history_job_id" in unique_constraint_names

        with engine.connect() as connection:
            version_rows = connection.execute(text("SELECT version_num FROM alembic_version")).fetchall()
        assert [row[0] for row in version_rows] == ["20261017_01"]
    finally:
        engine.dispose()


def test_migrations_downgrade_to_base_drops_ledger_table(tmp_path: Path) -> None:
    """Downgrade the baseline revision and verify the ledger table is removed."""

    database_url = f"sqlite:///{tmp_path / 'history.db'}"
    engine = create_engine(database_url)
    try:
        db_ledger_upgrade_schema(engine)

        alembic_config = db_build_alembic_config()
        with engine.begin() as connection:
            alembic_config.attributes["connection"] = connection
            command.downgrade(alembic_config, "base")

        assert LEDGER_TABLE_NAME not in set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_migrations_standalone_config_uses_database_url(tmp_path: Path) -> None:
    """Run upgrade through the URL-only config path without a shared connection."""

    database_url = f"sqlite:///{tmp_path / 'standalone.db'}"

    command.upgrade(db_build_alembic_config(database_url=database_url), "head")

    engine = create_engine(database_url)
    try:
        assert LEDGER_TABLE_NAME in set(inspect(engine).get_table_names())
    finally:
        engine.dispose()


def test_migrations_directory_ships_with_package() -> None:
    """Keep env and revision scripts inside the installed package."""

    assert (MIGRATIONS_DIRECTORY / "env.py").is_file()
    assert any(path.suffix == ".py" for path in (MIGRATIONS_DIRECTORY / "versions").iterdir())
