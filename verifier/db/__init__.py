"""Database layer package for all SQL and persistence boundaries."""

from .health import SQLAlchemyDatabaseHealthService
from .interfaces import (
	DatabaseHealthPort,
	JobLedgerPort,
	LedgerEntry,
	LedgerEntryAlreadyExistsError,
	LedgerError,
	LedgerStats,
)
from .job_ledger import LEDGER_TABLE_NAME, SQLAlchemyJobLedgerService
from .migration_runner import db_build_alembic_config, db_ledger_upgrade_schema
from .session import db_create_engine

__all__ = [
	"DatabaseHealthPort",
	"JobLedgerPort",
	"LEDGER_TABLE_NAME",
	"LedgerEntry",
	"LedgerEntryAlreadyExistsError",
	"LedgerError",
	"LedgerStats",
	"SQLAlchemyDatabaseHealthService",
	"SQLAlchemyJobLedgerService",
	"db_build_alembic_config",
	"db_create_engine",
	"db_ledger_upgrade_schema",
]
