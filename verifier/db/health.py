"""Database health service for ledger connectivity checks."""

from sqlalchemy import Engine, text
from sqlalchemy.exc import SQLAlchemyError

from verifier.domain import HealthStatus

from .interfaces import DatabaseHealthPort
from .job_ledger import LEDGER_TABLE_NAME


class SQLAlchemyDatabaseHealthService(DatabaseHealthPort):
    """Health service that verifies the ledger database is reachable and migrated."""

    def __init__(self, engine: Engine):
        """Initialize database health service.

        Args:
            engine: SQLAlchemy engine used for connectivity checks.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine

    def db_connection_label(self) -> str:
        """Return the ledger database URL with credentials hidden."""

        return self._engine.url.render_as_string(hide_password=True)

    def db_check_health(self) -> HealthStatus:
        """Run `SELECT 1` and count ledger rows.

        Returns:
            HealthStatus: `ok` with the ledger entry count in the detail text.

        Raises:
            ConnectionError: Raised when the database or ledger table is unreachable.
        """

        try:
            with self._engine.connect() as connection:
                connection.execute(text("SELECT 1"))
                entry_count = connection.execute(
                    text(f"SELECT COUNT(*) AS entry_count FROM {LEDGER_TABLE_NAME}")
                ).scalar_one()
        except SQLAlchemyError as error:
            raise ConnectionError("ledger database connectivity check failed") from error
        return HealthStatus(status="ok", detail=f"ledger reachable ({int(entry_count)} entries)")
