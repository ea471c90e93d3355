"""Database service for durable verification job ledger persistence."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Callable

from sqlalchemy import DateTime, Engine, bindparam, text
from sqlalchemy.engine import RowMapping
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from verifier.domain import (
    FAILED_JOB_STATUSES,
    PENDING_JOB_STATUSES,
    TERMINAL_JOB_STATUSES,
    JobStatus,
    domain_parse_job_status,
)

from .interfaces import JobLedgerPort, LedgerEntry, LedgerEntryAlreadyExistsError, LedgerError, LedgerStats

logger = logging.getLogger(__name__)

LEDGER_TABLE_NAME = "verification_history"

_LEDGER_SELECT_COLUMNS = (
    "job_id, class_hash, contract_name, network, status, submitted_at, completed_at, "
    "package_name, scarb_version, cairo_version, dojo_version"
)
_TIMESTAMP_TYPE = DateTime(timezone=True)


class SQLAlchemyJobLedgerService(JobLedgerPort):
    """SQLAlchemy-backed job ledger service.

    The service keeps one row per job id. Terminal statuses are sticky and the
    completion timestamp is written only on the first terminal transition.
    """

    def __init__(self, engine: Engine, now_provider: Callable[[], datetime] | None = None):
        """Initialize job ledger persistence service.

        Args:
            engine: SQLAlchemy engine used for all persistence operations.
            now_provider: Optional UTC clock override used by tests.

        Returns:
            None: This initializer does not return a value.

        Raises:
            ValueError: Raised when engine is None.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        self._engine = engine
        self._now_provider = now_provider or (lambda: datetime.now(timezone.utc))

    def db_ledger_insert(self, entry: LedgerEntry) -> None:
        """Insert one new ledger entry.

        Args:
            entry: Entry to persist.

        Returns:
            None: Entry is written as a side effect.

        Raises:
            LedgerEntryAlreadyExistsError: Raised when the job id is already recorded.
            LedgerError: Raised when persistence fails.
            ValueError: Raised when the job id is blank.
        """

        normalized_job_id = self._validate_non_empty_text(entry.job_id, "job_id")
        statement = text(
            f"INSERT INTO {LEDGER_TABLE_NAME} ("
            f"{_LEDGER_SELECT_COLUMNS}"
            ") VALUES ("
            ":job_id, :class_hash, :contract_name, :network, :status, :submitted_at, :completed_at, "
            ":package_name, :scarb_version, :cairo_version, :dojo_version"
            ")"
        ).bindparams(
            bindparam("submitted_at", type_=_TIMESTAMP_TYPE),
            bindparam("completed_at", type_=_TIMESTAMP_TYPE),
        )
        try:
            with self._engine.begin() as connection:
                connection.execute(
                    statement,
                    {
                        "job_id": normalized_job_id,
                        "class_hash": entry.class_hash,
                        "contract_name": entry.contract_name,
                        "network": entry.network,
                        "status": domain_parse_job_status(entry.status).value,
                        "submitted_at": _db_to_utc(entry.submitted_at),
                        "completed_at": _db_to_utc(entry.completed_at),
                        "package_name": entry.package_name,
                        "scarb_version": entry.scarb_version,
                        "cairo_version": entry.cairo_version,
                        "dojo_version": entry.dojo_version,
                    },
                )
        except IntegrityError as error:
            raise LedgerEntryAlreadyExistsError(f"job '{normalized_job_id}' is already recorded") from error
        except SQLAlchemyError as error:
            raise LedgerError("failed to insert ledger entry") from error
        logger.info("Recorded job %s in ledger (status=%s)", normalized_job_id, entry.status)

    def db_ledger_update_status(
        self,
        job_id: str,
        status: JobStatus,
        completed_at: datetime | None = None,
    ) -> bool:
        """Update last-known status without ever overwriting a terminal status.

        Args:
            job_id: Service job id.
            status: Newly observed status.
            completed_at: Optional completion timestamp; defaults to now for terminal statuses.

        Returns:
            bool: True when a row changed, False for unknown jobs and sticky terminal rows.

        Raises:
            LedgerError: Raised when persistence fails.
        """

        normalized_job_id = self._validate_non_empty_text(job_id, "job_id")
        parsed_status = domain_parse_job_status(status)

        try:
            with self._engine.begin() as connection:
                current_row = connection.execute(
                    text(f"SELECT status, completed_at FROM {LEDGER_TABLE_NAME} WHERE job_id = :job_id").columns(
                        completed_at=_TIMESTAMP_TYPE
                    ),
                    {"job_id": normalized_job_id},
                ).mappings().first()
                if current_row is None:
                    return False

                current_status = domain_parse_job_status(current_row["status"])
                if current_status in TERMINAL_JOB_STATUSES:
                    return False

                next_completed_at = current_row["completed_at"]
                if parsed_status in TERMINAL_JOB_STATUSES and next_completed_at is None:
                    next_completed_at = completed_at or self._now_provider()

                connection.execute(
                    text(
                        f"UPDATE {LEDGER_TABLE_NAME} SET "
                        "status = :status, "
                        "completed_at = :completed_at "
                        "WHERE job_id = :job_id"
                    ).bindparams(bindparam("completed_at", type_=_TIMESTAMP_TYPE)),
                    {
                        "status": parsed_status.value,
                        "completed_at": _db_to_utc(next_completed_at),
                        "job_id": normalized_job_id,
                    },
                )
        except SQLAlchemyError as error:
            raise LedgerError("failed to update ledger status") from error
        logger.debug("Updated ledger job %s to status=%s", normalized_job_id, parsed_status.value)
        return True

    def db_ledger_get_by_job_id(self, job_id: str) -> LedgerEntry | None:
        """Fetch one ledger entry by job id.

        Args:
            job_id: Service job id.

        Returns:
            LedgerEntry | None: Matching entry or None.

        Raises:
            LedgerError: Raised when database read fails.
        """

        normalized_job_id = self._validate_non_empty_text(job_id, "job_id")
        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    self._select_statement("WHERE job_id = :job_id"),
                    {"job_id": normalized_job_id},
                ).mappings().first()
        except SQLAlchemyError as error:
            raise LedgerError("failed to fetch ledger entry") from error
        if row is None:
            return None
        return self._map_entry_row(row)

    def db_ledger_list(
        self,
        status: JobStatus | None = None,
        network: str | None = None,
        limit: int | None = None,
    ) -> list[LedgerEntry]:
        """List entries ordered by submission time descending.

        Args:
            status: Optional status filter.
            network: Optional network filter.
            limit: Optional maximum number of entries.

        Returns:
            list[LedgerEntry]: Matching entries, newest first.

        Raises:
            ValueError: Raised when limit is negative.
            LedgerError: Raised when database read fails.
        """

        if limit is not None and limit < 0:
            raise ValueError("limit must be >= 0")

        where_clauses: list[str] = []
        parameters: dict[str, Any] = {}
        if status is not None:
            where_clauses.append("status = :status")
            parameters["status"] = domain_parse_job_status(status).value
        if network is not None:
            where_clauses.append("network = :network")
            parameters["network"] = network

        filter_sql = ""
        if where_clauses:
            filter_sql = "WHERE " + " AND ".join(where_clauses)
        filter_sql += " ORDER BY submitted_at DESC, job_id ASC"
        if limit is not None:
            filter_sql += " LIMIT :limit"
            parameters["limit"] = limit

        return self._db_fetch_entries(filter_sql=filter_sql, parameters=parameters)

    def db_ledger_list_pending(self) -> list[LedgerEntry]:
        """List entries whose status is `Submitted`, `Processing` or `Compiled`.

        Returns:
            list[LedgerEntry]: Pending entries, newest first.

        Raises:
            LedgerError: Raised when database read fails.
        """

        statement_parameters = {f"status_{index}": status.value for index, status in enumerate(PENDING_JOB_STATUSES)}
        placeholder_sql = ", ".join(f":{name}" for name in statement_parameters)
        return self._db_fetch_entries(
            filter_sql=f"WHERE status IN ({placeholder_sql}) ORDER BY submitted_at DESC, job_id ASC",
            parameters=statement_parameters,
        )

    def db_ledger_delete_older_than(self, days: int) -> int:
        """Delete entries submitted more than `days` days ago.

        Args:
            days: Retention window in days.

        Returns:
            int: Deleted entry count.

        Raises:
            ValueError: Raised when days is negative.
            LedgerError: Raised when persistence fails.
        """

        if days < 0:
            raise ValueError("days must be >= 0")

        cutoff = self._now_provider() - timedelta(days=days)
        try:
            with self._engine.begin() as connection:
                result = connection.execute(
                    text(f"DELETE FROM {LEDGER_TABLE_NAME} WHERE submitted_at < :cutoff").bindparams(
                        bindparam("cutoff", type_=_TIMESTAMP_TYPE)
                    ),
                    {"cutoff": _db_to_utc(cutoff)},
                )
        except SQLAlchemyError as error:
            raise LedgerError("failed to delete old ledger entries") from error
        deleted_count = int(result.rowcount or 0)
        logger.info("Deleted %d ledger entries older than %d days", deleted_count, days)
        return deleted_count

    def db_ledger_delete_all(self) -> int:
        """Delete every ledger entry.

        Returns:
            int: Deleted entry count.

        Raises:
            LedgerError: Raised when persistence fails.
        """

        try:
            with self._engine.begin() as connection:
                result = connection.execute(text(f"DELETE FROM {LEDGER_TABLE_NAME}"))
        except SQLAlchemyError as error:
            raise LedgerError("failed to delete ledger entries") from error
        deleted_count = int(result.rowcount or 0)
        logger.info("Deleted all %d ledger entries", deleted_count)
        return deleted_count

    def db_ledger_stats(self) -> LedgerStats:
        """Return aggregate ledger counts.

        Returns:
            LedgerStats: Total, succeeded, failed and pending counts.

        Raises:
            LedgerError: Raised when database read fails.
        """

        failed_values = sorted(status.value for status in FAILED_JOB_STATUSES)
        try:
            with self._engine.connect() as connection:
                row = connection.execute(
                    text(
                        "SELECT "
                        "COUNT(*) AS total, "
                        "COALESCE(SUM(CASE WHEN status = :success THEN 1 ELSE 0 END), 0) AS succeeded, "
                        "COALESCE(SUM(CASE WHEN status IN (:failed_0, :failed_1) THEN 1 ELSE 0 END), 0) AS failed "
                        f"FROM {LEDGER_TABLE_NAME}"
                    ),
                    {
                        "success": JobStatus.SUCCESS.value,
                        "failed_0": failed_values[0],
                        "failed_1": failed_values[1],
                    },
                ).mappings().one()
        except SQLAlchemyError as error:
            raise LedgerError("failed to compute ledger stats") from error

        total = int(row["total"])
        succeeded = int(row["succeeded"])
        failed = int(row["failed"])
        return LedgerStats(total=total, succeeded=succeeded, failed=failed, pending=total - succeeded - failed)

    def db_ledger_average_completion_seconds(self, samples: int = 10, min_samples: int = 3) -> float | None:
        """Return the average completion duration of recent successful jobs.

        Args:
            samples: Maximum number of most recent successful jobs considered.
            min_samples: Minimum number of samples required to return a value.

        Returns:
            float | None: Average seconds, or None when history is insufficient.

        Raises:
            ValueError: Raised when sample bounds are invalid.
            LedgerError: Raised when database read fails.
        """

        if samples < 1:
            raise ValueError("samples must be >= 1")
        if min_samples < 1:
            raise ValueError("min_samples must be >= 1")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    text(
                        "SELECT submitted_at, completed_at "
                        f"FROM {LEDGER_TABLE_NAME} "
                        "WHERE status = :success AND completed_at IS NOT NULL "
                        "ORDER BY completed_at DESC "
                        "LIMIT :samples"
                    ).columns(submitted_at=_TIMESTAMP_TYPE, completed_at=_TIMESTAMP_TYPE),
                    {"success": JobStatus.SUCCESS.value, "samples": samples},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise LedgerError("failed to read ledger completion history") from error

        durations = [
            (_db_from_utc(row["completed_at"]) - _db_from_utc(row["submitted_at"])).total_seconds()
            for row in rows
        ]
        durations = [duration for duration in durations if duration >= 0]
        if len(durations) < min_samples:
            return None
        return sum(durations) / len(durations)

    def _db_fetch_entries(self, filter_sql: str, parameters: dict[str, Any]) -> list[LedgerEntry]:
        """Fetch ledger entries using one filter suffix.

        Args:
            filter_sql: SQL suffix appended after the base select.
            parameters: Bound parameter values.

        Returns:
            list[LedgerEntry]: Mapped entries.

        Raises:
            LedgerError: Raised when database read fails.
        """

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(self._select_statement(filter_sql), parameters).mappings().all()
        except SQLAlchemyError as error:
            raise LedgerError("failed to list ledger entries") from error
        return [self._map_entry_row(row) for row in rows]

    def _select_statement(self, filter_sql: str):
        return text(f"SELECT {_LEDGER_SELECT_COLUMNS} FROM {LEDGER_TABLE_NAME} {filter_sql}").columns(
            submitted_at=_TIMESTAMP_TYPE,
            completed_at=_TIMESTAMP_TYPE,
        )

    def _map_entry_row(self, row: RowMapping) -> LedgerEntry:
        """Map one SQL row mapping to `LedgerEntry`.

        Args:
            row: SQL row mapping.

        Returns:
            LedgerEntry: Mapped entry.

        Raises:
            KeyError: Raised when required fields are missing.
        """

        return LedgerEntry(
            job_id=str(row["job_id"]),
            class_hash=str(row["class_hash"]),
            contract_name=str(row["contract_name"]),
            network=str(row["network"]),
            status=str(row["status"]),
            submitted_at=_db_from_utc(row["submitted_at"]),
            completed_at=_db_from_utc(row["completed_at"]) if row["completed_at"] is not None else None,
            package_name=row["package_name"],
            scarb_version=str(row["scarb_version"] or ""),
            cairo_version=str(row["cairo_version"] or ""),
            dojo_version=row["dojo_version"],
        )

    def _validate_non_empty_text(self, value: str, field_name: str) -> str:
        """Validate that text input is non-empty.

        Args:
            value: Input value.
            field_name: Input field name.

        Returns:
            str: Normalized value.

        Raises:
            ValueError: Raised when input is blank.
        """

        normalized_value = value.strip()
        if not normalized_value:
            raise ValueError(f"{field_name} must not be blank")
        return normalized_value


def _db_to_utc(value: datetime | None) -> datetime | None:
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _db_from_utc(value: datetime) -> datetime:
    # SQLite returns naive datetimes for timezone-aware columns.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)
