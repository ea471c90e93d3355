"""Typed interfaces for database-layer services.

All SQL and ORM access must remain in the db package and its submodules.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from verifier.domain import HealthStatus, JobStatus, domain_parse_job_status


class DatabaseHealthPort(Protocol):
    """Port definition for database connectivity verification."""

    def db_connection_label(self) -> str:
        """Return a stable label for the active database connection target.

        Returns:
            str: Database target label for diagnostics.

        Raises:
            RuntimeError: Raised when connection metadata is unavailable.
        """

    def db_check_health(self) -> HealthStatus:
        """Check database connectivity and return deterministic health payload.

        Returns:
            HealthStatus: Database health status payload.

        Raises:
            ConnectionError: Raised when database cannot be reached.
        """


class LedgerError(RuntimeError):
    """Raised when a job ledger persistence operation fails.

    Attributes:
        error_code: Stable project error code.
    """

    def __init__(self, message: str, error_code: str = "E040"):
        super().__init__(message)
        self.error_code = error_code


class LedgerEntryAlreadyExistsError(LedgerError):
    """Raised when inserting a job id that is already recorded."""


@dataclass(frozen=True)
class LedgerEntry:
    """Persisted submission and last-known status for one job.

    Attributes:
        job_id: Service job id, unique across the ledger.
        class_hash: Submitted class hash.
        contract_name: Submitted contract name.
        network: Network label (`mainnet`, `sepolia`, `dev`, `custom`).
        status: Last-known status name.
        submitted_at: Submission timestamp in UTC.
        completed_at: Timestamp of the first terminal status, if any.
        package_name: Optional package name.
        scarb_version: Scarb toolchain version.
        cairo_version: Cairo compiler version.
        dojo_version: Optional framework version.
    """

    job_id: str
    class_hash: str
    contract_name: str
    network: str
    status: str
    submitted_at: datetime
    completed_at: datetime | None = None
    package_name: str | None = None
    scarb_version: str = ""
    cairo_version: str = ""
    dojo_version: str | None = None

    def entry_job_status(self) -> JobStatus:
        """Return the stored status parsed as `JobStatus`."""

        return domain_parse_job_status(self.status)

    def entry_is_pending(self) -> bool:
        """Return whether the stored status is not terminal."""

        return not self.entry_job_status().status_is_terminal()


@dataclass(frozen=True)
class LedgerStats:
    """Aggregate ledger counts.

    Attributes:
        total: All entries.
        succeeded: Entries with `Success`.
        failed: Entries with `Fail` or `CompileFailed`.
        pending: Entries with any other status.
    """

    total: int
    succeeded: int
    failed: int
    pending: int


class JobLedgerPort(Protocol):
    """Port definition for durable job ledger persistence."""

    def db_ledger_insert(self, entry: LedgerEntry) -> None:
        """Insert one new ledger entry.

        Args:
            entry: Entry to persist.

        Returns:
            None: Entry is written as a side effect.

        Raises:
            LedgerEntryAlreadyExistsError: Raised when the job id is already recorded.
            LedgerError: Raised when persistence fails.
        """

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
            completed_at: Optional completion timestamp for terminal statuses.

        Returns:
            bool: True when a row changed.

        Raises:
            LedgerError: Raised when persistence fails.
        """

    def db_ledger_get_by_job_id(self, job_id: str) -> LedgerEntry | None:
        """Fetch one entry by job id."""

    def db_ledger_list(
        self,
        status: JobStatus | None = None,
        network: str | None = None,
        limit: int | None = None,
    ) -> list[LedgerEntry]:
        """List entries ordered by submission time descending."""

    def db_ledger_list_pending(self) -> list[LedgerEntry]:
        """List entries whose last-known status is not terminal."""

    def db_ledger_delete_older_than(self, days: int) -> int:
        """Delete entries submitted more than `days` days ago and return the count."""

    def db_ledger_delete_all(self) -> int:
        """Delete every entry and return the count."""

    def db_ledger_stats(self) -> LedgerStats:
        """Return aggregate ledger counts."""

    def db_ledger_average_completion_seconds(self, samples: int = 10, min_samples: int = 3) -> float | None:
        """Return the average completion duration of recent successful jobs."""
