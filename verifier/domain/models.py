"""Typed domain models shared across runtime layers.

This module provides the job status state machine, the immutable job record
returned by the verification service, and the tagged observation result used
by polling and batch tracking.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
import time
from typing import Final, Union


class JobStatus(str, Enum):
    """Verification job lifecycle status.

    Lifecycle order is `Submitted -> Processing -> Compiled -> terminal`.
    Member values are the stable names used in persistence and logs.
    """

    SUBMITTED = "Submitted"
    PROCESSING = "Processing"
    COMPILED = "Compiled"
    SUCCESS = "Success"
    FAIL = "Fail"
    COMPILE_FAILED = "CompileFailed"
    UNKNOWN = "Unknown"

    def status_is_terminal(self) -> bool:
        """Return whether no further transition can occur from this status.

        Returns:
            bool: True for `Success`, `Fail` and `CompileFailed`.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return self in TERMINAL_JOB_STATUSES

    def status_has_failed(self) -> bool:
        """Return whether this status is a terminal failure.

        Returns:
            bool: True for `Fail` and `CompileFailed`.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        return self in FAILED_JOB_STATUSES


TERMINAL_JOB_STATUSES: Final[frozenset[JobStatus]] = frozenset(
    {JobStatus.SUCCESS, JobStatus.FAIL, JobStatus.COMPILE_FAILED}
)
FAILED_JOB_STATUSES: Final[frozenset[JobStatus]] = frozenset({JobStatus.FAIL, JobStatus.COMPILE_FAILED})
PENDING_JOB_STATUSES: Final[tuple[JobStatus, ...]] = (
    JobStatus.SUBMITTED,
    JobStatus.PROCESSING,
    JobStatus.COMPILED,
)

# Integer status codes used by the verification service wire format.
JOB_STATUS_WIRE_CODES: Final[dict[int, JobStatus]] = {
    0: JobStatus.SUBMITTED,
    1: JobStatus.COMPILED,
    2: JobStatus.COMPILE_FAILED,
    3: JobStatus.FAIL,
    4: JobStatus.SUCCESS,
    5: JobStatus.PROCESSING,
}

_JOB_STATUS_PROGRESS_PERCENTAGE: Final[dict[JobStatus, int]] = {
    JobStatus.SUBMITTED: 10,
    JobStatus.PROCESSING: 40,
    JobStatus.COMPILED: 85,
    JobStatus.SUCCESS: 100,
    JobStatus.FAIL: 100,
    JobStatus.COMPILE_FAILED: 100,
    JobStatus.UNKNOWN: 0,
}


def domain_parse_job_status(value: object) -> JobStatus:
    """Parse one wire status value into `JobStatus`.

    Integer codes and case-insensitive status names are both accepted.
    Unrecognized values map to `JobStatus.UNKNOWN` rather than failing.

    Args:
        value: Raw status value from a service response or ledger row.

    Returns:
        JobStatus: Parsed status.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if isinstance(value, JobStatus):
        return value
    if isinstance(value, bool):
        return JobStatus.UNKNOWN
    if isinstance(value, int):
        return JOB_STATUS_WIRE_CODES.get(value, JobStatus.UNKNOWN)
    if isinstance(value, str):
        normalized_value = value.strip()
        if normalized_value.isdigit():
            return JOB_STATUS_WIRE_CODES.get(int(normalized_value), JobStatus.UNKNOWN)
        for status in JobStatus:
            if status.value.lower() == normalized_value.lower():
                return status
    return JobStatus.UNKNOWN


def domain_job_status_progress_percentage(status: JobStatus) -> int:
    """Return stage progress percentage for display purposes."""

    return _JOB_STATUS_PROGRESS_PERCENTAGE.get(status, 0)


@dataclass(frozen=True)
class JobRecord:
    """Immutable verification job record returned by the service.

    Each status fetch yields a new record; records are never mutated.

    Attributes:
        job_id: Service-assigned opaque job identifier.
        status: Parsed lifecycle status.
        status_description: Optional human-readable status description.
        message: Optional failure or informational message.
        error_category: Optional service error category.
        created_timestamp: Optional creation time in epoch seconds.
        updated_timestamp: Optional last update time in epoch seconds.
        class_hash: Optional class hash under verification.
        contract_name: Optional contract name.
        contract_file: Optional contract file path inside the bundle.
        license: Optional license string.
        compiler_version: Optional compiler version.
        dojo_version: Optional framework version.
        build_tool: Optional build tool identifier.
        address: Optional deployed address.
    """

    job_id: str
    status: JobStatus
    status_description: str | None = None
    message: str | None = None
    error_category: str | None = None
    created_timestamp: float | None = None
    updated_timestamp: float | None = None
    class_hash: str | None = None
    contract_name: str | None = None
    contract_file: str | None = None
    license: str | None = None
    compiler_version: str | None = None
    dojo_version: str | None = None
    build_tool: str | None = None
    address: str | None = None

    def record_is_completed(self) -> bool:
        """Return whether the job reached a terminal status."""

        return self.status.status_is_terminal()

    def record_has_failed(self) -> bool:
        """Return whether the job reached a terminal failure status."""

        return self.status.status_has_failed()

    def record_elapsed_seconds(self, now_timestamp: float | None = None) -> int | None:
        """Return elapsed job seconds for display.

        Completed jobs use `updated - created`; in-progress jobs use
        `now - created`.

        Args:
            now_timestamp: Optional current epoch seconds override.

        Returns:
            int | None: Elapsed whole seconds, or None when timestamps are missing.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        if self.created_timestamp is None:
            return None
        if self.record_is_completed():
            if self.updated_timestamp is None:
                return None
            end_timestamp = self.updated_timestamp
        else:
            end_timestamp = time.time() if now_timestamp is None else now_timestamp
        return max(0, int(end_timestamp - self.created_timestamp))


@dataclass(frozen=True)
class JobPending:
    """Observation of a job that has not reached a terminal status."""

    record: JobRecord


@dataclass(frozen=True)
class JobDone:
    """Observation of a job that finished successfully."""

    record: JobRecord


@dataclass(frozen=True)
class JobFailed:
    """Observation of a job that reached a terminal failure.

    Attributes:
        record: Terminal job record.
        error: Classified verification error for this failure.
    """

    record: JobRecord
    error: Exception


JobObservation = Union[JobPending, JobDone, JobFailed]


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str
