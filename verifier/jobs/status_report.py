"""Best-effort job status reporting with remaining-time estimates."""

from __future__ import annotations

from typing import Any, Final

from verifier.domain import (
    JobRecord,
    JobStatus,
    domain_format_duration,
    domain_format_epoch_timestamp,
    domain_job_status_progress_percentage,
)

_FALLBACK_TOTAL_SECONDS: Final[dict[JobStatus, int]] = {
    JobStatus.SUBMITTED: 40,
    JobStatus.PROCESSING: 35,
    JobStatus.COMPILED: 5,
}
# Share of the historical average still ahead of a job in each stage.
_HISTORY_STAGE_PERCENTAGE: Final[dict[JobStatus, int]] = {
    JobStatus.SUBMITTED: 100,
    JobStatus.PROCESSING: 85,
    JobStatus.COMPILED: 10,
}


def job_estimate_remaining_seconds(
    status: JobStatus,
    elapsed_seconds: int,
    average_total_seconds: float | None = None,
) -> int | None:
    """Estimate remaining seconds for an in-progress job.

    Args:
        status: Current job status.
        elapsed_seconds: Seconds since the job was created.
        average_total_seconds: Optional historical average completion time.

    Returns:
        int | None: Remaining seconds clamped at zero, None for other statuses.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if status not in _FALLBACK_TOTAL_SECONDS:
        return None
    if average_total_seconds is not None:
        estimated_total = int(average_total_seconds) * _HISTORY_STAGE_PERCENTAGE[status] // 100
    else:
        estimated_total = _FALLBACK_TOTAL_SECONDS[status]
    return max(0, estimated_total - elapsed_seconds)


def job_build_status_report(
    record: JobRecord,
    average_total_seconds: float | None = None,
    now_timestamp: float | None = None,
) -> dict[str, Any]:
    """Build a JSON-friendly status report for one job record.

    Args:
        record: Observed job record.
        average_total_seconds: Optional historical average completion time.
        now_timestamp: Optional current epoch seconds override.

    Returns:
        dict[str, Any]: Report payload with progress and timing fields.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    elapsed_seconds = record.record_elapsed_seconds(now_timestamp=now_timestamp)
    estimated_remaining_seconds = None
    if elapsed_seconds is not None:
        estimated_remaining_seconds = job_estimate_remaining_seconds(
            status=record.status,
            elapsed_seconds=elapsed_seconds,
            average_total_seconds=average_total_seconds,
        )

    return {
        "job_id": record.job_id,
        "status": record.status.value,
        "is_completed": record.record_is_completed(),
        "has_failed": record.record_has_failed(),
        "progress_percentage": domain_job_status_progress_percentage(record.status),
        "class_hash": record.class_hash,
        "contract_name": record.contract_name,
        "contract_file": record.contract_file,
        "status_description": record.status_description,
        "message": record.message,
        "error_category": record.error_category,
        "created_at": (
            domain_format_epoch_timestamp(record.created_timestamp) if record.created_timestamp is not None else None
        ),
        "updated_at": (
            domain_format_epoch_timestamp(record.updated_timestamp) if record.updated_timestamp is not None else None
        ),
        "elapsed_seconds": elapsed_seconds,
        "estimated_remaining_seconds": estimated_remaining_seconds,
        "cairo_version": record.compiler_version,
        "dojo_version": record.dojo_version,
        "license": record.license,
        "address": record.address,
        "build_tool": record.build_tool,
    }


def job_format_status_line(record: JobRecord, average_total_seconds: float | None = None) -> str:
    """Return a one-line live status summary for terminal output."""

    status_line = f"Job {record.job_id}: {record.status.value} ({domain_job_status_progress_percentage(record.status)}%)"
    elapsed_seconds = record.record_elapsed_seconds()
    if elapsed_seconds is None:
        return status_line
    status_line += f" elapsed {domain_format_duration(elapsed_seconds)}"
    remaining_seconds = job_estimate_remaining_seconds(record.status, elapsed_seconds, average_total_seconds)
    if remaining_seconds:
        status_line += f", ~{domain_format_duration(remaining_seconds)} remaining"
    return status_line
