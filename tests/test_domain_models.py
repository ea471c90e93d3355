"""Tests for job status parsing, terminal classification and record helpers."""

from __future__ import annotations

import pytest

from verifier.domain import (
    JobRecord,
    JobStatus,
    domain_format_duration,
    domain_format_epoch_timestamp,
    domain_job_status_progress_percentage,
    domain_parse_job_status,
)


@pytest.mark.parametrize(
    ("raw_value", "expected_status"),
    [
        (0, JobStatus.SUBMITTED),
        (1, JobStatus.COMPILED),
        (2, JobStatus.COMPILE_FAILED),
        (3, JobStatus.FAIL),
        (4, JobStatus.SUCCESS),
        (5, JobStatus.PROCESSING),
        ("4", JobStatus.SUCCESS),
        ("success", JobStatus.SUCCESS),
        ("CompileFailed", JobStatus.COMPILE_FAILED),
        (" processing ", JobStatus.PROCESSING),
        (6, JobStatus.UNKNOWN),
        (-1, JobStatus.UNKNOWN),
        ("Queued", JobStatus.UNKNOWN),
        (None, JobStatus.UNKNOWN),
        (True, JobStatus.UNKNOWN),
        (4.0, JobStatus.UNKNOWN),
    ],
)
def test_domain_parse_job_status_accepts_codes_and_names(raw_value: object, expected_status: JobStatus) -> None:
    """Parse integer codes and names, mapping anything else to Unknown.

    Args:
        raw_value: Wire status value.
        expected_status: Expected parsed status.

    Returns:
        None: Assertions validate parsing.

    Raises:
        AssertionError: Raised when parsing is incorrect.
    """

    assert domain_parse_job_status(raw_value) == expected_status


def test_domain_terminal_and_failed_classification() -> None:
    """Classify Success, Fail and CompileFailed as terminal, and only failures as failed."""

    terminal_statuses = {status for status in JobStatus if status.status_is_terminal()}
    failed_statuses = {status for status in JobStatus if status.status_has_failed()}

    assert terminal_statuses == {JobStatus.SUCCESS, JobStatus.FAIL, JobStatus.COMPILE_FAILED}
    assert failed_statuses == {JobStatus.FAIL, JobStatus.COMPILE_FAILED}
    assert not JobStatus.UNKNOWN.status_is_terminal()


def test_domain_progress_percentage_follows_lifecycle_stage() -> None:
    """Map lifecycle stages to display percentages."""

    assert domain_job_status_progress_percentage(JobStatus.SUBMITTED) == 10
    assert domain_job_status_progress_percentage(JobStatus.PROCESSING) == 40
    assert domain_job_status_progress_percentage(JobStatus.COMPILED) == 85
    assert domain_job_status_progress_percentage(JobStatus.FAIL) == 100
    assert domain_job_status_progress_percentage(JobStatus.UNKNOWN) == 0


def test_domain_record_elapsed_seconds_uses_update_time_for_completed_jobs() -> None:
    """Use `updated - created` for completed jobs and `now - created` otherwise.

    Returns:
        None: Assertions validate elapsed computation.

    Raises:
        AssertionError: Raised when elapsed time is computed from the wrong end.
    """

    completed = JobRecord(job_id="job-1", status=JobStatus.SUCCESS, created_timestamp=100.5, updated_timestamp=190.9)
    in_progress = JobRecord(job_id="job-2", status=JobStatus.PROCESSING, created_timestamp=100.0, updated_timestamp=110.0)
    missing = JobRecord(job_id="job-3", status=JobStatus.SUBMITTED)

    assert completed.record_elapsed_seconds(now_timestamp=10_000.0) == 90
    assert in_progress.record_elapsed_seconds(now_timestamp=145.0) == 45
    assert in_progress.record_elapsed_seconds(now_timestamp=50.0) == 0
    assert missing.record_elapsed_seconds() is None


def test_domain_format_helpers() -> None:
    """Format epoch timestamps and durations for display."""

    assert domain_format_epoch_timestamp(0.9) == "1970-01-01 00:00:00 UTC"
    assert domain_format_duration(45) == "45s"
    assert domain_format_duration(90) == "1m 30s"
    assert domain_format_duration(3660) == "1h 1m"
