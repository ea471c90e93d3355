"""Tests for status report payloads and remaining-time estimates."""

from __future__ import annotations

from verifier.domain import JobRecord, JobStatus
from verifier.jobs import job_build_status_report, job_estimate_remaining_seconds, job_format_status_line


def test_jobs_estimate_uses_fixed_stage_totals_without_history() -> None:
    """Use 40/35/5 second stage estimates when no history average exists.

    Returns:
        None: Assertions validate fallback estimates.

    Raises:
        AssertionError: Raised when fallback estimates are incorrect.
    """

    assert job_estimate_remaining_seconds(JobStatus.SUBMITTED, elapsed_seconds=10) == 30
    assert job_estimate_remaining_seconds(JobStatus.PROCESSING, elapsed_seconds=5) == 30
    assert job_estimate_remaining_seconds(JobStatus.COMPILED, elapsed_seconds=60) == 0
    assert job_estimate_remaining_seconds(JobStatus.SUCCESS, elapsed_seconds=10) is None


def test_jobs_estimate_scales_history_average_by_stage() -> None:
    """Scale the history average by the share of work left in each stage."""

    assert job_estimate_remaining_seconds(JobStatus.SUBMITTED, 0, average_total_seconds=100.0) == 100
    assert job_estimate_remaining_seconds(JobStatus.PROCESSING, 5, average_total_seconds=100.0) == 80
    assert job_estimate_remaining_seconds(JobStatus.COMPILED, 0, average_total_seconds=100.0) == 10


def test_jobs_status_report_contains_progress_and_timing_fields() -> None:
    """Build a JSON-friendly report for an in-progress job."""

    record = JobRecord(
        job_id="job-1",
        status=JobStatus.PROCESSING,
        created_timestamp=1_700_000_000.0,
        class_hash="0xabc",
        contract_name="Counter",
    )

    report = job_build_status_report(record, now_timestamp=1_700_000_010.0)

    assert report["job_id"] == "job-1"
    assert report["status"] == "Processing"
    assert report["is_completed"] is False
    assert report["has_failed"] is False
    assert report["progress_percentage"] == 40
    assert report["elapsed_seconds"] == 10
    assert report["estimated_remaining_seconds"] == 25
    assert report["created_at"] == "2023-11-14 22:13:20 UTC"
    assert report["updated_at"] is None


def test_jobs_status_line_includes_status_and_progress() -> None:
    """Render a compact line without timing when timestamps are missing."""

    record = JobRecord(job_id="job-1", status=JobStatus.COMPILED)

    assert job_format_status_line(record) == "Job job-1: Compiled (85%)"
