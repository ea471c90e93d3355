"""Tests for single-job verification workflow ledger write-through."""

from __future__ import annotations

from datetime import datetime, timezone

import pytest

from verifier.adapters import (
    CompilationFailureError,
    JobNotFoundError,
    ProjectMetadata,
    SubmissionRequest,
)
from verifier.db import LedgerEntry, LedgerError
from verifier.domain import JobDone, JobFailed, JobObservation, JobPending, JobRecord, JobStatus
from verifier.jobs import JobPollingEngine, VerificationWorkflow

_NOW = datetime(2026, 10, 17, 12, 0, tzinfo=timezone.utc)


class _ClientStub:
    """Client double with scripted observations per job id."""

    def __init__(self, observations: dict[str, list[JobObservation]] | None = None):
        self._observations = observations or {}

    def adapter_submit(self, request: SubmissionRequest) -> str:
        """Return a deterministic job id.

        Args:
            request: Submission request.

        Returns:
            str: Job id derived from the contract name.

        Raises:
            RuntimeError: This stub does not raise runtime errors.
        """

        return f"job-{request.contract_name.lower()}"

    def adapter_observe_job(self, job_id: str) -> JobObservation:
        """Return the next scripted observation.

        Raises:
            JobNotFoundError: Raised when no observation is scripted.
        """

        scripted = self._observations.get(job_id)
        if not scripted:
            raise JobNotFoundError(job_id)
        return scripted.pop(0)


class _LedgerStub:
    """In-memory ledger double recording inserts and status updates."""

    def __init__(self, entries: list[LedgerEntry] | None = None, fail_writes: bool = False):
        self.entries = {entry.job_id: entry for entry in entries or []}
        self.status_updates: list[tuple[str, JobStatus, datetime | None]] = []
        self._fail_writes = fail_writes

    def db_ledger_insert(self, entry: LedgerEntry) -> None:
        """Store one entry.

        Raises:
            LedgerError: Raised when writes are scripted to fail.
        """

        if self._fail_writes:
            raise LedgerError("database is locked")
        self.entries[entry.job_id] = entry

    def db_ledger_update_status(self, job_id: str, status: JobStatus, completed_at: datetime | None = None) -> bool:
        """Record one status update.

        Returns:
            bool: Always True for recorded updates.

        Raises:
            LedgerError: Raised when writes are scripted to fail.
        """

        if self._fail_writes:
            raise LedgerError("database is locked")
        self.status_updates.append((job_id, status, completed_at))
        return True

    def db_ledger_get_by_job_id(self, job_id: str) -> LedgerEntry | None:
        return self.entries.get(job_id)

    def db_ledger_list_pending(self) -> list[LedgerEntry]:
        return [entry for entry in self.entries.values() if entry.entry_is_pending()]

    def db_ledger_average_completion_seconds(self, samples: int = 10, min_samples: int = 3) -> float | None:
        """Raise when reads are scripted to fail, else return a fixed average.

        Raises:
            LedgerError: Raised when writes are scripted to fail.
        """

        _ = (samples, min_samples)
        if self._fail_writes:
            raise LedgerError("database is locked")
        return 42.0


def _build_request() -> SubmissionRequest:
    """Create a valid submission request for workflow tests."""

    return SubmissionRequest(
        class_hash="0xABC",
        contract_name="Counter",
        metadata=ProjectMetadata(
            compiler_version="2.8.2",
            scarb_version="2.8.3",
            package_name="counter",
            contract_file="src/lib.cairo",
            build_tool="sozo",
            dojo_version="1.0.0",
        ),
        files={"Scarb.toml": "[package]", "src/lib.cairo": "mod counter;"},
    )


def _build_workflow(client: _ClientStub, ledger: _LedgerStub | None) -> VerificationWorkflow:
    engine = JobPollingEngine(client=client, sleep_function=lambda _seconds: None)
    return VerificationWorkflow(
        client=client,
        polling_engine=engine,
        network="sepolia",
        ledger=ledger,
        now_provider=lambda: _NOW,
    )


def _pending_entry(job_id: str, status: JobStatus = JobStatus.SUBMITTED) -> LedgerEntry:
    return LedgerEntry(
        job_id=job_id,
        class_hash="0xabc",
        contract_name="Counter",
        network="sepolia",
        status=status.value,
        submitted_at=_NOW,
    )


def test_jobs_workflow_submit_inserts_submitted_ledger_entry() -> None:
    """Insert a Submitted entry carrying request metadata after submission.

    Returns:
        None: Assertions validate ledger insert payload.

    Raises:
        AssertionError: Raised when ledger payload is incorrect.
    """

    ledger = _LedgerStub()

    job_id = _build_workflow(_ClientStub(), ledger).job_submit(_build_request())

    entry = ledger.entries[job_id]
    assert job_id == "job-counter"
    assert entry.status == "Submitted"
    assert entry.class_hash == "0xabc"
    assert entry.network == "sepolia"
    assert entry.submitted_at == _NOW
    assert entry.package_name == "counter"
    assert entry.scarb_version == "2.8.3"
    assert entry.cairo_version == "2.8.2"
    assert entry.dojo_version == "1.0.0"
    assert entry.completed_at is None


def test_jobs_workflow_ledger_failures_never_fail_verification() -> None:
    """Log ledger write failures and keep the verification result."""

    client = _ClientStub({"job-counter": [JobDone(record=JobRecord(job_id="job-counter", status=JobStatus.SUCCESS))]})
    workflow = _build_workflow(client, _LedgerStub(fail_writes=True))

    job_id = workflow.job_submit(_build_request())
    outcome = workflow.job_wait(job_id)

    assert outcome.outcome_is_done()
    assert workflow.job_average_completion_seconds() is None


def test_jobs_workflow_wait_writes_every_observation_through() -> None:
    """Write each observed status and set completion time for terminal records.

    Returns:
        None: Assertions validate write-through order and observer forwarding.

    Raises:
        AssertionError: Raised when ledger writes are missing or out of order.
    """

    client = _ClientStub(
        {
            "job-1": [
                JobPending(record=JobRecord(job_id="job-1", status=JobStatus.PROCESSING)),
                JobDone(record=JobRecord(job_id="job-1", status=JobStatus.SUCCESS)),
            ]
        }
    )
    ledger = _LedgerStub([_pending_entry("job-1")])
    forwarded_statuses: list[JobStatus] = []

    outcome = _build_workflow(client, ledger).job_wait(
        "job-1",
        observer=lambda record: forwarded_statuses.append(record.status),
    )

    assert outcome.outcome_is_done()
    assert ledger.status_updates == [
        ("job-1", JobStatus.PROCESSING, None),
        ("job-1", JobStatus.SUCCESS, _NOW),
    ]
    assert forwarded_statuses == [JobStatus.PROCESSING, JobStatus.SUCCESS]


def test_jobs_workflow_wait_records_failure_before_raising() -> None:
    """Record terminal failures in the ledger before the error propagates."""

    failed_record = JobRecord(job_id="job-1", status=JobStatus.COMPILE_FAILED, message="syntax error")
    client = _ClientStub(
        {
            "job-1": [
                JobFailed(
                    record=failed_record,
                    error=CompilationFailureError(message="syntax error", job_id="job-1", record=failed_record),
                )
            ]
        }
    )
    ledger = _LedgerStub([_pending_entry("job-1")])

    with pytest.raises(CompilationFailureError, match="syntax error"):
        _build_workflow(client, ledger).job_wait("job-1")

    assert ledger.status_updates == [("job-1", JobStatus.COMPILE_FAILED, _NOW)]


def test_jobs_workflow_skips_ledger_write_for_unknown_status() -> None:
    """Leave the ledger untouched for unrecognized service statuses."""

    client = _ClientStub({"job-1": [JobPending(record=JobRecord(job_id="job-1", status=JobStatus.UNKNOWN))]})
    ledger = _LedgerStub([_pending_entry("job-1")])

    observation = _build_workflow(client, ledger).job_observe("job-1")

    assert isinstance(observation, JobPending)
    assert ledger.status_updates == []


def test_jobs_workflow_recheck_observes_each_pending_entry_once() -> None:
    """Re-observe pending entries and report status changes and errors.

    Returns:
        None: Assertions validate recheck results.

    Raises:
        AssertionError: Raised when recheck results are incorrect.
    """

    client = _ClientStub({"job-1": [JobDone(record=JobRecord(job_id="job-1", status=JobStatus.SUCCESS))]})
    ledger = _LedgerStub(
        [
            _pending_entry("job-1"),
            _pending_entry("job-2", JobStatus.COMPILED),
            _pending_entry("job-3", JobStatus.SUCCESS),
        ]
    )

    results = _build_workflow(client, ledger).job_recheck_pending()

    assert [result.job_id for result in results] == ["job-1", "job-2"]
    assert results[0].previous_status == "Submitted"
    assert results[0].current_status == JobStatus.SUCCESS
    assert results[0].error is None
    assert results[1].previous_status == "Compiled"
    assert results[1].current_status is None
    assert results[1].error == "Job 'job-2' not found"
    assert ledger.status_updates == [("job-1", JobStatus.SUCCESS, _NOW)]


def test_jobs_workflow_recheck_requires_ledger() -> None:
    """Reject recheck when no ledger is configured."""

    with pytest.raises(ValueError, match="ledger"):
        _build_workflow(_ClientStub(), None).job_recheck_pending()


def test_jobs_workflow_refresh_returns_observation_and_entry() -> None:
    """Return the fresh observation together with the stored entry."""

    client = _ClientStub({"job-1": [JobPending(record=JobRecord(job_id="job-1", status=JobStatus.COMPILED))]})
    ledger = _LedgerStub([_pending_entry("job-1")])
    workflow = _build_workflow(client, ledger)

    observation, entry = workflow.job_refresh("job-1")

    assert observation.record.status == JobStatus.COMPILED
    assert entry is not None and entry.job_id == "job-1"
    assert workflow.job_average_completion_seconds() == 42.0


def test_jobs_workflow_rejects_blank_network() -> None:
    """Reject a blank network label at construction."""

    client = _ClientStub()
    with pytest.raises(ValueError, match="network"):
        VerificationWorkflow(client=client, polling_engine=JobPollingEngine(client=client), network=" ")
