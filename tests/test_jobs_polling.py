"""Tests for the bounded poll-until-done engine."""

from __future__ import annotations

import pytest

from verifier.adapters import (
    JobNotFoundError,
    JobStillInProgressError,
    VerificationFailureError,
)
from verifier.domain import JobDone, JobFailed, JobObservation, JobPending, JobRecord, JobStatus
from verifier.jobs import POLL_STATE_DONE, POLL_STATE_EXHAUSTED, JobPollingEngine


class _ScriptedClientStub:
    """Client double returning scripted observations in order."""

    def __init__(self, observations: list[JobObservation], repeat_last: bool = False):
        """Store scripted observations.

        Args:
            observations: Observations returned by consecutive calls.
            repeat_last: Keep returning the last observation once the script ends.
        """

        self._observations = list(observations)
        self._repeat_last = repeat_last
        self.observed_job_ids: list[str] = []

    def adapter_observe_job(self, job_id: str) -> JobObservation:
        """Return the next scripted observation.

        Args:
            job_id: Observed job id.

        Returns:
            JobObservation: Next scripted observation.

        Raises:
            IndexError: Raised when the script is exhausted.
        """

        self.observed_job_ids.append(job_id)
        if self._repeat_last and len(self._observations) == 1:
            return self._observations[0]
        return self._observations.pop(0)


class _MissingJobClientStub:
    """Client double that never knows the job."""

    def adapter_observe_job(self, job_id: str) -> JobObservation:
        """Raise job-not-found for every call.

        Raises:
            JobNotFoundError: Always raised by this test double.
        """

        raise JobNotFoundError(job_id)


def _pending(status: JobStatus = JobStatus.SUBMITTED) -> JobPending:
    return JobPending(record=JobRecord(job_id="job-1", status=status))


def _build_engine(client, sleep_calls: list[float], max_attempts: int = 20) -> JobPollingEngine:
    """Create an engine with recorded sleeps and default backoff."""

    return JobPollingEngine(client=client, max_attempts=max_attempts, sleep_function=sleep_calls.append)


def test_jobs_poll_observer_fires_for_each_record_until_success() -> None:
    """Fire the observer once per observation, ending with the Success record.

    Returns:
        None: Assertions validate observer calls and done outcome.

    Raises:
        AssertionError: Raised when observer or outcome behavior is incorrect.
    """

    success_record = JobRecord(job_id="job-1", status=JobStatus.SUCCESS)
    client = _ScriptedClientStub([_pending(), JobDone(record=success_record)])
    sleep_calls: list[float] = []
    observed_records: list[JobRecord] = []

    outcome = _build_engine(client, sleep_calls).job_poll_until_done("job-1", observer=observed_records.append)

    assert len(observed_records) == 2
    assert observed_records[-1] == success_record
    assert outcome.state == POLL_STATE_DONE
    assert outcome.outcome_is_done()
    assert outcome.outcome_require_record() == success_record
    assert outcome.attempts == 2
    assert sleep_calls == [2.0]
    assert outcome.stage_timeline[0]["status"] == "started"
    assert outcome.stage_timeline[-1]["status"] == "completed"


def test_jobs_poll_raises_terminal_failure_without_retrying() -> None:
    """Raise the classified failure immediately and never fetch again."""

    failed_record = JobRecord(job_id="job-1", status=JobStatus.FAIL, message="hash mismatch")
    failure = VerificationFailureError(message="hash mismatch", job_id="job-1", record=failed_record)
    client = _ScriptedClientStub([_pending(), JobFailed(record=failed_record, error=failure)])
    sleep_calls: list[float] = []
    observed_records: list[JobRecord] = []

    with pytest.raises(VerificationFailureError, match="hash mismatch"):
        _build_engine(client, sleep_calls).job_poll_until_done("job-1", observer=observed_records.append)

    assert len(client.observed_job_ids) == 2
    assert sleep_calls == [2.0]
    assert observed_records[-1] == failed_record


def test_jobs_poll_exhausts_budget_with_non_decreasing_capped_delays() -> None:
    """Stop after 20 fetches with non-decreasing delays capped at 300 seconds.

    Returns:
        None: Assertions validate budget and backoff behavior.

    Raises:
        AssertionError: Raised when the budget or backoff is violated.
    """

    client = _ScriptedClientStub([_pending(JobStatus.PROCESSING)], repeat_last=True)
    sleep_calls: list[float] = []

    outcome = _build_engine(client, sleep_calls).job_poll_until_done("job-1")

    assert outcome.state == POLL_STATE_EXHAUSTED
    assert outcome.attempts == 20
    assert len(client.observed_job_ids) == 20
    assert len(sleep_calls) == 19
    assert sleep_calls[:4] == [2.0, 4.0, 8.0, 16.0]
    assert all(earlier <= later for earlier, later in zip(sleep_calls, sleep_calls[1:]))
    assert max(sleep_calls) == 300.0
    assert outcome.record is not None and outcome.record.status == JobStatus.PROCESSING
    assert outcome.stage_timeline[-1]["status"] == "exhausted"
    with pytest.raises(JobStillInProgressError) as error_info:
        outcome.outcome_require_record()
    assert error_info.value.error_code == "E007"


def test_jobs_poll_observer_failure_does_not_abort_polling() -> None:
    """Log and ignore observer exceptions."""

    client = _ScriptedClientStub([_pending(), JobDone(record=JobRecord(job_id="job-1", status=JobStatus.SUCCESS))])
    observer_calls: list[JobStatus] = []

    def _failing_observer(record: JobRecord) -> None:
        observer_calls.append(record.status)
        raise RuntimeError("display failed")

    outcome = _build_engine(client, []).job_poll_until_done("job-1", observer=_failing_observer)

    assert outcome.outcome_is_done()
    assert observer_calls == [JobStatus.SUBMITTED, JobStatus.SUCCESS]


def test_jobs_poll_propagates_client_errors() -> None:
    """Propagate job-not-found and transport errors unchanged."""

    sleep_calls: list[float] = []

    with pytest.raises(JobNotFoundError):
        _build_engine(_MissingJobClientStub(), sleep_calls).job_poll_until_done("job-1")

    assert sleep_calls == []


def test_jobs_poll_backoff_caps_large_retry_indexes() -> None:
    """Cap backoff for very large retry indexes without overflowing."""

    engine = JobPollingEngine(client=_MissingJobClientStub())

    assert engine.job_calculate_retry_wait_seconds(0) == 2.0
    assert engine.job_calculate_retry_wait_seconds(8) == 300.0
    assert engine.job_calculate_retry_wait_seconds(5000) == 300.0


@pytest.mark.parametrize(
    "engine_kwargs",
    [
        {"initial_delay_seconds": -1},
        {"backoff_factor": 0.5},
        {"max_delay_seconds": 0},
        {"max_attempts": 0},
    ],
)
def test_jobs_poll_engine_rejects_invalid_configuration(engine_kwargs: dict[str, float]) -> None:
    """Reject negative delays, shrinking backoff and empty budgets."""

    with pytest.raises(ValueError):
        JobPollingEngine(client=_MissingJobClientStub(), **engine_kwargs)


def test_jobs_poll_rejects_blank_job_id() -> None:
    """Reject blank job ids before any fetch."""

    with pytest.raises(ValueError, match="job_id"):
        JobPollingEngine(client=_MissingJobClientStub()).job_poll_until_done("  ")
