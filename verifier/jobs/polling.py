"""Bounded poll-until-done engine for verification jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import time
from typing import Any, Callable, Final

from verifier.adapters import JobStillInProgressError, VerifierClientPort
from verifier.domain import JobDone, JobFailed, JobRecord, domain_build_stage_event

logger = logging.getLogger(__name__)

JobObserver = Callable[[JobRecord], None]

POLL_STATE_DONE: Final[str] = "done"
POLL_STATE_EXHAUSTED: Final[str] = "exhausted"


@dataclass(frozen=True)
class _PollRetryStrategy:
    """Immutable backoff strategy config and calculation helpers.

    Attributes:
        initial_delay_seconds: Delay before the second status fetch.
        backoff_factor: Multiplicative growth between consecutive delays.
        max_delay_seconds: Cap applied to each individual delay.
        max_attempts: Total status fetch budget.
    """

    initial_delay_seconds: float
    backoff_factor: float
    max_delay_seconds: float
    max_attempts: int

    def strategy_calculate_retry_wait_seconds(self, retry_index: int) -> float:
        """Calculate capped exponential wait for one retry.

        Args:
            retry_index: Zero-based retry index.

        Returns:
            float: Wait seconds, non-decreasing in `retry_index`.

        Raises:
            ValueError: Raised when retry index is negative.
        """

        if retry_index < 0:
            raise ValueError("retry_index must be >= 0")

        try:
            backoff_seconds = self.initial_delay_seconds * (self.backoff_factor**retry_index)
        except OverflowError:
            backoff_seconds = self.max_delay_seconds
        return float(min(backoff_seconds, self.max_delay_seconds))


@dataclass(frozen=True)
class PollOutcome:
    """Non-failure result of one poll-until-done call.

    Attributes:
        job_id: Polled job id.
        state: `done` when the job succeeded, `exhausted` when the budget ran out.
        record: Final record for `done`, last observed record for `exhausted`.
        attempts: Number of status fetches performed.
        stage_timeline: Structured poll stage events.
    """

    job_id: str
    state: str
    record: JobRecord | None
    attempts: int
    stage_timeline: list[dict[str, Any]] = field(default_factory=list)

    def outcome_is_done(self) -> bool:
        """Return whether the job reached `Success`."""

        return self.state == POLL_STATE_DONE

    def outcome_require_record(self) -> JobRecord:
        """Return the successful record or raise when the budget was exhausted.

        Returns:
            JobRecord: Successful job record.

        Raises:
            JobStillInProgressError: Raised when the outcome is `exhausted`.
        """

        if self.state != POLL_STATE_DONE or self.record is None:
            raise JobStillInProgressError(job_id=self.job_id, attempts=self.attempts)
        return self.record


class JobPollingEngine:
    """Repeated status queries with capped exponential backoff.

    Terminal failures are raised immediately and never retried. Transport
    errors propagate to the caller unchanged.
    """

    def __init__(
        self,
        client: VerifierClientPort,
        initial_delay_seconds: float = 2.0,
        backoff_factor: float = 2.0,
        max_delay_seconds: float = 300.0,
        max_attempts: int = 20,
        sleep_function: Callable[[float], None] | None = None,
    ):
        """Initialize polling engine.

        Args:
            client: Verification service client.
            initial_delay_seconds: First backoff delay.
            backoff_factor: Multiplicative backoff growth, at least 1.
            max_delay_seconds: Cap for each individual delay.
            max_attempts: Total status fetch budget.
            sleep_function: Optional sleep override; defaults to `time.sleep`.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if client is None:
            raise ValueError("client must not be None")
        if initial_delay_seconds < 0:
            raise ValueError("initial_delay_seconds must be >= 0")
        if backoff_factor < 1:
            raise ValueError("backoff_factor must be >= 1")
        if max_delay_seconds <= 0:
            raise ValueError("max_delay_seconds must be > 0")
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")

        self._client = client
        self._retry_strategy = _PollRetryStrategy(
            initial_delay_seconds=initial_delay_seconds,
            backoff_factor=backoff_factor,
            max_delay_seconds=max_delay_seconds,
            max_attempts=max_attempts,
        )
        self._sleep_function = sleep_function

    def job_calculate_retry_wait_seconds(self, retry_index: int) -> float:
        """Return the wait before retry `retry_index + 1`."""

        return self._retry_strategy.strategy_calculate_retry_wait_seconds(retry_index=retry_index)

    def job_poll_until_done(self, job_id: str, observer: JobObserver | None = None) -> PollOutcome:
        """Poll one job until it reaches a terminal status or the budget runs out.

        Args:
            job_id: Service job id.
            observer: Optional callback receiving every observed record.

        Returns:
            PollOutcome: `done` with the successful record, or `exhausted`.

        Raises:
            JobVerificationError: Raised immediately for `Fail` and `CompileFailed`.
            JobNotFoundError: Raised when the service does not know the job.
            VerifierClientError: Raised for transport and response failures.
        """

        normalized_job_id = job_id.strip()
        if not normalized_job_id:
            raise ValueError("job_id must not be blank")

        stage_timeline: list[dict[str, Any]] = []
        stage_timeline.append(domain_build_stage_event(stage="poll", status="started", details={"job_id": normalized_job_id}))
        last_record: JobRecord | None = None
        max_attempts = self._retry_strategy.max_attempts

        for retry_index in range(max_attempts):
            observation = self._client.adapter_observe_job(normalized_job_id)
            last_record = observation.record
            self._job_notify_observer(observer=observer, record=observation.record)

            if isinstance(observation, JobDone):
                stage_timeline.append(
                    domain_build_stage_event(stage="poll", status="completed", details={"attempts": retry_index + 1})
                )
                return PollOutcome(
                    job_id=normalized_job_id,
                    state=POLL_STATE_DONE,
                    record=observation.record,
                    attempts=retry_index + 1,
                    stage_timeline=stage_timeline,
                )

            if isinstance(observation, JobFailed):
                stage_timeline.append(
                    domain_build_stage_event(
                        stage="poll",
                        status="failed",
                        details={"attempts": retry_index + 1, "job_status": observation.record.status.value},
                    )
                )
                raise observation.error

            if retry_index + 1 >= max_attempts:
                break

            wait_seconds = self.job_calculate_retry_wait_seconds(retry_index=retry_index)
            stage_timeline.append(
                domain_build_stage_event(
                    stage="poll",
                    status="retrying",
                    details={
                        "attempt": retry_index + 1,
                        "job_status": observation.record.status.value,
                        "wait_seconds": wait_seconds,
                    },
                )
            )
            logger.info(
                "Job %s didn't finish (status=%s), retrying in %.1fs",
                normalized_job_id,
                observation.record.status.value,
                wait_seconds,
            )
            if wait_seconds > 0:
                (self._sleep_function or time.sleep)(wait_seconds)

        stage_timeline.append(domain_build_stage_event(stage="poll", status="exhausted", details={"attempts": max_attempts}))
        logger.warning("Job %s still in progress after %d status checks", normalized_job_id, max_attempts)
        return PollOutcome(
            job_id=normalized_job_id,
            state=POLL_STATE_EXHAUSTED,
            record=last_record,
            attempts=max_attempts,
            stage_timeline=stage_timeline,
        )

    def _job_notify_observer(self, observer: JobObserver | None, record: JobRecord) -> None:
        """Invoke observer and log, never propagate, observer failures."""

        if observer is None:
            return
        try:
            observer(record)
        except Exception:  # pylint: disable=broad-exception-caught
            logger.warning("Job observer failed for job %s", record.job_id, exc_info=True)
