"""Single-job verification workflow with ledger write-through."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
from typing import Callable

from verifier.adapters import SubmissionRequest, VerifierClientError, VerifierClientPort
from verifier.db import JobLedgerPort, LedgerEntry, LedgerError
from verifier.domain import JobObservation, JobRecord, JobStatus

from .interfaces import RecheckResult, VerificationSubmitterPort
from .polling import JobObserver, JobPollingEngine, PollOutcome

logger = logging.getLogger(__name__)


class VerificationWorkflow(VerificationSubmitterPort):
    """Glue between the service client, the polling engine and the ledger.

    Ledger failures are logged as warnings and never fail a verification.
    """

    def __init__(
        self,
        client: VerifierClientPort,
        polling_engine: JobPollingEngine,
        network: str,
        ledger: JobLedgerPort | None = None,
        now_provider: Callable[[], datetime] | None = None,
    ):
        """Initialize verification workflow dependencies.

        Args:
            client: Verification service client.
            polling_engine: Poll-until-done engine bound to the same client.
            network: Network label recorded with each ledger entry.
            ledger: Optional durable job ledger.
            now_provider: Optional UTC clock override used by tests.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if client is None:
            raise ValueError("client must not be None")
        if polling_engine is None:
            raise ValueError("polling_engine must not be None")
        if not network.strip():
            raise ValueError("network must not be blank")

        self._client = client
        self._polling_engine = polling_engine
        self._network = network.strip()
        self._ledger = ledger
        self._now_provider = now_provider or (lambda: datetime.now(timezone.utc))

    def job_submit(self, request: SubmissionRequest) -> str:
        """Submit one job and insert it into the ledger.

        Args:
            request: Validated submission contract.

        Returns:
            str: Service-assigned job id.

        Raises:
            VerifierClientError: Raised when submission fails.
        """

        job_id = self._client.adapter_submit(request)
        self._job_ledger_record_submission(job_id=job_id, request=request)
        return job_id

    def job_observe(self, job_id: str) -> JobObservation:
        """Fetch one status observation and write it through to the ledger.

        Args:
            job_id: Service job id.

        Returns:
            JobObservation: Pending, done or failed observation.

        Raises:
            VerifierClientError: Raised when the status fetch fails.
        """

        observation = self._client.adapter_observe_job(job_id)
        self._job_ledger_record_status(observation.record)
        return observation

    def job_wait(self, job_id: str, observer: JobObserver | None = None) -> PollOutcome:
        """Poll one job until done, recording every observed status.

        Args:
            job_id: Service job id.
            observer: Optional caller observer invoked after the ledger write.

        Returns:
            PollOutcome: `done` or `exhausted` outcome.

        Raises:
            JobVerificationError: Raised for terminal failures, after the ledger update.
            VerifierClientError: Raised for transport and response failures.
        """

        def _ledger_observer(record: JobRecord) -> None:
            self._job_ledger_record_status(record)
            if observer is not None:
                observer(record)

        return self._polling_engine.job_poll_until_done(job_id=job_id, observer=_ledger_observer)

    def job_recheck_pending(self) -> list[RecheckResult]:
        """Re-observe every pending ledger entry once.

        Returns:
            list[RecheckResult]: One result per pending entry, newest first.

        Raises:
            LedgerError: Raised when pending entries cannot be listed.
            ValueError: Raised when no ledger is configured.
        """

        if self._ledger is None:
            raise ValueError("ledger must be configured for recheck")

        recheck_results: list[RecheckResult] = []
        for entry in self._ledger.db_ledger_list_pending():
            try:
                observation = self.job_observe(entry.job_id)
            except VerifierClientError as error:
                logger.warning("Failed to recheck job %s: %s", entry.job_id, error)
                recheck_results.append(
                    RecheckResult(
                        job_id=entry.job_id,
                        previous_status=entry.status,
                        current_status=None,
                        error=str(error),
                    )
                )
                continue
            recheck_results.append(
                RecheckResult(
                    job_id=entry.job_id,
                    previous_status=entry.status,
                    current_status=observation.record.status,
                )
            )
        return recheck_results

    def job_refresh(self, job_id: str) -> tuple[JobObservation, LedgerEntry | None]:
        """Observe one job once and return the observation with its ledger entry."""

        observation = self.job_observe(job_id)
        ledger_entry = None
        if self._ledger is not None:
            ledger_entry = self._ledger.db_ledger_get_by_job_id(job_id)
        return observation, ledger_entry

    def job_average_completion_seconds(self) -> float | None:
        """Return the ledger completion average, None when unavailable."""

        if self._ledger is None:
            return None
        try:
            return self._ledger.db_ledger_average_completion_seconds()
        except LedgerError as error:
            logger.warning("Failed to read completion history: %s", error)
            return None

    def _job_ledger_record_submission(self, job_id: str, request: SubmissionRequest) -> None:
        """Insert a `Submitted` ledger entry, logging ledger failures."""

        if self._ledger is None:
            return
        entry = LedgerEntry(
            job_id=job_id,
            class_hash=request.class_hash,
            contract_name=request.contract_name,
            network=self._network,
            status=JobStatus.SUBMITTED.value,
            submitted_at=self._now_provider(),
            package_name=request.metadata.package_name,
            scarb_version=request.metadata.scarb_version,
            cairo_version=request.metadata.compiler_version,
            dojo_version=request.metadata.dojo_version,
        )
        try:
            self._ledger.db_ledger_insert(entry)
        except LedgerError as error:
            logger.warning("Failed to record job %s in ledger: %s", job_id, error)

    def _job_ledger_record_status(self, record: JobRecord) -> None:
        """Write one observed status through to the ledger, logging ledger failures."""

        # Unrecognized statuses would hide the entry from pending rechecks.
        if self._ledger is None or record.status == JobStatus.UNKNOWN:
            return
        completed_at = self._now_provider() if record.record_is_completed() else None
        try:
            self._ledger.db_ledger_update_status(job_id=record.job_id, status=record.status, completed_at=completed_at)
        except LedgerError as error:
            logger.warning("Failed to update ledger status for job %s: %s", record.job_id, error)
