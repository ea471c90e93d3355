"""Batch orchestrator for sequential submission and shared-cadence tracking."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
import logging
import sys
import time
from typing import Callable, Mapping, Sequence, TextIO

from verifier.adapters import (
    ProjectMetadata,
    SubmissionRequest,
    VerifierClientError,
    adapter_validate_class_hash,
)
from verifier.domain import (
    FAILED_JOB_STATUSES,
    JobFailed,
    JobStatus,
)

from .interfaces import VerificationSubmitterPort

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchContract:
    """One entry of a batch request.

    Attributes:
        class_hash: Declared class hash.
        contract_name: Contract name inside the package.
        package: Optional package override for this contract.
    """

    class_hash: str
    contract_name: str
    package: str | None = None


@dataclass
class BatchVerificationResult:
    """Mutable outcome of submitting and tracking one contract.

    Attributes:
        contract: Originating contract.
        job_id: Job id when the submission was accepted.
        status: Last-known status.
        error: Error text for submission or tracking failures.
    """

    contract: BatchContract
    job_id: str | None = None
    status: JobStatus | None = None
    error: str | None = None

    def result_is_finished(self) -> bool:
        """Return whether tracking has nothing more to do for this entry."""

        if self.error is not None or self.job_id is None:
            return True
        return self.status is not None and self.status.status_is_terminal()


@dataclass(frozen=True)
class BatchStatusCounts:
    """Succeeded, pending and failed counts for progress and summary output."""

    succeeded: int
    pending: int
    failed: int


@dataclass
class BatchVerificationSummary:
    """Batch totals and ordered per-contract results.

    Attributes:
        total: Number of requested contracts.
        submitted: Number of accepted submissions.
        results: Results in input order.
    """

    total: int
    submitted: int
    results: list[BatchVerificationResult] = field(default_factory=list)

    def summary_counts(self) -> BatchStatusCounts:
        """Count succeeded, pending and failed results.

        Entries with an error count as failed; every other submitted entry
        without a terminal status, including `Unknown`, counts as pending.

        Returns:
            BatchStatusCounts: Aggregated counts.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        succeeded = sum(1 for result in self.results if result.status == JobStatus.SUCCESS)
        failed = sum(
            1 for result in self.results if result.status in FAILED_JOB_STATUSES or result.error is not None
        )
        pending = sum(1 for result in self.results if not result.result_is_finished())
        return BatchStatusCounts(succeeded=succeeded, pending=pending, failed=failed)


@dataclass(frozen=True)
class BatchOptions:
    """Batch-level submission and tracking options.

    Attributes:
        fail_fast: Abort the batch on the first submission error.
        batch_delay_seconds: Delay between consecutive submissions.
        watch_interval_seconds: Delay between tracking sweeps.
        default_package: Package used when a contract has no override.
        license: License applied to every submission.
    """

    fail_fast: bool = False
    batch_delay_seconds: float = 0.0
    watch_interval_seconds: float = 5.0
    default_package: str | None = None
    license: str | None = None


@dataclass(frozen=True)
class BatchSubmissionTemplate:
    """Shared build inputs merged into every per-contract submission.

    Attributes:
        metadata: Base project metadata.
        files: Shared bundle mapping.
        contract_files: Optional contract name to contract file overrides.
    """

    metadata: ProjectMetadata
    files: Mapping[str, str]
    contract_files: Mapping[str, str] = field(default_factory=dict)


BatchRequestBuilder = Callable[[BatchContract, BatchOptions], SubmissionRequest]


def job_batch_template_request_builder(template: BatchSubmissionTemplate) -> BatchRequestBuilder:
    """Return a request builder merging batch defaults with one contract.

    Package resolution order is contract override, batch default package,
    then template metadata.

    Args:
        template: Shared build inputs.

    Returns:
        BatchRequestBuilder: Builder raising `SubmissionValidationError` for invalid contracts.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    def _build_request(contract: BatchContract, options: BatchOptions) -> SubmissionRequest:
        package_name = contract.package or options.default_package or template.metadata.package_name
        contract_file = template.contract_files.get(contract.contract_name, template.metadata.contract_file)
        return SubmissionRequest(
            class_hash=contract.class_hash,
            contract_name=contract.contract_name,
            metadata=replace(template.metadata, package_name=package_name, contract_file=contract_file),
            files=template.files,
            license=options.license,
        )

    return _build_request


class BatchVerificationOrchestrator:
    """Submit contracts in input order, then track them on one shared cadence."""

    def __init__(
        self,
        submitter: VerificationSubmitterPort,
        request_builder: BatchRequestBuilder,
        sleep_function: Callable[[float], None] | None = None,
        progress_stream: TextIO | None = None,
    ):
        """Initialize batch orchestrator dependencies.

        Args:
            submitter: Single-item submission and observation path.
            request_builder: Builds one submission request per contract.
            sleep_function: Optional sleep override; defaults to `time.sleep`.
            progress_stream: Optional progress output stream; defaults to stdout.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies are invalid.
        """

        if submitter is None:
            raise ValueError("submitter must not be None")
        if request_builder is None:
            raise ValueError("request_builder must not be None")

        self._submitter = submitter
        self._request_builder = request_builder
        self._sleep_function = sleep_function
        self._progress_stream = progress_stream

    def job_submit_batch(
        self,
        contracts: Sequence[BatchContract],
        options: BatchOptions,
    ) -> BatchVerificationSummary:
        """Submit every contract in input order.

        Args:
            contracts: Contracts to submit.
            options: Batch-level options.

        Returns:
            BatchVerificationSummary: One result per contract, in input order.

        Raises:
            VerifierClientError: Raised on the first submission error when `fail_fast` is set.
            ValueError: Raised on the first invalid contract when `fail_fast` is set.
        """

        total = len(contracts)
        logger.info("Starting batch verification for %d contracts", total)
        results: list[BatchVerificationResult] = []

        for index, contract in enumerate(contracts):
            logger.info("[%d/%d] Verifying: %s", index + 1, total, contract.contract_name)
            try:
                adapter_validate_class_hash(contract.class_hash)
                request = self._request_builder(contract, options)
                job_id = self._submitter.job_submit(request)
            except (VerifierClientError, ValueError, OSError) as error:
                logger.warning("[%d/%d] %s failed: %s", index + 1, total, contract.contract_name, error)
                if options.fail_fast:
                    raise
                results.append(BatchVerificationResult(contract=contract, error=str(error)))
            else:
                logger.info("[%d/%d] %s submitted - job id %s", index + 1, total, contract.contract_name, job_id)
                results.append(BatchVerificationResult(contract=contract, job_id=job_id, status=JobStatus.SUBMITTED))

            if index < total - 1 and options.batch_delay_seconds > 0:
                logger.info("Waiting %.1f seconds before next submission", options.batch_delay_seconds)
                self._job_sleep(options.batch_delay_seconds)

        submitted = sum(1 for result in results if result.job_id is not None)
        return BatchVerificationSummary(total=total, submitted=submitted, results=results)

    def job_watch_batch(
        self,
        summary: BatchVerificationSummary,
        options: BatchOptions | None = None,
    ) -> BatchVerificationSummary:
        """Track every submitted job until all are terminal or errored.

        Each sweep observes every unfinished entry once. Observation errors are
        recorded on the entry, which then counts as finished.

        Args:
            summary: Summary returned by `job_submit_batch`.
            options: Batch options; `watch_interval_seconds` sets the delay between sweeps.

        Returns:
            BatchVerificationSummary: Updated summary; results keep input order.

        Raises:
            RuntimeError: This workflow does not raise runtime errors.
        """

        if not any(result.job_id is not None for result in summary.results):
            return summary

        watch_interval_seconds = (options or BatchOptions()).watch_interval_seconds

        while True:
            for result in summary.results:
                if result.result_is_finished() or result.job_id is None:
                    continue
                try:
                    observation = self._submitter.job_observe(result.job_id)
                except VerifierClientError as error:
                    logger.warning("Failed to check job %s: %s", result.job_id, error)
                    result.error = str(error)
                    continue

                new_status = observation.record.status
                if result.status != new_status:
                    logger.debug("Job %s status changed to %s", result.job_id, new_status.value)
                result.status = new_status
                if isinstance(observation, JobFailed):
                    result.error = str(observation.error)

            self._job_print_progress(summary)
            if all(result.result_is_finished() for result in summary.results):
                self._job_write_progress("\n")
                return summary
            self._job_sleep(watch_interval_seconds)

    def _job_print_progress(self, summary: BatchVerificationSummary) -> None:
        """Rewrite the inline progress line with current counts."""

        counts = summary.summary_counts()
        self._job_write_progress(
            f"\r\x1b[2K  ✓ {counts.succeeded} Succeeded | ⏳ {counts.pending} Pending | ✗ {counts.failed} Failed"
        )

    def _job_write_progress(self, text_value: str) -> None:
        stream = self._progress_stream or sys.stdout
        stream.write(text_value)
        stream.flush()

    def _job_sleep(self, seconds: float) -> None:
        if seconds > 0:
            (self._sleep_function or time.sleep)(seconds)
