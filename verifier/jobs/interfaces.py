"""Typed interfaces for job-layer orchestration responsibilities."""

from dataclasses import dataclass
from typing import Protocol

from verifier.adapters import SubmissionRequest
from verifier.domain import JobObservation, JobStatus


@dataclass(frozen=True)
class RecheckResult:
    """Result of re-observing one pending ledger entry.

    Attributes:
        job_id: Service job id.
        previous_status: Status stored before the recheck.
        current_status: Newly observed status, None when the observation failed.
        error: Error text when the observation failed.
    """

    job_id: str
    previous_status: str
    current_status: JobStatus | None
    error: str | None = None


class VerificationSubmitterPort(Protocol):
    """Port definition for the single-item submission and observation path."""

    def job_submit(self, request: SubmissionRequest) -> str:
        """Submit one job and record it.

        Args:
            request: Validated submission contract.

        Returns:
            str: Service-assigned job id.

        Raises:
            VerifierClientError: Raised when submission fails.
        """

    def job_observe(self, job_id: str) -> JobObservation:
        """Fetch one status observation without retrying.

        Args:
            job_id: Service job id.

        Returns:
            JobObservation: Pending, done or failed observation.

        Raises:
            VerifierClientError: Raised when the status fetch fails.
        """
