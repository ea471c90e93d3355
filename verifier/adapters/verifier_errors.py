"""Project-native typed exceptions for verification service failures."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from verifier.domain import JobRecord


class VerifierClientError(Exception):
    """Base exception for verification client failures.

    Attributes:
        error_code: Stable project error code (`E0xx`).
    """

    def __init__(self, message: str, error_code: str | None = None):
        super().__init__(message)
        self.error_code = error_code


class VerifierConnectionError(VerifierClientError, ConnectionError):
    """Transport-level connectivity failure during service communication."""

    def __init__(self, message: str, error_code: str | None = "E008"):
        super().__init__(message=message, error_code=error_code)


class VerifierTimeoutError(VerifierClientError, TimeoutError):
    """Transport timeout while waiting for a service response."""

    def __init__(self, message: str, error_code: str | None = "E009"):
        super().__init__(message=message, error_code=error_code)


class VerifierRequestError(VerifierClientError, ValueError):
    """Non-success HTTP response or malformed response body.

    Attributes:
        url: Request URL when known.
        status_code: HTTP status code when known.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        error_code: str | None = "E002",
    ):
        super().__init__(message=message, error_code=error_code)
        self.url = url
        self.status_code = status_code


class VerifierPayloadTooLargeError(VerifierRequestError):
    """Submission rejected with HTTP 413."""


class JobNotFoundError(VerifierClientError, LookupError):
    """Status endpoint returned HTTP 404 for the job id."""

    def __init__(self, job_id: str, error_code: str | None = "E004"):
        super().__init__(message=f"Job '{job_id}' not found", error_code=error_code)
        self.job_id = job_id


class JobVerificationError(VerifierClientError, RuntimeError):
    """Service-reported terminal job failure.

    Attributes:
        job_id: Failed job id.
        record: Terminal job record when available.
        category: Failure category (`compilation`, `verification`,
            `payload_too_large`, `service_unavailable`).
    """

    def __init__(
        self,
        message: str,
        job_id: str,
        record: JobRecord | None = None,
        category: str = "verification",
        error_code: str | None = "E005",
    ):
        super().__init__(message=message, error_code=error_code)
        self.job_id = job_id
        self.record = record
        self.category = category


class VerificationFailureError(JobVerificationError):
    """Terminal `Fail` status reported by the service."""


class CompilationFailureError(JobVerificationError):
    """Terminal `CompileFailed` status reported by the service."""

    def __init__(
        self,
        message: str,
        job_id: str,
        record: JobRecord | None = None,
        category: str = "compilation",
        error_code: str | None = "E006",
    ):
        super().__init__(
            message=message,
            job_id=job_id,
            record=record,
            category=category,
            error_code=error_code,
        )


class JobStillInProgressError(VerifierClientError, TimeoutError):
    """Polling budget exhausted before the job reached a terminal status."""

    def __init__(self, job_id: str, attempts: int, error_code: str | None = "E007"):
        super().__init__(
            message=f"Job '{job_id}' is still in progress after {attempts} status checks",
            error_code=error_code,
        )
        self.job_id = job_id
        self.attempts = attempts


class SubmissionValidationError(VerifierClientError, ValueError):
    """Submission bundle violated a local contract before any network call."""

    def __init__(self, message: str, error_code: str | None = "E029"):
        super().__init__(message=message, error_code=error_code)
