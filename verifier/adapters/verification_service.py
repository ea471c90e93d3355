"""Verification service HTTP client for job submission and status retrieval."""

from __future__ import annotations

import json
import logging
from typing import Any, Final
from urllib.parse import quote

import httpx

from verifier.domain import (
    JobDone,
    JobFailed,
    JobObservation,
    JobPending,
    JobRecord,
    JobStatus,
    domain_parse_job_status,
)

from .interfaces import SubmissionRequest, VerifierClientPort
from .manifest_filter import adapter_filter_bundle_manifests
from .verifier_errors import (
    CompilationFailureError,
    JobNotFoundError,
    JobVerificationError,
    VerificationFailureError,
    VerifierConnectionError,
    VerifierPayloadTooLargeError,
    VerifierRequestError,
    VerifierTimeoutError,
)

logger = logging.getLogger(__name__)

SUBMIT_PAYLOAD_TOO_LARGE_MESSAGE: Final[str] = "Request payload too large. Maximum allowed size is 10MB."
JOB_PAYLOAD_TOO_LARGE_MESSAGE: Final[str] = (
    "Request payload too large. The project files exceed the maximum allowed size of 10MB. "
    "Try reducing file sizes or removing unnecessary files."
)
COMPILATION_SERVICE_UNAVAILABLE_MESSAGE: Final[str] = (
    "Cairo compilation service is currently unavailable. Please try again later."
)
_COMPILATION_SERVICE_UNREACHABLE_MARKER: Final[str] = "Couldn't connect to cairo compilation service"


class VerificationServiceClient(VerifierClientPort):
    """Client for the `class-verify` submit and job status endpoints."""

    _USER_AGENT: Final[str] = "starknet-class-verifier/1.0 (Python/httpx)"

    def __init__(
        self,
        base_url: str,
        request_timeout_seconds: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ):
        """Initialize verification service client.

        Args:
            base_url: Absolute http(s) API base URL, e.g. `https://api.voyager.online/beta`.
            request_timeout_seconds: HTTP request timeout in seconds.
            transport: Optional httpx transport override, used by tests.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when required config values are invalid.
        """

        normalized_base_url = base_url.strip()
        if not normalized_base_url:
            raise ValueError("base_url must not be blank")
        try:
            parsed_base_url = httpx.URL(normalized_base_url)
        except httpx.InvalidURL as error:
            raise ValueError(f"base_url is not a valid URL: {base_url}") from error
        if parsed_base_url.scheme not in ("http", "https") or not parsed_base_url.host:
            raise ValueError("base_url must be an absolute http(s) URL")
        if request_timeout_seconds <= 0:
            raise ValueError("request_timeout_seconds must be > 0")

        self._base_url = normalized_base_url.rstrip("/")
        self._request_timeout_seconds = request_timeout_seconds
        self._transport = transport
        self._http_client: httpx.Client | None = None

    def adapter_base_url(self) -> str:
        """Return the normalized API base URL."""

        return self._base_url

    def adapter_submit_url(self, class_hash: str) -> str:
        """Return submit endpoint URL for one class hash."""

        return f"{self._base_url}/class-verify/{quote(class_hash, safe='')}"

    def adapter_job_status_url(self, job_id: str) -> str:
        """Return status endpoint URL for one job id."""

        return f"{self._base_url}/class-verify/job/{quote(job_id, safe='')}"

    def adapter_submit(self, request: SubmissionRequest) -> str:
        """Submit one verification job.

        Args:
            request: Validated submission contract.

        Returns:
            str: Service-assigned job id.

        Raises:
            VerifierPayloadTooLargeError: Raised for HTTP 413.
            VerifierRequestError: Raised for other non-success responses or malformed bodies.
            VerifierConnectionError: Raised for transport failures.
            VerifierTimeoutError: Raised when the request times out.
        """

        request_url = self.adapter_submit_url(request.class_hash)
        request_body = self._adapter_build_submit_body(request)
        logger.debug(
            "Submitting verification job url=%s build_tool=%s files=%d",
            request_url,
            request.metadata.build_tool,
            len(request.files),
        )
        response = self._adapter_send("POST", request_url, json_body=request_body)

        if response.status_code == 400:
            raise VerifierRequestError(
                self._adapter_extract_error_text(response),
                url=request_url,
                status_code=400,
            )
        if response.status_code == 413:
            raise VerifierPayloadTooLargeError(
                SUBMIT_PAYLOAD_TOO_LARGE_MESSAGE,
                url=request_url,
                status_code=413,
            )
        if response.status_code != 200:
            raise VerifierRequestError(response.text, url=request_url, status_code=response.status_code)

        payload = self._adapter_parse_json(response, request_url)
        job_id = payload.get("job_id") if isinstance(payload, dict) else None
        if not isinstance(job_id, str) or not job_id.strip():
            raise VerifierRequestError(
                "Failed to parse JSON response: missing job_id",
                url=request_url,
                status_code=response.status_code,
            )
        logger.info("Verification job submitted class_hash=%s job_id=%s", request.class_hash, job_id)
        return job_id

    def adapter_get_job(self, job_id: str) -> JobRecord:
        """Fetch the raw job record regardless of status.

        Args:
            job_id: Service job id.

        Returns:
            JobRecord: Parsed job record.

        Raises:
            JobNotFoundError: Raised for HTTP 404.
            VerifierRequestError: Raised for other non-success responses or malformed bodies.
            VerifierConnectionError: Raised for transport failures.
            VerifierTimeoutError: Raised when the request times out.
        """

        normalized_job_id = job_id.strip()
        if not normalized_job_id:
            raise ValueError("job_id must not be blank")

        request_url = self.adapter_job_status_url(normalized_job_id)
        response = self._adapter_send("GET", request_url)
        if response.status_code == 404:
            raise JobNotFoundError(normalized_job_id)
        if response.status_code != 200:
            raise VerifierRequestError(response.text, url=request_url, status_code=response.status_code)

        logger.debug("Raw job status response job_id=%s body=%s", normalized_job_id, response.text)
        payload = self._adapter_parse_json(response, request_url)
        if not isinstance(payload, dict):
            raise VerifierRequestError(
                "Failed to parse JSON response: expected a JSON object",
                url=request_url,
                status_code=response.status_code,
            )
        return adapter_parse_job_record(payload, fallback_job_id=normalized_job_id)

    def adapter_observe_job(self, job_id: str) -> JobObservation:
        """Fetch one status observation.

        Args:
            job_id: Service job id.

        Returns:
            JobObservation: `JobPending`, `JobDone` or `JobFailed` observation.

        Raises:
            JobNotFoundError: Raised for HTTP 404.
            VerifierRequestError: Raised for other non-success responses or malformed bodies.
            VerifierConnectionError: Raised for transport failures.
            VerifierTimeoutError: Raised when the request times out.
        """

        record = self.adapter_get_job(job_id)
        if record.status == JobStatus.SUCCESS:
            return JobDone(record=record)
        if record.record_has_failed():
            return JobFailed(record=record, error=adapter_classify_job_failure(record))
        return JobPending(record=record)

    def adapter_fetch_status(self, job_id: str) -> JobRecord | None:
        """Fetch one status, returning None while the job is not terminal.

        Args:
            job_id: Service job id.

        Returns:
            JobRecord | None: Record for `Success`, None for non-terminal statuses.

        Raises:
            JobVerificationError: Raised for `Fail` and `CompileFailed`.
            JobNotFoundError: Raised for HTTP 404.
            VerifierRequestError: Raised for other non-success responses or malformed bodies.
        """

        observation = self.adapter_observe_job(job_id)
        if isinstance(observation, JobFailed):
            raise observation.error
        if isinstance(observation, JobDone):
            return observation.record
        return None

    def adapter_close(self) -> None:
        """Close the pooled HTTP client when one was created."""

        if self._http_client is not None:
            self._http_client.close()
            self._http_client = None

    def _adapter_build_submit_body(self, request: SubmissionRequest) -> dict[str, Any]:
        """Build JSON request body for one submission.

        Args:
            request: Validated submission contract.

        Returns:
            dict[str, Any]: JSON-serializable body with filtered manifests.

        Raises:
            RuntimeError: This helper does not raise runtime errors.
        """

        metadata = request.metadata
        request_body: dict[str, Any] = {
            "compiler_version": metadata.compiler_version,
            "scarb_version": metadata.scarb_version,
            "package_name": metadata.package_name,
            "name": request.contract_name,
            "contract_file": metadata.contract_file,
            "contract-name": metadata.contract_file,
            "project_dir_path": metadata.project_dir_path,
            "build_tool": metadata.build_tool,
            "license": request.request_license_value(),
            "files": adapter_filter_bundle_manifests(request.files),
        }
        if metadata.dojo_version is not None:
            request_body["dojo_version"] = metadata.dojo_version
        return request_body

    def _adapter_send(
        self,
        method: str,
        url: str,
        json_body: dict[str, Any] | None = None,
    ) -> httpx.Response:
        """Execute one HTTP request through the pooled client.

        Args:
            method: HTTP method.
            url: Endpoint URL.
            json_body: Optional JSON body.

        Returns:
            httpx.Response: Raw response; status handling is left to callers.

        Raises:
            VerifierTimeoutError: Raised when the request times out.
            VerifierConnectionError: Raised for other transport failures.
        """

        try:
            return self._adapter_get_http_client().request(method, url, json=json_body)
        except httpx.TimeoutException as error:
            raise VerifierTimeoutError(f"Verification service request timed out: {url}") from error
        except httpx.TransportError as error:
            raise VerifierConnectionError(f"Verification service request failed: {url}: {error}") from error

    def _adapter_get_http_client(self) -> httpx.Client:
        """Return lazily initialized pooled HTTP client for connection reuse."""

        if self._http_client is None:
            self._http_client = httpx.Client(
                timeout=self._request_timeout_seconds,
                headers={"User-Agent": self._USER_AGENT},
                transport=self._transport,
            )
        return self._http_client

    def _adapter_parse_json(self, response: httpx.Response, request_url: str) -> Any:
        """Parse response body as JSON and raise deterministic parsing errors.

        Raises:
            VerifierRequestError: Raised when the body is not valid JSON.
        """

        try:
            return json.loads(response.text)
        except json.JSONDecodeError as error:
            logger.error("Failed to parse JSON response url=%s body=%s", request_url, response.text)
            raise VerifierRequestError(
                f"Failed to parse JSON response: {error}",
                url=request_url,
                status_code=response.status_code,
            ) from error

    def _adapter_extract_error_text(self, response: httpx.Response) -> str:
        """Return the service `error` field, falling back to the raw body."""

        try:
            payload = json.loads(response.text)
        except json.JSONDecodeError:
            return response.text
        if isinstance(payload, dict) and isinstance(payload.get("error"), str):
            return payload["error"]
        return response.text


def adapter_parse_job_record(payload: dict[str, Any], fallback_job_id: str = "") -> JobRecord:
    """Parse one job status JSON object into `JobRecord`.

    Args:
        payload: Decoded JSON object.
        fallback_job_id: Job id used when the payload omits it.

    Returns:
        JobRecord: Immutable record; unknown status values map to `Unknown`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return JobRecord(
        job_id=_adapter_optional_text(payload.get("job_id")) or fallback_job_id,
        status=domain_parse_job_status(payload.get("status")),
        status_description=_adapter_optional_text(payload.get("status_description")),
        message=_adapter_optional_text(payload.get("message")),
        error_category=_adapter_optional_text(payload.get("error_category")),
        created_timestamp=_adapter_optional_timestamp(payload.get("created_timestamp")),
        updated_timestamp=_adapter_optional_timestamp(payload.get("updated_timestamp")),
        class_hash=_adapter_optional_text(payload.get("class_hash")),
        contract_name=_adapter_optional_text(payload.get("name", payload.get("contract_name"))),
        contract_file=_adapter_optional_text(payload.get("contract_file")),
        license=_adapter_optional_text(payload.get("license")),
        compiler_version=_adapter_optional_text(payload.get("compiler_version")),
        dojo_version=_adapter_optional_text(payload.get("dojo_version")),
        build_tool=_adapter_optional_text(payload.get("build_tool")),
        address=_adapter_optional_text(payload.get("address")),
    )


def adapter_classify_job_failure(record: JobRecord) -> JobVerificationError:
    """Build the classified error for one terminal failure record.

    Args:
        record: Record with status `Fail` or `CompileFailed`.

    Returns:
        JobVerificationError: `VerificationFailureError` or `CompilationFailureError`
            carrying the enriched message and a failure category.

    Raises:
        ValueError: Raised when the record is not a terminal failure.
    """

    if not record.record_has_failed():
        raise ValueError(f"record status {record.status.value} is not a terminal failure")

    raw_message = record.message or record.status_description or "unknown failure"
    if "payload too large" in raw_message.lower():
        message = JOB_PAYLOAD_TOO_LARGE_MESSAGE
        category = "payload_too_large"
    elif record.status == JobStatus.COMPILE_FAILED and _COMPILATION_SERVICE_UNREACHABLE_MARKER in raw_message:
        message = COMPILATION_SERVICE_UNAVAILABLE_MESSAGE
        category = "service_unavailable"
    else:
        message = raw_message
        category = "compilation" if record.status == JobStatus.COMPILE_FAILED else "verification"

    if record.status == JobStatus.COMPILE_FAILED:
        return CompilationFailureError(message=message, job_id=record.job_id, record=record, category=category)
    return VerificationFailureError(message=message, job_id=record.job_id, record=record, category=category)


def _adapter_optional_text(value: object) -> str | None:
    if value is None:
        return None
    text_value = str(value).strip()
    return text_value or None


def _adapter_optional_timestamp(value: object) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None
