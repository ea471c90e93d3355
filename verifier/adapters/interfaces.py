"""Typed interfaces for adapter-layer responsibilities."""

from __future__ import annotations

from dataclasses import dataclass, field
import re
from typing import Final, Mapping, Protocol

from verifier.domain import JobObservation, JobRecord

from .verifier_errors import SubmissionValidationError

_CLASS_HASH_PATTERN: Final[re.Pattern[str]] = re.compile(r"^0x[0-9a-fA-F]{1,64}$")
_WINDOWS_DRIVE_PATTERN: Final[re.Pattern[str]] = re.compile(r"^[A-Za-z]:")
MANIFEST_FILE_NAME: Final[str] = "Scarb.toml"
SUPPORTED_BUILD_TOOLS: Final[frozenset[str]] = frozenset({"scarb", "sozo"})


def adapter_validate_class_hash(class_hash: str) -> str:
    """Validate and normalize one class hash value.

    Args:
        class_hash: Candidate class hash (`0x` followed by up to 64 hex digits).

    Returns:
        str: Normalized lower-case class hash.

    Raises:
        SubmissionValidationError: Raised when the value is not a valid class hash.
    """

    normalized_class_hash = class_hash.strip()
    if not _CLASS_HASH_PATTERN.match(normalized_class_hash):
        raise SubmissionValidationError(f"Invalid class hash: '{class_hash}'")
    return normalized_class_hash.lower()


def adapter_validate_relative_path(relative_path: str) -> str:
    """Reject absolute, drive-prefixed and traversal paths.

    Args:
        relative_path: Candidate bundle key.

    Returns:
        str: Path normalized to forward slashes.

    Raises:
        SubmissionValidationError: Raised when the path escapes the project root.
    """

    normalized_path = relative_path.replace("\\", "/")
    if not normalized_path.strip():
        raise SubmissionValidationError("Bundle path must not be blank")
    if normalized_path.startswith("/") or _WINDOWS_DRIVE_PATTERN.match(normalized_path):
        raise SubmissionValidationError(f"Bundle path must be relative: '{relative_path}'")
    if ".." in normalized_path.split("/"):
        raise SubmissionValidationError(f"Bundle path must not contain '..': '{relative_path}'")
    return normalized_path


@dataclass(frozen=True)
class ProjectMetadata:
    """Build metadata describing how the service should compile the bundle.

    Attributes:
        compiler_version: Cairo compiler version.
        scarb_version: Scarb toolchain version.
        package_name: Package containing the contract.
        contract_file: Bundle path of the contract source file.
        project_dir_path: Project directory relative to the bundle root.
        build_tool: Build tool identifier (`scarb` or `sozo`).
        dojo_version: Optional framework version for `sozo` projects.
    """

    compiler_version: str
    scarb_version: str
    package_name: str
    contract_file: str
    project_dir_path: str = "."
    build_tool: str = "scarb"
    dojo_version: str | None = None


@dataclass(frozen=True)
class SubmissionRequest:
    """Validated submission contract for one verification job.

    Attributes:
        class_hash: Declared class hash to verify.
        contract_name: Contract name inside the package.
        metadata: Build metadata.
        files: Mapping of relative bundle path to file content.
        license: Optional license identifier; `NONE` is sent when absent.
    """

    class_hash: str
    contract_name: str
    metadata: ProjectMetadata
    files: Mapping[str, str] = field(default_factory=dict)
    license: str | None = None

    def __post_init__(self) -> None:
        if not self.contract_name.strip():
            raise SubmissionValidationError("contract_name must not be blank")
        if self.metadata.build_tool not in SUPPORTED_BUILD_TOOLS:
            raise SubmissionValidationError(
                f"Unsupported build tool '{self.metadata.build_tool}', expected one of: scarb, sozo"
            )
        object.__setattr__(self, "class_hash", adapter_validate_class_hash(self.class_hash))

        normalized_files: dict[str, str] = {}
        for relative_path, content in self.files.items():
            normalized_files[adapter_validate_relative_path(relative_path)] = content
        object.__setattr__(self, "files", normalized_files)

        if not any(
            path == MANIFEST_FILE_NAME or path.endswith(f"/{MANIFEST_FILE_NAME}") for path in normalized_files
        ):
            raise SubmissionValidationError(f"Bundle must contain a {MANIFEST_FILE_NAME} manifest")
        contract_file = adapter_validate_relative_path(self.metadata.contract_file)
        if contract_file not in normalized_files:
            raise SubmissionValidationError(f"Bundle is missing the contract file '{contract_file}'")

    def request_license_value(self) -> str:
        """Return the license value sent on the wire."""

        if self.license is None or not self.license.strip():
            return "NONE"
        return self.license.strip()


class VerifierClientPort(Protocol):
    """Port definition for the remote compile/verify job service."""

    def adapter_submit(self, request: SubmissionRequest) -> str:
        """Submit one verification job.

        Args:
            request: Validated submission contract.

        Returns:
            str: Service-assigned job id.

        Raises:
            VerifierRequestError: Raised when the service rejects the submission.
            ConnectionError: Raised when the service cannot be reached.
            TimeoutError: Raised when the request times out.
        """

    def adapter_get_job(self, job_id: str) -> JobRecord:
        """Fetch the raw job record regardless of status."""

    def adapter_observe_job(self, job_id: str) -> JobObservation:
        """Fetch one status observation.

        Args:
            job_id: Service job id.

        Returns:
            JobObservation: Pending, done or failed observation.

        Raises:
            JobNotFoundError: Raised when the service does not know the job.
            VerifierRequestError: Raised for non-success or malformed responses.
        """

    def adapter_fetch_status(self, job_id: str) -> JobRecord | None:
        """Fetch one status, returning None while the job is still pending.

        Raises:
            JobVerificationError: Raised when the job reached a terminal failure.
        """
