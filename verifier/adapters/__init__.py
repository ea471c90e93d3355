"""Adapter layer package for verification service integration boundaries."""

from .bundle import (
	adapter_build_bundle,
	adapter_discover_project_files,
	adapter_validate_file_size,
	adapter_validate_file_type,
)
from .interfaces import (
	ProjectMetadata,
	SubmissionRequest,
	VerifierClientPort,
	adapter_validate_class_hash,
	adapter_validate_relative_path,
)
from .manifest_filter import adapter_filter_bundle_manifests, adapter_filter_manifest_content
from .verification_service import (
	VerificationServiceClient,
	adapter_classify_job_failure,
	adapter_parse_job_record,
)
from .verifier_errors import (
	CompilationFailureError,
	JobNotFoundError,
	JobStillInProgressError,
	JobVerificationError,
	SubmissionValidationError,
	VerificationFailureError,
	VerifierClientError,
	VerifierConnectionError,
	VerifierPayloadTooLargeError,
	VerifierRequestError,
	VerifierTimeoutError,
)
from .verifier_suggestions import verifier_job_failure_suggestions, verifier_request_failure_suggestions

__all__ = [
	"CompilationFailureError",
	"JobNotFoundError",
	"JobStillInProgressError",
	"JobVerificationError",
	"ProjectMetadata",
	"SubmissionRequest",
	"SubmissionValidationError",
	"VerificationFailureError",
	"VerificationServiceClient",
	"VerifierClientError",
	"VerifierClientPort",
	"VerifierConnectionError",
	"VerifierPayloadTooLargeError",
	"VerifierRequestError",
	"VerifierTimeoutError",
	"adapter_build_bundle",
	"adapter_classify_job_failure",
	"adapter_discover_project_files",
	"adapter_filter_bundle_manifests",
	"adapter_filter_manifest_content",
	"adapter_parse_job_record",
	"adapter_validate_class_hash",
	"adapter_validate_file_size",
	"adapter_validate_file_type",
	"adapter_validate_relative_path",
	"verifier_job_failure_suggestions",
	"verifier_request_failure_suggestions",
]
