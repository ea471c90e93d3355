"""Job layer package for verification workflow orchestration boundaries."""

from .batch_orchestrator import (
	BatchContract,
	BatchOptions,
	BatchRequestBuilder,
	BatchStatusCounts,
	BatchSubmissionTemplate,
	BatchVerificationOrchestrator,
	BatchVerificationResult,
	BatchVerificationSummary,
	job_batch_template_request_builder,
)
from .interfaces import RecheckResult, VerificationSubmitterPort
from .polling import POLL_STATE_DONE, POLL_STATE_EXHAUSTED, JobObserver, JobPollingEngine, PollOutcome
from .status_report import job_build_status_report, job_estimate_remaining_seconds, job_format_status_line
from .verification_workflow import VerificationWorkflow

__all__ = [
	"BatchContract",
	"BatchOptions",
	"BatchRequestBuilder",
	"BatchStatusCounts",
	"BatchSubmissionTemplate",
	"BatchVerificationOrchestrator",
	"BatchVerificationResult",
	"BatchVerificationSummary",
	"JobObserver",
	"JobPollingEngine",
	"POLL_STATE_DONE",
	"POLL_STATE_EXHAUSTED",
	"PollOutcome",
	"RecheckResult",
	"VerificationSubmitterPort",
	"VerificationWorkflow",
	"job_batch_template_request_builder",
	"job_build_status_report",
	"job_estimate_remaining_seconds",
	"job_format_status_line",
]
