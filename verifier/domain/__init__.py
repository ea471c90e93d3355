"""Domain models used across application layer boundaries."""

from .models import (
	FAILED_JOB_STATUSES,
	JOB_STATUS_WIRE_CODES,
	PENDING_JOB_STATUSES,
	TERMINAL_JOB_STATUSES,
	HealthStatus,
	JobDone,
	JobFailed,
	JobObservation,
	JobPending,
	JobRecord,
	JobStatus,
	domain_job_status_progress_percentage,
	domain_parse_job_status,
)
from .timeline import domain_build_stage_event, domain_format_duration, domain_format_epoch_timestamp

__all__ = [
	"FAILED_JOB_STATUSES",
	"HealthStatus",
	"JOB_STATUS_WIRE_CODES",
	"JobDone",
	"JobFailed",
	"JobObservation",
	"JobPending",
	"JobRecord",
	"JobStatus",
	"PENDING_JOB_STATUSES",
	"TERMINAL_JOB_STATUSES",
	"domain_build_stage_event",
	"domain_format_duration",
	"domain_format_epoch_timestamp",
	"domain_job_status_progress_percentage",
	"domain_parse_job_status",
]
