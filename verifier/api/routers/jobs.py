"""Job ledger API router for list, detail, stats, refresh and cleanup endpoints."""

from __future__ import annotations

from fastapi import APIRouter, Query, status
from fastapi.responses import JSONResponse

from verifier.adapters import JobNotFoundError, VerifierClientError
from verifier.config import VerifierSettings
from verifier.db import JobLedgerPort, LedgerEntry
from verifier.domain import JobFailed, JobStatus, domain_parse_job_status
from verifier.jobs import VerificationWorkflow, job_build_status_report


def api_create_jobs_router(
    settings: VerifierSettings,
    ledger: JobLedgerPort,
    workflow: VerificationWorkflow | None = None,
) -> APIRouter:
    """Create jobs router over the durable ledger.

    Args:
        settings: Runtime settings used for pagination limits.
        ledger: DB-layer job ledger.
        workflow: Optional verification workflow used by the refresh endpoint.

    Returns:
        APIRouter: Router exposing `/jobs` APIs.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    if settings is None:
        raise ValueError("settings must not be None")
    if ledger is None:
        raise ValueError("ledger must not be None")

    router = APIRouter(prefix="/jobs", tags=["jobs"])

    @router.get("")
    def api_jobs_list(
        status_filter: str | None = Query(default=None, alias="status"),
        network: str | None = Query(default=None),
        limit: int = Query(default=settings.api_default_limit, ge=1),
    ) -> JSONResponse:
        """Return ledger entries, newest submission first.

        Args:
            status_filter: Optional status name filter.
            network: Optional network filter.
            limit: Max rows to return, capped by `api_max_limit`.

        Returns:
            JSONResponse: Entries list payload, 400 for unknown status filters.

        Raises:
            LedgerError: Raised when the ledger read fails.
        """

        parsed_status: JobStatus | None = None
        if status_filter is not None:
            parsed_status = domain_parse_job_status(status_filter)
            if parsed_status == JobStatus.UNKNOWN and status_filter.strip().lower() != "unknown":
                payload = {
                    "status": "error",
                    "code": "INVALID_STATUS_FILTER",
                    "message": f"unsupported status={status_filter}",
                }
                return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        normalized_network = network.strip().lower() if network and network.strip() else None
        applied_limit = min(limit, settings.api_max_limit)
        entries = ledger.db_ledger_list(status=parsed_status, network=normalized_network, limit=applied_limit)
        payload = {
            "items": [api_serialize_ledger_entry(entry) for entry in entries],
            "page": {
                "limit": limit,
                "applied_limit": applied_limit,
                "returned": len(entries),
            },
            "filters": {
                "status": parsed_status.value if parsed_status is not None else None,
                "network": normalized_network,
            },
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/stats")
    def api_jobs_stats() -> JSONResponse:
        """Return aggregate ledger counts."""

        stats = ledger.db_ledger_stats()
        payload = {
            "total": stats.total,
            "succeeded": stats.succeeded,
            "failed": stats.failed,
            "pending": stats.pending,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.get("/{job_id}")
    def api_jobs_detail(job_id: str) -> JSONResponse:
        """Return one ledger entry.

        Args:
            job_id: Service job id.

        Returns:
            JSONResponse: Entry payload or 404 when absent.

        Raises:
            LedgerError: Raised when the ledger read fails.
        """

        entry = ledger.db_ledger_get_by_job_id(job_id)
        if entry is None:
            payload = {
                "status": "error",
                "message": "job not found",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)
        return JSONResponse(content=api_serialize_ledger_entry(entry), status_code=status.HTTP_200_OK)

    @router.post("/{job_id}/refresh")
    def api_jobs_refresh(job_id: str) -> JSONResponse:
        """Observe one job once and write the status through to the ledger.

        Args:
            job_id: Service job id.

        Returns:
            JSONResponse: Status report plus ledger entry; 404 for unknown jobs,
                502 for service failures, 503 when no service is configured.
        """

        if workflow is None:
            payload = {
                "status": "error",
                "message": "verification API is not configured",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_503_SERVICE_UNAVAILABLE)

        try:
            observation, entry = workflow.job_refresh(job_id)
        except JobNotFoundError as error:
            payload = {
                "status": "error",
                "code": error.error_code,
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_404_NOT_FOUND)
        except VerifierClientError as error:
            payload = {
                "status": "error",
                "code": error.error_code,
                "message": str(error),
            }
            return JSONResponse(content=payload, status_code=status.HTTP_502_BAD_GATEWAY)

        report = job_build_status_report(
            observation.record,
            average_total_seconds=workflow.job_average_completion_seconds(),
        )
        if isinstance(observation, JobFailed):
            report["error"] = str(observation.error)
        payload = {
            "job": report,
            "ledger": api_serialize_ledger_entry(entry) if entry is not None else None,
        }
        return JSONResponse(content=payload, status_code=status.HTTP_200_OK)

    @router.delete("")
    def api_jobs_cleanup(
        older_than_days: int | None = Query(default=None, ge=0),
        delete_all: bool = Query(default=False, alias="all"),
    ) -> JSONResponse:
        """Delete old ledger entries or wipe the ledger.

        Args:
            older_than_days: Retention window in days.
            delete_all: Delete every entry when true.

        Returns:
            JSONResponse: Deleted count, 400 when no or both scopes are given.

        Raises:
            LedgerError: Raised when the ledger write fails.
        """

        if delete_all == (older_than_days is not None):
            payload = {
                "status": "error",
                "message": "provide exactly one of older_than_days or all=true",
            }
            return JSONResponse(content=payload, status_code=status.HTTP_400_BAD_REQUEST)

        if delete_all:
            deleted_count = ledger.db_ledger_delete_all()
        else:
            deleted_count = ledger.db_ledger_delete_older_than(days=int(older_than_days))
        return JSONResponse(content={"deleted": deleted_count}, status_code=status.HTTP_200_OK)

    return router


def api_serialize_ledger_entry(entry: LedgerEntry) -> dict[str, object]:
    """Serialize one ledger entry to a JSON response payload.

    Args:
        entry: Typed ledger entry.

    Returns:
        dict[str, object]: JSON-serializable entry payload.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return {
        "job_id": entry.job_id,
        "class_hash": entry.class_hash,
        "contract_name": entry.contract_name,
        "network": entry.network,
        "status": entry.status,
        "submitted_at": entry.submitted_at.isoformat(),
        "completed_at": entry.completed_at.isoformat() if entry.completed_at is not None else None,
        "package_name": entry.package_name,
        "scarb_version": entry.scarb_version,
        "cairo_version": entry.cairo_version,
        "dojo_version": entry.dojo_version,
    }
