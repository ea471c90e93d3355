"""FastAPI application factory for the job ledger surface.

This module composes health and job ledger routers into one application.
"""

from fastapi import FastAPI

from verifier.config import VerifierSettings
from verifier.db import DatabaseHealthPort, JobLedgerPort
from verifier.jobs import VerificationWorkflow

from .routers import api_create_health_router, api_create_jobs_router


def create_api_application(
    settings: VerifierSettings,
    db_health_service: DatabaseHealthPort,
    ledger: JobLedgerPort,
    workflow: VerificationWorkflow | None = None,
    api_base_url: str | None = None,
) -> FastAPI:
    """Create the FastAPI application instance for the service.

    Args:
        settings: Validated settings used for runtime metadata and limits.
        db_health_service: Database health service used by health endpoints.
        ledger: Job ledger for list, detail, stats and cleanup APIs.
        workflow: Optional verification workflow for the refresh endpoint.
        api_base_url: Resolved verification API base URL, if configured.

    Returns:
        FastAPI: Framework application instance with all routers mounted.

    Raises:
        ValueError: Raised when router dependencies are invalid.
    """
    application = FastAPI(title="Starknet Class Verifier")

    @application.get("/", tags=["foundation"])
    def foundation_index() -> dict[str, str]:
        """Return a minimal foundation response for bootstrap verification.

        Returns:
            dict[str, str]: Service name, readiness and environment label.
        """

        return {
            "service": "starknet-class-verifier",
            "status": "foundation-ready",
            "environment": settings.environment_name,
        }

    application.include_router(
        api_create_health_router(db_health_service=db_health_service, api_base_url=api_base_url)
    )
    application.include_router(api_create_jobs_router(settings=settings, ledger=ledger, workflow=workflow))

    return application
