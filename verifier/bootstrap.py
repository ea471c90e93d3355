"""Application bootstrap wiring for startup validation and dependency assembly."""

import logging

from fastapi import FastAPI

from verifier.adapters import VerificationServiceClient
from verifier.api import create_api_application
from verifier.config import (
    SettingsLoadError,
    VerifierSettings,
    config_load_settings,
    config_resolve_api_url,
    config_resolve_network_label,
)
from verifier.db import (
    SQLAlchemyDatabaseHealthService,
    SQLAlchemyJobLedgerService,
    db_create_engine,
    db_ledger_upgrade_schema,
)
from verifier.jobs import (
    BatchOptions,
    BatchSubmissionTemplate,
    BatchVerificationOrchestrator,
    JobPollingEngine,
    VerificationWorkflow,
    job_batch_template_request_builder,
)

logger = logging.getLogger(__name__)


def bootstrap_create_ledger(settings: VerifierSettings) -> SQLAlchemyJobLedgerService:
    """Build the job ledger on a migrated database.

    Args:
        settings: Validated runtime settings.

    Returns:
        SQLAlchemyJobLedgerService: Ledger bound to an up-to-date schema.

    Raises:
        LedgerError: Raised when schema migration fails.
    """

    engine = db_create_engine(database_url=settings.database_url)
    db_ledger_upgrade_schema(engine=engine)
    return SQLAlchemyJobLedgerService(engine=engine)


def bootstrap_create_workflow(
    settings: VerifierSettings,
    ledger: SQLAlchemyJobLedgerService | None = None,
) -> VerificationWorkflow:
    """Build the single-job verification workflow.

    Args:
        settings: Validated runtime settings.
        ledger: Optional job ledger for write-through.

    Returns:
        VerificationWorkflow: Workflow wired to client, polling engine and ledger.

    Raises:
        SettingsLoadError: Raised when no verification API is configured.
    """

    client = VerificationServiceClient(
        base_url=config_resolve_api_url(settings),
        request_timeout_seconds=settings.verifier_request_timeout_seconds,
    )
    polling_engine = JobPollingEngine(
        client=client,
        initial_delay_seconds=settings.verifier_poll_initial_delay_seconds,
        backoff_factor=settings.verifier_poll_backoff_factor,
        max_delay_seconds=settings.verifier_poll_max_delay_seconds,
        max_attempts=settings.verifier_poll_max_attempts,
    )
    return VerificationWorkflow(
        client=client,
        polling_engine=polling_engine,
        network=config_resolve_network_label(settings),
        ledger=ledger,
    )


def bootstrap_create_batch_orchestrator(
    workflow: VerificationWorkflow,
    template: BatchSubmissionTemplate,
) -> BatchVerificationOrchestrator:
    """Build the batch orchestrator over the single-job workflow.

    Args:
        workflow: Single-job workflow used for submission and observation.
        template: Shared build inputs merged into every contract submission.

    Returns:
        BatchVerificationOrchestrator: Orchestrator with ledger write-through via the workflow.

    Raises:
        ValueError: Raised when dependencies are invalid.
    """

    return BatchVerificationOrchestrator(
        submitter=workflow,
        request_builder=job_batch_template_request_builder(template),
    )


def bootstrap_create_batch_options(
    settings: VerifierSettings,
    fail_fast: bool = False,
    batch_delay_seconds: float | None = None,
    default_package: str | None = None,
    license_identifier: str | None = None,
) -> BatchOptions:
    """Build batch options, falling back to configured delays.

    Args:
        settings: Validated runtime settings.
        fail_fast: Abort on the first submission error.
        batch_delay_seconds: Optional delay override between submissions.
        default_package: Package used when a contract has no override.
        license_identifier: License applied to every submission.

    Returns:
        BatchOptions: Options for submission and tracking.
    """

    return BatchOptions(
        fail_fast=fail_fast,
        batch_delay_seconds=(
            settings.verifier_batch_delay_seconds if batch_delay_seconds is None else batch_delay_seconds
        ),
        watch_interval_seconds=settings.verifier_watch_interval_seconds,
        default_package=default_package,
        license=license_identifier,
    )


def bootstrap_create_application() -> FastAPI:
    """Assemble the runtime application after validating startup configuration.

    The refresh endpoint is disabled when no verification API is configured.

    Returns:
        FastAPI: Fully initialized FastAPI application instance.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
        LedgerError: Raised when schema migration fails.
    """

    settings = config_load_settings()
    engine = db_create_engine(database_url=settings.database_url)
    db_ledger_upgrade_schema(engine=engine)
    db_health_service = SQLAlchemyDatabaseHealthService(engine=engine)
    ledger = SQLAlchemyJobLedgerService(engine=engine)

    workflow: VerificationWorkflow | None
    api_base_url: str | None
    try:
        workflow = bootstrap_create_workflow(settings=settings, ledger=ledger)
        api_base_url = config_resolve_api_url(settings)
    except SettingsLoadError as error:
        logger.info("Job refresh disabled: %s", error)
        workflow = None
        api_base_url = None

    return create_api_application(
        settings=settings,
        db_health_service=db_health_service,
        ledger=ledger,
        workflow=workflow,
        api_base_url=api_base_url,
    )
