"""Main module entrypoint for local runtime execution.

This module validates startup configuration, then either launches the FastAPI
service or runs one job tracking, batch verification or ledger maintenance command.
"""

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Sequence

import uvicorn

from verifier.adapters import (
    JobStillInProgressError,
    JobVerificationError,
    ProjectMetadata,
    VerifierClientError,
    VerifierRequestError,
    adapter_build_bundle,
    adapter_discover_project_files,
    adapter_filter_bundle_manifests,
    verifier_job_failure_suggestions,
    verifier_request_failure_suggestions,
)
from verifier.bootstrap import (
    bootstrap_create_application,
    bootstrap_create_batch_options,
    bootstrap_create_batch_orchestrator,
    bootstrap_create_ledger,
    bootstrap_create_workflow,
)
from verifier.config import VerifierSettings, config_load_settings
from verifier.db import LedgerEntry, LedgerError, SQLAlchemyJobLedgerService
from verifier.domain import JobRecord, JobStatus, domain_parse_job_status
from verifier.jobs import (
    BatchContract,
    BatchOptions,
    BatchSubmissionTemplate,
    BatchVerificationSummary,
    job_build_status_report,
    job_format_status_line,
)

logger = logging.getLogger(__name__)

_COMMANDS = (
    "api",
    "status",
    "verify-batch",
    "history-list",
    "history-show",
    "history-recheck",
    "history-clean",
    "history-stats",
)


def main(argv: Sequence[str] | None = None) -> None:
    """Run selected runtime command with validated startup configuration.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SettingsLoadError: Raised when configuration validation fails.
        SystemExit: Raised with status 1 when a command fails.
    """

    argument_parser = main_build_argument_parser()
    parsed_arguments = argument_parser.parse_args(argv)

    settings = config_load_settings()
    logging.basicConfig(
        level=settings.verifier_log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if parsed_arguments.command in ("status", "history-show") and not parsed_arguments.job_id:
        argument_parser.error(f"`{parsed_arguments.command}` requires a job id")

    if parsed_arguments.command == "status":
        exit_code = main_run_status(settings=settings, job_id=parsed_arguments.job_id, as_json=parsed_arguments.as_json)
        if exit_code != 0:
            raise SystemExit(exit_code)
        return

    if parsed_arguments.command == "verify-batch":
        if not parsed_arguments.batch_file:
            argument_parser.error("`verify-batch` requires --batch-file")
        exit_code = main_run_verify_batch(settings=settings, parsed_arguments=parsed_arguments)
        if exit_code != 0:
            raise SystemExit(exit_code)
        return

    if parsed_arguments.command == "history-list" and parsed_arguments.status_filter:
        parsed_status = domain_parse_job_status(parsed_arguments.status_filter)
        if parsed_status == JobStatus.UNKNOWN and parsed_arguments.status_filter.strip().lower() != "unknown":
            argument_parser.error(f"unsupported --status value '{parsed_arguments.status_filter}'")

    if parsed_arguments.command.startswith("history-"):
        if parsed_arguments.command == "history-clean" and (
            parsed_arguments.delete_all == (parsed_arguments.older_than_days is not None)
        ):
            argument_parser.error("`history-clean` requires exactly one of --older-than or --all")
        exit_code = main_run_history(settings=settings, parsed_arguments=parsed_arguments)
        if exit_code != 0:
            raise SystemExit(exit_code)
        return

    application = bootstrap_create_application()
    uvicorn.run(
        application,
        host=settings.application_host,
        port=settings.application_port,
    )


def main_build_argument_parser() -> argparse.ArgumentParser:
    """Build the entrypoint argument parser.

    Returns:
        argparse.ArgumentParser: Parser for every runtime command.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    argument_parser = argparse.ArgumentParser(description="Starknet class verification job tracker")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="api",
        choices=_COMMANDS,
        help="Runtime command: `api` starts server, `status` waits for one job, `verify-batch` submits "
        "contracts from a batch file, "
        "`history-*` commands inspect and maintain the local job ledger",
        type=str,
    )
    argument_parser.add_argument(
        "job_id",
        nargs="?",
        default=None,
        help="Job id for `status` and `history-show`",
        type=str,
    )
    argument_parser.add_argument(
        "--json",
        dest="as_json",
        action="store_true",
        help="Print machine-readable JSON for `status`",
    )
    argument_parser.add_argument(
        "--status",
        dest="status_filter",
        type=str,
        help="Status filter for `history-list`",
    )
    argument_parser.add_argument(
        "--network",
        dest="network",
        type=str,
        help="Network filter for `history-list`",
    )
    argument_parser.add_argument(
        "--limit",
        dest="limit",
        type=int,
        default=None,
        help="Max entries for `history-list`",
    )
    argument_parser.add_argument(
        "--older-than",
        dest="older_than_days",
        type=int,
        default=None,
        help="Retention window in days for `history-clean`",
    )
    argument_parser.add_argument(
        "--all",
        dest="delete_all",
        action="store_true",
        help="Delete every ledger entry for `history-clean`",
    )
    argument_parser.add_argument(
        "--batch-file",
        dest="batch_file",
        type=str,
        default=None,
        help="JSON batch definition for `verify-batch`",
    )
    argument_parser.add_argument(
        "--watch",
        dest="watch",
        action="store_true",
        help="Track submitted jobs until they finish for `verify-batch`",
    )
    argument_parser.add_argument(
        "--fail-fast",
        dest="fail_fast",
        action="store_true",
        help="Stop `verify-batch` on the first submission error",
    )
    argument_parser.add_argument(
        "--batch-delay",
        dest="batch_delay_seconds",
        type=float,
        default=None,
        help="Seconds between `verify-batch` submissions; overrides VERIFIER_BATCH_DELAY_SECONDS",
    )
    return argument_parser


def main_run_status(settings: VerifierSettings, job_id: str, as_json: bool = False) -> int:
    """Wait for one job with live inline status and print the outcome.

    Args:
        settings: Validated runtime settings.
        job_id: Service job id.
        as_json: Print the final record as a JSON report.

    Returns:
        int: Process exit code, 0 only when the job succeeded.

    Raises:
        SettingsLoadError: Raised when no verification API is configured.
    """

    ledger = main_open_ledger(settings)
    workflow = bootstrap_create_workflow(settings=settings, ledger=ledger)
    average_total_seconds = workflow.job_average_completion_seconds()

    def _print_live_status(record: JobRecord) -> None:
        if not as_json:
            sys.stdout.write(f"\r\x1b[2K{job_format_status_line(record, average_total_seconds)}")
            sys.stdout.flush()

    try:
        outcome = workflow.job_wait(job_id=job_id, observer=_print_live_status)
        record = outcome.outcome_require_record()
    except JobVerificationError as error:
        main_finish_live_line(as_json)
        if as_json and error.record is not None:
            report = job_build_status_report(error.record, average_total_seconds)
            report["error"] = str(error)
            print(json.dumps(report, indent=2))
            return 1
        print(f"[{error.error_code}] {error}")
        main_print_suggestions(verifier_job_failure_suggestions(error.category))
        return 1
    except JobStillInProgressError as error:
        main_finish_live_line(as_json)
        print(f"[{error.error_code}] {error}")
        print(f"Run `status {job_id}` again later to keep waiting.")
        return 1
    except VerifierRequestError as error:
        main_finish_live_line(as_json)
        print(f"[{error.error_code}] {error}")
        main_print_suggestions(verifier_request_failure_suggestions(error.status_code, error.url or ""))
        return 1
    except VerifierClientError as error:
        main_finish_live_line(as_json)
        print(f"[{error.error_code}] {error}")
        return 1

    main_finish_live_line(as_json)
    if as_json:
        print(json.dumps(job_build_status_report(record, average_total_seconds), indent=2))
        return 0
    print(f"Verification succeeded for {record.contract_name or record.class_hash or job_id}")
    return 0


def main_run_verify_batch(settings: VerifierSettings, parsed_arguments: argparse.Namespace) -> int:
    """Submit every contract of one batch file and optionally track the jobs.

    Args:
        settings: Validated runtime settings.
        parsed_arguments: Parsed entrypoint arguments.

    Returns:
        int: Process exit code, 1 when any contract failed or the batch aborted.

    Raises:
        SettingsLoadError: Raised when no verification API is configured.
    """

    try:
        template, contracts, file_options = main_load_batch_definition(Path(parsed_arguments.batch_file))
    except VerifierClientError as error:
        print(f"[{error.error_code}] {error}")
        return 1
    except (ValueError, OSError) as error:
        print(f"Error: {error}")
        return 1
    if not contracts:
        print("Batch file lists no contracts.")
        return 1

    ledger = main_open_ledger(settings)
    workflow = bootstrap_create_workflow(settings=settings, ledger=ledger)
    orchestrator = bootstrap_create_batch_orchestrator(workflow=workflow, template=template)
    options = bootstrap_create_batch_options(
        settings,
        fail_fast=parsed_arguments.fail_fast,
        batch_delay_seconds=parsed_arguments.batch_delay_seconds,
        default_package=file_options.default_package,
        license_identifier=file_options.license,
    )

    try:
        summary = orchestrator.job_submit_batch(contracts, options)
    except VerifierClientError as error:
        print(f"[{error.error_code}] {error}")
        return 1
    except (ValueError, OSError) as error:
        print(f"Error: {error}")
        return 1
    main_print_batch_summary(summary)

    if parsed_arguments.watch and summary.submitted > 0:
        summary = orchestrator.job_watch_batch(summary, options)
        print("=== Final Summary ===")
        main_print_batch_summary(summary)
    return 1 if summary.summary_counts().failed > 0 else 0


def main_load_batch_definition(
    batch_file: Path,
) -> tuple[BatchSubmissionTemplate, list[BatchContract], BatchOptions]:
    """Load one JSON batch definition and assemble its shared bundle.

    The definition holds the build metadata (`compiler_version`,
    `scarb_version`, `package_name`, `contract_file` and optional
    `build_tool`, `dojo_version`, `project_dir_path`), the project directory
    relative to the batch file (`project_dir`), optional `license`,
    `default_package`, `include_lock_file`, `contract_files` overrides and the
    `contracts` list of `{class_hash, contract_name, package?}` objects.

    Args:
        batch_file: Path of the JSON batch definition.

    Returns:
        tuple[BatchSubmissionTemplate, list[BatchContract], BatchOptions]: Shared
            template, contracts in file order and file-level defaults.

    Raises:
        ValueError: Raised when the file is not a valid batch definition.
        SubmissionValidationError: Raised when the project files fail bundle validation.
        OSError: Raised when the batch file or a project file cannot be read.
    """

    definition = json.loads(batch_file.read_text(encoding="utf-8"))
    if not isinstance(definition, dict):
        raise ValueError(f"batch file '{batch_file}' must contain a JSON object")

    try:
        metadata = ProjectMetadata(
            compiler_version=str(definition["compiler_version"]),
            scarb_version=str(definition["scarb_version"]),
            package_name=str(definition["package_name"]),
            contract_file=str(definition["contract_file"]),
            project_dir_path=str(definition.get("project_dir_path", ".")),
            build_tool=str(definition.get("build_tool", "scarb")),
            dojo_version=definition.get("dojo_version"),
        )
        contracts = [
            BatchContract(
                class_hash=str(item["class_hash"]),
                contract_name=str(item["contract_name"]),
                package=item.get("package"),
            )
            for item in definition.get("contracts", [])
        ]
    except (KeyError, TypeError, AttributeError) as error:
        raise ValueError(f"batch file '{batch_file}' is missing or has an invalid field: {error}") from error

    file_pairs = adapter_discover_project_files(
        batch_file.parent / str(definition.get("project_dir", ".")),
        include_lock_file=bool(definition.get("include_lock_file", False)),
    )
    template = BatchSubmissionTemplate(
        metadata=metadata,
        files=adapter_filter_bundle_manifests(adapter_build_bundle(file_pairs)),
        contract_files=dict(definition.get("contract_files") or {}),
    )
    file_options = BatchOptions(default_package=definition.get("default_package"), license=definition.get("license"))
    return template, contracts, file_options


def main_print_batch_summary(summary: BatchVerificationSummary) -> None:
    """Print batch totals followed by one line per contract."""

    counts = summary.summary_counts()
    print(f"Total contracts:  {summary.total}")
    print(f"Submitted:        {summary.submitted}")
    print(f"Succeeded:        {counts.succeeded}")
    print(f"Failed:           {counts.failed}")
    print(f"Pending:          {counts.pending}")
    for result in summary.results:
        contract_name = result.contract.contract_name
        if result.error is not None:
            print(f"  ✗ {contract_name}: {result.error}")
        elif result.status == JobStatus.SUCCESS:
            print(f"  ✓ {contract_name} (job {result.job_id})")
        else:
            status_name = result.status.value if result.status is not None else "-"
            print(f"  ⏳ {contract_name} (job {result.job_id}, {status_name})")


def main_run_history(settings: VerifierSettings, parsed_arguments: argparse.Namespace) -> int:
    """Run one `history-*` ledger command.

    Args:
        settings: Validated runtime settings.
        parsed_arguments: Parsed entrypoint arguments.

    Returns:
        int: Process exit code.

    Raises:
        LedgerError: Raised when the ledger cannot be opened or read.
        SettingsLoadError: Raised by `history-recheck` when no API is configured.
    """

    ledger = bootstrap_create_ledger(settings)
    command_name = parsed_arguments.command

    if command_name == "history-list":
        status_filter = None
        if parsed_arguments.status_filter:
            status_filter = domain_parse_job_status(parsed_arguments.status_filter)
        entries = ledger.db_ledger_list(
            status=status_filter,
            network=parsed_arguments.network,
            limit=parsed_arguments.limit,
        )
        if not entries:
            print("No verification history found.")
            return 0
        for entry in entries:
            print(main_format_ledger_entry(entry))
        return 0

    if command_name == "history-show":
        entry = ledger.db_ledger_get_by_job_id(parsed_arguments.job_id)
        if entry is None:
            print(f"Job '{parsed_arguments.job_id}' not found in history.")
            return 1
        for label, value in main_describe_ledger_entry(entry):
            print(f"{label:<14}{value}")
        return 0

    if command_name == "history-recheck":
        workflow = bootstrap_create_workflow(settings=settings, ledger=ledger)
        recheck_results = workflow.job_recheck_pending()
        if not recheck_results:
            print("No pending jobs to recheck.")
            return 0
        for recheck_result in recheck_results:
            if recheck_result.error is not None:
                print(f"{recheck_result.job_id}: {recheck_result.previous_status} -> error: {recheck_result.error}")
                continue
            current_status = recheck_result.current_status or JobStatus.UNKNOWN
            print(f"{recheck_result.job_id}: {recheck_result.previous_status} -> {current_status.value}")
        return 0

    if command_name == "history-clean":
        if parsed_arguments.delete_all:
            deleted_count = ledger.db_ledger_delete_all()
        else:
            deleted_count = ledger.db_ledger_delete_older_than(days=parsed_arguments.older_than_days)
        print(f"Deleted {deleted_count} entries.")
        return 0

    stats = ledger.db_ledger_stats()
    print(f"Total:     {stats.total}")
    print(f"Succeeded: {stats.succeeded}")
    print(f"Failed:    {stats.failed}")
    print(f"Pending:   {stats.pending}")
    return 0


def main_open_ledger(settings: VerifierSettings) -> SQLAlchemyJobLedgerService | None:
    """Open the ledger for job tracking, None when it is unavailable."""

    try:
        return bootstrap_create_ledger(settings)
    except LedgerError as error:
        logger.warning("Job ledger unavailable, continuing without history: %s", error)
        return None


def main_format_ledger_entry(entry: LedgerEntry) -> str:
    """Return one compact ledger line for `history-list`."""

    submitted_at = entry.submitted_at.strftime("%Y-%m-%d %H:%M:%S")
    return f"{entry.job_id}  {entry.status:<12}  {entry.network:<8}  {submitted_at}  {entry.contract_name}"


def main_describe_ledger_entry(entry: LedgerEntry) -> list[tuple[str, str]]:
    """Return labelled ledger entry fields for `history-show`."""

    completed_at = entry.completed_at.strftime("%Y-%m-%d %H:%M:%S UTC") if entry.completed_at else "-"
    return [
        ("Job ID:", entry.job_id),
        ("Status:", entry.status),
        ("Contract:", entry.contract_name),
        ("Class hash:", entry.class_hash),
        ("Network:", entry.network),
        ("Package:", entry.package_name or "-"),
        ("Scarb:", entry.scarb_version or "-"),
        ("Cairo:", entry.cairo_version or "-"),
        ("Dojo:", entry.dojo_version or "-"),
        ("Submitted:", entry.submitted_at.strftime("%Y-%m-%d %H:%M:%S UTC")),
        ("Completed:", completed_at),
    ]


def main_print_suggestions(suggestions: list[str]) -> None:
    """Print remediation suggestions as an indented list."""

    if not suggestions:
        return
    print("Suggestions:")
    for suggestion in suggestions:
        print(f"  • {suggestion}")


def main_finish_live_line(as_json: bool) -> None:
    """Terminate the inline status line before printing the outcome."""

    if not as_json:
        sys.stdout.write("\n")
        sys.stdout.flush()


if __name__ == "__main__":
    main()
