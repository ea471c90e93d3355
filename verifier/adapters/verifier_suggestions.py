"""Canonical remediation suggestions for verification client failures."""

from __future__ import annotations

from typing import Final

_PAYLOAD_TOO_LARGE_SUGGESTIONS: Final[tuple[str, ...]] = (
    "The request payload is too large (maximum 10MB)",
    "Consider reducing the size of your project files",
    "Remove unnecessary files or large assets",
    "Try without --test-files or --lock-file flags",
    "Check for large binary files or dependencies",
)

REQUEST_FAILURE_SUGGESTIONS: Final[dict[str, tuple[str, ...]]] = {
    "400": (
        "Check that all required parameters are provided",
        "Verify the request format is correct",
    ),
    "401": (
        "Check your authentication credentials",
        "Verify API key is valid and not expired",
    ),
    "403": (
        "Check that you have permission for this operation",
        "Verify your account has the required access level",
    ),
    "404": (
        "Check that the URL is correct: {url}",
        "Verify the resource exists",
        "Check if the service is running",
    ),
    "413": _PAYLOAD_TOO_LARGE_SUGGESTIONS,
    "429": (
        "Wait a moment before retrying",
        "Consider reducing request frequency",
    ),
    "5xx": (
        "The server is experiencing issues",
        "Try again in a few minutes",
        "Check service status if available",
    ),
    "other": (
        "Check your internet connection",
        "Verify the server URL is correct",
        "Try again in a few moments",
    ),
}

JOB_FAILURE_SUGGESTIONS: Final[dict[str, tuple[str, ...]]] = {
    "compilation": (
        "Check that the project builds locally with `scarb build`",
        "Verify the compiler and scarb versions match the deployed contract",
        "Make sure every dependency in Scarb.toml is reachable remotely",
    ),
    "verification": (
        "Verify the class hash matches the contract you are submitting",
        "Check that the compiler version matches the one used for deployment",
        "Make sure the contract name and package are correct",
    ),
    "payload_too_large": _PAYLOAD_TOO_LARGE_SUGGESTIONS,
    "service_unavailable": (
        "The compilation service is temporarily unavailable",
        "Try again in a few minutes",
        "Check service status if available",
    ),
}


def verifier_request_failure_suggestions(status_code: int | None, url: str = "") -> list[str]:
    """Return suggestions for one HTTP request failure.

    Args:
        status_code: HTTP status code, or None when the response never arrived.
        url: Request URL used to render URL-specific suggestions.

    Returns:
        list[str]: Ordered suggestion lines.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if status_code is not None and 500 <= status_code <= 599:
        suggestion_key = "5xx"
    elif status_code is not None and str(status_code) in REQUEST_FAILURE_SUGGESTIONS:
        suggestion_key = str(status_code)
    else:
        suggestion_key = "other"
    return [suggestion.format(url=url) for suggestion in REQUEST_FAILURE_SUGGESTIONS[suggestion_key]]


def verifier_job_failure_suggestions(category: str) -> list[str]:
    """Return suggestions for one terminal job failure category.

    Unknown categories fall back to the verification suggestions.
    """

    return list(JOB_FAILURE_SUGGESTIONS.get(category, JOB_FAILURE_SUGGESTIONS["verification"]))
