"""Shared timeline event helper utilities."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any


def domain_build_stage_event(
    stage: str,
    status: str,
    details: dict[str, Any] | None = None,
) -> dict[str, object]:
    """Build one structured timeline event payload.

    Args:
        stage: Stage name (`submit`, `poll`, `observe`).
        status: Stage status marker.
        details: Optional structured details object.

    Returns:
        dict[str, object]: Structured timeline event.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    event_payload: dict[str, object] = {
        "stage": stage,
        "status": status,
        "at_utc": datetime.now(timezone.utc).isoformat(),
    }
    if details is not None:
        event_payload["details"] = details
    return event_payload


def domain_format_epoch_timestamp(timestamp: float) -> str:
    """Format epoch seconds as a UTC display string.

    Args:
        timestamp: Epoch seconds, fractional values allowed.

    Returns:
        str: Timestamp formatted as `YYYY-MM-DD HH:MM:SS UTC`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    try:
        parsed_value = datetime.fromtimestamp(int(timestamp), tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        parsed_value = datetime.fromtimestamp(0, tz=timezone.utc)
    return parsed_value.strftime("%Y-%m-%d %H:%M:%S UTC")


def domain_format_duration(seconds: int) -> str:
    """Format a duration in seconds as `45s`, `1m 30s` or `1h 1m`."""

    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}m {seconds % 60}s"
    return f"{seconds // 3600}h {(seconds % 3600) // 60}m"
