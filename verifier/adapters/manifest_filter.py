"""Scarb manifest filtering applied before bundle transmission."""

from __future__ import annotations

import logging
from typing import Final, Mapping

from .interfaces import MANIFEST_FILE_NAME

logger = logging.getLogger(__name__)

_DEV_DEPENDENCIES_HEADER: Final[str] = "[dev-dependencies]"
_DEV_DEPENDENCIES_PLACEHOLDER: Final[str] = "# [dev-dependencies] section removed for remote compilation"


def adapter_filter_manifest_content(content: str) -> str:
    """Remove the `[dev-dependencies]` section from Scarb manifest content.

    The section header is replaced by a placeholder comment and its entries
    are dropped. When another section follows, one blank line separates it
    from the placeholder. Lines are re-joined with `\\n` and the trailing
    newline is not preserved.

    Args:
        content: Raw `Scarb.toml` text.

    Returns:
        str: Filtered manifest text.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    filtered_lines: list[str] = []
    in_dev_dependencies = False

    for line in content.splitlines():
        stripped_line = line.lstrip()
        if stripped_line.startswith(_DEV_DEPENDENCIES_HEADER):
            in_dev_dependencies = True
            filtered_lines.append(_DEV_DEPENDENCIES_PLACEHOLDER)
            continue

        if stripped_line.startswith("["):
            if in_dev_dependencies:
                filtered_lines.append("")
            in_dev_dependencies = False
            filtered_lines.append(line)
            continue

        if in_dev_dependencies:
            continue

        filtered_lines.append(line)

    return "\n".join(filtered_lines)


def adapter_is_manifest_path(relative_path: str) -> bool:
    """Return whether a bundle path names a Scarb manifest."""

    return relative_path == MANIFEST_FILE_NAME or relative_path.endswith(f"/{MANIFEST_FILE_NAME}")


def adapter_filter_bundle_manifests(files: Mapping[str, str]) -> dict[str, str]:
    """Return a copy of the bundle with every Scarb manifest filtered.

    Args:
        files: Mapping of relative bundle path to file content.

    Returns:
        dict[str, str]: New mapping safe for remote compilation.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    filtered_files: dict[str, str] = {}
    for relative_path, content in files.items():
        if adapter_is_manifest_path(relative_path):
            filtered_content = adapter_filter_manifest_content(content)
            if _DEV_DEPENDENCIES_PLACEHOLDER in filtered_content:
                logger.debug(
                    "Filtered dev-dependencies from %s (size: %d -> %d bytes)",
                    relative_path,
                    len(content),
                    len(filtered_content),
                )
            filtered_files[relative_path] = filtered_content
        else:
            filtered_files[relative_path] = content
    return filtered_files
