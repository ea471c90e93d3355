"""Submission bundle assembly from discovered project files."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Final, Iterable

from .interfaces import MANIFEST_FILE_NAME, adapter_validate_relative_path
from .verifier_errors import SubmissionValidationError

logger = logging.getLogger(__name__)

MAX_BUNDLE_FILE_SIZE_BYTES: Final[int] = 20 * 1024 * 1024
ALLOWED_FILE_EXTENSIONS: Final[frozenset[str]] = frozenset({"cairo", "toml", "lock", "md", "txt", "json"})
ALLOWED_EXTENSIONLESS_FILES: Final[frozenset[str]] = frozenset(
    {"LICENSE", "README", "CHANGELOG", "NOTICE", "AUTHORS", "CONTRIBUTORS"}
)


def adapter_validate_file_size(path: Path, max_size_bytes: int = MAX_BUNDLE_FILE_SIZE_BYTES) -> None:
    """Reject files larger than the bundle size limit.

    Args:
        path: Absolute file path.
        max_size_bytes: Inclusive size limit in bytes.

    Returns:
        None: Validation succeeds silently.

    Raises:
        SubmissionValidationError: Raised with `E019` when the file is too large.
        OSError: Raised when file metadata cannot be read.
    """

    actual_size = path.stat().st_size
    if actual_size > max_size_bytes:
        raise SubmissionValidationError(
            f"File '{path}' exceeds maximum size limit of {max_size_bytes} bytes (actual: {actual_size} bytes)",
            error_code="E019",
        )


def adapter_validate_file_type(path: Path) -> None:
    """Reject files whose extension or name is not an allowed project file kind.

    Args:
        path: File path; only its name is inspected.

    Returns:
        None: Validation succeeds silently.

    Raises:
        SubmissionValidationError: Raised with `E024` for disallowed file kinds.
    """

    extension = path.suffix[1:] if path.suffix else ""
    if extension in ALLOWED_FILE_EXTENSIONS:
        return
    if not extension and path.name in ALLOWED_EXTENSIONLESS_FILES:
        return
    raise SubmissionValidationError(
        f"File '{path}' has invalid file type (extension: {extension})",
        error_code="E024",
    )


def adapter_build_bundle(
    file_pairs: Iterable[tuple[str, Path | str]],
    max_size_bytes: int = MAX_BUNDLE_FILE_SIZE_BYTES,
) -> dict[str, str]:
    """Build the submission file mapping from discovered file pairs.

    Every file is validated before any content is read, so a rejected file
    never reaches the bundle.

    Args:
        file_pairs: `(relative_path, absolute_path)` pairs from file discovery.
        max_size_bytes: Per-file size limit in bytes.

    Returns:
        dict[str, str]: Mapping of relative bundle path to UTF-8 file content.

    Raises:
        SubmissionValidationError: Raised for traversal paths, oversized, disallowed or non-UTF-8 files.
        OSError: Raised when a file cannot be read.
    """

    validated_pairs: list[tuple[str, Path]] = []
    for relative_path, absolute_path in file_pairs:
        normalized_relative_path = adapter_validate_relative_path(relative_path)
        file_path = Path(absolute_path)
        adapter_validate_file_type(file_path)
        adapter_validate_file_size(file_path, max_size_bytes=max_size_bytes)
        validated_pairs.append((normalized_relative_path, file_path))

    bundle_files: dict[str, str] = {}
    for relative_path, file_path in validated_pairs:
        try:
            bundle_files[relative_path] = file_path.read_text(encoding="utf-8")
        except UnicodeDecodeError as error:
            raise SubmissionValidationError(
                f"File '{file_path}' is not valid UTF-8 text: {error.reason}",
                error_code="E024",
            ) from error
    logger.debug("Assembled submission bundle with %d files", len(bundle_files))
    return bundle_files


def adapter_discover_project_files(project_dir: Path | str, include_lock_file: bool = False) -> list[tuple[str, Path]]:
    """Discover manifests and Cairo sources below one project directory.

    Build output (`target/`) and hidden directories are skipped. The root
    `Scarb.lock` is included only on request.

    Args:
        project_dir: Project root directory.
        include_lock_file: Include the root `Scarb.lock` when present.

    Returns:
        list[tuple[str, Path]]: Sorted `(relative_path, absolute_path)` pairs.

    Raises:
        SubmissionValidationError: Raised when the directory does not exist.
    """

    root_path = Path(project_dir).expanduser().resolve()
    if not root_path.is_dir():
        raise SubmissionValidationError(f"Project directory '{root_path}' does not exist")

    file_pairs: list[tuple[str, Path]] = []
    for file_path in sorted(root_path.rglob("*")):
        if not file_path.is_file():
            continue
        relative_parts = file_path.relative_to(root_path).parts
        if any(part == "target" or part.startswith(".") for part in relative_parts[:-1]):
            continue
        if file_path.suffix == ".cairo" or file_path.name == MANIFEST_FILE_NAME:
            file_pairs.append(("/".join(relative_parts), file_path))

    lock_path = root_path / "Scarb.lock"
    if include_lock_file and lock_path.is_file():
        file_pairs.append(("Scarb.lock", lock_path))
    logger.debug("Discovered %d project files under %s", len(file_pairs), root_path)
    return file_pairs
