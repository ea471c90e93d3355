"""Tests for Scarb manifest dev-dependency filtering before transmission."""

from __future__ import annotations

from verifier.adapters import adapter_filter_bundle_manifests, adapter_filter_manifest_content

_PLACEHOLDER = "# [dev-dependencies] section removed for remote compilation"


def test_adapters_manifest_without_dev_dependencies_is_unchanged_except_trailing_newline() -> None:
    """Keep manifests without dev-dependencies line for line.

    Returns:
        None: Assertions validate passthrough behavior.

    Raises:
        AssertionError: Raised when unrelated content changes.
    """

    content = '[package]\nname = "counter"\nversion = "0.1.0"\n\n[dependencies]\nstarknet = "2.8.2"\n'

    filtered = adapter_filter_manifest_content(content)

    assert filtered == '[package]\nname = "counter"\nversion = "0.1.0"\n\n[dependencies]\nstarknet = "2.8.2"'


def test_adapters_manifest_trailing_dev_dependencies_become_placeholder() -> None:
    """Replace a final dev-dependencies section with the placeholder only."""

    content = '[package]\nname = "counter"\n\n[dev-dependencies]\nsnforge_std = "0.30.0"\nassert_macros = "2.8.2"\n'

    filtered = adapter_filter_manifest_content(content)

    assert filtered == f'[package]\nname = "counter"\n\n{_PLACEHOLDER}'


def test_adapters_manifest_dev_dependencies_before_section_keep_one_blank_line() -> None:
    """Separate the placeholder from the following section with one blank line.

    Returns:
        None: Assertions validate section boundary handling.

    Raises:
        AssertionError: Raised when following sections are lost or mis-spaced.
    """

    content = (
        '[package]\nname = "counter"\n\n'
        '[dev-dependencies]\nsnforge_std = "0.30.0"\n\n'
        "[[target.starknet-contract]]\nsierra = true\n"
    )

    filtered = adapter_filter_manifest_content(content)

    assert filtered == (
        f'[package]\nname = "counter"\n\n{_PLACEHOLDER}\n\n[[target.starknet-contract]]\nsierra = true'
    )


def test_adapters_manifest_indented_dev_dependencies_header_is_detected() -> None:
    """Detect the section header after leading whitespace."""

    filtered = adapter_filter_manifest_content('[package]\n  [dev-dependencies]\nfoo = "1"\n[dependencies]\n')

    assert filtered == f"[package]\n{_PLACEHOLDER}\n\n[dependencies]"


def test_adapters_bundle_manifest_filter_touches_only_scarb_manifests() -> None:
    """Filter root and nested `Scarb.toml` files and leave other files untouched.

    Returns:
        None: Assertions validate per-file filtering.

    Raises:
        AssertionError: Raised when non-manifest files are modified.
    """

    manifest = '[package]\n[dev-dependencies]\nfoo = "1"\n'
    files = {
        "Scarb.toml": manifest,
        "crates/token/Scarb.toml": manifest,
        "Scarb.lock": manifest,
        "src/lib.cairo": "mod counter;\n",
    }

    filtered_files = adapter_filter_bundle_manifests(files)

    assert filtered_files["Scarb.toml"] == f"[package]\n{_PLACEHOLDER}"
    assert filtered_files["crates/token/Scarb.toml"] == f"[package]\n{_PLACEHOLDER}"
    assert filtered_files["Scarb.lock"] == manifest
    assert filtered_files["src/lib.cairo"] == "mod counter;\n"
    assert files["Scarb.toml"] == manifest
