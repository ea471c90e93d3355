"""Tests for typed runtime settings and API URL resolution."""

from __future__ import annotations

import pytest

from verifier.config import (
    SettingsLoadError,
    VerifierSettings,
    config_infer_network_from_url,
    config_load_settings,
    config_resolve_api_url,
    config_resolve_network_label,
)


def test_config_defaults_match_polling_and_ledger_contract(monkeypatch: pytest.MonkeyPatch) -> None:
    """Expose documented polling defaults and the default SQLite ledger URL.

    Args:
        monkeypatch: Pytest monkeypatch fixture.

    Returns:
        None: Assertions validate default values.

    Raises:
        AssertionError: Raised when defaults drift.
    """

    monkeypatch.chdir("/")
    settings = VerifierSettings(_env_file=None)

    assert settings.database_url == "sqlite:///~/.voyager/history.db"
    assert settings.verifier_poll_initial_delay_seconds == 2.0
    assert settings.verifier_poll_backoff_factor == 2.0
    assert settings.verifier_poll_max_delay_seconds == 300.0
    assert settings.verifier_poll_max_attempts == 20
    assert settings.verifier_watch_interval_seconds == 5.0
    assert settings.verifier_api_url is None


def test_config_explicit_api_url_wins_over_network() -> None:
    """Prefer the explicit URL and strip its trailing slash."""

    settings = VerifierSettings(
        _env_file=None,
        verifier_api_url="https://verifier.internal.test/beta/",
        verifier_network="mainnet",
    )

    assert config_resolve_api_url(settings) == "https://verifier.internal.test/beta"
    assert config_resolve_network_label(settings) == "mainnet"


@pytest.mark.parametrize(
    ("network", "expected_url"),
    [
        ("mainnet", "https://api.voyager.online/beta"),
        ("Sepolia", "https://sepolia-api.voyager.online/beta"),
        ("dev", "https://dev-api.voyager.online/beta"),
    ],
)
def test_config_network_maps_to_public_endpoint(network: str, expected_url: str) -> None:
    """Map each supported network to its public API endpoint."""

    settings = VerifierSettings(_env_file=None, verifier_network=network)

    assert config_resolve_api_url(settings) == expected_url
    assert config_resolve_network_label(settings) == network.lower()


def test_config_resolve_api_url_fails_clearly_when_unconfigured() -> None:
    """Raise a settings error before any network call when no API is configured.

    Returns:
        None: Assertions validate the error message.

    Raises:
        AssertionError: Raised when resolution does not fail.
    """

    settings = VerifierSettings(_env_file=None, verifier_api_url="  ", verifier_network=None)

    with pytest.raises(SettingsLoadError, match="VERIFIER_NETWORK"):
        config_resolve_api_url(settings)


def test_config_load_settings_wraps_validation_errors(monkeypatch: pytest.MonkeyPatch) -> None:
    """Wrap pydantic validation errors in SettingsLoadError."""

    monkeypatch.chdir("/")
    monkeypatch.setenv("VERIFIER_NETWORK", "goerli")

    with pytest.raises(SettingsLoadError, match="verifier_network"):
        config_load_settings()


def test_config_reads_environment_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    """Read uppercase environment variables for field names."""

    monkeypatch.chdir("/")
    monkeypatch.setenv("VERIFIER_API_URL", "http://localhost:8080")
    monkeypatch.setenv("VERIFIER_POLL_MAX_ATTEMPTS", "5")

    settings = config_load_settings()

    assert settings.verifier_api_url == "http://localhost:8080"
    assert settings.verifier_poll_max_attempts == 5
    assert config_resolve_network_label(settings) == "custom"


@pytest.mark.parametrize(
    "field_values",
    [
        {"verifier_api_url": "api.voyager.online"},
        {"verifier_poll_initial_delay_seconds": 10, "verifier_poll_max_delay_seconds": 5},
        {"api_default_limit": 100, "api_max_limit": 50},
        {"database_url": "   "},
    ],
)
def test_config_rejects_invalid_values(field_values: dict[str, object]) -> None:
    """Reject relative URLs, inverted bounds and blank database URLs."""

    with pytest.raises(ValueError):
        VerifierSettings(_env_file=None, **field_values)


@pytest.mark.parametrize(
    ("api_url", "expected_network"),
    [
        ("https://sepolia-api.voyager.online/beta", "sepolia"),
        ("https://dev-api.voyager.online/beta", "dev"),
        ("https://api.voyager.online/beta", "mainnet"),
        ("http://localhost:8080", "custom"),
    ],
)
def test_config_infer_network_from_url(api_url: str, expected_network: str) -> None:
    """Infer network labels from API URLs."""

    assert config_infer_network_from_url(api_url) == expected_network
