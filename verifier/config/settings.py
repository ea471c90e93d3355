"""Typed runtime settings with dotenv support and startup validation."""

from typing import Final

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

NETWORK_API_URLS: Final[dict[str, str]] = {
    "mainnet": "https://api.voyager.online/beta",
    "sepolia": "https://sepolia-api.voyager.online/beta",
    "dev": "https://dev-api.voyager.online/beta",
}


class SettingsLoadError(RuntimeError):
    """Raised when runtime settings cannot be loaded or validated."""


class VerifierSettings(BaseSettings):
    """Settings for verification client, polling, ledger and API runtime.

    Environment variable names map directly to field names in uppercase.
    Example: `verifier_network` reads from `VERIFIER_NETWORK`.

    Attributes:
        environment_name: Runtime environment label.
        application_host: Host interface for web server binding.
        application_port: Web server port.
        database_url: SQLAlchemy URL of the job ledger.
        verifier_api_url: Optional explicit API base URL; wins over the network.
        verifier_network: Optional network name (`mainnet`, `sepolia`, `dev`).
        verifier_request_timeout_seconds: HTTP request timeout.
        verifier_poll_initial_delay_seconds: First backoff delay.
        verifier_poll_backoff_factor: Multiplicative backoff growth.
        verifier_poll_max_delay_seconds: Per-wait backoff cap.
        verifier_poll_max_attempts: Status fetch budget per wait.
        verifier_batch_delay_seconds: Delay between batch submissions.
        verifier_watch_interval_seconds: Batch tracking sweep interval.
        verifier_log_level: Root logging level for the entrypoint.
        api_default_limit: Default list endpoint limit.
        api_max_limit: Maximum allowed list endpoint limit.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="development")
    application_host: str = Field(default="127.0.0.1")
    application_port: int = Field(default=8000, ge=1, le=65535)
    database_url: str = Field(default="sqlite:///~/.voyager/history.db", min_length=1)
    verifier_api_url: str | None = Field(default=None)
    verifier_network: str | None = Field(default=None)
    verifier_request_timeout_seconds: float = Field(default=30.0, gt=0)
    verifier_poll_initial_delay_seconds: float = Field(default=2.0, ge=0)
    verifier_poll_backoff_factor: float = Field(default=2.0, ge=1)
    verifier_poll_max_delay_seconds: float = Field(default=300.0, gt=0)
    verifier_poll_max_attempts: int = Field(default=20, ge=1)
    verifier_batch_delay_seconds: float = Field(default=0.0, ge=0)
    verifier_watch_interval_seconds: float = Field(default=5.0, ge=0)
    verifier_log_level: str = Field(default="INFO")
    api_default_limit: int = Field(default=50, ge=1)
    api_max_limit: int = Field(default=200, ge=1)

    @field_validator("database_url", "verifier_log_level")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("verifier_api_url")
    @classmethod
    def _validate_api_url(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        stripped_value = value.strip()
        if not stripped_value.startswith(("http://", "https://")):
            raise ValueError("verifier_api_url must be an absolute http(s) URL")
        return stripped_value.rstrip("/")

    @field_validator("verifier_network")
    @classmethod
    def _validate_network(cls, value: str | None) -> str | None:
        if value is None or not value.strip():
            return None
        normalized_value = value.strip().lower()
        if normalized_value not in NETWORK_API_URLS:
            raise ValueError(f"verifier_network must be one of: {', '.join(NETWORK_API_URLS)}")
        return normalized_value

    @field_validator("verifier_poll_max_delay_seconds")
    @classmethod
    def _validate_backoff_cap_bounds(cls, value: float, info) -> float:
        initial_delay_seconds = float(info.data.get("verifier_poll_initial_delay_seconds", 2.0))
        if value < initial_delay_seconds:
            raise ValueError(
                "verifier_poll_max_delay_seconds must be greater than or equal to verifier_poll_initial_delay_seconds"
            )
        return value

    @field_validator("api_max_limit")
    @classmethod
    def _validate_limit_bounds(cls, value: int, info) -> int:
        default_limit = info.data.get("api_default_limit", 50)
        if value < default_limit:
            raise ValueError("api_max_limit must be greater than or equal to api_default_limit")
        return value


def config_load_settings() -> VerifierSettings:
    """Load and validate runtime settings from environment and dotenv.

    Returns:
        VerifierSettings: Validated runtime settings object.

    Raises:
        SettingsLoadError: Raised when settings are invalid.
    """

    try:
        return VerifierSettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Startup configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error


def config_resolve_api_url(settings: VerifierSettings) -> str:
    """Resolve the API base URL before any network call.

    An explicit `verifier_api_url` wins; otherwise the configured network is
    mapped to its public endpoint.

    Args:
        settings: Validated settings.

    Returns:
        str: API base URL without trailing slash.

    Raises:
        SettingsLoadError: Raised when neither URL nor network is configured.
    """

    if settings.verifier_api_url:
        return settings.verifier_api_url
    if settings.verifier_network:
        return NETWORK_API_URLS[settings.verifier_network]
    raise SettingsLoadError(
        "No verification API configured. Set VERIFIER_NETWORK (mainnet, sepolia, dev) or VERIFIER_API_URL."
    )


def config_resolve_network_label(settings: VerifierSettings) -> str:
    """Return the network label recorded in the ledger.

    Args:
        settings: Validated settings.

    Returns:
        str: Configured network, else one inferred from the API URL, else `custom`.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    if settings.verifier_network:
        return settings.verifier_network
    return config_infer_network_from_url(settings.verifier_api_url or "")


def config_infer_network_from_url(api_url: str) -> str:
    """Infer a network label from an API URL."""

    normalized_url = api_url.lower()
    if "sepolia" in normalized_url:
        return "sepolia"
    if "dev" in normalized_url:
        return "dev"
    if "mainnet" in normalized_url or "api.voyager.online" in normalized_url:
        return "mainnet"
    return "custom"
