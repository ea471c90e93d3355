"""Configuration package for runtime settings and startup validation."""

from .settings import (
    NETWORK_API_URLS,
    SettingsLoadError,
    VerifierSettings,
    config_infer_network_from_url,
    config_load_settings,
    config_resolve_api_url,
    config_resolve_network_label,
)

__all__ = [
    "NETWORK_API_URLS",
    "SettingsLoadError",
    "VerifierSettings",
    "config_infer_network_from_url",
    "config_load_settings",
    "config_resolve_api_url",
    "config_resolve_network_label",
]
