"""Env var config loading with pydantic-settings."""

from __future__ import annotations

from pathlib import Path

import structlog
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = structlog.get_logger()

_POLICIES_PATH = Path(__file__).parent / "policies.yaml"


class HeaderSettings(BaseSettings):
    """Settings for header policy selection, overridden by HEADERPOLICY_* env vars."""

    model_config = SettingsConfigDict(
        env_prefix="HEADERPOLICY_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "info"
    log_json: bool = True

    # Named policy presets
    policies_file: str = str(_POLICIES_PATH)
    default_policy: str = "balanced"

    # Send the CSP as Content-Security-Policy-Report-Only for every preset
    csp_report_only: bool = False


_settings: HeaderSettings | None = None


def get_settings() -> HeaderSettings:
    """Get or create the singleton settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def load_settings() -> HeaderSettings:
    """Load settings from env vars (env vars override model defaults)."""
    global _settings
    _settings = HeaderSettings()
    logger.info(
        "config_loaded",
        policies_file=_settings.policies_file,
        default_policy=_settings.default_policy,
    )
    return _settings
