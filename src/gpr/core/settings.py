"""Settings for gpr-tool.

All fields can be set through ``GPR_*`` environment variables (e.g.
``GPR_RETRY_DELAY_SECONDS=2``) or a ``.env`` file in the working directory.
Command-line options take precedence over these values.

Fields
──────
api_key                  : Personal access token (``GPR_API_KEY``)
registry_url             : NuGet endpoint of the package registry
user                     : Basic-auth user name sent with the token
concurrency              : Default number of simultaneous uploads
retries                  : Default retry budget per package
retry_delay_seconds      : Fixed delay between attempts
attempt_timeout_seconds  : Deadline for a single upload attempt
log_level                : Structlog log level
json_logs                : Force JSON log rendering
nuget_config_file        : NuGet.Config used for stored credentials
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_REGISTRY_URL = "https://nuget.pkg.github.com"


class GprSettings(BaseSettings):
    """gpr-tool configuration, validated at startup."""

    model_config = SettingsConfigDict(
        env_prefix="GPR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Registry ─────────────────────────────────────────────────
    api_key: str | None = None
    registry_url: str = DEFAULT_REGISTRY_URL
    user: str = "GprTool"

    # ── Publish pipeline ─────────────────────────────────────────
    concurrency: int = Field(default=4, ge=1)
    retries: int = Field(default=3, ge=0)
    retry_delay_seconds: float = Field(default=10.0, ge=0)
    attempt_timeout_seconds: float = Field(default=300.0, gt=0)

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    json_logs: bool | None = None

    # ── Credentials storage ──────────────────────────────────────
    nuget_config_file: Path | None = None

    @field_validator("registry_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        return value.rstrip("/")

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level


@lru_cache(maxsize=1)
def get_settings() -> GprSettings:
    """Load and cache settings from the environment."""
    return GprSettings()


__all__ = ["DEFAULT_REGISTRY_URL", "GprSettings", "get_settings"]
