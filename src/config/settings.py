# src/config/settings.py — v2
"""Typed configuration loaded from .env via pydantic-settings.

Single source of truth for all deployment-specific settings. The retry,
chunking and cache constants are tuning knobs, not invariants.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ConfigurationError(Exception):
    """Raised when configuration is internally inconsistent."""


class Settings(BaseSettings):
    """Application settings loaded from .env file."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # === LLM BACKENDS ===
    # "provider:model"; an empty fallback reuses the primary backend.
    llm_primary: str = "google:gemini-2.5-flash"
    llm_fallback: str = "google:gemini-2.0-flash"
    llm_temperature: float = 0.2
    llm_max_tokens: int = 8192

    # Provider API keys
    google_api_key: str = ""
    openai_api_key: str = ""
    openai_base_url: str = ""

    # === Chunking ===
    chunk_max_length: int = 800

    # === Retry / fallback ===
    retry_max_attempts: int = 5
    retry_base_delay_s: float = 0.5
    retry_backoff_factor: float = 2.0
    retry_fallback_after: int = 2
    retry_jitter: bool = False

    # === Pipeline ===
    stream_fragment_delay_s: float = 0.1
    batch_size: int = 3
    pipeline_timeout_s: float = 120.0

    # === Cache ===
    cache_enabled: bool = True
    cache_backend: Literal["json"] = "json"
    cache_root: Path = Path("~/.cvtranslate/cache")
    cache_retention_days: int = 7
    cache_version: str = "2.0"
    cache_max_size_mb: int = 5
    cache_maintenance_interval_s: float = 3600.0  # 0 = only at startup

    # === Redaction ===
    redacted_fields: str = "personalInfo.avatarUrl"

    # === API ===
    app_name: str = "cvtranslate"
    cors_allowed_origins: str = (
        "http://localhost:5173,http://localhost:5174,http://localhost:5175,"
        "http://127.0.0.1:5173,http://127.0.0.1:5174"
    )
    host: str = "0.0.0.0"
    port: int = 4000

    # === Logging ===
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"
    log_format: Literal["json", "text"] = "json"
    log_file: Path | None = None
    log_rotation: str = "10MB"
    log_retention: int = 30

    # --- Validators ---

    @field_validator("chunk_max_length", "batch_size", "retry_max_attempts", "cache_retention_days")
    @classmethod
    def validate_positive(cls, v: int, info) -> int:  # noqa: N805
        if v < 1:
            raise ValueError(f"{info.field_name} must be >= 1")
        return v

    @field_validator(
        "retry_base_delay_s", "stream_fragment_delay_s", "pipeline_timeout_s", "retry_fallback_after",
        "cache_maintenance_interval_s",
    )
    @classmethod
    def validate_non_negative(cls, v: float, info) -> float:  # noqa: N805
        if v < 0:
            raise ValueError(f"{info.field_name} must be >= 0")
        return v

    @model_validator(mode="after")
    def validate_config_consistency(self) -> Settings:
        """Validate cross-field consistency rules."""
        errors: list[str] = []

        if self.retry_backoff_factor < 1.0:
            errors.append("RETRY_BACKOFF_FACTOR must be >= 1")

        for name in ("llm_primary", "llm_fallback"):
            value = getattr(self, name)
            if value and ":" not in value:
                errors.append(f"{name.upper()} must look like 'provider:model'")
        if not self.llm_primary:
            errors.append("LLM_PRIMARY must be set")

        if self.pipeline_timeout_s == 0:
            errors.append("PIPELINE_TIMEOUT_S must be > 0")

        if errors:
            raise ConfigurationError("; ".join(errors))

        return self

    # --- Helpers ---

    @property
    def redacted_fields_list(self) -> list[str]:
        """Parse comma-separated dotted field paths."""
        return [f.strip() for f in self.redacted_fields.split(",") if f.strip()]

    @property
    def cors_allowed_origins_list(self) -> list[str]:
        """Parse comma-separated CORS origins."""
        return [o.strip() for o in self.cors_allowed_origins.split(",") if o.strip()]

    @property
    def cache_retention_s(self) -> float:
        return self.cache_retention_days * 86400.0

    @property
    def cache_max_size_bytes(self) -> int:
        return self.cache_max_size_mb * 1024 * 1024


def load_settings(**overrides: object) -> Settings:
    """Load settings from .env with optional overrides.

    Args:
        **overrides: Field-level overrides (for testing or per-request config).

    Returns:
        Validated Settings instance.

    Raises:
        ConfigurationError: If configuration is internally inconsistent.
    """
    return Settings(**overrides)  # type: ignore[arg-type]
