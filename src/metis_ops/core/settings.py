"""Settings shared by all metis-ops scripts.

Every script needs the same handful of knobs: log level and format, the
retry policy for external requests, and where the execution logs and
dataset info live. ``OpsSettings`` collects them in one validated place.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.
    The original scripts kept these values as process-wide constants;
    here they are read once from the environment (or a ``.env`` file)
    and passed to each call site explicitly.

    - **Pydantic validation:** Type-checked at startup, not mid-migration
    - **Environment-driven:** ``METIS_OPS_*`` env vars and .env files
    - **Sensible defaults:** Unbounded retries, 2 second delay

Examples:
    >>> from metis_ops.core.settings import get_settings
    >>> settings = get_settings()
    >>> settings.retry_delay_seconds
    2.0

Tags:
    settings, configuration, pydantic, environment, metis-ops
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class OpsSettings(BaseSettings):
    """Common settings for administrative scripts.

    Fields
    ──────
    log_level            : Structlog log level
    log_json             : Force JSON (True) or console (False) logs; auto when unset
    retry_limit          : Retries after the first failure; unset means unbounded
    retry_delay_seconds  : Wait between two attempts
    results_dir          : Directory holding ``final-dataset-status-*.log`` files
    dataset_info_file    : JSON file mapping dataset id to name/state info
    vocabularies_file    : Override for the bundled vocabulary registry
    """

    model_config = SettingsConfigDict(
        env_prefix="METIS_OPS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"
    log_json: bool | None = None

    # ── Retry policy ─────────────────────────────────────────────
    retry_limit: int | None = Field(
        default=None,
        ge=0,
        description="Maximum retries after the first failure (None = unbounded)",
    )
    retry_delay_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Delay between two attempts, in seconds",
    )

    # ── Inputs ───────────────────────────────────────────────────
    results_dir: Path = Field(
        default_factory=lambda: Path.cwd() / "logs",
        description="Directory with execution status logs",
    )
    dataset_info_file: Path | None = None
    vocabularies_file: Path | None = None


@lru_cache(maxsize=1)
def get_settings() -> OpsSettings:
    """Return the process-wide settings instance."""
    return OpsSettings()


__all__ = ["OpsSettings", "get_settings"]
