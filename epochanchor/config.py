"""Runtime configuration — env-driven.

Centralized config using pydantic-settings for environment variable
support. Reads from a .env file and EPOCHANCHOR_* environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class AnchorConfig(BaseSettings):
    """Configuration with environment variable overrides.

    Examples
    --------
    Override via environment::

        export EPOCHANCHOR_LOG_LEVEL=DEBUG
        export EPOCHANCHOR_LEDGER_PATH=/data/anchor.db
        export EPOCHANCHOR_REGISTRY_OWNER=ops-multisig

    Or via .env file::

        EPOCHANCHOR_ENVIRONMENT=production
        EPOCHANCHOR_EVENT_LOG_PATH=/data/events.jsonl
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="EPOCHANCHOR_",
        env_file_encoding="utf-8",
    )

    # Runtime environment
    environment: str = "development"
    log_level: str = "INFO"

    # Storage paths
    ledger_path: Path = Path(".epochanchor/ledger.db")
    manifest_store_path: Path = Path(".epochanchor/manifests")
    event_log_path: Path | None = None  # JSONL feed for indexers, off by default

    # Manifest locators: {locator_scheme}{manifest_bucket}/sha256:<hex>
    locator_scheme: str = "greenfield://"
    manifest_bucket: str = "epoch-manifests"

    # Registry owner; falls back to the ledger's anchorer when unset
    registry_owner: str | None = None

    default_schema_version: int = 1

    @property
    def is_production(self) -> bool:
        """Whether running in production mode."""
        return self.environment == "production"


# Module-level singleton, import as `from epochanchor.config import config`
config = AnchorConfig()
