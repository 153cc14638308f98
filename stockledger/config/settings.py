"""
Application settings with Pydantic v2 validation.

Loads configuration from environment variables with sensible defaults.
"""

from pathlib import Path
from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StorageSettings(BaseSettings):
    """Storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    data_dir: Path = Path("data")
    db_name: str = "stockledger.db"

    # SQLite settings
    pool_size: int = 5
    busy_timeout: int = 30000  # ms

    @property
    def db_path(self) -> Path:
        return self.data_dir / self.db_name


class LedgerSettings(BaseSettings):
    """Ledger and aggregate configuration."""

    model_config = SettingsConfigDict(env_prefix="LEDGER_")

    # Fixed offset of the business calendar (+05:30)
    business_utc_offset_minutes: int = Field(default=330, ge=-14 * 60, le=14 * 60)

    # Concurrency conflict retries
    max_conflict_retries: int = 5
    retry_delay: float = 0.05
    retry_multiplier: float = 2.0

    # History pagination
    default_page_size: int = 10
    max_page_size: int = 100


class SyncSettings(BaseSettings):
    """Sync queue configuration."""

    model_config = SettingsConfigDict(env_prefix="SYNC_")

    timeout_seconds: float = 5.0
    claim_ttl_seconds: int = 300

    # Retries for recording a sync outcome when the database is busy
    state_write_retries: int = 5
    retry_delay: float = 0.05


class TallySettings(BaseSettings):
    """Tally agent configuration."""

    model_config = SettingsConfigDict(env_prefix="TALLY_")

    host: str = "127.0.0.1"
    port: int = 9000
    company_name: str = ""
    default_godown: str = "Main Location"
    source_godown: str | None = None
    timeout: float = 5.0
    connection_test_timeout: float = 2.0
    educational_mode: bool = False  # Educational Tally only accepts day 1 of a month

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"


class APISettings(BaseSettings):
    """API server configuration."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 8000
    debug: bool = False
    cors_origins: list[str] = ["*"]


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    app_name: str = "StockLedger"
    app_version: str = "1.0.0"
    environment: Literal["development", "staging", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    # Sub-settings
    storage: StorageSettings = Field(default_factory=StorageSettings)
    ledger: LedgerSettings = Field(default_factory=LedgerSettings)
    sync: SyncSettings = Field(default_factory=SyncSettings)
    tally: TallySettings = Field(default_factory=TallySettings)
    api: APISettings = Field(default_factory=APISettings)

    @field_validator("storage", mode="before")
    @classmethod
    def ensure_data_dir(cls, v: Any) -> StorageSettings:
        if isinstance(v, dict):
            settings = StorageSettings(**v)
        else:
            settings = v or StorageSettings()
        settings.data_dir.mkdir(parents=True, exist_ok=True)
        return settings


# Global settings instance
_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create global settings instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Reset settings (for testing)."""
    global _settings
    _settings = None
