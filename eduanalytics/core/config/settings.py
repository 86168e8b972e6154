# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""Application configuration settings using Pydantic Settings.

This module provides centralized configuration management for EduAnalytics.
Settings are loaded from environment variables with sensible defaults.

The Settings class is the main entry point and aggregates all subsettings.
Settings objects are frozen: they are built once at startup and handed to
the services that need them. get_settings() returns a cached instance for
dependency injection.

Example:
    >>> from eduanalytics.core.config.settings import get_settings
    >>> settings = get_settings()
    >>> print(settings.environment)
    'development'
"""

from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class DatabaseSettings(BaseSettings):
    """Database configuration.

    Attributes:
        user: PostgreSQL username.
        password: PostgreSQL password.
        host: Database host address.
        port: Database port number.
        database: Database name.
        url_override: Full async connection URL; takes precedence over the
            individual components when set (e.g. sqlite+aiosqlite for tests).
        pool_size: Connection pool size.
        max_overflow: Maximum overflow connections.
    """

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        extra="ignore",
        frozen=True,
    )

    user: str = "eduanalytics"
    password: SecretStr = SecretStr("eduanalytics_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "eduanalytics"
    url_override: str | None = Field(default=None, validation_alias="DATABASE_URL")
    pool_size: int = 10
    max_overflow: int = 20

    @property
    def url(self) -> str:
        """Build the async database URL from components."""
        if self.url_override:
            return self.url_override
        pwd = self.password.get_secret_value()
        return f"postgresql+asyncpg://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def is_sqlite(self) -> bool:
        """Whether the configured URL targets SQLite (no connection pool options)."""
        return self.url.startswith("sqlite")


class BackupSettings(BaseSettings):
    """Backup archive storage configuration.

    Remote upload is enabled only when upload_url is set.

    Attributes:
        storage_dir: Directory holding finished backup archives.
        temp_dir: Parent directory for restore extraction (system temp if unset).
        upload_url: Base URL of the object store receiving archive copies.
        upload_token: Bearer token for the object store.
        upload_timeout: Upload request timeout in seconds.
    """

    model_config = SettingsConfigDict(
        env_prefix="BACKUP_",
        extra="ignore",
        frozen=True,
    )

    storage_dir: Path = Path("backups")
    temp_dir: Path | None = None
    upload_url: str | None = None
    upload_token: SecretStr = SecretStr("")
    upload_timeout: float = 120.0

    @property
    def upload_enabled(self) -> bool:
        """Whether archives should be copied to remote storage."""
        return bool(self.upload_url)


class AuditSettings(BaseSettings):
    """Audit log configuration.

    Attributes:
        retention_days: Audit log records older than this are purged.
        purge_enabled: Whether the API purges expired records.
        purge_interval_hours: Time between purges while the API runs.
    """

    model_config = SettingsConfigDict(
        env_prefix="AUDIT_",
        extra="ignore",
        frozen=True,
    )

    retention_days: int = Field(default=365, ge=1)
    purge_enabled: bool = True
    purge_interval_hours: float = Field(default=24.0, gt=0)


class CORSSettings(BaseSettings):
    """CORS configuration for API.

    Attributes:
        origins: Comma-separated list of allowed origins.
        allow_credentials: Whether to allow credentials.
        allow_methods: Allowed HTTP methods.
        allow_headers: Allowed HTTP headers.
    """

    model_config = SettingsConfigDict(
        env_prefix="CORS_",
        extra="ignore",
        frozen=True,
    )

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        """Parse origins string into a list."""
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(BaseSettings):
    """API server configuration.

    Attributes:
        host: Host to bind to.
        port: Port to listen on.
        workers: Number of worker processes.
        reload: Whether to enable auto-reload.
    """

    model_config = SettingsConfigDict(
        env_prefix="API_",
        extra="ignore",
        frozen=True,
    )

    host: str = "0.0.0.0"
    port: int = 5000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """Main application settings aggregating all subsettings.

    Use get_settings() to obtain the cached instance built at startup.

    Attributes:
        environment: Current environment (development, staging, production).
        debug: Enable debug mode.
        log_level: Logging level.
        database: Database settings.
        backup: Backup storage settings.
        audit: Audit log settings.
        cors: CORS settings.
        api: API server settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        frozen=True,
    )

    # Environment
    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    # Subsettings - loaded with their own env prefixes
    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    backup: BackupSettings = Field(default_factory=BackupSettings)
    audit: AuditSettings = Field(default_factory=AuditSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.environment == "development"


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Returns:
        The Settings instance built from the environment on first call.
    """
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache so the next call re-reads the environment.

    Used by tests that patch environment variables.
    """
    get_settings.cache_clear()
