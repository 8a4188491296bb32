# Copyright (C) 2025 Global Digital Labs (gdlabs.io)
# SPDX-License-Identifier: LGPL-3.0-or-later
"""SchoolOps configuration, loaded from the environment with pydantic-settings.

Each concern is a section with its own prefix:

    DB_*         store connection (or DATABASE_URL for a full URL)
    SMTP_*       outbound mail for notifications
    JWT_*        access token verification
    STORAGE_*    uploaded submission files
    DISPATCH_*   derived-effects dispatcher
    CORS_*       browser origins
    API_*        uvicorn process

Settings aggregates the sections and reads ENVIRONMENT, DEBUG and
LOG_LEVEL itself. get_settings() caches one instance per process.
"""

from functools import lru_cache
from typing import Literal, Self

from pydantic import Field, SecretStr, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "change-this-in-production"


class _Section(BaseSettings):
    """Base for prefixed sections; unknown variables are ignored."""

    model_config = SettingsConfigDict(extra="ignore")


class DatabaseSettings(_Section):
    """Store connection.

    All schools share one database and every row carries its school_id,
    so there is a single pool for the whole process. DATABASE_URL wins
    over the DB_* components; tests and local runs point it at
    ``sqlite+aiosqlite``.
    """

    model_config = SettingsConfigDict(env_prefix="DB_")

    user: str = "schoolops"
    password: SecretStr = SecretStr("schoolops_password")
    host: str = "localhost"
    port: int = 5432
    database: str = "schoolops"
    url_override: str | None = Field(default=None, validation_alias="DATABASE_URL")
    pool_size: int = 10
    max_overflow: int = 20

    def _dsn(self, driver: str) -> str:
        pwd = self.password.get_secret_value()
        return f"{driver}://{self.user}:{pwd}@{self.host}:{self.port}/{self.database}"

    @property
    def url(self) -> str:
        """Async SQLAlchemy URL used by the application."""
        return self.url_override or self._dsn("postgresql+asyncpg")

    @property
    def sync_url(self) -> str:
        """Driverless PostgreSQL URL for external tooling."""
        return self._dsn("postgresql")

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith("sqlite")


class SMTPSettings(_Section):
    """Mail relay for notification emails.

    Mail goes out only when host, username, password and from_email are
    all set; otherwise notifications stay in-app.
    """

    model_config = SettingsConfigDict(env_prefix="SMTP_")

    host: str | None = None
    port: int = 587
    username: str | None = None
    password: SecretStr | None = None
    use_tls: bool = True
    from_email: str | None = None
    from_name: str = "SchoolOps"
    timeout: float = 10.0

    @property
    def is_configured(self) -> bool:
        return all([self.host, self.username, self.password, self.from_email])


class JWTSettings(_Section):
    """Verification of access tokens issued by the identity provider."""

    model_config = SettingsConfigDict(env_prefix="JWT_")

    secret_key: SecretStr = SecretStr(DEFAULT_JWT_SECRET)
    algorithm: str = "HS256"
    access_token_expire_minutes: int = Field(
        default=30,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )


class StorageSettings(_Section):
    """Where file_upload submissions are written and how they are addressed."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    root_path: str = "./var/uploads"
    public_base_url: str = "/files"
    max_upload_bytes: int = 10 * 1024 * 1024


class DispatchSettings(_Section):
    """Derived-effects dispatcher.

    Attributes:
        enabled: When false, committed transitions produce no feed
            entries or notifications.
        send_email: Also mail notifications when SMTP is configured.
        drain_timeout: Seconds shutdown waits for in-flight effects.
    """

    model_config = SettingsConfigDict(env_prefix="DISPATCH_")

    enabled: bool = True
    send_email: bool = True
    drain_timeout: float = 10.0


class CORSSettings(_Section):
    """Browser origins allowed to call the API (comma-separated)."""

    model_config = SettingsConfigDict(env_prefix="CORS_")

    origins: str = "http://localhost:3000,http://localhost:5173"
    allow_credentials: bool = True
    allow_methods: list[str] = ["*"]
    allow_headers: list[str] = ["*"]

    @property
    def origins_list(self) -> list[str]:
        return [origin.strip() for origin in self.origins.split(",") if origin.strip()]


class APISettings(_Section):
    """uvicorn process options used by src.main."""

    model_config = SettingsConfigDict(env_prefix="API_")

    host: str = "0.0.0.0"
    port: int = 34000
    workers: int = 2
    reload: bool = False


class Settings(BaseSettings):
    """All configuration for one SchoolOps process.

    Attributes:
        environment: development, staging or production.
        debug: Serves /docs and renders logs for the console.
        log_level: Root log level.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment: Literal["development", "staging", "production"] = "development"
    debug: bool = True
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "DEBUG"

    database: DatabaseSettings = Field(default_factory=DatabaseSettings)
    smtp: SMTPSettings = Field(default_factory=SMTPSettings)
    jwt: JWTSettings = Field(default_factory=JWTSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    dispatch: DispatchSettings = Field(default_factory=DispatchSettings)
    cors: CORSSettings = Field(default_factory=CORSSettings)
    api: APISettings = Field(default_factory=APISettings)

    @model_validator(mode="after")
    def _reject_default_secret_in_production(self) -> Self:
        if self.is_production and self.jwt.secret_key.get_secret_value() == DEFAULT_JWT_SECRET:
            raise ValueError(
                "JWT secret key must be changed from default in production. "
                "Set JWT_SECRET_KEY."
            )
        return self

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Process-wide settings, read from the environment on first call."""
    return Settings()


def clear_settings_cache() -> None:
    """Forget cached settings so the next get_settings() re-reads the environment."""
    get_settings.cache_clear()
