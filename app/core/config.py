"""Application configuration using Pydantic Settings.

This project loads configuration from environment variables.

Optionally, you may point `ENV_FILE` at a local env file (for development).
Variables already present in the environment take precedence over the file.
"""

import os
from enum import Enum

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppEnvironment(str, Enum):
    """Application environment values."""

    LOCAL = "local"
    TEST = "test"
    PROD = "prod"


class Settings(BaseSettings):
    """
    Application settings with type validation.

    Configuration is loaded from environment variables, with support
    for .env files in development.
    """

    model_config = SettingsConfigDict(
        env_file=os.getenv("ENV_FILE") or None, env_prefix="", extra="ignore"
    )

    # Application
    app_env: AppEnvironment = AppEnvironment.LOCAL
    app_name: str = "member-search-api"
    app_log_level: str = "INFO"

    # Observability
    observability_enabled: bool = True
    observability_structured_logs: bool = True
    observability_request_id_header: str = "X-Request-ID"

    # OpenTelemetry Configuration
    otel_enabled: bool = False
    otel_service_name: str = "member-search-api"
    otel_exporter_otlp_endpoint: str = "http://localhost:4317"
    otel_exporter_otlp_headers: str | None = None
    otel_traces_sampler: str = "parent_trace_always"
    otel_traces_sampler_arg: float = 1.0

    # Database - Runtime app user (used by FastAPI)
    database_url_app: str

    # Metrics token for protecting /metrics endpoint
    metrics_token: str | None = None

    # CORS Configuration
    cors_origins: str = "http://localhost:3000,http://localhost:5173"

    # Pagination
    # 20 matches the page size clients get when they omit `limit`.
    page_default_limit: int = Field(default=20, ge=1)
    page_max_limit: int = Field(default=100, ge=1)

    # Sample data (teamA/teamB with 100 members), honoured only in LOCAL
    seed_sample_data: bool = False

    @property
    def cors_origins_list(self) -> list[str]:
        """Parse CORS origins string into a list."""
        return [origin.strip() for origin in self.cors_origins.split(",")]

    @property
    def async_url(self) -> str:
        """
        Database URL with an async driver selected.

        postgresql:// URLs use asyncpg and sqlite:// URLs use aiosqlite.
        URLs that already name a driver are returned unchanged.
        """
        url = self.database_url_app
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite://"):
            return url.replace("sqlite://", "sqlite+aiosqlite://", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.database_url_app.startswith("sqlite")

    @field_validator("app_env", mode="before")
    @classmethod
    def validate_app_env(cls, v: str | AppEnvironment) -> AppEnvironment:
        """Validate and parse app_env to AppEnvironment enum."""
        if isinstance(v, AppEnvironment):
            return v
        try:
            return AppEnvironment(v.lower())
        except ValueError as e:
            raise ValueError(
                f"app_env must be one of {[env.value for env in AppEnvironment]}, got '{v}'"
            ) from e

    @field_validator("database_url_app")
    @classmethod
    def validate_database_url(cls, v: str) -> str:
        """Reject empty database URLs early with a readable message."""
        if not v or not v.strip():
            raise ValueError("DATABASE_URL_APP must be set")
        return v.strip()

    @model_validator(mode="after")
    def validate_settings(self) -> "Settings":
        """
        Cross-field validation.

        Pagination bounds must be consistent in every environment; the
        production checks prevent development-only configuration from
        being deployed.
        """
        if self.page_default_limit > self.page_max_limit:
            raise ValueError(
                f"PAGE_DEFAULT_LIMIT ({self.page_default_limit}) must not exceed "
                f"PAGE_MAX_LIMIT ({self.page_max_limit})"
            )

        if self.app_env == AppEnvironment.PROD:
            if self.is_sqlite:
                raise ValueError("DATABASE_URL_APP must not use SQLite in production")

            if self.seed_sample_data:
                raise ValueError("SEED_SAMPLE_DATA can only be enabled in local environment")

            # CORS must not allow localhost in production
            for origin in self.cors_origins_list:
                if "localhost" in origin or "127.0.0.1" in origin:
                    raise ValueError(
                        f"CORS origins must not contain localhost in production: {origin}"
                    )

        return self


settings = Settings()
