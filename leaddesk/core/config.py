# leaddesk/core/config.py
from __future__ import annotations

from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Used only when neither ADMIN_SESSION_SECRET nor NEXTAUTH_SECRET is set.
INSECURE_SESSION_SECRET = "pma-admin-session-secret-change-this"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Environment
    environment: str = Field(default="development", validation_alias="ENVIRONMENT")
    debug: bool = Field(default=False, validation_alias="DEBUG")

    # Server
    api_host: str = Field(default="0.0.0.0", validation_alias="API_HOST")
    api_port: int = Field(default=8000, validation_alias="API_PORT")
    api_prefix: str = Field(default="/api", validation_alias="API_PREFIX")

    # Admin identity
    admin_username: str = Field(default="admin", validation_alias="ADMIN_USERNAME")
    admin_password: str = Field(default="change-me", validation_alias="ADMIN_PASSWORD")
    admin_session_secret: str = Field(default="", validation_alias="ADMIN_SESSION_SECRET")
    nextauth_secret: str = Field(default="", validation_alias="NEXTAUTH_SECRET")
    admin_session_ttl_seconds: int = Field(default=60 * 60 * 12, validation_alias="ADMIN_SESSION_TTL_SECONDS")

    # Database, first non-empty wins (see resolved_database_url)
    database_url: str = Field(default="", validation_alias="DATABASE_URL")
    postgres_url: str = Field(default="", validation_alias="POSTGRES_URL")
    prisma_database_url: str = Field(default="", validation_alias="PRISMA_DATABASE_URL")
    postgres_prisma_url: str = Field(default="", validation_alias="POSTGRES_PRISMA_URL")
    postgres_url_non_pooling: str = Field(default="", validation_alias="POSTGRES_URL_NON_POOLING")
    database_pool_size: int = Field(default=5, validation_alias="DATABASE_POOL_SIZE")
    database_max_overflow: int = Field(default=10, validation_alias="DATABASE_MAX_OVERFLOW")
    database_pool_timeout: int = Field(default=30, validation_alias="DATABASE_POOL_TIMEOUT")
    database_pool_recycle: int = Field(default=1800, validation_alias="DATABASE_POOL_RECYCLE")
    database_statement_timeout_seconds: int = Field(default=30, validation_alias="DATABASE_STATEMENT_TIMEOUT_SECONDS")

    # Leads
    lead_list_limit: int = Field(default=5000, validation_alias="LEAD_LIST_LIMIT")
    goal_max_length: int = Field(default=220, validation_alias="GOAL_MAX_LENGTH")
    call_notes_max_length: int = Field(default=1000, validation_alias="CALL_NOTES_MAX_LENGTH")

    # Google Sheets mirror
    google_sheets_webhook_url: str = Field(default="", validation_alias="GOOGLE_SHEETS_WEBHOOK_URL")
    google_sheets_webhook_token: str = Field(default="", validation_alias="GOOGLE_SHEETS_WEBHOOK_TOKEN")
    webhook_timeout_seconds: int = Field(default=12, validation_alias="WEBHOOK_TIMEOUT_SECONDS")

    # Logging
    log_level: str = Field(default="INFO", validation_alias="LOG_LEVEL")
    log_format: str = Field(default="json", validation_alias="LOG_FORMAT")

    # CORS
    allowed_origins: str = Field(default="http://localhost:3000,http://127.0.0.1:3000", validation_alias="ALLOWED_ORIGINS")
    allowed_methods: str = Field(default="GET,POST,PUT,DELETE,OPTIONS", validation_alias="ALLOWED_METHODS")
    allowed_headers: str = Field(default="*", validation_alias="ALLOWED_HEADERS")

    # Monitoring
    sentry_dsn: Optional[str] = Field(default=None, validation_alias="SENTRY_DSN")

    @field_validator("environment")
    def validate_environment(cls, v):
        valid_envs = ["development", "testing", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"environment must be one of {valid_envs}")
        return v

    @field_validator("log_level")
    def validate_log_level(cls, v):
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v.upper()

    @field_validator("log_format")
    def validate_log_format(cls, v):
        valid_formats = ["json", "console"]
        if v not in valid_formats:
            raise ValueError(f"log_format must be one of {valid_formats}")
        return v

    @field_validator(
        "admin_username",
        "admin_password",
        "admin_session_secret",
        "nextauth_secret",
        "database_url",
        "postgres_url",
        "prisma_database_url",
        "postgres_prisma_url",
        "postgres_url_non_pooling",
        "google_sheets_webhook_url",
        "google_sheets_webhook_token",
    )
    def strip_value(cls, v):
        return (v or "").strip()

    @field_validator("admin_session_ttl_seconds")
    def validate_session_ttl(cls, v):
        if v <= 0:
            raise ValueError("admin_session_ttl_seconds must be positive")
        return v

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def is_development(self) -> bool:
        return self.environment == "development"

    @property
    def is_testing(self) -> bool:
        return self.environment == "testing"

    def session_secret(self) -> str:
        return self.admin_session_secret or self.nextauth_secret or INSECURE_SESSION_SECRET

    def uses_insecure_session_secret(self) -> bool:
        return self.session_secret() == INSECURE_SESSION_SECRET

    def resolved_database_url(self) -> str:
        candidates = [
            self.database_url,
            self.postgres_url,
            self.prisma_database_url,
            self.postgres_prisma_url,
            self.postgres_url_non_pooling,
        ]
        for candidate in candidates:
            if candidate:
                return candidate
        return ""

    def origins(self) -> List[str]:
        if self.allowed_origins.strip() == "*":
            return ["*"]
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    def methods(self) -> List[str]:
        return [method.strip() for method in self.allowed_methods.split(",") if method.strip()]


settings = Settings()
