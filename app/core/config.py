# app/core/config.py
"""Configuration settings for the push notification service.

Uses Pydantic BaseSettings for environment variable management.
"""
from enum import Enum

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class EnvironmentEnum(str, Enum):
    development = "development"
    testing = "testing"
    staging = "staging"
    production = "production"


class LogLevelEnum(str, Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class Settings(BaseSettings):
    # Pydantic v2 settings configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ===== Application Settings =====
    app_name: str = Field(default="Reclamos Push API", description="Application name")
    environment: EnvironmentEnum = Field(
        default=EnvironmentEnum.development, description="Environment type"
    )
    debug: bool = Field(default=False, description="Debug mode")
    version: str = Field(default="1.0.0", description="Application version")
    git_commit_sha: str | None = Field(
        default=None,
        validation_alias=AliasChoices("git_commit_sha", "vercel_git_commit_sha"),
        description="Deployed commit, reported by health endpoints",
    )

    # ===== Database Settings =====
    database_url: str | None = Field(default=None, description="Database connection URL")
    test_database_url: str | None = Field(default=None, description="Test database URL")

    # ===== Backend Auth (Supabase) =====
    supabase_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("supabase_url", "vite_supabase_url"),
        description="Backend base URL",
    )
    supabase_anon_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("supabase_anon_key", "vite_supabase_anon_key"),
        description="Restricted key used to resolve caller identity",
    )
    supabase_jwt_secret: str | None = Field(
        default=None, description="JWT secret for local access token verification"
    )
    auth_request_timeout: float = Field(default=10.0, description="Auth API timeout in seconds")

    # ===== Web Push (VAPID) =====
    vapid_public_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("vapid_public_key", "vite_vapid_public_key"),
        description="VAPID public key (base64url)",
    )
    vapid_private_key: str | None = Field(default=None, description="VAPID private key")
    vapid_subject: str | None = Field(
        default=None, description="VAPID subject, a mailto: or https: contact URI"
    )
    push_ttl_seconds: int = Field(default=86400, description="TTL for queued push messages")
    push_timeout_seconds: float = Field(default=10.0, description="Push service HTTP timeout")

    # ===== Change-capture webhook =====
    webhook_secret: str | None = Field(default=None, description="Shared webhook secret")
    claims_table: str = Field(default="reclamos", description="Table watched by the webhook")

    # ===== CORS Settings =====
    allowed_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173,http://127.0.0.1:5173",
        description="Allowed CORS origins (comma-separated)",
    )

    @property
    def allowed_origins_list(self) -> list[str]:
        """Parse CORS origins from comma-separated string."""
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]

    # ===== Monitoring & Logging =====
    log_level: LogLevelEnum = Field(default=LogLevelEnum.INFO, description="Logging level")

    # ===== Server Settings =====
    host: str = Field(default="127.0.0.1", description="Host to bind the server")
    port: int = Field(default=8000, description="Port to bind the server")

    # ===== Computed Properties =====
    @property
    def is_development(self) -> bool:
        return self.environment == EnvironmentEnum.development

    @property
    def is_production(self) -> bool:
        return self.environment == EnvironmentEnum.production

    @property
    def is_testing(self) -> bool:
        return self.environment == EnvironmentEnum.testing

    @property
    def has_vapid_keys(self) -> bool:
        return bool(self.vapid_public_key and self.vapid_private_key and self.vapid_subject)

    @property
    def commit_short(self) -> str | None:
        return self.git_commit_sha[:7] if self.git_commit_sha else None

    # ===== Validation Methods =====
    @field_validator("environment", mode="before")
    @classmethod
    def validate_environment(cls, v):
        if v and isinstance(v, str):
            lv = v.lower()
            if lv in ["dev", "develop"]:
                return "development"
            if lv in ["prod"]:
                return "production"
            return lv
        return v

    @field_validator(
        "supabase_url",
        "supabase_anon_key",
        "supabase_jwt_secret",
        "vapid_public_key",
        "vapid_private_key",
        "vapid_subject",
        "webhook_secret",
        mode="before",
    )
    @classmethod
    def strip_secret(cls, v):
        if isinstance(v, str):
            v = v.strip()
            return v or None
        return v

    @field_validator("push_ttl_seconds")
    @classmethod
    def validate_ttl(cls, v):
        if v < 0:
            raise ValueError("Push TTL cannot be negative")
        return v


settings = Settings()


def get_settings() -> Settings:
    """Return the application settings; overridden in tests."""
    return settings


class ConfigValidator:
    @staticmethod
    def validate_required_settings(config: Settings | None = None):
        config = config or settings
        errors = []
        if not config.database_url:
            errors.append("DATABASE_URL is required")
        if not config.supabase_jwt_secret and not (config.supabase_url and config.supabase_anon_key):
            errors.append("SUPABASE_JWT_SECRET or SUPABASE_URL + SUPABASE_ANON_KEY is required")
        if not config.has_vapid_keys:
            errors.append("VAPID_PUBLIC_KEY, VAPID_PRIVATE_KEY and VAPID_SUBJECT are required")
        if not config.webhook_secret:
            errors.append("WEBHOOK_SECRET is required")
        if errors:
            raise ValueError(f"Configuration errors: {', '.join(errors)}")

    @staticmethod
    def get_feature_status(config: Settings | None = None) -> dict:
        config = config or settings
        return {
            "push_enabled": config.has_vapid_keys,
            "webhook_enabled": bool(config.webhook_secret),
            "local_token_verification": bool(config.supabase_jwt_secret),
            "environment": config.environment,
        }


__all__ = [
    "settings",
    "get_settings",
    "Settings",
    "ConfigValidator",
    "EnvironmentEnum",
    "LogLevelEnum",
]
