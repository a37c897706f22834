"""Application configuration using Pydantic Settings.

Configuration is environment-aware:
- APP_ENV determines which .env file to load
- Supports: development, testing, staging, production
- Each environment has its own .env.{environment} file
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


# Determine which environment to load (default: development)
APP_ENV = os.getenv("APP_ENV", "development")

# Project root (so .env resolution doesn't depend on current working directory)
PROJECT_ROOT = Path(__file__).resolve().parents[2]

ENV_FILE_MAP = {
    "development": ".env.development",
    "testing": ".env.testing",
    "staging": ".env.staging",
    "production": ".env.production",
}

_env_filename = ENV_FILE_MAP.get(APP_ENV, ".env.development")
_env_path = PROJECT_ROOT / _env_filename

# Only load from file if it exists (production might inject via env vars only)
_env_file = str(_env_path) if _env_path.is_file() else None


# Load .env file early to populate os.environ before creating nested settings
# This is necessary because Pydantic nested BaseSettings don't inherit env_file
if _env_file:
    from dotenv import load_dotenv
    load_dotenv(_env_file, override=True)


class RateLimitPolicy(BaseModel):
    """Quota applied to one protected operation."""

    max_requests: int = Field(..., ge=1, description="Requests allowed per window")
    window_ms: int = Field(..., ge=1, description="Window length in milliseconds")


class RateLimitPolicySettings(BaseSettings):
    """Per-operation quotas.

    Override with JSON values, e.g.
    ``RATE_LIMIT_CREATE_ORDER='{"max_requests": 3, "window_ms": 60000}'``.
    """

    admin_create_user: RateLimitPolicy = Field(
        default_factory=lambda: RateLimitPolicy(max_requests=10, window_ms=60 * 60_000),
        description="User creations per admin per hour",
    )
    admin_list_users: RateLimitPolicy = Field(
        default_factory=lambda: RateLimitPolicy(max_requests=20, window_ms=60_000),
        description="User listings per admin per minute",
    )
    create_order: RateLimitPolicy = Field(
        default_factory=lambda: RateLimitPolicy(max_requests=5, window_ms=60_000),
        description="Payment orders per user per minute",
    )
    verify_payment: RateLimitPolicy = Field(
        default_factory=lambda: RateLimitPolicy(max_requests=10, window_ms=5 * 60_000),
        description="Payment verifications per user per five minutes",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        case_sensitive=False,
    )


class AppSettings(BaseSettings):
    """Application-wide configuration."""

    debug: bool = Field(
        False,
        description="Enable debug mode with verbose logging",
    )
    cors_allow_origin: str = Field(
        "*",
        description="Value of Access-Control-Allow-Origin",
    )
    cors_allow_headers: str = Field(
        "authorization, x-client-info, apikey, content-type",
        description="Value of Access-Control-Allow-Headers",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable per-operation rate limiting",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include X-RateLimit-* headers on allowed responses",
    )
    rate_limit_sweep_interval_seconds: float = Field(
        60.0,
        description="Seconds between background removals of expired counters",
        gt=0,
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="Log format: json or plain")
    output: str = Field("stdout", description="Log output: stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(10 * 1024 * 1024, description="Rotate file after N bytes (0 disables)")
    backup_count: int = Field(5, description="Number of rotated files to keep")
    request_id_header: str = Field(
        "X-Request-ID",
        description="Header used to read/propagate the correlation id",
    )

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class SupabaseSettings(BaseSettings):
    """Supabase project credentials."""

    url: str | None = Field(None, description="Project URL (https://<ref>.supabase.co)")
    anon_key: str | None = Field(None, description="Public anon key")
    service_role_key: str | None = Field(None, description="Service role key (admin access)")
    timeout_seconds: float = Field(10.0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="SUPABASE_",
        case_sensitive=False,
    )


class RazorpaySettings(BaseSettings):
    """Razorpay API credentials."""

    key_id: str | None = Field(None, description="Public key id")
    key_secret: str | None = Field(None, description="Secret used for API auth and signatures")
    base_url: str = Field("https://api.razorpay.com/v1", description="API base URL")
    timeout_seconds: float = Field(15.0, description="HTTP timeout in seconds")

    model_config = SettingsConfigDict(
        env_prefix="RAZORPAY_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """Main application settings container.

    Automatically loads from the appropriate .env.{APP_ENV} file.
    Nested settings are created via default_factory so env loading works.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    rate_limits: RateLimitPolicySettings = Field(default_factory=RateLimitPolicySettings)
    log: LogSettings = Field(default_factory=LogSettings)
    supabase: SupabaseSettings = Field(default_factory=SupabaseSettings)
    razorpay: RazorpaySettings = Field(default_factory=RazorpaySettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
