"""Process settings for the governance service, read with pydantic-settings.

Each group has its own env prefix (APP_, LIMITS_, DB_, SMTP_, LOG_). Before
the groups are built, ``.env.{APP_ENV}`` next to the project is loaded into
the environment when present; real environment variables set by the
deployment are overridden by that file.

Server defaults for quotas (storage caps, daily volume, count limits) are NOT
configured here: they live in the vault database and are re-read on every
admission check so admin changes take effect on the next request.
"""

from __future__ import annotations

import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

APP_ENV = os.getenv("APP_ENV", "development")

PROJECT_ROOT = Path(__file__).resolve().parents[2]

KNOWN_ENVS = ("development", "testing", "staging", "production")


def env_file_for(app_env: str) -> Path | None:
    """Path of the dotenv file for ``app_env``, or None when there is none."""

    name = app_env if app_env in KNOWN_ENVS else "development"
    path = PROJECT_ROOT / f".env.{name}"
    return path if path.is_file() else None


# Nested BaseSettings groups do not share an env_file, so load it globally.
_env_file = env_file_for(APP_ENV)
if _env_file is not None:
    load_dotenv(_env_file, override=True)


class AppSettings(BaseSettings):
    """HTTP surface: gateway authentication and request throttling."""

    api_key_required: bool = Field(
        True,
        description="Whether gateway API key authentication is required",
    )
    api_keys: str | None = Field(
        None,
        description="Comma-separated list of valid gateway API keys",
    )

    rate_limit_enabled: bool = Field(
        True,
        description="Enable abuse-rate throttling on mutating endpoints",
    )
    rate_limit_include_headers: bool = Field(
        True,
        description="Include RateLimit-* and Retry-After headers on responses",
    )
    rate_limit_window_ms: int = Field(
        60_000,
        description="Fixed window length in milliseconds for endpoint limiters",
        ge=1,
    )
    rate_limit_ip_limit: int = Field(
        20,
        description="Requests per window allowed per client IP",
        ge=1,
    )
    rate_limit_user_limit: int = Field(
        10,
        description="Requests per window allowed per user and action",
        ge=1,
    )
    rate_limit_sweep_interval_ms: int = Field(
        60_000,
        description="Minimum time between sweeps of expired rate-limit counters (0 = never)",
        ge=0,
    )
    trust_forwarded_for: bool = Field(
        False,
        description="Use the first X-Forwarded-For hop as the client IP",
    )

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        case_sensitive=False,
    )


class LimitsSettings(BaseSettings):
    """Breach notifier behaviour."""

    emails_disabled: bool = Field(
        False,
        description="Suppress every limit-reached email (operational kill switch)",
        validation_alias=AliasChoices("LIMITS_EMAILS_DISABLED", "DISABLE_LIMITS_EMAILS"),
    )
    notifier_max_workers: int = Field(
        2,
        description="Background threads delivering limit-reached emails",
        ge=1,
    )
    product_name: str = Field(
        "Vault",
        description="Brand shown in notification emails",
    )

    model_config = SettingsConfigDict(
        env_prefix="LIMITS_",
        case_sensitive=False,
    )


class DatabaseSettings(BaseSettings):
    """Persistent store and counter store selection."""

    url: str = Field(
        "sqlite:///./vaultgate.db",
        description="SQLAlchemy database URL of the vault database",
    )
    backend: str = Field(
        "sql",
        description="Governance store backend: sql or memory",
    )
    counter_backend: str = Field(
        "memory",
        description="Rate-limit counter backend: memory (per process) or sql (shared)",
    )
    echo: bool = Field(
        False,
        description="Log every SQL statement",
    )
    create_schema: bool = Field(
        False,
        description="Create missing tables on startup (local runs only)",
    )

    model_config = SettingsConfigDict(
        env_prefix="DB_",
        case_sensitive=False,
    )


class SmtpSettings(BaseSettings):
    """Outbound email relay."""

    host: str | None = Field(None, description="SMTP relay host")
    port: int = Field(587, description="SMTP relay port (465 = implicit TLS)")
    user: str | None = Field(None, description="SMTP username")
    password: str | None = Field(None, description="SMTP password")
    from_address: str | None = Field(None, description="From header for outbound mail")
    use_tls: bool = Field(True, description="Upgrade plain connections with STARTTLS")
    timeout_seconds: float = Field(10.0, description="Socket timeout for SMTP calls")
    support_email: str | None = Field(None, description="Support contact shown in emails")
    support_name: str | None = Field(None, description="Signature shown in emails")

    model_config = SettingsConfigDict(
        env_prefix="SMTP_",
        case_sensitive=False,
    )


class LogSettings(BaseSettings):
    """Logging output configuration."""

    level: str = Field("INFO", description="Root log level")
    format: str = Field("json", description="json or plain")
    output: str = Field("stdout", description="stdout or file")
    file_path: str | None = Field(None, description="Log file path when output=file")
    max_bytes: int = Field(0, description="Rotate log file at this size (0 = no rotation)")
    backup_count: int = Field(5, description="Rotated files to keep")
    request_id_header: str = Field("X-Request-ID", description="Correlation header name")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        case_sensitive=False,
    )


class Settings(BaseSettings):
    """All settings groups for one process.

    Built once at import; malformed values fail startup.
    """

    app_env: str = APP_ENV
    app: AppSettings = Field(default_factory=AppSettings)
    limits: LimitsSettings = Field(default_factory=LimitsSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    smtp: SmtpSettings = Field(default_factory=SmtpSettings)
    log: LogSettings = Field(default_factory=LogSettings)

    model_config = SettingsConfigDict(
        case_sensitive=False,
    )


settings = Settings()
