# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Application configuration using Pydantic Settings."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(env_prefix="TEAMMOVE_", env_file=".env", extra="ignore")

    # Application
    app_name: str = "teammove-api"
    version: str = "1.0.0"
    environment: str = "development"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Database
    db_host: str = "localhost"
    db_port: int = 5432
    db_name: str = "teammove"
    db_user: str = "teammove"
    db_password: str = "teammove-dev-secret"
    db_pool_size: int = 5
    db_max_overflow: int = 10

    # Auth (tokens are issued elsewhere, we only verify them)
    jwt_secret: str = "change-me-in-production"
    jwt_algorithm: str = "HS256"
    jwt_audience: str = ""

    # Public URLs
    app_url: str = "http://localhost:5173"
    billing_path: str = "/dashboard/billing"

    # Stripe
    stripe_secret_key: str = ""
    stripe_webhook_secret: str = ""
    stripe_max_network_retries: int = 2
    stripe_webhook_tolerance_seconds: int = 300
    # Comma-separated plan_id=price_id pairs, e.g. "pro-club=price_123,pro-pme=price_456"
    stripe_price_ids: str = ""

    # Email
    email_enabled: bool = False
    smtp_host: str = "localhost"
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_from: str = "TeamMove <noreply@teammove.fr>"
    smtp_tls: bool = True

    # Subscription maintenance worker
    subscription_worker_enabled: bool = True
    subscription_worker_interval_seconds: int = 3600
    renewal_reminder_days: str = "7,3,1"
    low_events_threshold: int = 2
    # Participants of events starting within this window get an automatic reminder
    event_reminder_hours_before: int = 24

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"
    log_components: str = ""
    log_masking_enabled: bool = True
    log_masking_patterns: str = "password,secret,token,authorization,api_key,card"
    log_mask_emails: bool = True
    log_exclude_paths: str = "/health,/health/live,/health/ready,/metrics"
    log_slow_request_threshold_ms: int = 1000

    # CORS
    cors_origins: str = "http://localhost:5173,http://localhost:3000"

    # Rate limiting
    rate_limit_public: str = "20/minute"
    rate_limit_registration: str = "5/minute"

    @property
    def database_url(self) -> str:
        """Construct async database URL."""
        return (
            f"postgresql+asyncpg://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def database_url_sync(self) -> str:
        """Construct sync database URL for Alembic migrations."""
        return (
            f"postgresql://{self.db_user}:{self.db_password}"
            f"@{self.db_host}:{self.db_port}/{self.db_name}"
        )

    @property
    def reminder_days_list(self) -> list[int]:
        return sorted(
            (int(d) for d in self.renewal_reminder_days.split(",") if d.strip()),
            reverse=True,
        )

    @property
    def stripe_price_ids_dict(self) -> dict[str, str]:
        result = {}
        for pair in self.stripe_price_ids.split(","):
            if "=" in pair:
                plan_id, price_id = pair.split("=", 1)
                result[plan_id.strip()] = price_id.strip()
        return result

    @property
    def log_components_dict(self) -> dict[str, str]:
        """Parse "logger=LEVEL" pairs for per-component log levels."""
        result = {}
        for pair in self.log_components.split(","):
            if "=" in pair:
                name, level = pair.split("=", 1)
                result[name.strip()] = level.strip().upper()
        return result

    @property
    def log_masking_patterns_list(self) -> list[str]:
        return [p.strip() for p in self.log_masking_patterns.split(",") if p.strip()]

    @property
    def log_exclude_paths_list(self) -> list[str]:
        return [p.strip() for p in self.log_exclude_paths.split(",") if p.strip()]

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


settings = get_settings()
