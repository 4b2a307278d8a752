"""Application settings loaded from the environment."""

from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Runtime configuration shared by the pipeline and the HTTP surface."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    app_env: str = "local"
    log_level: str = "INFO"
    database_url: str = "sqlite+aiosqlite:///./sessions.db"
    redis_url: str = "redis://localhost:6379/0"
    secret_key: str = "change-me-in-production"
    allow_insecure_http_cookies: bool = False

    # Defaults applied to scopes that do not override them.
    session_timeout_minutes: int = 0
    consecutive_failed_logins_limit: int = 50
    failed_login_ban_minutes: int = 120
    remember_me_days: int = 90
    perishable_token_valid_minutes: int = 10
    last_request_at_threshold_seconds: int = 0
    http_auth_realm: str = "Application"


settings = Settings()
