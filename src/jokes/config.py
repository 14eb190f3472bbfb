"""Application configuration via environment variables with Pydantic validation.

All configuration is loaded from environment variables (with .env file support).
The app fails loudly at startup if required values are missing or invalid.
"""

from pydantic import AnyHttpUrl, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Jokes service settings. All values sourced from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str = "sqlite+aiosqlite:///./jokes.db"
    db_pool_timeout: int = 5
    db_connect_timeout: int = 5

    # API server
    api_host: str = "127.0.0.1"
    api_port: int = 8000
    shutdown_grace_seconds: int = 15

    # Authentication: static bearer token for create/update/delete
    api_token: str

    # Per-request deadline for handlers and their storage calls
    request_timeout_seconds: float = 5.0

    # Request limits
    max_request_body_bytes: int = 1_048_576

    # Rate limiting: token bucket per client IP
    rate_limit_rate: float = 1.0  # tokens per second
    rate_limit_burst: int = 5
    rate_limit_sweep_interval_seconds: float = 60.0
    rate_limit_idle_seconds: float = 180.0

    # Keep-alive pinger (optional)
    keepalive_url: AnyHttpUrl | None = None
    keepalive_interval_seconds: float = 780.0

    # Logging
    log_level: str = "INFO"
    log_format: str = "json"

    @field_validator("database_url")
    @classmethod
    def database_url_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("DATABASE_URL must not be empty")
        return v

    @field_validator("api_token")
    @classmethod
    def api_token_not_empty(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("API token must not be empty — set API_TOKEN")
        return v

    @field_validator(
        "request_timeout_seconds",
        "rate_limit_rate",
        "rate_limit_burst",
        "rate_limit_sweep_interval_seconds",
        "rate_limit_idle_seconds",
        "keepalive_interval_seconds",
    )
    @classmethod
    def strictly_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("log_format")
    @classmethod
    def known_log_format(cls, v: str) -> str:
        v = v.strip().lower()
        if v not in ("json", "console"):
            raise ValueError("LOG_FORMAT must be 'json' or 'console'")
        return v


def get_settings() -> Settings:
    """Create and return a validated Settings instance.

    Raises ValidationError with clear messages if required env vars are missing.
    """
    return Settings()  # type: ignore[call-arg]
