"""Application Configuration — environment-driven settings via pydantic-settings.

Invariants:
    - All secrets come from environment variables (never hardcoded)
    - get_settings() is cached (lru_cache) — single instance per process
    - Window and cadence values validated on load, never at run time

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support (ADR: developer UX)
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://pulse:pulse@db:5432/pulse"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosting providers hand out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10

    # Store boundary (per-call timeout, retry with backoff)
    store_timeout_seconds: float = Field(10.0, gt=0)
    store_max_retries: int = Field(3, ge=0)
    store_base_delay_ms: int = Field(200, ge=0)
    store_max_delay_ms: int = Field(5_000, ge=0)

    # Sync loop
    sync_interval_seconds: float = Field(5.0, gt=0)
    sync_guard_release_seconds: float = Field(0.5, ge=0)

    # Materialization window
    window_months_back: int = Field(2, ge=0)
    window_months_forward: int = Field(10, ge=0)

    # Automation
    automation_enabled: bool = True

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
