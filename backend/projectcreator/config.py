"""Application Configuration - environment-driven settings via pydantic-settings.

Invariants:
    - All secrets (app password, webhook secret) come from environment variables
    - get_settings() is cached (lru_cache): single instance per process

Design Decisions:
    - pydantic-settings over raw os.environ: validation, type coercion, .env file support
    - Defaults provided for all non-secret settings: works out-of-the-box with docker-compose
"""

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from functools import lru_cache


class Settings(BaseSettings):
    """Application settings from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False)

    # Database
    database_url: str = (
        "postgresql+asyncpg://projectcreator:projectcreator@db:5432/projectcreator"
    )

    @field_validator("database_url", mode="before")
    @classmethod
    def convert_postgres_url(cls, v: str) -> str:
        """Hosted Postgres hands out postgresql:// but asyncpg needs postgresql+asyncpg://."""
        if isinstance(v, str) and v.startswith("postgresql://"):
            return v.replace("postgresql://", "postgresql+asyncpg://", 1)
        return v

    database_pool_size: int = 20
    database_max_overflow: int = 10
    database_auto_create: bool = False

    # Nextcloud
    nextcloud_url: str = "http://nextcloud"
    nextcloud_user: str = "admin"
    nextcloud_app_password: str = "change-me"
    nextcloud_timeout_seconds: float = 30.0
    nextcloud_max_retries: int = 3
    nextcloud_base_delay_ms: int = 500
    nextcloud_max_delay_ms: int = 10_000
    nextcloud_admin_group: str = "admin"

    @field_validator("nextcloud_url", mode="before")
    @classmethod
    def strip_trailing_slash(cls, v: str) -> str:
        return v.rstrip("/") if isinstance(v, str) else v

    # Auth
    trusted_user_header: str = "X-Nextcloud-User"
    webhook_secret: str = ""
    webhook_secret_header: str = "X-Webhook-Secret"

    # API
    cors_origins: list[str] = ["http://localhost:5173"]

    # Observability
    log_level: str = "INFO"
    log_format: str = "json"


@lru_cache
def get_settings() -> Settings:
    return Settings()
