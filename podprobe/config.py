"""Settings for the pod probe service.

Values come from ``PODPROBE_*`` environment variables or a ``.env`` file.
Pod identity (``HOSTNAME``, ``NODE_NAME``, ...) is not part of these settings,
it is resolved once at startup by ``podprobe.identity``.
"""

from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Service configuration."""

    model_config = SettingsConfigDict(
        env_prefix="PODPROBE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    app_title: str = "Pod Probe API"
    version: str = "0.1.0"

    host: str = "0.0.0.0"
    port: int = 8080

    log_level: str = "INFO"
    log_format: str = "json"

    # Both URLs must point at the same database
    database_url: str = "sqlite:///./.podprobe.db"
    async_database_url: str = "sqlite+aiosqlite:///./.podprobe.db"

    posts_cache_ttl: float = Field(default=300, ge=0)
    seed_on_startup: bool = True


@lru_cache
def get_settings() -> Settings:
    return Settings()
