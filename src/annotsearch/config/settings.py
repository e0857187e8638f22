"""Application settings loaded from environment variables."""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_DIRECT_LINK_PROVIDERS = ["http://memex.link", "http://staging.memex.link"]


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application Configuration
    environment: Literal["development", "test", "production"] = "development"
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = "INFO"

    # Search defaults
    default_limit: int = 5
    """Result cap used when a search does not set its own limit."""

    max_annots_per_page: int = 9
    """Annotations attached to each page when grouping results by page."""

    max_concurrent_queries: int = 10
    """Upper bound on in-flight store queries during term search."""

    direct_link_providers: list[str] = Field(
        default_factory=lambda: list(DEFAULT_DIRECT_LINK_PROVIDERS)
    )
    """URL prefixes of hosts that mint direct-link annotations."""

    # Database
    database_url: str = "sqlite+aiosqlite:///annotations.db"
    database_echo: bool = False


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
