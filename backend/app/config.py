"""Configuration settings for the LocalPro backend."""

from functools import lru_cache
from typing import Literal

from pydantic_settings import BaseSettings

from localpro.config import MarketplaceConfig


class Settings(BaseSettings):
    """Application settings loaded from environment."""

    # Storage
    storage_backend: Literal["supabase", "memory"] = "supabase"
    supabase_url: str | None = None
    supabase_secret_key: str | None = None  # Service-role access, server side only

    # JWT
    jwt_secret_key: str  # Required - no default for security
    jwt_algorithm: str = "HS256"
    jwt_expire_minutes: int = 60 * 24 * 7  # 1 week

    # App
    debug: bool = False
    log_level: str = "INFO"
    cors_origins: list[str] = [
        "http://localhost:3000",
        "http://127.0.0.1:3000",
    ]
    # Comma-separated CIDRs allowed to set X-Forwarded-For
    trusted_proxy_cidrs: str = ""

    # Marketplace
    bulk_quantity_threshold: int = 10
    top_rated_threshold: float = 4.5
    feed_timeout_seconds: float = 25.0
    feed_poll_interval_seconds: float = 1.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra env vars not in model

    def marketplace_config(self) -> MarketplaceConfig:
        return MarketplaceConfig(
            bulk_quantity_threshold=self.bulk_quantity_threshold,
            top_rated_threshold=self.top_rated_threshold,
            feed_poll_interval=self.feed_poll_interval_seconds,
        )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
