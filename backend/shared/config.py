"""
Centralized configuration for the Freight Board backend.

All settings are loaded from environment variables with sensible defaults.
Module-specific settings are namespaced (e.g., SUPABASE_*, GATE_*, AI_*).
"""

from functools import lru_cache
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Freight Board"
    app_version: str = "0.1.0"
    debug: bool = False
    log_level: str = "INFO"

    # Supabase
    supabase_url: str = ""
    supabase_anon_key: str = ""
    supabase_service_role_key: str = ""

    # Listing feed
    listings_table: str = "listings"
    feed_limit: int = 100
    feed_poll_interval: float = 5.0  # seconds

    # Listing lifecycle
    listing_ttl_hours: int = 72

    # Subscription gate
    gate_countdown_seconds: int = 8
    gate_tick_interval: float = 1.0  # seconds
    gate_external_url: str = "https://t.me/designer_pro_muslim"

    # Local per-identity state
    recent_history_limit: int = 20
    state_file: str = ""  # empty keeps state in memory

    # AI assistant (Google Gemini)
    google_api_key: str = ""
    ai_fast_model: str = "gemini-flash-lite-latest"
    ai_search_model: str = "gemini-3-flash-preview"
    ai_timeout_seconds: float = 20.0
    ai_max_retries: int = 1

    @property
    def listing_ttl_ms(self) -> int:
        """Default listing lifetime in milliseconds."""
        return self.listing_ttl_hours * 60 * 60 * 1000

    @property
    def supabase_configured(self) -> bool:
        """Whether a remote Supabase store can be used."""
        return bool(self.supabase_url and (self.supabase_service_role_key or self.supabase_anon_key))


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses lru_cache to ensure settings are only loaded once.
    """
    return Settings()
