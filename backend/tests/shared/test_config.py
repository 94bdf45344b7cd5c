"""Tests for shared/config.py."""

from unittest.mock import patch
import os

from shared.config import Settings, get_settings


class TestSettings:
    def test_default_values(self):
        """Settings should have sensible defaults."""
        with patch.dict(os.environ, {}, clear=True):
            settings = Settings(_env_file=None)
        assert settings.app_name == "Freight Board"
        assert settings.debug is False
        assert settings.app_version == "0.1.0"
        assert settings.listings_table == "listings"
        assert settings.feed_limit == 100
        assert settings.listing_ttl_hours == 72
        assert settings.gate_countdown_seconds == 8
        assert settings.recent_history_limit == 20
        assert settings.state_file == ""
        assert settings.ai_timeout_seconds == 20.0
        assert settings.ai_max_retries == 1

    def test_listing_ttl_ms(self):
        """Default TTL should be 72 hours in milliseconds."""
        settings = Settings(_env_file=None, listing_ttl_hours=72)
        assert settings.listing_ttl_ms == 259_200_000

    def test_loads_from_env(self):
        """Settings should load from environment variables."""
        with patch.dict(os.environ, {"DEBUG": "true", "GATE_COUNTDOWN_SECONDS": "3"}):
            settings = Settings(_env_file=None)
            assert settings.debug is True
            assert settings.gate_countdown_seconds == 3

    def test_loads_supabase_config_from_env(self):
        """Settings should load Supabase configuration from environment variables."""
        with patch.dict(os.environ, {
            "SUPABASE_URL": "https://test.supabase.co",
            "SUPABASE_ANON_KEY": "test-anon-key",
            "SUPABASE_SERVICE_ROLE_KEY": "test-service-key",
        }):
            settings = Settings(_env_file=None)
            assert settings.supabase_url == "https://test.supabase.co"
            assert settings.supabase_anon_key == "test-anon-key"
            assert settings.supabase_service_role_key == "test-service-key"
            assert settings.supabase_configured is True

    def test_supabase_not_configured_without_key(self):
        """A URL alone is not enough to use Supabase."""
        settings = Settings(
            _env_file=None,
            supabase_url="https://test.supabase.co",
            supabase_anon_key="",
            supabase_service_role_key="",
        )
        assert settings.supabase_configured is False

    def test_anon_key_is_enough(self):
        settings = Settings(
            _env_file=None,
            supabase_url="https://test.supabase.co",
            supabase_anon_key="anon",
            supabase_service_role_key="",
        )
        assert settings.supabase_configured is True


class TestGetSettings:
    def test_get_settings_returns_settings_instance(self):
        """get_settings should return a Settings instance."""
        get_settings.cache_clear()
        settings = get_settings()
        assert isinstance(settings, Settings)

    def test_get_settings_caches(self):
        """get_settings should return cached instance."""
        get_settings.cache_clear()
        settings1 = get_settings()
        settings2 = get_settings()
        assert settings1 is settings2
