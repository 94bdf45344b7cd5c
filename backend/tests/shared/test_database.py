"""Tests for shared/database.py."""

import pytest
from unittest.mock import patch, MagicMock

from shared.config import Settings
from shared.database import get_supabase_client, reset_client_cache


def make_settings(**overrides) -> Settings:
    values = {
        "supabase_url": "https://test.supabase.co",
        "supabase_anon_key": "",
        "supabase_service_role_key": "",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class TestSupabaseClient:
    def setup_method(self):
        """Reset cache before each test."""
        reset_client_cache()

    def teardown_method(self):
        reset_client_cache()

    @patch("shared.database.create_client")
    def test_prefers_service_role_key(self, mock_create):
        mock_create.return_value = MagicMock()

        client = get_supabase_client(make_settings(
            supabase_service_role_key="service-key",
            supabase_anon_key="anon-key",
        ))

        mock_create.assert_called_once_with("https://test.supabase.co", "service-key")
        assert client is mock_create.return_value

    @patch("shared.database.create_client")
    def test_falls_back_to_anon_key(self, mock_create):
        get_supabase_client(make_settings(supabase_anon_key="anon-key"))

        mock_create.assert_called_once_with("https://test.supabase.co", "anon-key")

    @patch("shared.database.create_client")
    def test_caches_client(self, mock_create):
        """Should cache the client and not recreate it."""
        mock_create.return_value = MagicMock()
        settings = make_settings(supabase_service_role_key="service-key")

        client1 = get_supabase_client(settings)
        client2 = get_supabase_client(settings)

        mock_create.assert_called_once()
        assert client1 is client2

    @patch("shared.database.get_settings")
    def test_uses_global_settings_by_default(self, mock_settings):
        mock_settings.return_value = make_settings(supabase_url="")

        with pytest.raises(RuntimeError, match="configuration missing"):
            get_supabase_client()

    def test_raises_without_key(self):
        with pytest.raises(RuntimeError, match="configuration missing"):
            get_supabase_client(make_settings())

    @patch("shared.database.create_client")
    def test_reset_clears_cache(self, mock_create):
        mock_create.side_effect = [MagicMock(), MagicMock()]
        settings = make_settings(supabase_service_role_key="service-key")

        client1 = get_supabase_client(settings)
        reset_client_cache()
        client2 = get_supabase_client(settings)

        assert client1 is not client2
