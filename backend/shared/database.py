"""
Database client factory for Supabase.

The listing feed reads and writes the ``listings`` table through this client.
The service-role key is preferred; the anon key is used when it is the only
key configured (row level security then applies).
"""

from typing import Optional
from supabase import create_client, Client

from .config import Settings, get_settings

# Module-level client cache
_client: Optional[Client] = None


def get_supabase_client(settings: Optional[Settings] = None) -> Client:
    """
    Get the shared Supabase client, creating it on first use.

    Args:
        settings: Settings to read credentials from (defaults to get_settings())

    Returns:
        Supabase client configured with the strongest available key

    Raises:
        RuntimeError: If SUPABASE_URL or both keys are missing
    """
    global _client

    if _client is None:
        settings = settings or get_settings()
        key = settings.supabase_service_role_key or settings.supabase_anon_key
        if not settings.supabase_url or not key:
            raise RuntimeError(
                "Supabase configuration missing. "
                "Set SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY (or SUPABASE_ANON_KEY)."
            )
        _client = create_client(settings.supabase_url, key)

    return _client


def reset_client_cache() -> None:
    """
    Reset the cached database client.

    Useful for testing or when configuration changes.
    """
    global _client
    _client = None
