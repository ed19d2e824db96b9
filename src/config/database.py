"""
Shared Supabase client.

The service connects with the service role key, which bypasses row level
security. Every query built on this client must filter on the
authenticated user's id (see wardrobe.repository).
"""

from functools import lru_cache
from typing import Optional

from supabase import Client, create_client

from config.settings import get_settings


class SupabaseClientError(Exception):
    """The Supabase client could not be built from the current settings."""


@lru_cache(maxsize=1)
def get_supabase_client() -> Client:
    """
    Build the Supabase client once and reuse it for every request.

    Raises:
        SupabaseClientError: if the URL or key is missing or malformed
    """
    settings = get_settings()
    try:
        return create_client(settings.supabase_url, settings.supabase_service_key)
    except Exception as e:
        raise SupabaseClientError(f"Could not connect to Supabase at {settings.supabase_url}: {e}") from e


def get_supabase_client_optional() -> Optional[Client]:
    """The shared client, or None when it can't be built (used by health checks)."""
    try:
        return get_supabase_client()
    except SupabaseClientError:
        return None
