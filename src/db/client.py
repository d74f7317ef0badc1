"""Supabase client initialization."""

from functools import lru_cache

from supabase import Client, create_client

from src.config import get_settings


@lru_cache()
def get_supabase_client() -> Client:
    """Get the process-wide Supabase client (service role)."""
    settings = get_settings()
    return create_client(settings.supabase_url, settings.supabase_service_key)
