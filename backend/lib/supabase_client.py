"""
Supabase client for backend operations
"""
from typing import Optional

from supabase import create_client, Client

from sparkpath_mentor.config import get_settings

_supabase_client: Optional[Client] = None


def supabase_configured() -> bool:
    return get_settings().supabase_configured


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton"""
    global _supabase_client

    if _supabase_client is None:
        settings = get_settings()
        # Service role key: chat history and progress are written on the user's behalf
        if not settings.supabase_configured:
            raise ValueError("SUPABASE_URL and SUPABASE_SERVICE_KEY must be set in environment")

        _supabase_client = create_client(settings.supabase_url, settings.supabase_service_key)

    return _supabase_client
