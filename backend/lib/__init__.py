"""Backend utilities"""
from .supabase_client import get_supabase_client, supabase_configured
from .auth import get_current_user, verify_token

__all__ = ["get_supabase_client", "supabase_configured", "get_current_user", "verify_token"]
