# =============================================================================
# subtrack_core/data/__init__.py
# Remote Client Access
# =============================================================================

from .supabase_client import get_supabase_client, cleanup_supabase_connections

__all__ = ["get_supabase_client", "cleanup_supabase_connections"]
