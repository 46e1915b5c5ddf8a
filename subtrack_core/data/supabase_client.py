# =============================================================================
# subtrack_core/data/supabase_client.py
# Supabase Client Configuration for the Subscription Tracker
# =============================================================================
"""
One async Supabase client per browser session.

The client carries the signed-in user's auth session, and row-level
security on the tables depends on it, so it is cached in st.session_state
rather than shared by the whole server process.
"""

from __future__ import annotations
from typing import Any, MutableMapping, Optional

import streamlit as st
from supabase import AsyncClient, acreate_client

from subtrack_core.config import TrackerSettings
from subtrack_core.errors import ConfigurationError
from subtrack_core.logging import get_logger

logger = get_logger(__name__)

SESSION_CLIENT_KEY = "supabase_client"


def _session_state(session_state: Optional[MutableMapping[str, Any]]) -> MutableMapping[str, Any]:
    return st.session_state if session_state is None else session_state


async def get_supabase_client(
    settings: TrackerSettings,
    session_state: Optional[MutableMapping[str, Any]] = None,
) -> Optional[AsyncClient]:
    """
    Return the async Supabase client of the current session.

    Args:
        settings: Supabase credentials
        session_state: Mapping the client is cached in (default: st.session_state)

    Returns:
        AsyncClient, or None when Supabase credentials are not configured
    """
    state = _session_state(session_state)
    client = state.get(SESSION_CLIENT_KEY)
    if client is not None:
        return client

    try:
        settings.require_remote()
    except ConfigurationError as e:
        logger.warning(f"Supabase disabled: {e.message}")
        return None

    client = await acreate_client(settings.supabase_url, settings.supabase_key)
    state[SESSION_CLIENT_KEY] = client
    logger.info("Supabase client initialized for this session")
    return client


async def cleanup_supabase_connections(
    session_state: Optional[MutableMapping[str, Any]] = None,
) -> None:
    """
    Sign the session's client out and drop it.

    The next get_supabase_client() call in this session creates a fresh client.
    """
    state = _session_state(session_state)
    client = state.get(SESSION_CLIENT_KEY)
    if client is None:
        return
    del state[SESSION_CLIENT_KEY]
    try:
        await client.auth.sign_out()
    except Exception as e:
        logger.debug(f"Ignoring Supabase cleanup error: {e}")
