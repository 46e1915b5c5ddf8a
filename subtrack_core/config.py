# =============================================================================
# subtrack_core/config.py
# Runtime Configuration for the Subscription Tracker
# =============================================================================
"""
Settings are read from Streamlit secrets first, then from the environment.

Expected secrets.toml format:
    [supabase]
    url = "https://your-project.supabase.co"
    key = "your-anon-key"

Environment fallback:
    SUPABASE_URL, SUPABASE_KEY, SUBTRACK_DB_PATH, SUBTRACK_LOG_LEVEL
"""

from __future__ import annotations
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import streamlit as st

from subtrack_core.errors import ConfigurationError
from subtrack_core.logging import get_logger

logger = get_logger(__name__)

DEFAULT_DB_PATH = Path("local_data") / "subtrack.db"


@dataclass
class TrackerSettings:
    """Resolved runtime settings"""
    supabase_url: Optional[str] = None
    supabase_key: Optional[str] = None
    local_db_path: Path = field(default_factory=lambda: DEFAULT_DB_PATH)
    log_level: str = "INFO"
    log_to_file: bool = False

    @property
    def remote_enabled(self) -> bool:
        """True when both Supabase credentials are present."""
        return bool(self.supabase_url and self.supabase_key)

    def require_remote(self) -> None:
        """Raise ConfigurationError if the remote store cannot be configured."""
        if not self.supabase_url:
            raise ConfigurationError("Supabase URL is not configured", config_key="supabase.url")
        if not self.supabase_key:
            raise ConfigurationError("Supabase key is not configured", config_key="supabase.key")


def _read_streamlit_secrets() -> Dict[str, Any]:
    """Return the [supabase] secrets section, or an empty dict."""
    try:
        if "supabase" in st.secrets:
            return dict(st.secrets["supabase"])
    except Exception as e:
        # No secrets.toml outside a configured Streamlit deployment
        logger.debug(f"Streamlit secrets not available: {e}")
    return {}


def load_settings() -> TrackerSettings:
    """
    Build settings from Streamlit secrets and environment variables.

    Missing Supabase credentials are not an error: the remote store is
    disabled and every operation uses the local cache.
    """
    secrets = _read_streamlit_secrets()

    settings = TrackerSettings(
        supabase_url=secrets.get("url") or os.getenv("SUPABASE_URL") or None,
        supabase_key=secrets.get("key") or os.getenv("SUPABASE_KEY") or None,
        local_db_path=Path(os.getenv("SUBTRACK_DB_PATH") or DEFAULT_DB_PATH),
        log_level=os.getenv("SUBTRACK_LOG_LEVEL", "INFO"),
        log_to_file=os.getenv("SUBTRACK_LOG_TO_FILE", "").lower() in ("1", "true", "yes"),
    )

    if not settings.remote_enabled:
        logger.info("Supabase credentials not found, running with the local cache only")

    return settings
