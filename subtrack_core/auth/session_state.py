# =============================================================================
# subtrack_core/auth/session_state.py
# Per-Browser-Session Values Kept in st.session_state
# =============================================================================
"""
Values that belong to one browser session, not to the whole server process.

The local SQLite file is shared by every session of a Streamlit server, so
the signed-in user lives here instead.
"""

from __future__ import annotations
from typing import Any, MutableMapping, Optional

import streamlit as st

from subtrack_core.offline.local_database import KeyValueStore


class SessionStateStore(KeyValueStore):
    """
    KeyValueStore over st.session_state.

    Any mutable mapping can stand in for st.session_state outside a
    Streamlit script run.

    Usage:
        session = SessionStateStore()
        accounts = LocalAccountService(get_local_database(), session)
    """

    def __init__(self, state: Optional[MutableMapping[str, Any]] = None):
        self._state = state

    @property
    def state(self) -> MutableMapping[str, Any]:
        return st.session_state if self._state is None else self._state

    def get(self, key: str) -> Optional[str]:
        value = self.state.get(key)
        return None if value is None else str(value)

    def set(self, key: str, value: str) -> None:
        self.state[key] = value

    def remove(self, key: str) -> None:
        if key in self.state:
            del self.state[key]
