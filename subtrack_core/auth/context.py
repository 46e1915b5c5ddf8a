# =============================================================================
# subtrack_core/auth/context.py
# Execution Context - Where OAuth Return Artifacts Arrive
# =============================================================================

from __future__ import annotations
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

import streamlit as st

ARTIFACT_PARAMS = ("code", "access_token", "refresh_token", "error", "error_description")


@dataclass
class AuthorizationArtifact:
    """What the provider appended to the return URL."""
    code: Optional[str] = None
    access_token: Optional[str] = None
    refresh_token: Optional[str] = None
    error: Optional[str] = None
    error_description: Optional[str] = None

    @property
    def is_error(self) -> bool:
        return bool(self.error)


class ExecutionContext(ABC):
    """Addressable location that may hold a pending authorization artifact."""

    @abstractmethod
    def pending_artifact(self) -> Optional[AuthorizationArtifact]:
        """The artifact waiting to be processed, or None."""

    @abstractmethod
    def clear_artifact(self) -> None:
        """Remove the artifact so a refresh does not process it again."""


class StreamlitQueryContext(ExecutionContext):
    """Reads the artifact from the page's query parameters (st.query_params)."""

    def pending_artifact(self) -> Optional[AuthorizationArtifact]:
        params = st.query_params
        values = {name: params.get(name) for name in ARTIFACT_PARAMS}
        if not (values["code"] or values["access_token"] or values["error"]):
            return None
        return AuthorizationArtifact(**values)

    def clear_artifact(self) -> None:
        params = st.query_params
        for name in ARTIFACT_PARAMS:
            if name in params:
                del params[name]
