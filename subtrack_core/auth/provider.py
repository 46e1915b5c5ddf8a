# =============================================================================
# subtrack_core/auth/provider.py
# Federated Identity Provider (Supabase Auth)
# =============================================================================
"""
IdentityProvider - the boundary to the federated sign-in service.

    get_session()                          -> ProviderSession | None
    get_user()                             -> ProviderUser | None
    exchange_authorization_artifact(a)     -> ProviderSession
    sign_out()                             -> None

Every provider failure leaves this module as an IdentityProviderError.
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from supabase import AsyncClient

from subtrack_core.auth.context import AuthorizationArtifact
from subtrack_core.errors import IdentityProviderError
from subtrack_core.logging import get_logger

logger = get_logger(__name__)


@dataclass
class ProviderSession:
    access_token: str
    refresh_token: Optional[str] = None
    user_id: Optional[str] = None


@dataclass
class ProviderUser:
    id: str
    email: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def display_name(self) -> Optional[str]:
        return self.metadata.get("full_name") or self.metadata.get("name")


class IdentityProvider(ABC):
    """Federated identity boundary."""

    @abstractmethod
    async def get_session(self) -> Optional[ProviderSession]:
        """The active session, or None."""

    @abstractmethod
    async def get_user(self) -> Optional[ProviderUser]:
        """The signed-in user, or None."""

    @abstractmethod
    async def exchange_authorization_artifact(self, artifact: AuthorizationArtifact) -> ProviderSession:
        """Turn an OAuth return artifact into an active session."""

    @abstractmethod
    async def sign_out(self) -> None:
        """End the provider session."""


@asynccontextmanager
async def provider_call(operation: str):
    """Wrap any Supabase Auth failure as IdentityProviderError."""
    try:
        yield
    except IdentityProviderError:
        raise
    except Exception as e:
        raise IdentityProviderError(
            f"Identity provider failed during {operation}: {e}",
            operation=operation,
        ) from e


def _to_session(session: Any) -> Optional[ProviderSession]:
    if session is None or not getattr(session, "access_token", None):
        return None
    user = getattr(session, "user", None)
    return ProviderSession(
        access_token=session.access_token,
        refresh_token=getattr(session, "refresh_token", None),
        user_id=getattr(user, "id", None),
    )


class SupabaseIdentityProvider(IdentityProvider):
    """
    Supabase Auth implementation.

    Usage:
        provider = SupabaseIdentityProvider(client)
        user = await provider.get_user()
    """

    def __init__(self, client: AsyncClient):
        self.client = client

    async def get_session(self) -> Optional[ProviderSession]:
        async with provider_call("get_session"):
            session = await self.client.auth.get_session()
        return _to_session(session)

    async def get_user(self) -> Optional[ProviderUser]:
        async with provider_call("get_user"):
            response = await self.client.auth.get_user()

        user = getattr(response, "user", None)
        if user is None:
            return None
        return ProviderUser(
            id=str(user.id),
            email=getattr(user, "email", None),
            metadata=dict(getattr(user, "user_metadata", None) or {}),
        )

    async def exchange_authorization_artifact(self, artifact: AuthorizationArtifact) -> ProviderSession:
        """
        Exchange an OAuth code, or install a returned token pair.

        Raises:
            IdentityProviderError: if the provider refuses the artifact
        """
        async with provider_call("exchange_authorization_artifact"):
            if artifact.code:
                response = await self.client.auth.exchange_code_for_session(
                    {"auth_code": artifact.code}
                )
            elif artifact.access_token and artifact.refresh_token:
                response = await self.client.auth.set_session(
                    artifact.access_token, artifact.refresh_token
                )
            else:
                raise IdentityProviderError(
                    "Authorization artifact carries neither a code nor a token pair",
                    operation="exchange_authorization_artifact",
                )

        session = _to_session(getattr(response, "session", None))
        if session is None:
            raise IdentityProviderError(
                "Identity provider returned no session",
                operation="exchange_authorization_artifact",
            )
        logger.info("Exchanged authorization artifact for a session")
        return session

    async def sign_out(self) -> None:
        async with provider_call("sign_out"):
            await self.client.auth.sign_out()
