# =============================================================================
# subtrack_core/auth/identity.py
# Identity Resolution - Federated Session First, Local Login Second
# =============================================================================
"""
IdentityResolver - decides who owns the data of the current session.

Resolution order:
    1. Pending authorization artifact in the execution context -> exchange it
    2. Active provider session and user                        -> FEDERATED
    3. Current user of this browser session                    -> LOCAL
    4. Nothing                                                 -> None

Provider failures are logged and treated as "no federated identity".

Usage:
------
resolver = await create_identity_resolver()
identity = require_identity(await resolver.resolve_identity())
subscriptions = await service.load(identity.owner_key, identity.owner_id)
"""

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, MutableMapping, Optional

from subtrack_core.auth.context import ExecutionContext, StreamlitQueryContext
from subtrack_core.auth.local_accounts import LocalAccountService
from subtrack_core.auth.provider import IdentityProvider, SupabaseIdentityProvider
from subtrack_core.auth.session_state import SessionStateStore
from subtrack_core.config import TrackerSettings, load_settings
from subtrack_core.data import get_supabase_client
from subtrack_core.errors import IdentityError, IdentityProviderError, handle_error
from subtrack_core.logging import get_logger
from subtrack_core.offline.local_database import get_local_database

logger = get_logger(__name__)


class IdentitySource(str, Enum):
    FEDERATED = "federated"
    LOCAL = "local"


@dataclass(frozen=True)
class Identity:
    """
    Owner of the current session.

    owner_key partitions the local cache; owner_id (federated only)
    partitions the remote store.
    """
    owner_key: str
    owner_id: Optional[str] = None
    email: Optional[str] = None
    display_name: Optional[str] = None
    source: IdentitySource = IdentitySource.LOCAL

    @property
    def is_federated(self) -> bool:
        return self.owner_id is not None

    @property
    def greeting_name(self) -> str:
        return self.display_name or self.email or self.owner_key


def require_identity(identity: Optional[Identity]) -> Identity:
    """
    Raises:
        IdentityError: if no identity could be resolved
    """
    if identity is None:
        raise IdentityError()
    return identity


class IdentityResolver:
    """Resolves the session's Identity from the provider and local accounts."""

    def __init__(
        self,
        accounts: LocalAccountService,
        provider: Optional[IdentityProvider] = None,
        context: Optional[ExecutionContext] = None,
    ):
        self.accounts = accounts
        self.provider = provider
        self.context = context

    async def resolve_identity(self) -> Optional[Identity]:
        if self.provider is not None:
            await self._consume_pending_artifact()
            identity = await self._federated_identity()
            if identity is not None:
                return identity

        return self._local_identity()

    async def _consume_pending_artifact(self) -> None:
        if self.context is None:
            return

        artifact = self.context.pending_artifact()
        if artifact is None:
            return

        try:
            if artifact.is_error:
                logger.error(
                    f"Sign-in returned an error: {artifact.error}"
                    + (f" ({artifact.error_description})" if artifact.error_description else "")
                )
            else:
                await self.provider.exchange_authorization_artifact(artifact)
        except IdentityProviderError as e:
            handle_error(e, show_user_message=False, level="warning")
        finally:
            self.context.clear_artifact()

    async def _federated_identity(self) -> Optional[Identity]:
        try:
            session = await self.provider.get_session()
            if session is None:
                return None
            user = await self.provider.get_user()
        except IdentityProviderError as e:
            handle_error(e, show_user_message=False, level="warning")
            return None

        if user is None:
            return None
        return Identity(
            owner_key=user.id,
            owner_id=user.id,
            email=user.email,
            display_name=user.display_name,
            source=IdentitySource.FEDERATED,
        )

    def _local_identity(self) -> Optional[Identity]:
        current = self.accounts.get_current_user()
        if current is None:
            return None
        return Identity(owner_key=current.username, display_name=current.full_name)

    async def sign_out(self) -> None:
        """End the provider session (failures logged) and clear the local login."""
        if self.provider is not None:
            try:
                await self.provider.sign_out()
            except IdentityProviderError as e:
                handle_error(e, show_user_message=False, level="warning")
        self.accounts.logout_user()


async def create_identity_resolver(
    settings: Optional[TrackerSettings] = None,
    context: Optional[ExecutionContext] = None,
    session_state: Optional[MutableMapping[str, Any]] = None,
) -> IdentityResolver:
    """
    Build an IdentityResolver for the current browser session.

    Args:
        settings: Configuration (default: load_settings())
        context: Where authorization artifacts arrive (default: query params)
        session_state: Per-session mapping (default: st.session_state)
    """
    settings = settings or load_settings()
    accounts = LocalAccountService(
        get_local_database(settings.local_db_path),
        SessionStateStore(session_state),
    )

    client = await get_supabase_client(settings, session_state)
    if client is None:
        return IdentityResolver(accounts)

    return IdentityResolver(
        accounts,
        provider=SupabaseIdentityProvider(client),
        context=context or StreamlitQueryContext(),
    )
