# =============================================================================
# subtrack_core/auth/__init__.py
# Identity and Local Accounts
# =============================================================================

from .context import (
    AuthorizationArtifact,
    ExecutionContext,
    StreamlitQueryContext,
)

from .provider import (
    IdentityProvider,
    ProviderSession,
    ProviderUser,
    SupabaseIdentityProvider,
)

from .session_state import SessionStateStore

from .local_accounts import (
    CurrentUser,
    LocalAccountService,
    hash_password,
    password_too_long,
    verify_password,
)

from .identity import (
    Identity,
    IdentityResolver,
    IdentitySource,
    create_identity_resolver,
    require_identity,
)

__all__ = [
    # Execution context
    "AuthorizationArtifact",
    "ExecutionContext",
    "StreamlitQueryContext",
    # Provider
    "IdentityProvider",
    "ProviderSession",
    "ProviderUser",
    "SupabaseIdentityProvider",
    # Local accounts
    "CurrentUser",
    "LocalAccountService",
    "hash_password",
    "password_too_long",
    "verify_password",
    "SessionStateStore",
    # Resolution
    "Identity",
    "IdentityResolver",
    "IdentitySource",
    "create_identity_resolver",
    "require_identity",
]
