# =============================================================================
# subtrack_core/errors/__init__.py
# Centralized Error Handling for the Subscription Tracker
# =============================================================================

from .exceptions import (
    SubTrackError,
    NotAvailableError,
    CorruptCacheError,
    RemoteStoreError,
    RemoteUnreachableError,
    RemoteRejectedError,
    SubscriptionValidationError,
    IdentityError,
    IdentityProviderError,
    ConfigurationError,
)

from .handlers import (
    handle_error,
    ErrorContext,
)

__all__ = [
    # Exceptions
    "SubTrackError",
    "NotAvailableError",
    "CorruptCacheError",
    "RemoteStoreError",
    "RemoteUnreachableError",
    "RemoteRejectedError",
    "SubscriptionValidationError",
    "IdentityError",
    "IdentityProviderError",
    "ConfigurationError",
    # Handlers
    "handle_error",
    "ErrorContext",
]
