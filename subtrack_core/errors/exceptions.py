# =============================================================================
# subtrack_core/errors/exceptions.py
# Custom Exception Hierarchy for the Subscription Tracker
# =============================================================================

from typing import Optional, Dict, Any


class SubTrackError(Exception):
    """
    Base exception for all Subscription Tracker errors.

    Attributes:
        message: Human-readable error description
        code: Machine-readable error code (e.g., "REMOTE_001")
        details: Additional context as a dictionary
        recoverable: Whether the error can be recovered from
    """

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        recoverable: bool = True,
    ):
        super().__init__(message)
        self.message = message
        self.code = code or "ST_000"
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        base = f"[{self.code}] {self.message}"
        if self.details:
            base += f" | Details: {self.details}"
        return base

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization"""
        return {
            "error_type": self.__class__.__name__,
            "code": self.code,
            "message": self.message,
            "details": self.details,
            "recoverable": self.recoverable,
        }


# =============================================================================
# LOCAL STORAGE EXCEPTIONS
# =============================================================================

class NotAvailableError(SubTrackError):
    """Raised when no storage location can be opened for persistence"""

    def __init__(self, message: str, location: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if location:
            details["location"] = location

        super().__init__(
            message=message,
            code="STORE_001",
            details=details,
            **kwargs,
        )


class CorruptCacheError(SubTrackError):
    """Raised when a cached value cannot be deserialized"""

    def __init__(self, message: str, key: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if key:
            details["key"] = key

        super().__init__(
            message=message,
            code="CACHE_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# REMOTE STORE EXCEPTIONS
# =============================================================================

class RemoteStoreError(SubTrackError):
    """Base class for failures reported by a remote store adapter"""

    def __init__(
        self,
        message: str,
        table: Optional[str] = None,
        operation: Optional[str] = None,
        code: str = "REMOTE_000",
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if table:
            details["table"] = table
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code=code,
            details=details,
            **kwargs,
        )


class RemoteUnreachableError(RemoteStoreError):
    """Raised when the remote store cannot be reached (transport failure)"""

    def __init__(self, message: str, **kwargs):
        super().__init__(message=message, code="REMOTE_001", **kwargs)


class RemoteRejectedError(RemoteStoreError):
    """Raised when the remote store refuses a request (access or constraint)"""

    def __init__(self, message: str, pg_code: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if pg_code:
            details["pg_code"] = pg_code
        self.pg_code = pg_code

        super().__init__(message=message, code="REMOTE_002", details=details, **kwargs)


# =============================================================================
# DATA EXCEPTIONS
# =============================================================================

class SubscriptionValidationError(SubTrackError):
    """Raised when subscription or settings fields fail validation"""

    def __init__(
        self,
        message: str,
        field: Optional[str] = None,
        expected: Optional[str] = None,
        actual: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if field:
            details["field"] = field
        if expected:
            details["expected"] = expected
        if actual is not None:
            details["actual"] = actual
        self.field = field

        super().__init__(
            message=message,
            code="DATA_001",
            details=details,
            **kwargs,
        )


# =============================================================================
# IDENTITY EXCEPTIONS
# =============================================================================

class IdentityError(SubTrackError):
    """Raised when no identity can be resolved for the current session"""

    def __init__(self, message: str = "Could not resolve your identity", **kwargs):
        super().__init__(message=message, code="AUTH_001", **kwargs)


class IdentityProviderError(SubTrackError):
    """Raised when the federated identity provider fails a request"""

    def __init__(self, message: str, operation: Optional[str] = None, **kwargs):
        details = kwargs.pop("details", {})
        if operation:
            details["operation"] = operation

        super().__init__(
            message=message,
            code="AUTH_002",
            details=details,
            **kwargs,
        )


# =============================================================================
# CONFIGURATION EXCEPTIONS
# =============================================================================

class ConfigurationError(SubTrackError):
    """Raised when configuration is invalid or missing"""

    def __init__(
        self,
        message: str,
        config_key: Optional[str] = None,
        **kwargs,
    ):
        details = kwargs.pop("details", {})
        if config_key:
            details["config_key"] = config_key

        super().__init__(
            message=message,
            code="CONFIG_001",
            details=details,
            recoverable=False,
            **kwargs,
        )
