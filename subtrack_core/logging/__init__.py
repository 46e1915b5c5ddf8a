# =============================================================================
# subtrack_core/logging/__init__.py
# Centralized Logging Configuration
# =============================================================================

from .config import (
    LogContext,
    get_logger,
    quiet_transport_loggers,
    resolve_level,
    setup_logging,
)

__all__ = [
    "setup_logging",
    "get_logger",
    "LogContext",
    "resolve_level",
    "quiet_transport_loggers",
]
