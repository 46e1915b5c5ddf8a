# =============================================================================
# subtrack_core/errors/handlers.py
# Error Handling Utilities for the Subscription Tracker
# =============================================================================

from __future__ import annotations
import traceback
from typing import Optional

import streamlit as st

from subtrack_core.logging import get_logger
from .exceptions import SubTrackError

logger = get_logger(__name__)


def handle_error(
    error: Exception,
    show_user_message: bool = True,
    log_error: bool = True,
    user_message: Optional[str] = None,
    level: str = "error",
) -> None:
    """
    Centralized error handling function.

    Args:
        error: The exception to handle
        show_user_message: Whether to display error to user via st.error
        log_error: Whether to log the error
        user_message: Custom message to show user (uses error message if None)
        level: Logger method used for the record ("error" or "warning")
    """
    if isinstance(error, SubTrackError):
        message = user_message or error.message
        code = error.code
        details = error.details
        recoverable = error.recoverable
    else:
        message = user_message or str(error)
        code = "UNKNOWN"
        details = {"traceback": traceback.format_exc()}
        recoverable = True

    if log_error:
        log = logger.warning if level == "warning" else logger.error
        log(
            f"[{code}] {message}",
            extra={"details": details},
            exc_info=level != "warning",
        )

    if show_user_message:
        if recoverable:
            st.error(f"Error: {message}")
        else:
            st.error(f"Critical Error: {message}. Please contact support.")


class ErrorContext:
    """
    Context manager for view-level operations.

    Usage:
        with ErrorContext("Loading your subscriptions"):
            subscriptions = asyncio.run(service.load(identity.owner_key, identity.owner_id))

        # On error, logs and shows: "Error during: Loading your subscriptions"
    """

    def __init__(self, operation: str, recoverable: bool = True, show_user_message: bool = True):
        self.operation = operation
        self.recoverable = recoverable
        self.show_user_message = show_user_message

    def __enter__(self) -> ErrorContext:
        logger.info(f"Starting: {self.operation}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        if exc_type is None:
            logger.info(f"Completed: {self.operation}")
            return False

        if isinstance(exc_val, SubTrackError):
            handle_error(exc_val, show_user_message=self.show_user_message)
        else:
            handle_error(
                exc_val,
                show_user_message=self.show_user_message,
                user_message=f"Error during: {self.operation}",
            )

        # Suppress exception if recoverable
        return self.recoverable
