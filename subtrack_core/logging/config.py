# =============================================================================
# subtrack_core/logging/config.py
# Logging Configuration for the Subscription Tracker
# =============================================================================
"""
bootstrap() calls setup_logging() once per script run with the level and
file switch from TrackerSettings. Modules take a logger from
get_logger(__name__) and wrap multi-step work (migration, full saves) in
LogContext.

Output goes to stderr, and with log_to_file also to one file per day
under logs/, e.g. logs/subtrack_2026-10-18.log.
"""

import logging
import sys
import time
from datetime import date
from pathlib import Path
from typing import List, Optional, Union

PACKAGE_LOGGER = "subtrack_core"

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
LOG_DIR = Path("logs")

# The supabase client logs every HTTP request at INFO
TRANSPORT_LOGGERS = ("httpx", "httpcore", "hpack", "urllib3", "supabase", "postgrest", "gotrue")


def resolve_level(level: Union[int, str]) -> int:
    """Map "debug", "WARNING", 10 ... to a logging level. Unknown names mean INFO."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.strip().upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def log_file_path(log_filename: Optional[str] = None) -> Path:
    return LOG_DIR / (log_filename or f"subtrack_{date.today():%Y-%m-%d}.log")


def quiet_transport_loggers(level: int = logging.WARNING) -> None:
    for name in TRANSPORT_LOGGERS:
        logging.getLogger(name).setLevel(level)


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_to_file: bool = True,
    log_filename: Optional[str] = None,
) -> logging.Logger:
    """
    Replace the root handlers and set the level for the whole process.

    Args:
        level: Level number or name ("DEBUG", "info", ...)
        log_to_file: Also write to log_file_path(log_filename)
        log_filename: File name inside LOG_DIR (default: one per day)

    Returns:
        The package logger
    """
    level = resolve_level(level)
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_to_file:
        path = log_file_path(log_filename)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT,
        handlers=handlers,
        force=True,
    )
    quiet_transport_loggers()

    package_logger = logging.getLogger(PACKAGE_LOGGER)
    package_logger.debug(
        f"Logging at {logging.getLevelName(level)}"
        + (f", writing to {log_file_path(log_filename)}" if log_to_file else "")
    )
    return package_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Log the start, outcome and duration of one step. Exceptions propagate.

    Usage:
        with LogContext(logger, "Migrating cached subscriptions") as step:
            ...
        step.elapsed  # seconds
    """

    def __init__(self, logger: logging.Logger, operation: str, level: int = logging.INFO):
        self.logger = logger
        self.operation = operation
        self.level = level
        self.elapsed: Optional[float] = None
        self._started = 0.0

    def __enter__(self) -> "LogContext":
        self._started = time.perf_counter()
        self.logger.log(self.level, "%s... started", self.operation)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.elapsed = time.perf_counter() - self._started
        if exc_type is None:
            self.logger.log(self.level, "%s... done in %.2fs", self.operation, self.elapsed)
        else:
            self.logger.error(
                "%s... failed after %.2fs: %s",
                self.operation,
                self.elapsed,
                exc_val,
                exc_info=(exc_type, exc_val, exc_tb),
            )
        return False
