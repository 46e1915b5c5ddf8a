# =============================================================================
# subtrack_core/offline/local_database.py
# Local SQLite Key-Value Storage
# =============================================================================
"""
LocalDatabase - SQLite-backed key-value storage that is always available.

Features:
- One `kv_store` table holding namespaced string values
- Thread-local connections
- Synchronous, cheap calls (get / set / remove)
"""

from __future__ import annotations
import sqlite3
import threading
from abc import ABC, abstractmethod
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from subtrack_core.errors import NotAvailableError
from subtrack_core.logging import get_logger

logger = get_logger(__name__)


class KeyValueStore(ABC):
    """Namespaced string storage used by the local cache."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value."""

    @abstractmethod
    def remove(self, key: str) -> None:
        """Delete key if present."""


class LocalDatabase(KeyValueStore):
    """
    Local SQLite database for cached records and flags.

    Usage:
        db = LocalDatabase(Path("local_data/subtrack.db"))
        db.initialize()
        db.set("currentUser", '{"username": "ada"}')
    """

    DEFAULT_DB_PATH = Path("local_data") / "subtrack.db"

    SCHEMA = {
        "kv_store": """
            CREATE TABLE IF NOT EXISTS kv_store (
                key TEXT PRIMARY KEY,
                value TEXT NOT NULL,
                updated_at TEXT DEFAULT CURRENT_TIMESTAMP
            )
        """,
    }

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize local database.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = Path(db_path or self.DEFAULT_DB_PATH)
        self._local = threading.local()
        self._initialized = False

    def _ensure_directory(self) -> None:
        """Ensure database directory exists."""
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise NotAvailableError(
                f"Cannot create local storage directory: {e}",
                location=str(self.db_path.parent),
            ) from e

    def _get_connection(self) -> sqlite3.Connection:
        """Get thread-local database connection."""
        if getattr(self._local, "connection", None) is None:
            try:
                connection = sqlite3.connect(str(self.db_path), check_same_thread=False)
            except sqlite3.Error as e:
                raise NotAvailableError(
                    f"Cannot open local storage: {e}",
                    location=str(self.db_path),
                ) from e
            connection.row_factory = sqlite3.Row
            self._local.connection = connection
        return self._local.connection

    @contextmanager
    def transaction(self):
        """Context manager for database transactions."""
        conn = self._get_connection()
        try:
            yield conn
            conn.commit()
        except Exception:
            conn.rollback()
            raise

    def initialize(self) -> LocalDatabase:
        """
        Create the schema.

        Raises:
            NotAvailableError: if the database file cannot be created or opened
        """
        if self._initialized:
            return self

        self._ensure_directory()
        try:
            with self.transaction() as conn:
                for table_name, schema in self.SCHEMA.items():
                    conn.execute(schema)
                    logger.debug(f"Created/verified table: {table_name}")
        except sqlite3.Error as e:
            raise NotAvailableError(
                f"Cannot initialize local storage: {e}",
                location=str(self.db_path),
            ) from e

        self._initialized = True
        logger.info(f"Local database initialized at: {self.db_path}")
        return self

    # =========================================================================
    # KEY-VALUE OPERATIONS
    # =========================================================================

    def get(self, key: str) -> Optional[str]:
        self.initialize()
        row = self._get_connection().execute(
            "SELECT value FROM kv_store WHERE key = ?",
            [key],
        ).fetchone()
        return row["value"] if row else None

    def set(self, key: str, value: str) -> None:
        self.initialize()
        with self.transaction() as conn:
            conn.execute(
                """
                INSERT OR REPLACE INTO kv_store (key, value, updated_at)
                VALUES (?, ?, ?)
                """,
                [key, value, datetime.now().isoformat()],
            )

    def remove(self, key: str) -> None:
        self.initialize()
        with self.transaction() as conn:
            conn.execute("DELETE FROM kv_store WHERE key = ?", [key])

    def keys(self, prefix: str = "") -> List[str]:
        """List stored keys, optionally restricted to a namespace prefix."""
        self.initialize()
        rows = self._get_connection().execute(
            "SELECT key FROM kv_store WHERE key LIKE ? ORDER BY key",
            [f"{prefix}%"],
        ).fetchall()
        return [row["key"] for row in rows]

    def close(self) -> None:
        """Close database connection."""
        connection = getattr(self._local, "connection", None)
        if connection is not None:
            connection.close()
            self._local.connection = None


# Initialized databases, one per file path
_local_databases: Dict[Path, LocalDatabase] = {}


def get_local_database(db_path: Optional[Path] = None) -> LocalDatabase:
    """Get the initialized LocalDatabase for db_path (default location if None)."""
    path = Path(db_path or LocalDatabase.DEFAULT_DB_PATH)
    if path not in _local_databases:
        _local_databases[path] = LocalDatabase(path).initialize()
    return _local_databases[path]
