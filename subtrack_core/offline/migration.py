# =============================================================================
# subtrack_core/offline/migration.py
# One-Time Migration of Cached Subscriptions to the Remote Store
# =============================================================================
"""
MigrationEngine - copies an owner's cached subscriptions to the remote store
exactly once.

Flow:
    marker set?      -> return, touching neither store
    cache non-empty  -> remote.replace_all(owner_id, cached)
    success or empty -> set marker

A failed remote write leaves the marker unset, so the next load retries.
Cached data is never deleted and never refreshed from the remote store.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from subtrack_core.logging import get_logger, LogContext
from subtrack_core.offline.cache_store import LocalCacheStore
from subtrack_core.offline.remote_store import SubscriptionStore

logger = get_logger(__name__)


@dataclass
class MigrationResult:
    """Outcome of one migrate_if_needed call."""
    owner_id: str
    skipped: bool = False
    migrated_count: int = 0


class MigrationEngine:
    """
    Usage:
        engine = MigrationEngine(cache, remote)
        await engine.migrate_if_needed(user_id, owner_key)
    """

    def __init__(self, cache: LocalCacheStore, remote: SubscriptionStore):
        self.cache = cache
        self.remote = remote
        self.last_result: Optional[MigrationResult] = None

    async def migrate_if_needed(self, owner_id: str, owner_key: str) -> MigrationResult:
        """
        Migrate cached subscriptions of owner_key into the remote partition of owner_id.

        Raises:
            RemoteStoreError: if the remote write fails (marker stays unset)
        """
        if self.cache.is_migrated(owner_id):
            logger.debug(f"Subscriptions of {owner_id} already migrated")
            self.last_result = MigrationResult(owner_id=owner_id, skipped=True)
            return self.last_result

        cached = self.cache.get(owner_key)
        if cached:
            with LogContext(logger, f"Migrating {len(cached)} cached subscriptions for {owner_id}"):
                await self.remote.replace_all(owner_id, cached)

        self.cache.mark_migrated(owner_id)
        self.last_result = MigrationResult(owner_id=owner_id, migrated_count=len(cached))
        return self.last_result
