# =============================================================================
# subtrack_core/offline/cache_store.py
# Local Cache Store for Subscriptions and Settings
# =============================================================================
"""
LocalCacheStore - owner-scoped JSON records on top of a KeyValueStore.

Key namespaces:
    subscriptions_<owner_key>            list of cached subscriptions
    notification_settings_<owner_key>    notification preferences
    migrated_to_db_<owner_id>            migration marker

Reads never fail: a missing key yields an empty result and a value that
cannot be decoded is logged as corrupt and treated as empty. Malformed
records inside a subscription list are skipped one by one.
"""

from __future__ import annotations
import json
from typing import Any, List, Optional

from subtrack_core.errors import CorruptCacheError, SubscriptionValidationError
from subtrack_core.logging import get_logger
from subtrack_core.models import NotificationSettings, Subscription
from subtrack_core.offline.local_database import KeyValueStore

logger = get_logger(__name__)

SUBSCRIPTIONS_PREFIX = "subscriptions_"
SETTINGS_PREFIX = "notification_settings_"
MIGRATION_PREFIX = "migrated_to_db_"


def subscriptions_key(owner_key: str) -> str:
    return f"{SUBSCRIPTIONS_PREFIX}{owner_key}"


def settings_key(owner_key: str) -> str:
    return f"{SETTINGS_PREFIX}{owner_key}"


def migration_key(owner_id: str) -> str:
    return f"{MIGRATION_PREFIX}{owner_id}"


class LocalCacheStore:
    """Synchronous cache of subscription lists, keyed by owner."""

    def __init__(self, kv_store: KeyValueStore):
        self.kv_store = kv_store

    def _read_json(self, key: str) -> Optional[Any]:
        raw = self.kv_store.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise CorruptCacheError(f"Cached value is not valid JSON: {e}", key=key) from e

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    def get(self, owner_key: str) -> List[Subscription]:
        """
        Return the cached subscriptions for owner_key.

        A value that is not a JSON list is corrupt and read as empty. Inside a
        readable list, each malformed record is logged and skipped on its own.
        """
        key = subscriptions_key(owner_key)
        try:
            records = self._read_json(key)
            if records is None:
                return []
            if not isinstance(records, list):
                raise CorruptCacheError("Cached subscriptions are not a list", key=key)
        except CorruptCacheError as e:
            logger.warning(f"{e} - treating as empty")
            return []

        subscriptions = []
        for index, record in enumerate(records):
            try:
                subscriptions.append(Subscription.from_cache_dict(record, owner_key=owner_key))
            except (KeyError, TypeError, ValueError, AttributeError, SubscriptionValidationError) as e:
                logger.warning(f"Skipping malformed cached subscription #{index} in '{key}': {e}")
        return subscriptions

    def put(self, owner_key: str, subscriptions: List[Subscription]) -> None:
        """Replace the cached subscriptions for owner_key."""
        payload = [subscription.to_cache_dict() for subscription in subscriptions]
        self.kv_store.set(subscriptions_key(owner_key), json.dumps(payload))
        logger.debug(f"Cached {len(payload)} subscriptions for {owner_key}")

    # =========================================================================
    # NOTIFICATION SETTINGS
    # =========================================================================

    def get_settings(self, owner_key: str) -> Optional[NotificationSettings]:
        """Return cached notification settings, or None when absent or corrupt."""
        key = settings_key(owner_key)
        try:
            data = self._read_json(key)
            if data is None:
                return None
            if not isinstance(data, dict):
                raise CorruptCacheError("Cached settings are not an object", key=key)
            try:
                return NotificationSettings.from_cache_dict(data)
            except SubscriptionValidationError as e:
                raise CorruptCacheError(f"Cached settings are malformed: {e}", key=key) from e
        except CorruptCacheError as e:
            logger.warning(f"{e} - using defaults")
            return None

    def put_settings(self, owner_key: str, settings: NotificationSettings) -> None:
        self.kv_store.set(settings_key(owner_key), json.dumps(settings.to_cache_dict()))

    # =========================================================================
    # MIGRATION MARKER
    # =========================================================================

    def is_migrated(self, owner_id: str) -> bool:
        return self.kv_store.get(migration_key(owner_id)) is not None

    def mark_migrated(self, owner_id: str) -> None:
        self.kv_store.set(migration_key(owner_id), "true")
