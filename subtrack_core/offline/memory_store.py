# =============================================================================
# subtrack_core/offline/memory_store.py
# In-Memory Remote Store Backend
# =============================================================================
"""
Process-local implementation of the remote store interfaces.

Behaves like the Supabase tables it stands in for: rows are partitioned by
owner id, `list` is ordered by renewal date, `replace_all` deletes then
inserts in two separate steps, and settings are unique per owner.
"""

from __future__ import annotations
import uuid
from dataclasses import replace
from datetime import datetime
from typing import Dict, List, Optional

from subtrack_core.models import NotificationSettings, Subscription
from subtrack_core.models.subscription import has_uuid_id
from subtrack_core.offline.remote_store import (
    NotificationSettingsStore,
    SubscriptionStore,
    require_uuid_id,
)


class InMemorySubscriptionStore(SubscriptionStore):
    """Subscription rows kept in a dict of owner id -> {subscription id: row}."""

    def __init__(self):
        self.rows: Dict[str, Dict[str, Subscription]] = {}
        self.write_count = 0

    async def list(self, owner_id: str) -> List[Subscription]:
        rows = list(self.rows.get(owner_id, {}).values())
        return sorted(rows, key=lambda subscription: subscription.renewal_date)

    async def replace_all(self, owner_id: str, subscriptions: List[Subscription]) -> None:
        await self._delete_all(owner_id)
        if subscriptions:
            await self._insert_all(owner_id, subscriptions)

    async def upsert_one(self, subscription: Subscription, owner_id: str) -> None:
        require_uuid_id(subscription, "subscriptions")
        self.write_count += 1
        owned = self.rows.setdefault(owner_id, {})
        existing = owned.get(subscription.id)
        now = datetime.now()
        owned[subscription.id] = replace(
            subscription,
            owner_key=owner_id,
            created_at=existing.created_at if existing else now,
            updated_at=now,
        )

    async def delete_one(self, subscription_id: str, owner_id: str) -> None:
        self.write_count += 1
        self.rows.get(owner_id, {}).pop(subscription_id, None)

    async def _delete_all(self, owner_id: str) -> None:
        self.write_count += 1
        self.rows.pop(owner_id, None)

    async def _insert_all(self, owner_id: str, subscriptions: List[Subscription]) -> None:
        self.write_count += 1
        owned = self.rows.setdefault(owner_id, {})
        now = datetime.now()
        for subscription in subscriptions:
            row_id = subscription.id if has_uuid_id(subscription) else str(uuid.uuid4())
            owned[row_id] = replace(
                subscription,
                id=row_id,
                owner_key=owner_id,
                created_at=now,
                updated_at=now,
            )


class InMemoryNotificationSettingsStore(NotificationSettingsStore):
    """Notification settings kept in a dict of owner id -> settings."""

    def __init__(self):
        self.rows: Dict[str, NotificationSettings] = {}

    async def get(self, owner_id: str) -> Optional[NotificationSettings]:
        return self.rows.get(owner_id)

    async def upsert(self, settings: NotificationSettings, owner_id: str) -> None:
        self.rows[owner_id] = replace(settings)
