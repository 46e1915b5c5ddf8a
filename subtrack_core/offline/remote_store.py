# =============================================================================
# subtrack_core/offline/remote_store.py
# Remote Store Adapters (Supabase)
# =============================================================================
"""
Remote store interfaces and their Supabase implementation.

Tables:
    subscriptions           one row per subscription, scoped by user_id
    notification_settings   at most one row per user_id (unique constraint)

Row level security is enforced by Supabase itself. Every failure leaves the
adapter as a RemoteUnreachableError (transport) or RemoteRejectedError
(authorization / constraint).
"""

from __future__ import annotations
from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import AsyncClient

from subtrack_core.errors import (
    RemoteRejectedError,
    RemoteUnreachableError,
    SubscriptionValidationError,
)
from subtrack_core.logging import get_logger
from subtrack_core.models import NotificationSettings, Subscription
from subtrack_core.models.subscription import has_uuid_id

logger = get_logger(__name__)


# =============================================================================
# INTERFACES
# =============================================================================

class SubscriptionStore(ABC):
    """Authoritative subscription storage, partitioned by owner id."""

    @abstractmethod
    async def list(self, owner_id: str) -> List[Subscription]:
        """All subscriptions of owner_id, ordered by renewal date ascending."""

    @abstractmethod
    async def replace_all(self, owner_id: str, subscriptions: List[Subscription]) -> None:
        """
        Replace every subscription of owner_id.

        Not atomic: all rows are deleted, then the new rows are inserted. A
        failure between the two steps leaves the owner with no rows.
        """

    @abstractmethod
    async def upsert_one(self, subscription: Subscription, owner_id: str) -> None:
        """
        Insert or fully replace one subscription, matched by id.

        Raises:
            RemoteRejectedError: if the id is a legacy non-UUID id, which the
                remote primary key cannot hold
        """

    @abstractmethod
    async def delete_one(self, subscription_id: str, owner_id: str) -> None:
        """Delete one subscription of owner_id."""


class NotificationSettingsStore(ABC):
    """Authoritative notification settings storage, one row per owner."""

    @abstractmethod
    async def get(self, owner_id: str) -> Optional[NotificationSettings]:
        """Settings of owner_id, or None if the owner never saved any."""

    @abstractmethod
    async def upsert(self, settings: NotificationSettings, owner_id: str) -> None:
        """Create or update the single settings row of owner_id."""


def require_uuid_id(subscription: Subscription, table: str) -> None:
    """
    Reject legacy ids before an upsert by id.

    Such an id is dropped from the row, so the table would assign a new one
    and every edit would insert another copy.
    """
    if not has_uuid_id(subscription):
        raise RemoteRejectedError(
            f"Subscription id '{subscription.id}' is not a UUID and cannot be upserted by id",
            table=table,
            operation="upsert_one",
        )


# =============================================================================
# SUPABASE IMPLEMENTATION
# =============================================================================

@asynccontextmanager
async def remote_call(table: str, operation: str):
    """Translate transport and PostgREST failures into remote store errors."""
    try:
        yield
    except APIError as e:
        raise RemoteRejectedError(
            f"Supabase rejected {operation} on {table}: {e.message}",
            pg_code=e.code,
            table=table,
            operation=operation,
        ) from e
    except (httpx.HTTPError, OSError) as e:
        raise RemoteUnreachableError(
            f"Supabase unreachable during {operation} on {table}: {e}",
            table=table,
            operation=operation,
        ) from e


class SupabaseSubscriptionStore(SubscriptionStore):
    """
    Subscription CRUD over the Supabase `subscriptions` table.

    Usage:
        store = SupabaseSubscriptionStore(client)
        subscriptions = await store.list(user_id)
    """

    TABLE = "subscriptions"

    def __init__(self, client: AsyncClient):
        self.client = client

    def _table(self):
        return self.client.table(self.TABLE)

    async def list(self, owner_id: str) -> List[Subscription]:
        async with remote_call(self.TABLE, "list"):
            response = await (
                self._table()
                .select("*")
                .eq("user_id", owner_id)
                .order("renewal_date", desc=False)
                .execute()
            )

        subscriptions = []
        for row in response.data or []:
            try:
                subscriptions.append(Subscription.from_row(row))
            except (KeyError, SubscriptionValidationError) as e:
                logger.warning(f"Skipping invalid subscription row {row.get('id')}: {e}")
        return subscriptions

    async def replace_all(self, owner_id: str, subscriptions: List[Subscription]) -> None:
        async with remote_call(self.TABLE, "replace_all.delete"):
            await self._table().delete().eq("user_id", owner_id).execute()

        if not subscriptions:
            return

        rows = [subscription.to_row(owner_id) for subscription in subscriptions]
        async with remote_call(self.TABLE, "replace_all.insert"):
            await self._table().insert(rows).execute()
        logger.debug(f"Replaced {len(rows)} subscriptions for {owner_id}")

    async def upsert_one(self, subscription: Subscription, owner_id: str) -> None:
        require_uuid_id(subscription, self.TABLE)
        async with remote_call(self.TABLE, "upsert_one"):
            await self._table().upsert(subscription.to_row(owner_id), on_conflict="id").execute()

    async def delete_one(self, subscription_id: str, owner_id: str) -> None:
        async with remote_call(self.TABLE, "delete_one"):
            await (
                self._table()
                .delete()
                .eq("id", subscription_id)
                .eq("user_id", owner_id)
                .execute()
            )


class SupabaseNotificationSettingsStore(NotificationSettingsStore):
    """Notification settings over the Supabase `notification_settings` table."""

    TABLE = "notification_settings"

    def __init__(self, client: AsyncClient):
        self.client = client

    async def get(self, owner_id: str) -> Optional[NotificationSettings]:
        async with remote_call(self.TABLE, "get"):
            response = await (
                self.client.table(self.TABLE)
                .select("*")
                .eq("user_id", owner_id)
                .limit(1)
                .execute()
            )

        rows: List[Dict[str, Any]] = response.data or []
        if not rows:
            return None
        try:
            return NotificationSettings.from_row(rows[0])
        except SubscriptionValidationError as e:
            logger.warning(f"Ignoring invalid notification settings for {owner_id}: {e}")
            return None

    async def upsert(self, settings: NotificationSettings, owner_id: str) -> None:
        async with remote_call(self.TABLE, "upsert"):
            await (
                self.client.table(self.TABLE)
                .upsert(settings.to_row(owner_id), on_conflict="user_id")
                .execute()
            )
