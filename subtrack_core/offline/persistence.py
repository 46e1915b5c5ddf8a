# =============================================================================
# subtrack_core/offline/persistence.py
# Subscription Data Service - Single API for Remote/Cached Persistence
# =============================================================================
"""
SubscriptionDataService - the only component views call to read or write
subscriptions and notification settings.

Read path:
    no owner_id            -> local cache
    remote non-empty       -> remote (authoritative)
    remote empty, migrated -> remote (empty is a real answer)
    remote empty, not yet  -> migrate cache, then re-query remote
    any remote error       -> local cache

Write path: remote first, local cache only when the remote write fails or
there is no remote identity.

Usage:
------
service = await create_data_service()
subscriptions = await service.load(identity.owner_key, identity.owner_id)
await service.add_one(new_subscription, identity.owner_key, identity.owner_id)
"""

from __future__ import annotations
from typing import Any, List, MutableMapping, Optional

from subtrack_core.config import TrackerSettings, load_settings
from subtrack_core.data import get_supabase_client
from subtrack_core.errors import RemoteStoreError, handle_error
from subtrack_core.models import NotificationSettings, Subscription
from subtrack_core.offline.cache_store import LocalCacheStore
from subtrack_core.offline.local_database import get_local_database
from subtrack_core.offline.migration import MigrationEngine
from subtrack_core.offline.remote_store import (
    NotificationSettingsStore,
    SubscriptionStore,
    SupabaseNotificationSettingsStore,
    SupabaseSubscriptionStore,
)
from subtrack_core.services import BaseService


class SubscriptionDataService(BaseService):
    """
    Orchestrates the remote stores, the local cache and the migration engine.

    Every call receives the owner explicitly: owner_key always (cache
    partition), owner_id only for a federated identity (remote partition).
    """

    def __init__(
        self,
        cache: LocalCacheStore,
        remote: Optional[SubscriptionStore] = None,
        settings_remote: Optional[NotificationSettingsStore] = None,
        migration: Optional[MigrationEngine] = None,
    ):
        super().__init__()
        self.cache = cache
        self.remote = remote
        self.settings_remote = settings_remote
        if migration is None and remote is not None:
            migration = MigrationEngine(cache, remote)
        self.migration = migration

    @property
    def remote_enabled(self) -> bool:
        return self.remote is not None

    def _use_remote(self, owner_id: Optional[str]) -> bool:
        return bool(owner_id) and self.remote is not None

    def _fall_back(self, error: RemoteStoreError, operation: str) -> None:
        handle_error(
            error,
            show_user_message=False,
            user_message=f"{operation} failed remotely, using local cache: {error.message}",
            level="warning",
        )

    # =========================================================================
    # SUBSCRIPTIONS
    # =========================================================================

    async def load(self, owner_key: str, owner_id: Optional[str] = None) -> List[Subscription]:
        """
        Load the owner's subscriptions.

        Returns:
            Subscriptions from the remote store when reachable, otherwise the cache
        """
        if not self._use_remote(owner_id):
            return self.cache.get(owner_key)

        try:
            subscriptions = await self.remote.list(owner_id)
            if subscriptions or self.cache.is_migrated(owner_id):
                return subscriptions

            await self.migration.migrate_if_needed(owner_id, owner_key)
            return await self.remote.list(owner_id)
        except RemoteStoreError as e:
            self._fall_back(e, "load")
            return self.cache.get(owner_key)

    async def save(
        self,
        subscriptions: List[Subscription],
        owner_key: str,
        owner_id: Optional[str] = None,
    ) -> None:
        """Replace the owner's full subscription list."""
        if self._use_remote(owner_id):
            try:
                with self.log_operation(f"Replacing {len(subscriptions)} subscriptions of {owner_id}"):
                    await self.remote.replace_all(owner_id, subscriptions)
                return
            except RemoteStoreError as e:
                self._fall_back(e, "save")

        self.cache.put(owner_key, subscriptions)

    async def add_one(
        self,
        subscription: Subscription,
        owner_key: str,
        owner_id: Optional[str] = None,
    ) -> None:
        """Persist a newly created subscription."""
        await self._write_one(subscription, owner_key, owner_id, "add")

    async def update_one(
        self,
        subscription: Subscription,
        owner_key: str,
        owner_id: Optional[str] = None,
    ) -> None:
        """Persist an edited subscription (full-field replace by id)."""
        await self._write_one(subscription, owner_key, owner_id, "update")

    async def _write_one(
        self,
        subscription: Subscription,
        owner_key: str,
        owner_id: Optional[str],
        operation: str,
    ) -> None:
        if self._use_remote(owner_id):
            try:
                await self.remote.upsert_one(subscription, owner_id)
                return
            except RemoteStoreError as e:
                self._fall_back(e, operation)

        cached = self.cache.get(owner_key)
        for index, existing in enumerate(cached):
            if existing.id == subscription.id:
                cached[index] = subscription
                break
        else:
            cached.append(subscription)
        self.cache.put(owner_key, cached)

    async def delete_one(
        self,
        subscription_id: str,
        owner_key: str,
        owner_id: Optional[str] = None,
    ) -> None:
        """Delete one subscription by id."""
        if self._use_remote(owner_id):
            try:
                await self.remote.delete_one(subscription_id, owner_id)
                return
            except RemoteStoreError as e:
                self._fall_back(e, "delete")

        cached = self.cache.get(owner_key)
        self.cache.put(owner_key, [s for s in cached if s.id != subscription_id])

    # =========================================================================
    # NOTIFICATION SETTINGS
    # =========================================================================

    async def load_notification_settings(
        self,
        owner_key: str,
        owner_id: Optional[str] = None,
    ) -> NotificationSettings:
        """Remote row if any, else the cached copy, else the defaults."""
        if owner_id and self.settings_remote is not None:
            try:
                settings = await self.settings_remote.get(owner_id)
                if settings is not None:
                    return settings
            except RemoteStoreError as e:
                self._fall_back(e, "load_notification_settings")

        return self.cache.get_settings(owner_key) or NotificationSettings()

    async def save_notification_settings(
        self,
        settings: NotificationSettings,
        owner_key: str,
        owner_id: Optional[str] = None,
    ) -> None:
        """Upsert the owner's settings row, caching locally on failure."""
        if owner_id and self.settings_remote is not None:
            try:
                await self.settings_remote.upsert(settings, owner_id)
                return
            except RemoteStoreError as e:
                self._fall_back(e, "save_notification_settings")

        self.cache.put_settings(owner_key, settings)


# =============================================================================
# FACTORY
# =============================================================================

async def create_data_service(
    settings: Optional[TrackerSettings] = None,
    session_state: Optional[MutableMapping[str, Any]] = None,
) -> SubscriptionDataService:
    """
    Build a SubscriptionDataService for the current browser session.

    Without Supabase credentials the service runs against the local cache only.
    The remote stores use the session's own client (see get_supabase_client).

    Raises:
        NotAvailableError: if the local database cannot be opened
    """
    settings = settings or load_settings()
    cache = LocalCacheStore(get_local_database(settings.local_db_path))

    client = await get_supabase_client(settings, session_state)
    if client is None:
        return SubscriptionDataService(cache)

    return SubscriptionDataService(
        cache,
        remote=SupabaseSubscriptionStore(client),
        settings_remote=SupabaseNotificationSettingsStore(client),
    )
