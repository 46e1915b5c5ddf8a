# =============================================================================
# subtrack_core/offline/__init__.py
# Persistence and Synchronization Layer
# =============================================================================
"""
Persistence and Synchronization Layer

Architecture:
------------
┌─────────────────────────────────────────────────────────────────┐
│                    SubscriptionDataService                       │
│        (load / save / add_one / update_one / delete_one)         │
└─────────────────────────────────────────────────────────────────┘
              │                    │                    │
              ▼                    ▼                    ▼
   ┌──────────────────┐  ┌──────────────────┐  ┌──────────────────┐
   │ SubscriptionStore│  │ MigrationEngine  │  │ LocalCacheStore  │
   │ (Supabase/memory)│  │   (one-time)     │  │ (SQLite kv_store)│
   └──────────────────┘  └──────────────────┘  └──────────────────┘

Usage:
------
from subtrack_core.offline import create_data_service

service = await create_data_service()
subscriptions = await service.load(identity.owner_key, identity.owner_id)
"""

from subtrack_core.offline.local_database import (
    KeyValueStore,
    LocalDatabase,
    get_local_database,
)

from subtrack_core.offline.cache_store import (
    LocalCacheStore,
)

from subtrack_core.offline.remote_store import (
    SubscriptionStore,
    NotificationSettingsStore,
    SupabaseSubscriptionStore,
    SupabaseNotificationSettingsStore,
)

from subtrack_core.offline.memory_store import (
    InMemorySubscriptionStore,
    InMemoryNotificationSettingsStore,
)

from subtrack_core.offline.migration import (
    MigrationEngine,
    MigrationResult,
)

from subtrack_core.offline.persistence import (
    SubscriptionDataService,
    create_data_service,
)

__all__ = [
    # Local storage
    "KeyValueStore",
    "LocalDatabase",
    "LocalCacheStore",
    # Remote storage
    "SubscriptionStore",
    "NotificationSettingsStore",
    "SupabaseSubscriptionStore",
    "SupabaseNotificationSettingsStore",
    "InMemorySubscriptionStore",
    "InMemoryNotificationSettingsStore",
    # Migration
    "MigrationEngine",
    "MigrationResult",
    # Unified service (main API)
    "SubscriptionDataService",
    "create_data_service",
    "get_local_database",
]
