# =============================================================================
# subtrack_core/models/__init__.py
# Entity Model
# =============================================================================

from .subscription import (
    Subscription,
    BillingCycle,
    SubscriptionStatus,
    Category,
    parse_calendar_date,
)
from .notification import (
    NotificationSettings,
    NotificationTimeframe,
)

__all__ = [
    "Subscription",
    "BillingCycle",
    "SubscriptionStatus",
    "Category",
    "parse_calendar_date",
    "NotificationSettings",
    "NotificationTimeframe",
]
