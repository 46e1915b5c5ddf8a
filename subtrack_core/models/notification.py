# =============================================================================
# subtrack_core/models/notification.py
# Notification Preferences
# =============================================================================

from __future__ import annotations
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from subtrack_core.models.subscription import coerce_enum


class NotificationTimeframe(str, Enum):
    """How far ahead of a renewal the owner wants to be reminded."""
    ONE_DAY = "1 day"
    THREE_DAYS = "3 days"
    ONE_WEEK = "1 week"
    TWO_WEEKS = "2 weeks"

    @property
    def days(self) -> int:
        """Length of the renewal window in days."""
        return _TIMEFRAME_DAYS[self]


_TIMEFRAME_DAYS = {
    NotificationTimeframe.ONE_DAY: 1,
    NotificationTimeframe.THREE_DAYS: 3,
    NotificationTimeframe.ONE_WEEK: 7,
    NotificationTimeframe.TWO_WEEKS: 14,
}


@dataclass
class NotificationSettings:
    """Per-owner notification preferences (at most one per owner)."""
    email_enabled: bool = False
    timeframe: NotificationTimeframe = NotificationTimeframe.THREE_DAYS

    def __post_init__(self):
        self.email_enabled = bool(self.email_enabled)
        self.timeframe = coerce_enum(NotificationTimeframe, self.timeframe, "timeframe")

    def to_cache_dict(self) -> Dict[str, Any]:
        return {"emailEnabled": self.email_enabled, "timeframe": self.timeframe.value}

    @classmethod
    def from_cache_dict(cls, data: Dict[str, Any]) -> NotificationSettings:
        return cls(
            email_enabled=data.get("emailEnabled", False),
            timeframe=data.get("timeframe") or NotificationTimeframe.THREE_DAYS,
        )

    def to_row(self, owner_id: str) -> Dict[str, Any]:
        """Row for the remote `notification_settings` table."""
        return {
            "user_id": owner_id,
            "email_enabled": self.email_enabled,
            "timeframe": self.timeframe.value,
        }

    @classmethod
    def from_row(cls, row: Optional[Dict[str, Any]]) -> NotificationSettings:
        """Null columns fall back to the defaults."""
        row = row or {}
        return cls(
            email_enabled=row.get("email_enabled") or False,
            timeframe=row.get("timeframe") or NotificationTimeframe.THREE_DAYS,
        )
