# =============================================================================
# subtrack_core/models/subscription.py
# Subscription Entity
# =============================================================================
"""
Subscription value shape and its invariants.

- cost is always > 0 and the name is never empty
- renewal_date is a calendar date; it must be in the future only when the
  subscription is created, a stored subscription may hold a past date
- id is an opaque string, assigned once by Subscription.create()
"""

from __future__ import annotations
import uuid
from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, Optional, Type, TypeVar, Union

import pandas as pd

from subtrack_core.errors import SubscriptionValidationError

E = TypeVar("E", bound=Enum)


class BillingCycle(str, Enum):
    """How often a subscription is billed."""
    MONTHLY = "Monthly"
    ANNUALLY = "Annually"


class SubscriptionStatus(str, Enum):
    """Lifecycle status."""
    ACTIVE = "Active"
    TRIAL = "Trial"


class Category(str, Enum):
    """Fixed spending categories."""
    SOFTWARE = "Software"
    SHOPPING = "Shopping"
    DESIGN = "Design"
    STORAGE = "Storage"
    ENTERTAINMENT = "Entertainment"


def coerce_enum(enum_cls: Type[E], value: Union[E, str], field_name: str) -> E:
    """Convert a wire string into an enum member, raising a validation error."""
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise SubscriptionValidationError(
            f"Invalid {field_name}: {value!r}",
            field=field_name,
            expected=", ".join(member.value for member in enum_cls),
            actual=str(value),
        )


def coerce_cost(value: Any) -> float:
    """Parse a cost and enforce cost > 0."""
    try:
        cost = float(value)
    except (TypeError, ValueError):
        raise SubscriptionValidationError(
            "Cost must be a positive number",
            field="cost",
            expected="number > 0",
            actual=str(value),
        )
    if not cost > 0:
        raise SubscriptionValidationError(
            "Cost must be a positive number",
            field="cost",
            expected="number > 0",
            actual=str(value),
        )
    return cost


def parse_calendar_date(value: Union[date, datetime, str]) -> date:
    """
    Normalize a renewal date to a calendar date.

    Accepts date objects, datetimes (time of day dropped) and ISO strings,
    either "YYYY-MM-DD" or a full timestamp such as "2026-01-05T00:00:00.000Z".
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value[:10])
        except ValueError:
            pass
    raise SubscriptionValidationError(
        "Renewal date is not a valid date",
        field="renewal_date",
        expected="YYYY-MM-DD",
        actual=str(value),
    )


def parse_timestamp(value: Optional[Union[datetime, str]]) -> Optional[datetime]:
    """Parse a server-assigned timestamp, if any."""
    if value is None or isinstance(value, datetime):
        return value
    return pd.Timestamp(value).to_pydatetime()


@dataclass
class Subscription:
    """A recurring subscription tracked for one owner."""
    id: str
    name: str
    cost: float
    renewal_date: date
    cycle: BillingCycle = BillingCycle.MONTHLY
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    category: Category = Category.SOFTWARE
    owner_key: Optional[str] = field(default=None, compare=False)
    created_at: Optional[datetime] = field(default=None, compare=False)
    updated_at: Optional[datetime] = field(default=None, compare=False)

    def __post_init__(self):
        self.id = str(self.id)
        if not isinstance(self.name, str) or not self.name.strip():
            raise SubscriptionValidationError("Name is required", field="name")
        self.cost = coerce_cost(self.cost)
        self.renewal_date = parse_calendar_date(self.renewal_date)
        self.cycle = coerce_enum(BillingCycle, self.cycle, "cycle")
        self.status = coerce_enum(SubscriptionStatus, self.status, "status")
        self.category = coerce_enum(Category, self.category, "category")

    @classmethod
    def create(
        cls,
        name: str,
        cost: Union[float, str],
        renewal_date: Union[date, datetime, str],
        cycle: Union[BillingCycle, str] = BillingCycle.MONTHLY,
        status: Union[SubscriptionStatus, str] = SubscriptionStatus.ACTIVE,
        category: Union[Category, str] = Category.SOFTWARE,
        owner_key: Optional[str] = None,
        today: Optional[date] = None,
    ) -> Subscription:
        """
        Explicit add action: validate user input and assign a new id.

        The renewal date must fall strictly after today. This check is only
        made here, never when reading stored subscriptions.

        Raises:
            SubscriptionValidationError: on an empty name, a non-positive
                cost, an unknown enum value or a renewal date not in the future
        """
        if not isinstance(name, str) or not name.strip():
            raise SubscriptionValidationError("Name is required", field="name")
        if renewal_date in (None, ""):
            raise SubscriptionValidationError("Renewal date is required", field="renewal_date")

        renewal = parse_calendar_date(renewal_date)
        today = today or date.today()
        if renewal <= today:
            raise SubscriptionValidationError(
                "Renewal date must be in the future",
                field="renewal_date",
                expected=f"> {today.isoformat()}",
                actual=renewal.isoformat(),
            )

        return cls(
            id=str(uuid.uuid4()),
            name=name.strip(),
            cost=cost,
            renewal_date=renewal,
            cycle=cycle,
            status=status,
            category=category,
            owner_key=owner_key,
        )

    def with_changes(self, **changes: Any) -> Subscription:
        """Edit action: full-field replace keeping the same id."""
        changes.pop("id", None)
        if isinstance(changes.get("name"), str):
            changes["name"] = changes["name"].strip()
        return replace(self, **changes)

    @property
    def is_active(self) -> bool:
        return self.status == SubscriptionStatus.ACTIVE

    @property
    def monthly_equivalent(self) -> float:
        """Per-month share of the cost: annual plans are spread over 12 months."""
        if self.cycle == BillingCycle.ANNUALLY:
            return self.cost / 12
        return self.cost

    # =========================================================================
    # SERIALIZATION
    # =========================================================================

    def to_cache_dict(self) -> Dict[str, Any]:
        """JSON-ready form used by the local cache (camelCase keys)."""
        return {
            "id": self.id,
            "name": self.name,
            "cost": self.cost,
            "renewalDate": self.renewal_date.isoformat(),
            "cycle": self.cycle.value,
            "status": self.status.value,
            "category": self.category.value,
        }

    @classmethod
    def from_cache_dict(cls, data: Dict[str, Any], owner_key: Optional[str] = None) -> Subscription:
        """Rebuild a subscription from its cached form. Missing category means Software."""
        return cls(
            id=data["id"],
            name=data["name"],
            cost=data["cost"],
            renewal_date=data["renewalDate"],
            cycle=data["cycle"],
            status=data["status"],
            category=data.get("category") or Category.SOFTWARE,
            owner_key=owner_key,
        )

    def to_row(self, owner_id: str) -> Dict[str, Any]:
        """Row for the remote `subscriptions` table (without server timestamps)."""
        row = {
            "user_id": owner_id,
            "name": self.name,
            "cost": self.cost,
            "renewal_date": self.renewal_date.isoformat(),
            "cycle": self.cycle.value,
            "status": self.status.value,
            "category": self.category.value,
        }
        if has_uuid_id(self):
            row["id"] = self.id
        return row

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> Subscription:
        """Rebuild a subscription from a remote `subscriptions` row."""
        return cls(
            id=row["id"],
            name=row["name"],
            cost=row["cost"],
            renewal_date=row["renewal_date"],
            cycle=row["cycle"],
            status=row["status"],
            category=row["category"],
            owner_key=row.get("user_id"),
            created_at=parse_timestamp(row.get("created_at")),
            updated_at=parse_timestamp(row.get("updated_at")),
        )


def has_uuid_id(subscription: Subscription) -> bool:
    """True if the id can be stored in the remote UUID primary key column."""
    try:
        uuid.UUID(subscription.id)
        return True
    except ValueError:
        return False
