# =============================================================================
# subscription_metrics.py
# Spending and Renewal Metrics over a List of Subscriptions
# Pure functions: no storage access, no clock unless `today` is omitted
# =============================================================================

from __future__ import annotations
from datetime import date, timedelta
from typing import Dict, List, Optional

import pandas as pd

from subtrack_core.models import (
    BillingCycle,
    Category,
    NotificationSettings,
    Subscription,
    SubscriptionStatus,
)

DASHBOARD_WINDOW_DAYS = 7

CATEGORY_ORDER = [category.value for category in Category]

FRAME_COLUMNS = [
    "id", "name", "cost", "renewal_date", "cycle", "status", "category",
    "monthly_equivalent",
]


def subscriptions_to_dataframe(subscriptions: List[Subscription]) -> pd.DataFrame:
    """
    Tabular view of subscriptions.

    Enum columns hold their display values and `renewal_date` is a
    datetime64 column at midnight. `monthly_equivalent` is cost for Monthly
    plans and cost / 12 for Annually plans.
    """
    records = [
        {
            "id": sub.id,
            "name": sub.name,
            "cost": sub.cost,
            "renewal_date": sub.renewal_date,
            "cycle": sub.cycle.value,
            "status": sub.status.value,
            "category": sub.category.value,
            "monthly_equivalent": sub.monthly_equivalent,
        }
        for sub in subscriptions
    ]
    df = pd.DataFrame.from_records(records, columns=FRAME_COLUMNS)
    df["renewal_date"] = pd.to_datetime(df["renewal_date"])
    df["cost"] = df["cost"].astype(float)
    df["monthly_equivalent"] = df["monthly_equivalent"].astype(float)
    return df


def _active_frame(subscriptions: List[Subscription]) -> pd.DataFrame:
    df = subscriptions_to_dataframe(subscriptions)
    return df[df["status"] == SubscriptionStatus.ACTIVE.value]


def monthly_equivalent_cost(subscriptions: List[Subscription]) -> float:
    """Total monthly spend of Active subscriptions. Trials are excluded."""
    return float(_active_frame(subscriptions)["monthly_equivalent"].sum())


def category_totals(subscriptions: List[Subscription]) -> Dict[str, float]:
    """
    Monthly-equivalent spend of Active subscriptions per category.

    Always contains all five categories; unused ones are 0.0.
    """
    totals = (
        _active_frame(subscriptions)
        .groupby("category")["monthly_equivalent"]
        .sum()
        .reindex(CATEGORY_ORDER, fill_value=0.0)
    )
    return {category: float(value) for category, value in totals.items()}


def upcoming_renewals(
    subscriptions: List[Subscription],
    days: int = DASHBOARD_WINDOW_DAYS,
    today: Optional[date] = None,
) -> List[Subscription]:
    """
    Active subscriptions renewing in [today, today + days], both ends included.

    Sorted by renewal date; subscriptions sharing a date keep their input order.
    """
    today = today or date.today()
    window_end = today + timedelta(days=days)
    in_window = [
        sub for sub in subscriptions
        if sub.is_active and today <= sub.renewal_date <= window_end
    ]
    return sorted(in_window, key=lambda sub: sub.renewal_date)


def count_renewals_this_week(
    subscriptions: List[Subscription],
    today: Optional[date] = None,
) -> int:
    return len(upcoming_renewals(subscriptions, DASHBOARD_WINDOW_DAYS, today))


def renewals_for_notifications(
    subscriptions: List[Subscription],
    settings: NotificationSettings,
    today: Optional[date] = None,
) -> List[Subscription]:
    """Renewals inside the owner's reminder window."""
    return upcoming_renewals(subscriptions, settings.timeframe.days, today)


def monthly_renewal_amount(subscriptions: List[Subscription], year: int, month: int) -> float:
    """
    Amount renewing in a calendar month, for the calendar view.

    Only the single stored renewal date is considered: a Monthly plan counts
    at full cost and an Annually plan at cost / 12, and only when that date
    lies in the given month. Recurrence is not projected.
    """
    total = 0.0
    for sub in subscriptions:
        if not sub.is_active:
            continue
        if sub.renewal_date.year != year or sub.renewal_date.month != month:
            continue
        if sub.cycle == BillingCycle.MONTHLY:
            total += sub.cost
        else:
            total += sub.cost / 12
    return total


def renewal_dates(subscriptions: List[Subscription]) -> List[date]:
    """Renewal dates of Active subscriptions, for calendar markers."""
    return [sub.renewal_date for sub in subscriptions if sub.is_active]


def format_date(value: date) -> str:
    """Display form, e.g. "Oct 18, 2026"."""
    return f"{value:%b} {value.day}, {value.year}"
