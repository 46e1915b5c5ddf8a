"""
Derived analytics over in-memory subscription lists.
"""

from .subscription_metrics import (
    CATEGORY_ORDER,
    DASHBOARD_WINDOW_DAYS,
    category_totals,
    count_renewals_this_week,
    format_date,
    monthly_equivalent_cost,
    monthly_renewal_amount,
    renewal_dates,
    renewals_for_notifications,
    subscriptions_to_dataframe,
    upcoming_renewals,
)

from .filters import (
    TimeFilter,
    filter_subscriptions,
)

__all__ = [
    "CATEGORY_ORDER",
    "DASHBOARD_WINDOW_DAYS",
    "category_totals",
    "count_renewals_this_week",
    "format_date",
    "monthly_equivalent_cost",
    "monthly_renewal_amount",
    "renewal_dates",
    "renewals_for_notifications",
    "subscriptions_to_dataframe",
    "upcoming_renewals",
    "TimeFilter",
    "filter_subscriptions",
]
