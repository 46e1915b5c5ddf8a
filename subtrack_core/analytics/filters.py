# =============================================================================
# filters.py
# List View Filtering (search, category, renewal period)
# =============================================================================

from __future__ import annotations
import calendar
from datetime import date, timedelta
from enum import Enum
from typing import List, Optional, Union

from subtrack_core.models import Category, Subscription

ALL_CATEGORIES = "All"


class TimeFilter(str, Enum):
    ALL = "All"
    THIS_WEEK = "This Week"
    THIS_MONTH = "This Month"
    NEXT_MONTH = "Next Month"


def _month_end(year: int, month: int) -> date:
    return date(year, month, calendar.monthrange(year, month)[1])


def _period_bounds(time_filter: TimeFilter, today: date):
    if time_filter == TimeFilter.THIS_WEEK:
        return today, today + timedelta(days=7)
    if time_filter == TimeFilter.THIS_MONTH:
        return today, _month_end(today.year, today.month)
    if time_filter == TimeFilter.NEXT_MONTH:
        year, month = (today.year + 1, 1) if today.month == 12 else (today.year, today.month + 1)
        return date(year, month, 1), _month_end(year, month)
    return None


def filter_subscriptions(
    subscriptions: List[Subscription],
    search: str = "",
    category: Optional[Union[Category, str]] = None,
    time_filter: Union[TimeFilter, str] = TimeFilter.ALL,
    today: Optional[date] = None,
) -> List[Subscription]:
    """
    Apply the list view filters in order: name search, category, period.

    Args:
        search: case-insensitive substring of the name; blank matches all
        category: a Category, or None / "All" for every category
        time_filter: renewal period, bounds included
        today: reference date (defaults to the current date)

    Status is not filtered: trials are listed like any other subscription.
    """
    filtered = list(subscriptions)

    query = search.strip().lower()
    if query:
        filtered = [sub for sub in filtered if query in sub.name.lower()]

    if category is not None and category != ALL_CATEGORIES:
        wanted = Category(category)
        filtered = [sub for sub in filtered if sub.category == wanted]

    bounds = _period_bounds(TimeFilter(time_filter), today or date.today())
    if bounds is not None:
        start, end = bounds
        filtered = [sub for sub in filtered if start <= sub.renewal_date <= end]

    return filtered
