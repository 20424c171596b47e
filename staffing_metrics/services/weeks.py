"""
Week arithmetic shared by the ranking and hours pipelines.

Weeks run Sunday..Saturday and are identified by their Sunday.
"""

from datetime import date, timedelta
from typing import Dict, List, Tuple

from staffing_metrics.models.enums import DayBucket, WeekPeriod


def week_start_of(day: date) -> date:
    """Sunday on or before day."""
    return day - timedelta(days=(day.weekday() + 1) % 7)


def week_end_of(day: date) -> date:
    return week_start_of(day) + timedelta(days=6)


def prior_week_start(week_start: date) -> date:
    return week_start - timedelta(days=7)


def last_week_boundaries(today: date) -> Tuple[date, date]:
    """Sunday and Saturday of the week before the one containing today."""
    last_sunday = week_start_of(today) - timedelta(days=7)
    return last_sunday, last_sunday + timedelta(days=6)


def day_bucket(day: date) -> int:
    """
    Hours report column for a date.

    Sunday and Monday share bucket 0; Tuesday..Saturday map to 1..5.
    """
    weekday = day.weekday()  # Mon=0 .. Sun=6
    if weekday in (0, 6):
        return DayBucket.SUN_MON.value
    return weekday


def period_week_starts(this_week_start: date) -> Dict[WeekPeriod, date]:
    return {
        WeekPeriod.LAST_WEEK: this_week_start - timedelta(days=7),
        WeekPeriod.THIS_WEEK: this_week_start,
        WeekPeriod.NEXT_WEEK: this_week_start + timedelta(days=7),
    }


def hours_window(today: date) -> List[date]:
    """
    Every date from last week's Sunday to next week's Saturday, inclusive.
    """
    first = week_start_of(today) - timedelta(days=7)
    return [first + timedelta(days=offset) for offset in range(21)]
