"""
Bucket granularity selection.

Young links are charted per day, links up to two years old per week, and
anything older per month, so a chart never grows past a few hundred bars.
"""

from datetime import datetime
from enum import Enum

from .record import as_utc

DAILY_MAX_DAYS = 30
WEEKLY_MAX_DAYS = 730

_SECONDS_PER_DAY = 24 * 60 * 60


class Granularity(str, Enum):
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"


def age_in_days(created_at: datetime, now: datetime) -> float:
    """Fractional number of days between `created_at` and `now`."""
    return (as_utc(now) - as_utc(created_at)).total_seconds() / _SECONDS_PER_DAY


def select_granularity(created_at: datetime, now: datetime) -> Granularity:
    """
    Pick the chart granularity for a record created at `created_at`.

    Rules (age in fractional days):
        - age <= 30          -> daily
        - 30 < age <= 730    -> weekly
        - age > 730          -> monthly
    """
    age = age_in_days(created_at, now)
    if age <= DAILY_MAX_DAYS:
        return Granularity.DAILY
    if age <= WEEKLY_MAX_DAYS:
        return Granularity.WEEKLY
    return Granularity.MONTHLY
