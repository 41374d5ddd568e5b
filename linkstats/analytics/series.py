"""
Chart series aggregation.

Turns a record's sparse `daily_clicks` map into an ordered, gap-free series of
buckets between the record's creation and "now":

    daily   -> one bucket per UTC day, label "YYYY-MM-DD"
    weekly  -> one bucket per Monday-started week, label = the Monday "YYYY-MM-DD"
    monthly -> one bucket per calendar month, label "YYYY-MM"

Periods with no clicks still get a bucket with count 0. The series is lazy and
can be iterated any number of times; each iteration recomputes from the record.
"""

import calendar
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Dict, Iterator, List, Mapping, Optional, Tuple

from .buckets import Granularity, select_granularity
from .record import AnalyticsRecord, day_of

# (label, first day, last day) of one bucket, both days inclusive
Period = Tuple[str, date, date]


@dataclass(frozen=True)
class AggregatedBucket:
    label: str
    count: int

    def to_dict(self) -> Dict[str, object]:
        return {"label": self.label, "count": self.count}


def _sum_days(daily_clicks: Mapping[str, int], first: date, last: date) -> int:
    total = 0
    day = first
    while day <= last:
        total += daily_clicks.get(day.isoformat(), 0)
        day += timedelta(days=1)
    return total


def _daily_periods(start: date, end: date) -> Iterator[Period]:
    day = start
    while day <= end:
        yield day.isoformat(), day, day
        day += timedelta(days=1)


def _weekly_periods(start: date, end: date) -> Iterator[Period]:
    monday = start - timedelta(days=start.weekday())
    last_monday = end - timedelta(days=end.weekday())
    while monday <= last_monday:
        yield monday.isoformat(), monday, monday + timedelta(days=6)
        monday += timedelta(days=7)


def _monthly_periods(start: date, end: date) -> Iterator[Period]:
    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        last_day = calendar.monthrange(year, month)[1]
        yield f"{year:04d}-{month:02d}", date(year, month, 1), date(year, month, last_day)
        year, month = (year + 1, 1) if month == 12 else (year, month + 1)


_PERIODS = {
    Granularity.DAILY: _daily_periods,
    Granularity.WEEKLY: _weekly_periods,
    Granularity.MONTHLY: _monthly_periods,
}


def iter_periods(granularity: Granularity, created_at: datetime, now: datetime) -> Iterator[Period]:
    """
    Yield the bucket periods covering [created_at, now].

    A `now` earlier than `created_at` (clock skew) collapses to the creation period.
    """
    start = day_of(created_at)
    end = max(day_of(now), start)
    return _PERIODS[Granularity(granularity)](start, end)


class ChartSeries:
    """
    Re-iterable view of the aggregated buckets for one record.

    Nothing is cached: every `iter()` walks the periods again against the
    record's current `daily_clicks`.
    """

    def __init__(self, record: AnalyticsRecord, granularity: Granularity, now: datetime):
        self.record = record
        self.granularity = Granularity(granularity)
        self.now = now

    def __iter__(self) -> Iterator[AggregatedBucket]:
        clicks = self.record.daily_clicks
        for label, first, last in iter_periods(self.granularity, self.record.created_at, self.now):
            yield AggregatedBucket(label=label, count=_sum_days(clicks, first, last))

    def to_list(self) -> List[Dict[str, object]]:
        return [bucket.to_dict() for bucket in self]

    def __repr__(self) -> str:
        return f"ChartSeries(granularity={self.granularity.value!r}, created_at={self.record.created_at.isoformat()!r}, now={self.now.isoformat()!r})"


def aggregate(record: AnalyticsRecord, granularity: Granularity, now: datetime) -> ChartSeries:
    """Series of `record`'s clicks bucketed at `granularity` up to `now`."""
    return ChartSeries(record, granularity, now)


def chart_series(record: AnalyticsRecord, now: datetime, granularity: Optional[Granularity] = None) -> ChartSeries:
    """Series at the granularity chosen by the record's age (unless one is forced)."""
    if granularity is None:
        granularity = select_granularity(record.created_at, now)
    return aggregate(record, granularity, now)
