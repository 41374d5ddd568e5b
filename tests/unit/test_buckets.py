"""
Unit tests for granularity selection by record age.
"""

from datetime import datetime, timedelta, timezone

import pytest

from linkstats.analytics.buckets import Granularity, age_in_days, select_granularity

CREATED = datetime(2024, 1, 1, tzinfo=timezone.utc)


@pytest.mark.parametrize(
    "age_days,expected",
    [
        (0, Granularity.DAILY),
        (1.5, Granularity.DAILY),
        (30, Granularity.DAILY),
        (30.0001, Granularity.WEEKLY),
        (31, Granularity.WEEKLY),
        (365, Granularity.WEEKLY),
        (730, Granularity.WEEKLY),
        (730.0001, Granularity.MONTHLY),
        (3650, Granularity.MONTHLY),
    ],
)
def test_select_granularity_thresholds(age_days, expected):
    now = CREATED + timedelta(days=age_days)
    assert select_granularity(CREATED, now) is expected


def test_age_in_days_is_fractional():
    now = CREATED + timedelta(days=2, hours=12)
    assert age_in_days(CREATED, now) == pytest.approx(2.5)


def test_mixed_naive_and_aware_timestamps():
    naive_now = datetime(2024, 3, 1)
    assert select_granularity(CREATED, naive_now) is Granularity.WEEKLY


def test_future_creation_is_daily():
    # clock skew: creation after "now"
    assert select_granularity(CREATED, CREATED - timedelta(days=3)) is Granularity.DAILY


def test_granularity_values_are_strings():
    assert [g.value for g in Granularity] == ["daily", "weekly", "monthly"]
