"""
Unit tests for the Analytics service.

Covers:
    - creation starts a zeroed record, recreation appends
    - visits update the record matching the current target
    - missing stats / unmatched target
    - store failures are logged, not raised, on the write path
    - report shape, granularity and series
"""

import logging

import pytest

from linkstats.analytics.analytics import Analytics
from linkstats.storage.base import StoreError
from linkstats.storage.storage import Storage


def test_record_creation(analytics, storage):
    record = analytics.record_creation("docs", "https://example.com")
    assert record.total_visits == 0
    assert record.created_at == analytics.clock()
    assert storage.get("docs").records == [record]


def test_log_visit_scenario(analytics, storage):
    analytics.record_creation("docs", "https://example.com")
    for _ in range(5):
        analytics.log_visit("docs", "https://example.com", "1.1.1.1")
    analytics.log_visit("docs", "https://example.com", "2.2.2.2")

    stats = storage.get("docs")
    record = stats.records[0]
    assert stats.visits == 6
    assert record.total_visits == 6
    assert record.unique_visitors == 2
    assert record.visits_by_ip == {"1.1.1.1": 5, "2.2.2.2": 1}
    assert record.daily_clicks == {"2024-01-01": 6}


def test_log_visit_uses_clock_for_day(analytics, storage, clock):
    analytics.record_creation("docs", "https://example.com")
    analytics.log_visit("docs", "https://example.com", "1.1.1.1")
    clock.advance(days=2)
    analytics.log_visit("docs", "https://example.com", "1.1.1.1")

    assert storage.get("docs").records[0].daily_clicks == {"2024-01-01": 1, "2024-01-03": 1}


def test_visit_goes_to_current_target_record(analytics, storage, clock):
    analytics.record_creation("docs", "https://one.example")
    clock.advance(days=1)
    analytics.record_creation("docs", "https://two.example")

    analytics.log_visit("docs", "https://two.example", "1.1.1.1")

    old, new = storage.get("docs").records
    assert old.total_visits == 0
    assert new.total_visits == 1


def test_visit_without_stats_is_ignored(analytics, storage, caplog):
    with caplog.at_level(logging.INFO, logger="linkstats.analytics"):
        assert analytics.log_visit("ghost", "https://example.com", "1.1.1.1") is None
    assert storage.exists("ghost") is False
    assert "No stats" in caplog.text


def test_visit_with_unmatched_target_counts_shortname_only(analytics, storage):
    analytics.record_creation("docs", "https://example.com")
    assert analytics.log_visit("docs", "https://elsewhere.example", "1.1.1.1") is None

    stats = storage.get("docs")
    assert stats.visits == 1
    assert stats.records[0].total_visits == 0


class _FailingStorage(Storage):
    def __init__(self, fail_get=False, fail_put=False):
        super().__init__()
        self.fail_get = fail_get
        self.fail_put = fail_put

    def get(self, shortname):
        if self.fail_get:
            raise StoreError(shortname, "malformed stats file")
        return super().get(shortname)

    def put(self, shortname, stats):
        if self.fail_put:
            raise StoreError(shortname, "disk full")
        super().put(shortname, stats)


def test_creation_store_failure_is_logged(clock, caplog):
    analytics = Analytics(_FailingStorage(fail_put=True), clock=clock)
    with caplog.at_level(logging.ERROR, logger="linkstats.analytics"):
        assert analytics.record_creation("docs", "https://example.com") is None
    assert "Error updating stats for creation" in caplog.text


def test_visit_store_failure_is_logged(clock, caplog):
    storage = _FailingStorage()
    analytics = Analytics(storage, clock=clock)
    analytics.record_creation("docs", "https://example.com")
    storage.fail_get = True

    with caplog.at_level(logging.ERROR, logger="linkstats.analytics"):
        assert analytics.log_visit("docs", "https://example.com", "1.1.1.1") is None
    assert "Error updating stats for visit" in caplog.text


def test_stats_read_failure_propagates(clock):
    storage = _FailingStorage()
    analytics = Analytics(storage, clock=clock)
    analytics.record_creation("docs", "https://example.com")
    storage.fail_get = True
    with pytest.raises(StoreError):
        analytics.stats("docs")


def test_stats_missing_is_none(analytics):
    assert analytics.stats("missing") is None


def test_stats_report(analytics, clock):
    analytics.record_creation("docs", "https://example.com")
    analytics.log_visit("docs", "https://example.com", "1.1.1.1")
    analytics.log_visit("docs", "https://example.com", "1.1.1.1")
    clock.advance(days=2)
    analytics.log_visit("docs", "https://example.com", "2.2.2.2")

    report = analytics.stats("docs")

    assert report["shortname"] == "docs"
    assert report["visits"] == 3
    (record,) = report["records"]
    assert record["targetUrl"] == "https://example.com"
    assert record["totalVisits"] == 3
    assert record["uniqueVisitors"] == 2
    assert record["unreconciledVisits"] == 0
    assert record["granularity"] == "daily"
    assert record["series"] == [
        {"label": "2024-01-01", "count": 2},
        {"label": "2024-01-02", "count": 0},
        {"label": "2024-01-03", "count": 1},
    ]


def test_stats_granularity_follows_age(analytics, clock):
    analytics.record_creation("docs", "https://example.com")
    clock.advance(days=90)
    assert analytics.stats("docs")["records"][0]["granularity"] == "weekly"
    clock.advance(days=700)
    report = analytics.stats("docs")["records"][0]
    assert report["granularity"] == "monthly"
    assert report["series"][0]["label"] == "2024-01"
