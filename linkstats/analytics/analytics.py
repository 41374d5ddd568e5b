"""
Analytics module for Link Stats.

Responsibilities:
    - Start an analytics record whenever a short link is (re)created
    - Apply visits to the record matching the link's current target
    - Build the per-record report: counters, per-IP visits, chart series

Design:
    - Every read-modify-write of a shortname's LinkStats runs inside
      `storage.locked(shortname)`, so concurrent visits cannot drop increments.
    - Writes are best-effort: a StoreError while recording a creation or a visit
      is logged and swallowed, the redirect / creation itself still succeeds.
    - Reads (`stats`) let StoreError propagate so the caller can tell
      "no data" (None) apart from "data could not be read".
    - Time comes from an injected clock (defaults to UTC now) so tests can pin "now".

Example:
    >>> analytics = Analytics(Storage(), clock=lambda: datetime(2024, 1, 3, tzinfo=timezone.utc))
    >>> record = analytics.record_creation("docs", "https://example.com/docs")
    >>> record = analytics.log_visit("docs", "https://example.com/docs", "1.1.1.1")
    >>> analytics.stats("docs")["records"][0]["granularity"]
    'daily'
"""

import logging
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from ..storage.base import BaseStorage, StoreError
from .base import BaseAnalytics
from .record import AnalyticsRecord, LinkStats, utcnow
from .series import chart_series
from .visits import reconcile, record_visit

log = logging.getLogger("linkstats.analytics")

Clock = Callable[[], datetime]


class Analytics(BaseAnalytics):
    def __init__(self, storage: BaseStorage, clock: Optional[Clock] = None):
        """
        Args:
            storage (BaseStorage): Backend holding the LinkStats documents.
            clock (Optional[Clock]): Returns the current time; defaults to UTC now.
        """
        self.storage = storage
        self.clock: Clock = clock or utcnow

    def record_creation(self, shortname: str, url: str) -> Optional[AnalyticsRecord]:
        """
        Append a zeroed AnalyticsRecord for `url` to the shortname's history.

        Returns:
            Optional[AnalyticsRecord]: The new record, or None if it could not be stored.
        """
        try:
            with self.storage.locked(shortname):
                stats = self.storage.get(shortname) or LinkStats()
                record = AnalyticsRecord.new(url, created_at=self.clock())
                stats.records.append(record)
                self.storage.put(shortname, stats)
        except StoreError:
            log.exception("Error updating stats for creation of %r", shortname)
            return None
        return record

    def log_visit(self, shortname: str, url: str, source_ip: Optional[str]) -> Optional[AnalyticsRecord]:
        """
        Record a visit to `shortname` that is being redirected to `url`.

        Notes:
            - Nothing is written if the shortname has no stats (link created
              outside this service); the visit is only logged.
            - The shortname-wide `visits` counter is bumped even when no record
              matches `url` (target changed without a creation record).

        Returns:
            Optional[AnalyticsRecord]: The updated record, or None if no record
            matched or the store failed.
        """
        now = self.clock()
        try:
            with self.storage.locked(shortname):
                stats = self.storage.get(shortname)
                if stats is None:
                    log.info("No stats for %r, visit not recorded", shortname)
                    return None
                stats.visits += 1
                record = stats.active_record(url)
                if record is not None:
                    record_visit(record, source_ip, now)
                else:
                    log.warning("No record of %r for target %s", shortname, url)
                self.storage.put(shortname, stats)
        except StoreError:
            log.exception("Error updating stats for visit to %r", shortname)
            return None
        return record

    def stats(self, shortname: str) -> Optional[Dict[str, Any]]:
        """
        Build the analytics report for a shortname.

        Returns:
            Optional[Dict[str, Any]]: None when nothing is stored, otherwise:
                {
                    "shortname": "docs",
                    "visits": 6,
                    "records": [
                        {
                            "targetUrl": ..., "createdAt": ..., "totalVisits": 6,
                            "uniqueVisitors": 2, "visitsByIP": {...}, "dailyClicks": {...},
                            "unreconciledVisits": 0,
                            "granularity": "daily",
                            "series": [{"label": "2024-01-01", "count": 3}, ...]
                        }
                    ]
                }

        Raises:
            StoreError: If the stored history cannot be read.
        """
        stats = self.storage.get(shortname)
        if stats is None:
            return None

        now = self.clock()
        records = []
        for record in stats.records:
            series = chart_series(record, now)
            entry = record.to_dict()
            entry["unreconciledVisits"] = reconcile(record)
            entry["granularity"] = series.granularity.value
            entry["series"] = series.to_list()
            records.append(entry)

        return {"shortname": shortname, "visits": stats.visits, "records": records}
