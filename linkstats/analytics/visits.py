"""
Visit recording for Link Stats.

`record_visit` is the only state transition applied to an AnalyticsRecord after
creation. It mutates the record in place and leaves persistence to the caller
(see `Analytics.log_visit`, which runs it under the store's per-shortname lock).
"""

from datetime import datetime
from typing import Optional

from .record import AnalyticsRecord, day_key

UNKNOWN_IP = "unknown"


def normalize_ip(source_ip: Optional[str]) -> str:
    """Collapse missing or blank addresses onto the shared "unknown" key."""
    ip = (source_ip or "").strip()
    return ip or UNKNOWN_IP


def record_visit(record: AnalyticsRecord, source_ip: Optional[str], now: datetime) -> AnalyticsRecord:
    """
    Apply one visit to `record`.

    Effects:
        - total_visits += 1
        - daily_clicks[day(now)] += 1, day taken in UTC
        - first visit from an IP: visits_by_ip[ip] = 1 and unique_visitors += 1
        - repeat visit from an IP: visits_by_ip[ip] += 1

    Unresolvable addresses are tracked under "unknown", so every such visit
    shares a single unique-visitor slot.

    Returns:
        AnalyticsRecord: the same (mutated) instance, for chaining.
    """
    ip = normalize_ip(source_ip)

    record.total_visits += 1

    key = day_key(now)
    record.daily_clicks[key] = record.daily_clicks.get(key, 0) + 1

    if ip in record.visits_by_ip:
        record.visits_by_ip[ip] += 1
    else:
        record.visits_by_ip[ip] = 1
        record.unique_visitors += 1
    return record


def reconcile(record: AnalyticsRecord) -> int:
    """
    Difference between the visit counter and the per-day clicks.

    Both counters are kept; a non-zero result means they drifted (for example
    records written before per-day clicks were tracked). Neither is rewritten.
    """
    return record.total_visits - sum(record.daily_clicks.values())
