"""
Analytics record models for Link Stats.

Responsibilities:
    - Describe the per-creation analytics record (counters, per-IP and per-day maps)
    - Describe the per-shortname history container persisted by the stores
    - Provide the UTC day-key convention shared by writers and readers

Serialized shape (one JSON document per shortname):
    {
        "visits": 7,
        "shorturls": [
            {
                "targetUrl": "https://example.com",
                "createdAt": "2024-01-01T00:00:00Z",
                "totalVisits": 7,
                "uniqueVisitors": 2,
                "visitsByIP": {"1.1.1.1": 5, "2.2.2.2": 2},
                "dailyClicks": {"2024-01-01": 3, "2024-01-03": 4}
            }
        ]
    }

Older stats files written with the short keys ("url", "created", "visits",
"uniques", "ips") are accepted on read and rewritten with the keys above.
"""

from datetime import date, datetime, timezone
from typing import Dict, List, Optional

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator


def utcnow() -> datetime:
    """Timezone-aware current time in UTC."""
    return datetime.now(timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Return `moment` in UTC; naive values are taken to already be UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def day_of(moment: datetime) -> date:
    """UTC calendar day containing `moment`."""
    return as_utc(moment).date()


def day_key(moment: datetime) -> str:
    """`YYYY-MM-DD` key used in `daily_clicks`."""
    return day_of(moment).isoformat()


class AnalyticsRecord(BaseModel):
    """Visit analytics for a single creation of a short link."""

    model_config = ConfigDict(populate_by_name=True)

    target_url: str = Field(
        validation_alias=AliasChoices("targetUrl", "target_url", "url"),
        serialization_alias="targetUrl",
    )
    created_at: datetime = Field(
        validation_alias=AliasChoices("createdAt", "created_at", "created"),
        serialization_alias="createdAt",
    )
    total_visits: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("totalVisits", "total_visits", "visits"),
        serialization_alias="totalVisits",
    )
    unique_visitors: int = Field(
        default=0,
        ge=0,
        validation_alias=AliasChoices("uniqueVisitors", "unique_visitors", "uniques"),
        serialization_alias="uniqueVisitors",
    )
    visits_by_ip: Dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("visitsByIP", "visits_by_ip", "ips"),
        serialization_alias="visitsByIP",
    )
    daily_clicks: Dict[str, int] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("dailyClicks", "daily_clicks"),
        serialization_alias="dailyClicks",
    )

    @field_validator("created_at")
    @classmethod
    def _created_at_utc(cls, value: datetime) -> datetime:
        return as_utc(value)

    @classmethod
    def new(cls, target_url: str, created_at: Optional[datetime] = None) -> "AnalyticsRecord":
        """Zeroed record for a freshly created short link."""
        return cls(target_url=target_url, created_at=created_at or utcnow())

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class LinkStats(BaseModel):
    """
    History of analytics records for one shortname.

    A shortname that is recreated (same or different target) gets a new record
    appended; `visits` counts every visit to the shortname across all of them.
    """

    model_config = ConfigDict(populate_by_name=True)

    visits: int = Field(default=0, ge=0)
    records: List[AnalyticsRecord] = Field(
        default_factory=list,
        validation_alias=AliasChoices("shorturls", "records"),
        serialization_alias="shorturls",
    )

    def active_record(self, target_url: str) -> Optional[AnalyticsRecord]:
        """Most recent record for `target_url`, or None if the target was never recorded."""
        for record in reversed(self.records):
            if record.target_url == target_url:
                return record
        return None

    def to_dict(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, indent=2)
