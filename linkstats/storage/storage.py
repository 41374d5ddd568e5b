"""
Storage module for Link Stats (in-memory implementation).

Responsibilities:
    - Keep the shortname -> target URL mapping
    - Keep the shortname -> LinkStats analytics history
    - Hand out copies so callers only change stored state through `put`

Design:
    - This is an in-memory reference implementation that satisfies the BaseStorage contract.
    - It is intentionally simple to keep unit/integration tests fast and deterministic.
    - For production, use the file or Postgres backends (see storage_factory).
"""

from typing import Dict, Optional

from ..analytics.record import LinkStats
from .base import BaseStorage


class Storage(BaseStorage):
    def __init__(self):
        """
        Initialize empty storage dictionaries.

        Internal schema:
            self.links = {shortname: url}
            self.stats = {shortname: LinkStats}
        """
        super().__init__()
        self.links: Dict[str, str] = {}
        self.stats: Dict[str, LinkStats] = {}

    def save_link(self, shortname: str, url: str) -> None:
        self.links[shortname] = url

    def get_link(self, shortname: str) -> Optional[str]:
        return self.links.get(shortname)

    def get(self, shortname: str) -> Optional[LinkStats]:
        """
        Retrieve the analytics history for a shortname.

        Returns:
            Optional[LinkStats]: A deep copy, or None if nothing is stored.
        """
        stats = self.stats.get(shortname)
        return stats.model_copy(deep=True) if stats is not None else None

    def put(self, shortname: str, stats: LinkStats) -> None:
        self.stats[shortname] = stats.model_copy(deep=True)

    def exists(self, shortname: str) -> bool:
        return shortname in self.stats
