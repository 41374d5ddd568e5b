"""
Abstract Base Class for Analytics Backends.

Responsibilities:
    - Define required methods for any analytics implementation
    - Support easy substitution (e.g., store-backed, event stream, external metrics)
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

__all__ = ["BaseAnalytics"]


class BaseAnalytics(ABC):
    """Abstract base for pluggable analytics backends."""

    @abstractmethod
    def record_creation(self, shortname: str, url: str) -> Any:  # pragma: no cover
        """
        Start a fresh analytics record for a newly created short link.

        Args:
            shortname (str): The short link identifier.
            url (str): Target URL the shortname now points to.
        """
        raise NotImplementedError

    @abstractmethod
    def log_visit(self, shortname: str, url: str, source_ip: Optional[str]) -> Any:  # pragma: no cover
        """
        Record one visit to a short link.

        Args:
            shortname (str): The short link identifier.
            url (str): Target URL the visitor is being redirected to.
            source_ip (Optional[str]): Visitor address, None when unknown.
        """
        raise NotImplementedError

    @abstractmethod
    def stats(self, shortname: str) -> Optional[Dict[str, Any]]:  # pragma: no cover
        """
        Provide the analytics report for one shortname.

        Returns:
            Optional[dict]: Report data, or None when nothing was recorded.
        """
        raise NotImplementedError
