"""
LinkManager module for Link Stats.

Responsibilities:
    - Validate shortnames and target URLs
    - Create (or re-point) short links in the storage backend
    - Start a fresh analytics record on every creation
    - Resolve shortnames for redirects, refusing redirect loops

Design notes:
    - Shortnames are user-chosen: letters, digits and hyphens only.
    - Re-creating an existing shortname replaces its target; the analytics
      history keeps the old record and gains a new one for the new target.
    - Analytics are best-effort: a failed stats write never fails the creation.
"""

import logging
import re
from typing import Iterable, Optional
from urllib.parse import urlparse

from ..analytics.base import BaseAnalytics
from ..storage.base import BaseStorage, StoreError

ShortnamePattern = re.compile(r"^[a-zA-Z0-9-]+$")
MAX_SHORTNAME_LENGTH = 64

log = logging.getLogger("linkstats.manager")


class LinkManager:
    """Coordinates creation and lookup rules for short links."""

    def __init__(
        self,
        storage: BaseStorage,
        analytics: Optional[BaseAnalytics] = None,
        reserved: Iterable[str] = (),
    ):
        """
        Initialize LinkManager with a storage backend and optional analytics.

        Args:
            storage (BaseStorage): Backend storage instance.
            analytics (Optional[BaseAnalytics]): Analytics instance (optional).
            reserved (Iterable[str]): Shortnames taken by app routes (case-insensitive).
        """
        self.storage = storage
        self.analytics = analytics
        self.reserved = {name.lower() for name in reserved}

    # ---------------------------------------------------------------------
    # Validation Helpers
    # ---------------------------------------------------------------------
    @staticmethod
    def normalize_shortname(shortname: str) -> str:
        """Strip surrounding whitespace and any slashes from a submitted shortname."""
        return (shortname or "").replace("/", "").strip()

    def _validate_url(self, url: str) -> None:
        """
        Validate that a URL has an http/https scheme and a netloc.

        Raises:
            ValueError: If the URL is malformed.
        """
        parsed = urlparse(url)
        if parsed.scheme not in {"http", "https"} or not parsed.netloc:
            raise ValueError("Invalid URL format")

    def _validate_shortname(self, shortname: str) -> None:
        """
        Validate shortname characters and length.

        Raises:
            ValueError: If the shortname is empty, too long, or has invalid characters.
        """
        if not shortname:
            raise ValueError("Shortname is required")
        if not ShortnamePattern.match(shortname):
            raise ValueError("Shortname must contain only letters, numbers, and hyphens")
        if len(shortname) > MAX_SHORTNAME_LENGTH:
            raise ValueError("Shortname too long")
        if shortname.lower() in self.reserved:
            raise ValueError("Shortname is reserved")

    # ---------------------------------------------------------------------
    # Public API
    # ---------------------------------------------------------------------
    def create_link(self, shortname: str, url: str) -> str:
        """
        Point `shortname` at `url` and start a new analytics record.

        Rules:
            - Shortname is normalized (slashes removed) then validated.
            - URL must be http/https with a host.
            - An existing shortname is overwritten (no uniqueness check).
            - Analytics failures are logged, never raised.

        Returns:
            str: The normalized shortname actually stored.

        Raises:
            ValueError: On invalid input or when the link cannot be saved.
        """
        shortname = self.normalize_shortname(shortname)
        self._validate_shortname(shortname)
        url = (url or "").strip()
        self._validate_url(url)

        try:
            self.storage.save_link(shortname, url)
        except StoreError as e:
            log.error("Failed to save link %r: %s", shortname, e)
            raise ValueError("Failed to create link") from e

        if self.analytics is not None:
            self.analytics.record_creation(shortname, url)
        log.info("Created link %r -> %s", shortname, url)
        return shortname

    def resolve(self, shortname: str, host: Optional[str] = None) -> Optional[str]:
        """
        Return the redirect target for `shortname`, or None if it must not redirect.

        None is returned when the shortname is unknown, its stored target is
        empty, or the target points back at `host` (which would loop).

        Raises:
            StoreError: If the link mapping exists but cannot be read.
        """
        if not ShortnamePattern.match(shortname or ""):
            return None
        target = (self.storage.get_link(shortname) or "").strip()
        if not target:
            return None
        if host and self._points_to_host(target, host):
            log.warning("Refusing redirect loop for %r -> %s", shortname, target)
            return None
        return target

    @staticmethod
    def _points_to_host(target: str, host: str) -> bool:
        parsed = urlparse(target)
        return parsed.netloc.lower() == host.lower()
