"""
Base storage interface for Link Stats.

Purpose:
    Define a small, stable contract that multiple storage backends
    (in-memory, JSON files, SQL) can implement without requiring
    changes to the analytics or manager code.

    Two keyed collections live behind one store:
        - links: shortname -> current target URL
        - stats: shortname -> LinkStats (history of AnalyticsRecords)

Concurrency:
    `locked(shortname)` gives callers a scoped, per-shortname mutual exclusion
    lock so a read-modify-write of a LinkStats (get -> mutate -> put) cannot
    interleave with another one for the same shortname in this process.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

import contextlib
import threading
from abc import ABC, abstractmethod
from typing import Dict, Iterator, Optional

from ..analytics.record import LinkStats


class StoreError(Exception):
    """Raised when a backend cannot read or write a shortname (I/O, bad data)."""

    def __init__(self, shortname: str, message: str):
        super().__init__(f"{shortname}: {message}")
        self.shortname = shortname


class BaseStorage(ABC):
    """Abstract base class for storage backends."""

    def __init__(self) -> None:
        self._locks: Dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    @contextlib.contextmanager
    def locked(self, shortname: str) -> Iterator[None]:
        """
        Hold the lock for `shortname` for the duration of the block.

        Example:
            with storage.locked("docs"):
                stats = storage.get("docs")
                ...
                storage.put("docs", stats)
        """
        with self._locks_guard:
            lock = self._locks.setdefault(shortname, threading.Lock())
        with lock:
            yield

    # ---- Links ------------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def save_link(self, shortname: str, url: str) -> None:
        """
        Create or replace the target URL of a shortname.

        Raises:
            StoreError: If the mapping cannot be written.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link(self, shortname: str) -> Optional[str]:
        """
        Return the current target URL, or None if the shortname is unknown.

        Raises:
            StoreError: If the mapping exists but cannot be read.
        """
        raise NotImplementedError

    # ---- Stats ------------------------------------------------------------

    @abstractmethod  # pragma: no cover
    def get(self, shortname: str) -> Optional[LinkStats]:
        """
        Return the analytics history for a shortname, or None if there is none.

        The returned object is the caller's own copy; changes are only kept
        once passed back through `put`.

        Raises:
            StoreError: On I/O failure or malformed stored data.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def put(self, shortname: str, stats: LinkStats) -> None:
        """
        Create or replace the analytics history for a shortname.

        Raises:
            StoreError: If the write fails.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def exists(self, shortname: str) -> bool:
        """Return True if analytics are stored for the shortname."""
        raise NotImplementedError
