"""
Failed-attempt rate limiter for password-gated routes.

A single counter shared by the whole process: every failed authorization bumps it,
and once it reaches `max_attempts` every gated operation is refused (even with the
right password) until the current window ends and the counter drops back to zero.

States:
    open    -> accepting; counter < max_attempts
    blocked -> rejecting; counter >= max_attempts
    blocked -> open on reset (window elapsed, or `reset()` called by the scheduler)

Windows are fixed and aligned to the last reset, like a recurring timer: the
limiter applies any elapsed window itself using its injected clock, and
`PeriodicReset` calls `reset()` on the same cadence in a background thread.
"""

import logging
import math
import threading
import time
from typing import Callable, Optional

log = logging.getLogger("linkstats.auth")

OPEN = "open"
BLOCKED = "blocked"


class RateLimitedError(Exception):
    """Gated operation refused because too many attempts failed in this window."""

    def __init__(self, retry_after: float):
        super().__init__(f"Service temporarily unavailable, retry in {retry_after:.0f}s")
        self.retry_after = retry_after

    @property
    def retry_after_header(self) -> str:
        """Whole seconds, at least 1, for an HTTP Retry-After header."""
        return str(max(1, math.ceil(self.retry_after)))


class RateLimiter:
    def __init__(
        self,
        max_attempts: int,
        window_seconds: float,
        clock: Optional[Callable[[], float]] = None,
    ):
        """
        Args:
            max_attempts (int): Failed attempts that trigger the block.
            window_seconds (float): Length of a counting window.
            clock (Optional[Callable[[], float]]): Seconds source; defaults to time.monotonic.
        """
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.max_attempts = max_attempts
        self.window_seconds = float(window_seconds)
        self.clock = clock or time.monotonic
        self._lock = threading.Lock()
        self._failed = 0
        self._window_start = self.clock()

    # ---- Internal helpers (call with the lock held) ----------------------

    def _roll_window(self, now: float) -> None:
        elapsed = now - self._window_start
        if elapsed >= self.window_seconds:
            windows = int(elapsed // self.window_seconds)
            self._window_start += windows * self.window_seconds
            if self._failed:
                log.info("Rate limit window elapsed, clearing %d failed attempt(s)", self._failed)
            self._failed = 0

    def _retry_after(self, now: float) -> float:
        return max(0.0, self._window_start + self.window_seconds - now)

    # ---- Public API -------------------------------------------------------

    @property
    def failed_attempts(self) -> int:
        with self._lock:
            self._roll_window(self.clock())
            return self._failed

    @property
    def state(self) -> str:
        with self._lock:
            self._roll_window(self.clock())
            return BLOCKED if self._failed >= self.max_attempts else OPEN

    def check(self) -> None:
        """
        Raise if gated operations are currently refused.

        Raises:
            RateLimitedError: While blocked, with the seconds left in the window.
        """
        with self._lock:
            now = self.clock()
            self._roll_window(now)
            if self._failed >= self.max_attempts:
                raise RateLimitedError(self._retry_after(now))

    def record_failure(self) -> bool:
        """
        Count one failed authorization.

        Returns:
            bool: True if this failure put the limiter in the blocked state.
        """
        with self._lock:
            self._roll_window(self.clock())
            self._failed += 1
            blocked = self._failed >= self.max_attempts
        if blocked:
            log.warning("Too many failed attempts (%d), blocking gated routes", self.max_attempts)
        return blocked

    def record_success(self) -> None:
        """A correct password clears the failed-attempt counter."""
        with self._lock:
            self._failed = 0

    def retry_after(self) -> float:
        """Seconds until the current window ends."""
        with self._lock:
            now = self.clock()
            self._roll_window(now)
            return self._retry_after(now)

    def reset(self) -> None:
        """Clear the counter and start a new window now."""
        with self._lock:
            self._failed = 0
            self._window_start = self.clock()


class PeriodicReset:
    """
    Background scheduler calling `limiter.reset()` every `interval` seconds.

    Runs on a daemon `threading.Timer` chain so it never keeps the process alive;
    `stop()` cancels the pending timer.
    """

    def __init__(self, limiter: RateLimiter, interval: Optional[float] = None):
        self.limiter = limiter
        self.interval = float(interval if interval is not None else limiter.window_seconds)
        self._timer: Optional[threading.Timer] = None
        self._lock = threading.Lock()
        self._running = False

    def _schedule(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
        timer = threading.Timer(self.interval, self._fire)
        timer.daemon = True
        self._timer = timer
        timer.start()

    def _fire(self) -> None:
        self.limiter.reset()
        with self._lock:
            if self._running:
                self._schedule()

    def start(self) -> None:
        with self._lock:
            if self._running:
                return
            self._running = True
            self.limiter.reset()
            self._schedule()

    def stop(self) -> None:
        with self._lock:
            self._running = False
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None

    @property
    def running(self) -> bool:
        return self._running
