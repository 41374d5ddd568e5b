"""
Global pytest fixtures for the Link Stats test suite.

Responsibilities:
    - Provide controllable clocks (wall-clock datetimes for analytics, seconds for the limiter)
    - Provide isolated in-memory Storage, Analytics and LinkManager fixtures
    - Provide a fresh FastAPI TestClient via the app factory for integration tests

Why an app factory?
    Using `create_app()` ensures each test gets fresh in-memory state
    (links, stats, failed-attempt counter), eliminating cross-test flakiness.
"""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient

from auth.rate_limiter import RateLimiter
from linkstats.analytics.analytics import Analytics
from linkstats.config import settings
from linkstats.manager.link_manager import LinkManager
from linkstats.storage.storage import Storage
from main import create_app

START = datetime(2024, 1, 1, tzinfo=timezone.utc)


class FakeClock:
    """Callable returning a settable UTC datetime."""

    def __init__(self, now: datetime = START):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


class FakeTimer:
    """Callable returning settable monotonic seconds."""

    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> float:
        self.now += seconds
        return self.now


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def timer() -> FakeTimer:
    return FakeTimer()


@pytest.fixture
def storage() -> Storage:
    """Fresh in-memory Storage backend."""
    return Storage()


@pytest.fixture
def analytics(storage: Storage, clock: FakeClock) -> Analytics:
    """Analytics bound to the storage fixture and the pinned clock."""
    return Analytics(storage=storage, clock=clock)


@pytest.fixture
def manager(storage: Storage, analytics: Analytics) -> LinkManager:
    return LinkManager(storage=storage, analytics=analytics, reserved={"stats", "new"})


@pytest.fixture
def limiter(timer: FakeTimer) -> RateLimiter:
    """Small limiter (3 failures per 60s window) driven by the fake timer."""
    return RateLimiter(max_attempts=3, window_seconds=60, clock=timer)


@pytest.fixture
def password() -> str:
    return settings.PASSWORD


@pytest.fixture
def client(storage: Storage, clock: FakeClock, limiter: RateLimiter) -> TestClient:
    """
    Fresh TestClient around a new app instance.

    Redirects are not followed so tests can assert on the 302 itself.
    """
    app = create_app(storage=storage, clock=clock, limiter=limiter)
    return TestClient(app, follow_redirects=False)
