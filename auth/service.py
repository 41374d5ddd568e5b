"""
Core authentication logic.

This module validates the shared password for gated routes and feeds the
outcome into the process-wide RateLimiter. Callers get one of three outcomes:

    - success                      -> returns None, failed-attempt counter cleared
    - wrong password               -> HTTPException 401 "Invalid password"
    - blocked (now or just became) -> HTTPException 503 with a Retry-After header
"""

import logging

from fastapi import HTTPException, status

from .rate_limiter import RateLimitedError, RateLimiter
from .utils import password_matches

log = logging.getLogger("linkstats.auth")


def _unavailable(detail: str, retry_after: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail=detail,
        headers={"Retry-After": retry_after},
    )


class Authenticator:
    def __init__(self, password: str, limiter: RateLimiter):
        """
        Args:
            password (str): Expected password, plain or SHA256 hex digest.
            limiter (RateLimiter): Shared failed-attempt limiter.
        """
        self.password = password
        self.limiter = limiter

    def authorize(self, password: str) -> None:
        """
        Check `password` for a gated operation.

        Raises:
            HTTPException: 503 while the limiter is blocked (even for the right
                password), 503 when this failure triggers the block, 401 otherwise.
        """
        try:
            self.limiter.check()
        except RateLimitedError as e:
            raise _unavailable("Service temporarily unavailable.", e.retry_after_header)

        if password_matches(self.password, password):
            self.limiter.record_success()
            return

        if self.limiter.record_failure():
            blocked = RateLimitedError(self.limiter.retry_after())
            raise _unavailable(
                "Too many failed attempts. Service temporarily unavailable.",
                blocked.retry_after_header,
            )

        log.info("Invalid password attempt")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid password")
