"""
Main API module for Link Stats.

Responsibilities:
    - Redirect short links and record each visit (totals, unique IPs, daily clicks)
    - Create short links behind a shared password
    - Report per-link analytics with age-bucketed chart series
    - Throttle password guessing with a process-wide failed-attempt limiter

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory Storage by default; file or Postgres backends chosen by env.
    - LinkManager owns validation and creation, Analytics owns the stats documents.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Callable, Dict, Optional

from fastapi import Depends, FastAPI, HTTPException, Request
from fastapi.responses import RedirectResponse
from pydantic import BaseModel

from auth.dependencies import get_authenticator
from auth.rate_limiter import PeriodicReset, RateLimiter
from auth.service import Authenticator
from linkstats.analytics.analytics import Analytics
from linkstats.analytics.visits import UNKNOWN_IP
from linkstats.config import settings
from linkstats.manager.link_manager import LinkManager, ShortnamePattern
from linkstats.storage.base import BaseStorage, StoreError
from linkstats.storage.storage_factory import get_storage


class CreateLinkRequest(BaseModel):
    """Request payload for creating (or re-pointing) a short link."""
    shortname: str
    url: str
    password: str


class StatsRequest(BaseModel):
    """Request payload for reading a short link's analytics."""
    shortname: str
    password: str


def _client_ip(request: Request) -> str:
    """Visitor address as seen by the server, or the shared "unknown" key."""
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_IP


def _require_fields(*values: str) -> None:
    """400 on blank input; checked before the password so it never counts as a failed attempt."""
    if not all((value or "").strip() for value in values):
        raise HTTPException(status_code=400, detail="All fields are required")


def _request_host(request: Request) -> str:
    return request.headers.get("host") or request.url.netloc


def create_app(
    storage: Optional[BaseStorage] = None,
    clock: Optional[Callable[[], datetime]] = None,
    limiter: Optional[RateLimiter] = None,
) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        storage (Optional[BaseStorage]): Backend to use; chosen from env when omitted.
        clock (Optional[Callable[[], datetime]]): "Now" for analytics; UTC now by default.
        limiter (Optional[RateLimiter]): Failed-attempt limiter; built from settings when omitted.

    Returns:
        FastAPI: A fully configured application instance with isolated
                 storage, analytics and rate-limit state.
    """
    log = logging.getLogger("linkstats")
    if not logging.getLogger().handlers:
        logging.basicConfig(level=getattr(logging, settings.LOG_LEVEL, logging.INFO))

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    if storage is None:
        storage = get_storage()
    analytics = Analytics(storage=storage, clock=clock)
    link_manager = LinkManager(
        storage=storage,
        analytics=analytics,
        reserved={"health", "stats", "docs", "redoc", settings.ADD_PATH},
    )
    if limiter is None:
        limiter = RateLimiter(settings.RATE_LIMIT_MAX, settings.RATE_LIMIT_WINDOW)
    resetter = PeriodicReset(limiter)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        resetter.start()
        try:
            yield
        finally:
            resetter.stop()

    app = FastAPI(
        title="Link Stats",
        description="Short links with visit analytics and age-bucketed click charts",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.storage = storage
    app.state.analytics = analytics
    app.state.link_manager = link_manager
    app.state.limiter = limiter
    app.state.authenticator = Authenticator(settings.PASSWORD, limiter)

    log.info(
        "Link Stats storage backend: %s (configured: %s)",
        type(storage).__name__,
        settings.STORAGE_BACKEND,
    )

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    @app.get("/")
    def root_redirect() -> RedirectResponse:
        return RedirectResponse(url=settings.MAIN_REDIRECT, status_code=302)

    # ----------------------------------------------------------------
    # Gated routes
    # ----------------------------------------------------------------
    @app.post(f"/{settings.ADD_PATH}")
    def create_link(
        req: CreateLinkRequest,
        request: Request,
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict[str, Any]:
        """
        Create a short link, or re-point an existing one.

        Returns:
            dict: message, shortname, short_url and the target url.

        Raises:
            HTTPException: 503 when rate limited, 401 on a wrong password,
                400 on blank fields, invalid input or a failed save.
        """
        _require_fields(LinkManager.normalize_shortname(req.shortname), req.url, req.password)
        authenticator.authorize(req.password)
        try:
            shortname = link_manager.create_link(req.shortname, req.url)
        except ValueError as ve:
            raise HTTPException(status_code=400, detail=str(ve))

        return {
            "message": "URL created",
            "shortname": shortname,
            "short_url": f"{request.url.scheme}://{_request_host(request)}/{shortname}",
            "url": req.url.strip(),
        }

    @app.post("/stats")
    def link_stats(
        req: StatsRequest,
        authenticator: Authenticator = Depends(get_authenticator),
    ) -> Dict[str, Any]:
        """
        Analytics for one shortname: every creation record with its counters,
        per-IP visits, and a chart series bucketed by the record's age.

        A shortname without stats is not an error: the response has
        found=false and a message instead of records.
        """
        _require_fields(LinkManager.normalize_shortname(req.shortname), req.password)
        authenticator.authorize(req.password)
        shortname = LinkManager.normalize_shortname(req.shortname)
        try:
            report = analytics.stats(shortname) if ShortnamePattern.match(shortname) else None
        except StoreError:
            log.exception("Error reading stats for %r", shortname)
            raise HTTPException(status_code=500, detail="Stats could not be read.")

        if report is None:
            return {
                "found": False,
                "shortname": shortname,
                "message": "No stats found for this short URL.",
            }
        return {"found": True, **report}

    # ----------------------------------------------------------------
    # Redirects
    # ----------------------------------------------------------------
    @app.get("/{shortname}")
    def redirect_link(shortname: str, request: Request) -> RedirectResponse:
        """
        Redirect to the shortname's target and record the visit.

        Raises:
            HTTPException: 404 if the shortname is unknown, empty, or would loop;
                500 if the link cannot be read.
        """
        try:
            target = link_manager.resolve(shortname, host=_request_host(request))
        except StoreError:
            log.exception("Error reading link %r", shortname)
            raise HTTPException(status_code=500, detail="Link could not be read.")
        if target is None:
            raise HTTPException(status_code=404, detail="Not found")

        analytics.log_visit(shortname, target, _client_ip(request))
        return RedirectResponse(url=target, status_code=302)

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
