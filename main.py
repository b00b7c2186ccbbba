"""
Main API module for the Link Page Platform.

Responsibilities:
    - Record page views of a profile's public page
    - Record link clicks and send the visitor on to the link
    - Serve the owner dashboard's analytics summary for a date range

Architecture:
    - App Factory pattern (create_app) for test isolation and DI.
    - In-memory event store and link registry by default; Postgres via env.
    - Analytics writes run as background tasks: the visitor's redirect or
      page load never waits for, or learns about, the analytics write.
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Optional, Union

from fastapi import BackgroundTasks, FastAPI, HTTPException, Query, Request, Response
from fastapi.responses import JSONResponse, RedirectResponse
from pydantic import BaseModel

from linkpage_platform.analytics.analytics import Analytics
from linkpage_platform.config import settings
from linkpage_platform.storage.storage_factory import get_event_store, get_link_registry


class ClickRequest(BaseModel):
    """Request payload for recording a click without a redirect."""
    link_id: str


def _parse_bound(value: Optional[str], name: str) -> Union[date, datetime, None]:
    """
    Parse a `start`/`end` query value: a bare ISO date ("2026-10-01") stays a
    date so it covers the whole day; anything longer is an ISO datetime.
    """
    if not value:
        return None
    try:
        if len(value) == 10:
            return date.fromisoformat(value)
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Invalid {name}: expected ISO date or datetime")


def create_app(event_store=None, link_registry=None) -> FastAPI:
    """
    Factory function to build and configure a new FastAPI app instance.

    Args:
        event_store: Optional event store; defaults to the configured backend.
        link_registry: Optional link registry; defaults to the configured backend.

    Returns:
        FastAPI: A fully configured application instance with its own
                 stores and Analytics instance.
    """
    log = logging.getLogger("linkpage")

    # basic console logging (optional)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=settings.LOG_LEVEL)

    # ----------------------------------------------------------------
    # Per-app instances (isolated for tests, swappable for production)
    # ----------------------------------------------------------------
    event_store = event_store if event_store is not None else get_event_store()
    link_registry = link_registry if link_registry is not None else get_link_registry()
    executor = (
        ThreadPoolExecutor(max_workers=settings.RECORDER_WORKERS, thread_name_prefix="linkpage-recorder")
        if settings.RECORDER_WORKERS
        else None
    )
    analytics = Analytics(event_store, link_registry, executor=executor)
    log.info(
        "Link page storage: events=%s links=%s recorder_workers=%s",
        type(event_store).__name__,
        type(link_registry).__name__,
        settings.RECORDER_WORKERS,
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        yield
        if executor is not None:
            executor.shutdown(wait=True)

    app = FastAPI(
        title="Link Page Platform",
        description="Link-in-bio pages with page-view and link-click analytics",
        docs_url="/docs",
        lifespan=lifespan,
    )
    app.state.analytics = analytics
    app.state.link_registry = link_registry

    # Health check
    @app.get("/health")
    def health():
        return {"status": "ok"}

    # ----------------------------------------------------------------
    # Visitor-facing routes
    # ----------------------------------------------------------------
    @app.post("/profiles/{profile_id}/views", status_code=202)
    def record_page_view(profile_id: str, request: Request, background_tasks: BackgroundTasks) -> Dict[str, str]:
        """Record one page view; the write happens after the response is sent."""
        user_agent = request.headers.get("user-agent", "")
        background_tasks.add_task(analytics.record_page_view, profile_id, user_agent)
        return {"status": "accepted"}

    @app.get("/profiles/{profile_id}/links/{link_id}")
    def follow_link(profile_id: str, link_id: str, request: Request, background_tasks: BackgroundTasks) -> Response:
        """
        Record a click and send the visitor to the link.

        Browsers (Accept: text/html) get a 302 redirect; API clients get JSON.
        The click is recorded in the background, so the redirect never depends
        on the analytics write succeeding.

        Raises:
            HTTPException: 404 if the link does not exist or is inactive.
        """
        link = link_registry.get_link(profile_id, link_id)
        if link is None or not link.is_active:
            raise HTTPException(status_code=404, detail="Link not found")

        user_agent = request.headers.get("user-agent", "")
        background_tasks.add_task(analytics.record_link_click, profile_id, link.id, user_agent)

        accept = request.headers.get("accept", "").lower()
        if "text/html" in accept:
            return RedirectResponse(url=link.url, status_code=302)
        return JSONResponse({"link_id": link.id, "url": link.url})

    @app.post("/profiles/{profile_id}/clicks", status_code=202)
    def record_link_click(
        profile_id: str, req: ClickRequest, request: Request, background_tasks: BackgroundTasks
    ) -> Dict[str, str]:
        """Record a click for clients that open the link themselves."""
        link = link_registry.get_link(profile_id, req.link_id)
        if link is None or not link.is_active:
            raise HTTPException(status_code=404, detail="Link not found")
        user_agent = request.headers.get("user-agent", "")
        background_tasks.add_task(analytics.record_link_click, profile_id, req.link_id, user_agent)
        return {"status": "accepted"}

    # ----------------------------------------------------------------
    # Owner dashboard
    # ----------------------------------------------------------------
    @app.get("/profiles/{profile_id}/analytics/summary")
    def analytics_summary(
        profile_id: str,
        start: Optional[str] = Query(None, description="ISO date or datetime, inclusive."),
        end: Optional[str] = Query(None, description="ISO date (whole day) or datetime, inclusive."),
        days: Optional[int] = Query(None, ge=1, le=366, description="Last N days when start is omitted."),
    ) -> Dict[str, Any]:
        """
        Summarise a profile's analytics for the dashboard.

        Returns:
            dict: total_views, total_clicks, mobile/desktop counts and
                  percentages, total/active links, daily buckets, link ranking
                  and recent activity, plus the echoed range.

        Raises:
            HTTPException: 400 if start/end cannot be parsed.
        """
        try:
            start_bound = _parse_bound(start, "start")
            end_bound = _parse_bound(end, "end")
        except ValueError as ve:
            raise HTTPException(status_code=400, detail=str(ve))
        if start_bound is None and days:
            start_bound = datetime.now(timezone.utc).date() - timedelta(days=days)

        summary = analytics.get_summary(profile_id, start_bound, end_bound)
        return {
            "profile_id": profile_id,
            "start": start_bound.isoformat() if start_bound else None,
            "end": end_bound.isoformat() if end_bound else None,
            **summary.to_dict(),
        }

    return app


# `uvicorn main:app --reload` and `from main import app` continue to work.
app = create_app()
