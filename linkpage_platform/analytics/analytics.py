"""
Analytics module for the Link Page Platform.

Responsibilities:
    - Record page views and link clicks (best-effort, never failing the caller)
    - Fetch a profile's events for a date range
    - Summarise them for the owner dashboard: totals, device split, daily
      series, link ranking, recent activity

Wiring:
    Analytics
      ├── EventRecorder   -> event store (insert)
      ├── RangeQuery      -> event store (query)
      ├── link registry   -> list_links (join for titles and ranking)
      └── aggregators.summarize (pure, over one fetched snapshot)
"""

import logging
from concurrent.futures import Executor
from typing import List, Optional

from ..config import settings
from .aggregators import summarize
from .base import BaseAnalytics
from .models import AnalyticsSummary, Link
from .query import Bound, QueryGenerations, RangeQuery
from .recorder import EventRecorder

logger = logging.getLogger(__name__)


class Analytics(BaseAnalytics):
    def __init__(
        self,
        event_store,
        link_registry,
        executor: Optional[Executor] = None,
        daily_limit: Optional[int] = None,
        activity_limit: Optional[int] = None,
    ):
        """
        Args:
            event_store (BaseEventStore): Append-only event store.
            link_registry (BaseLinkRegistry): Read-only link registry.
            executor (Optional[Executor]): Passed to the recorder for
                non-blocking writes.
            daily_limit (Optional[int]): Daily buckets to keep (settings default).
            activity_limit (Optional[int]): Recent events to show (settings default).
        """
        self.event_store = event_store
        self.link_registry = link_registry
        self.recorder = EventRecorder(event_store, executor=executor)
        self.range_query = RangeQuery(event_store)
        self.generations = QueryGenerations()
        self.daily_limit = daily_limit or settings.DAILY_BUCKETS
        self.activity_limit = activity_limit or settings.RECENT_ACTIVITY

    # ------------------------------------------------------------------
    # Recording
    # ------------------------------------------------------------------
    def record_page_view(self, profile_id: str, user_agent: str = "") -> None:
        self.recorder.record_page_view(profile_id, user_agent=user_agent)

    def record_link_click(self, profile_id: str, link_id: str, user_agent: str = "") -> None:
        self.recorder.record_link_click(profile_id, link_id, user_agent=user_agent)

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    def _links(self, profile_id: str) -> List[Link]:
        try:
            return list(self.link_registry.list_links(profile_id))
        except Exception:
            logger.exception("Failed to list links for profile %s", profile_id)
            return []

    def get_summary(self, profile_id: str, start: Bound = None, end: Bound = None) -> AnalyticsSummary:
        """
        Summarise a profile's events in [start, end].

        Read failures degrade to an empty summary; see RangeQuery.fetch.

        Example:
            {
                "total_views": 12, "total_clicks": 5,
                "mobile_count": 9, "desktop_count": 8,
                "mobile_percentage": 75, "desktop_percentage": 67,
                "daily": [{"date": "2026-10-18", "views": 12, "clicks": 5}],
                "link_ranking": [{"link": {...}, "clicks": 5}],
                "recent_activity": [...],
                ...
            }
        """
        events = self.range_query.fetch(profile_id, start, end)
        links = self._links(profile_id)
        return summarize(events, links, daily_limit=self.daily_limit, activity_limit=self.activity_limit)

    def refresh_summary(
        self, profile_id: str, start: Bound = None, end: Bound = None
    ) -> Optional[AnalyticsSummary]:
        """
        get_summary for a dashboard filter change.

        Returns None when another refresh for the same profile was issued after
        this one started; the newer request's result is the one to show.
        """
        token = self.generations.issue(profile_id)
        summary = self.get_summary(profile_id, start, end)
        if not self.generations.is_current(profile_id, token):
            logger.info("Discarding superseded summary refresh %s for profile %s", token, profile_id)
            return None
        return summary
