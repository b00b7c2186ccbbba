"""
Abstract Base Class for Analytics Backends.

Responsibilities:
    - Define the operations the web layer relies on: record a page view,
      record a link click, summarise a profile's activity
    - Support easy substitution (e.g., in-memory, DB-backed, external pipeline)
"""

from abc import ABC, abstractmethod
from typing import Optional

from .models import AnalyticsSummary
from .query import Bound

__all__ = ["BaseAnalytics"]


class BaseAnalytics(ABC):
    """Abstract base for pluggable analytics backends."""

    @abstractmethod
    def record_page_view(self, profile_id: str, user_agent: str = "") -> None:  # pragma: no cover
        """
        Record one view of a profile's page. Must never raise on store failure.

        Args:
            profile_id (str): The profile whose page was viewed.
            user_agent (str): The visitor's client signature.
        """
        raise NotImplementedError

    @abstractmethod
    def record_link_click(self, profile_id: str, link_id: str, user_agent: str = "") -> None:  # pragma: no cover
        """
        Record one click on a profile's link. Must never raise on store failure.

        Args:
            profile_id (str): The profile owning the link.
            link_id (str): The clicked link.
            user_agent (str): The visitor's client signature.
        """
        raise NotImplementedError

    @abstractmethod
    def get_summary(
        self, profile_id: str, start: Bound = None, end: Bound = None
    ) -> AnalyticsSummary:  # pragma: no cover
        """
        Summarise a profile's events within an optional date range.

        Returns:
            AnalyticsSummary: Totals, device split, daily series, link ranking
            and recent activity.
        """
        raise NotImplementedError

    def refresh_summary(
        self, profile_id: str, start: Bound = None, end: Bound = None
    ) -> Optional[AnalyticsSummary]:
        """Like get_summary; backends may return None for a superseded request."""
        return self.get_summary(profile_id, start, end)
