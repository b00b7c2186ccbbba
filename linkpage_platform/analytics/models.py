"""
Domain models for link-page analytics.

Responsibilities:
    - Define the two event variants (page view, link click) as immutable records
    - Define the read-only Link shape joined against for display
    - Define the aggregated result shapes handed to the dashboard
    - Convert events to/from the flat record shape the stores persist

Design notes:
    - An event is either a PageViewEvent or a LinkClickEvent. Only the click
      variant has a link_id field; on a page view `link_id` reads as None at
      class level, so callers can access it uniformly.
    - Everything here is frozen: events are never updated after creation.
"""

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Union


class EventType(str, Enum):
    PAGE_VIEW = "page_view"
    LINK_CLICK = "link_click"


class DeviceType(str, Enum):
    MOBILE = "mobile"
    DESKTOP = "desktop"


@dataclass(frozen=True)
class PageViewEvent:
    """One view of a profile's public page."""
    id: str
    profile_id: str
    device_type: DeviceType
    user_agent: str
    created_at: datetime

    event_type: ClassVar[EventType] = EventType.PAGE_VIEW
    link_id: ClassVar[Optional[str]] = None


@dataclass(frozen=True)
class LinkClickEvent:
    """One click on a link of a profile's public page."""
    id: str
    profile_id: str
    link_id: str
    device_type: DeviceType
    user_agent: str
    created_at: datetime

    event_type: ClassVar[EventType] = EventType.LINK_CLICK


Event = Union[PageViewEvent, LinkClickEvent]


@dataclass(frozen=True)
class Link:
    """Read-only view of a link record owned by the link registry."""
    id: str
    title: str
    url: str
    order_index: int = 0
    is_active: bool = True
    profile_id: Optional[str] = None

    @classmethod
    def from_record(cls, row: Mapping[str, Any]) -> "Link":
        """
        Build a Link from a registry row.

        Args:
            row (Mapping): Needs `id`, `title` and `url`. `order_index` defaults
                to 0, `is_active` to True and `profile_id` to None.

        Returns:
            Link

        Raises:
            KeyError: If a required column is missing.
        """
        return cls(
            id=str(row["id"]),
            title=row["title"],
            url=row["url"],
            order_index=int(row.get("order_index") or 0),
            is_active=bool(row.get("is_active", True)),
            profile_id=str(row["profile_id"]) if row.get("profile_id") is not None else None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready fields shown on the dashboard (the owning profile is implied)."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "order_index": self.order_index,
            "is_active": self.is_active,
        }


@dataclass(frozen=True)
class DailyBucket:
    """View and click counters for one UTC calendar date."""
    date: date
    views: int = 0
    clicks: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """
        Returns:
            dict: e.g. {"date": "2026-10-01", "views": 3, "clicks": 1}
        """
        return {"date": self.date.isoformat(), "views": self.views, "clicks": self.clicks}


@dataclass(frozen=True)
class LinkRank:
    """A registry link with its click count in the queried range."""
    link: Link
    clicks: int

    def to_dict(self) -> Dict[str, Any]:
        return {"link": self.link.to_dict(), "clicks": self.clicks}


@dataclass(frozen=True)
class ActivityItem:
    """A recent event paired with the display title of its link (clicks only)."""
    event: Event
    link_title: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """
        Flatten the event for the activity feed.

        Returns:
            dict: id, event_type, device_type, link_id (None for views),
                  link_title (None for views) and an ISO-8601 created_at.
        """
        return {
            "id": self.event.id,
            "event_type": self.event.event_type.value,
            "device_type": self.event.device_type.value,
            "link_id": self.event.link_id,
            "link_title": self.link_title,
            "created_at": self.event.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AnalyticsSummary:
    """Everything the owner dashboard shows for one profile and date range."""
    total_views: int = 0
    total_clicks: int = 0
    mobile_count: int = 0
    desktop_count: int = 0
    mobile_percentage: int = 0
    desktop_percentage: int = 0
    total_links: int = 0
    active_links: int = 0
    daily: List[DailyBucket] = field(default_factory=list)
    link_ranking: List[LinkRank] = field(default_factory=list)
    recent_activity: List[ActivityItem] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        """
        Serialise the summary for the HTTP layer.

        Returns:
            dict: The scalar figures as-is; `daily`, `link_ranking` and
                  `recent_activity` as lists of their items' dicts.
        """
        return {
            "total_views": self.total_views,
            "total_clicks": self.total_clicks,
            "mobile_count": self.mobile_count,
            "desktop_count": self.desktop_count,
            "mobile_percentage": self.mobile_percentage,
            "desktop_percentage": self.desktop_percentage,
            "total_links": self.total_links,
            "active_links": self.active_links,
            "daily": [b.to_dict() for b in self.daily],
            "link_ranking": [r.to_dict() for r in self.link_ranking],
            "recent_activity": [a.to_dict() for a in self.recent_activity],
        }


# ---------------------------------------------------------------------------
# Record conversion
# ---------------------------------------------------------------------------

def _as_utc(value: Union[datetime, str]) -> datetime:
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_record(event: Event) -> Dict[str, Any]:
    """
    Flatten an event into the field-level shape persisted by event stores.

    Args:
        event (Event): Either variant.

    Returns:
        dict: id, profile_id, link_id (None for page views), event_type and
              device_type as their string values, user_agent, created_at.
    """
    return {
        "id": event.id,
        "profile_id": event.profile_id,
        "link_id": event.link_id,
        "event_type": event.event_type.value,
        "device_type": event.device_type.value,
        "user_agent": event.user_agent,
        "created_at": event.created_at,
    }


def event_from_record(row: Mapping[str, Any]) -> Event:
    """
    Rebuild an event from a stored record.

    Raises:
        ValueError: If the event or device type is unknown, or a click has no link_id.
    """
    event_type = EventType(row["event_type"])
    common = dict(
        id=str(row["id"]),
        profile_id=str(row["profile_id"]),
        device_type=DeviceType(row["device_type"]),
        user_agent=row.get("user_agent") or "",
        created_at=_as_utc(row["created_at"]),
    )
    if event_type is EventType.LINK_CLICK:
        link_id = row.get("link_id")
        if link_id is None:
            raise ValueError("link_click record without link_id")
        return LinkClickEvent(link_id=str(link_id), **common)
    return PageViewEvent(**common)
