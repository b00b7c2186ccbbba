"""
Aggregations behind the owner dashboard.

All functions here are pure: they take an already-fetched snapshot of events
(plus the link registry where a join is needed) and return new values. Nothing
reads a store or keeps state between calls.

Notes on the numbers:
    - Device counts include every event, views and clicks alike, while the
      device percentages divide by page views only. A device with more clicks
      than views can therefore exceed 100%. This is the dashboard's long-standing
      behaviour and is kept as is.
    - Percentages round half up (12.5 -> 13), not to even.
"""

import math
from collections import Counter
from datetime import timezone
from typing import Dict, Iterable, List, Sequence, Tuple

from .models import (
    ActivityItem,
    AnalyticsSummary,
    DailyBucket,
    DeviceType,
    Event,
    EventType,
    Link,
    LinkRank,
)

REMOVED_LINK_LABEL = "Removed link"
DEFAULT_DAILY_BUCKETS = 14
DEFAULT_RECENT_ACTIVITY = 10


def count_by_type(events: Iterable[Event]) -> Tuple[int, int]:
    """
    Count page views and link clicks in a snapshot.

    Args:
        events (Iterable[Event]): Events of one profile and range.

    Returns:
        tuple[int, int]: (views, clicks).
    """
    counts = Counter(e.event_type for e in events)
    return counts[EventType.PAGE_VIEW], counts[EventType.LINK_CLICK]


def count_by_device(events: Iterable[Event]) -> Tuple[int, int]:
    """
    Count events per device class. Views and clicks both count.

    Returns:
        tuple[int, int]: (mobile, desktop).
    """
    counts = Counter(e.device_type for e in events)
    return counts[DeviceType.MOBILE], counts[DeviceType.DESKTOP]


def device_percentage(device_count: int, total_views: int) -> int:
    """
    Share of a device count against page views, as a whole percentage.

    Args:
        device_count (int): Events from one device class.
        total_views (int): Page views in the same snapshot.

    Returns:
        int: Rounded half up; 0 when there are no views. May exceed 100
             (see module notes).

    Example:
        >>> device_percentage(1, 8)
        13
        >>> device_percentage(3, 2)
        150
    """
    if total_views <= 0:
        return 0
    return int(math.floor(device_count / total_views * 100 + 0.5))


def bucket_daily(events: Iterable[Event], limit: int = DEFAULT_DAILY_BUCKETS) -> List[DailyBucket]:
    """
    Group events into per-date view/click counters.

    Only dates with at least one event get a bucket. Buckets are sorted by date
    ascending and only the `limit` most recent are kept. Dates are taken in UTC.

    Args:
        events (Iterable[Event]): Events of one profile and range.
        limit (int): How many active dates to keep; <= 0 keeps all.

    Returns:
        List[DailyBucket]: Oldest kept date first.
    """
    views: Counter = Counter()
    clicks: Counter = Counter()
    for event in events:
        created = event.created_at
        if created.tzinfo is not None:
            created = created.astimezone(timezone.utc)
        day = created.date()
        if event.event_type is EventType.PAGE_VIEW:
            views[day] += 1
        else:
            clicks[day] += 1

    days = sorted(set(views) | set(clicks))
    if limit > 0:
        days = days[-limit:]
    return [DailyBucket(date=d, views=views[d], clicks=clicks[d]) for d in days]


def rank_links(events: Iterable[Event], links: Sequence[Link]) -> List[LinkRank]:
    """
    Rank every registry link by its click count, highest first.

    Links without clicks are included. Ties keep registry order. Clicks on
    links missing from the registry are not ranked.

    Args:
        events (Iterable[Event]): Events of one profile and range.
        links (Sequence[Link]): The profile's registry, in display order.

    Returns:
        List[LinkRank]: One entry per registry link.
    """
    clicks = Counter(e.link_id for e in events if e.event_type is EventType.LINK_CLICK)
    ranked = [LinkRank(link=link, clicks=clicks[link.id]) for link in links]
    # sorted() is stable
    return sorted(ranked, key=lambda r: -r.clicks)


def recent_activity(
    events: Iterable[Event],
    links: Sequence[Link],
    limit: int = DEFAULT_RECENT_ACTIVITY,
) -> List[ActivityItem]:
    """
    The `limit` most recent events, clicks labelled with their link's title.

    A click on a link no longer in the registry gets REMOVED_LINK_LABEL;
    page views carry no title.

    Args:
        events (Iterable[Event]): Events of one profile and range.
        links (Sequence[Link]): The profile's registry.
        limit (int): Feed length.

    Returns:
        List[ActivityItem]: Newest first.
    """
    titles: Dict[str, str] = {link.id: link.title for link in links}
    latest = sorted(events, key=lambda e: e.created_at, reverse=True)[:limit]
    items = []
    for event in latest:
        title = None
        if event.event_type is EventType.LINK_CLICK:
            title = titles.get(event.link_id, REMOVED_LINK_LABEL)
        items.append(ActivityItem(event=event, link_title=title))
    return items


def summarize(
    events: Sequence[Event],
    links: Sequence[Link],
    daily_limit: int = DEFAULT_DAILY_BUCKETS,
    activity_limit: int = DEFAULT_RECENT_ACTIVITY,
) -> AnalyticsSummary:
    """
    Build the full dashboard summary from one event snapshot and the registry.

    Every figure is derived from the same `events` sequence, so the totals,
    series and feed always agree with each other.

    Args:
        events (Sequence[Event]): Snapshot returned by one range query.
        links (Sequence[Link]): The profile's registry.
        daily_limit (int): Active dates kept in the daily series.
        activity_limit (int): Length of the recent-activity feed.

    Returns:
        AnalyticsSummary
    """
    total_views, total_clicks = count_by_type(events)
    mobile, desktop = count_by_device(events)
    return AnalyticsSummary(
        total_views=total_views,
        total_clicks=total_clicks,
        mobile_count=mobile,
        desktop_count=desktop,
        mobile_percentage=device_percentage(mobile, total_views),
        desktop_percentage=device_percentage(desktop, total_views),
        total_links=len(links),
        active_links=sum(1 for link in links if link.is_active),
        daily=bucket_daily(events, limit=daily_limit),
        link_ranking=rank_links(events, links),
        recent_activity=recent_activity(events, links, limit=activity_limit),
    )
