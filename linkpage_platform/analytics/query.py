"""
Range queries over the event store.

Responsibilities:
    - Turn the dashboard's optional start/end filter into UTC bounds
    - Fetch a profile's events newest first, degrading to [] on errors
    - Hand out per-profile request tokens so a superseded refresh can be
      recognised and dropped

Bound rules:
    - A `date` start covers that whole day (from 00:00:00 UTC).
    - A `date` end covers that whole day (up to the last microsecond, UTC).
    - A naive `datetime` is taken as UTC; aware ones are converted to UTC.
    - Bounds are inclusive. start > end yields no events and no store call.
"""

import itertools
import logging
import threading
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional, Tuple, Union

from .models import Event, event_from_record

logger = logging.getLogger(__name__)

Bound = Union[date, datetime, None]


def _to_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def resolve_bounds(start: Bound = None, end: Bound = None) -> Tuple[Optional[datetime], Optional[datetime]]:
    """Resolve optional date/datetime filters into inclusive UTC datetimes."""
    lower: Optional[datetime] = None
    upper: Optional[datetime] = None
    # datetime is a subclass of date, so check it first
    if isinstance(start, datetime):
        lower = _to_utc(start)
    elif isinstance(start, date):
        lower = datetime.combine(start, time.min, tzinfo=timezone.utc)
    if isinstance(end, datetime):
        upper = _to_utc(end)
    elif isinstance(end, date):
        upper = datetime.combine(end, time.max, tzinfo=timezone.utc)
    return lower, upper


def _row_id(row):
    getter = getattr(row, "get", None)
    return getter("id") if callable(getter) else row


class RangeQuery:
    def __init__(self, store):
        """
        Args:
            store (BaseEventStore): Event store to read from.
        """
        self.store = store

    def fetch(self, profile_id: str, start: Bound = None, end: Bound = None) -> List[Event]:
        """
        Return a profile's events within [start, end], newest first.

        Never raises: a failing store is logged and reported as no events, so
        callers cannot tell "nothing happened" from "could not read".
        Malformed rows are skipped individually.
        """
        lower, upper = resolve_bounds(start, end)
        if lower is not None and upper is not None and lower > upper:
            return []
        events: List[Event] = []
        try:
            for row in self.store.query(profile_id, lower, upper):
                try:
                    events.append(event_from_record(row))
                except (AttributeError, KeyError, TypeError, ValueError) as exc:
                    logger.warning("Skipping malformed event row %r: %s", _row_id(row), exc)
        except Exception:
            logger.exception("Failed to fetch events for profile %s", profile_id)
            return []
        events.sort(key=lambda e: e.created_at, reverse=True)
        return events


class QueryGenerations:
    """
    Per-key request tokens; only the most recently issued token is current.

    Used to drop the result of a dashboard refresh when a newer refresh for
    the same profile was started before it finished (latest issued wins,
    regardless of which one resolves last).
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._latest: Dict[str, int] = {}

    def issue(self, key: str) -> int:
        with self._lock:
            token = next(self._counter)
            self._latest[key] = token
            return token

    def is_current(self, key: str, token: int) -> bool:
        with self._lock:
            return self._latest.get(key) == token
