"""
Storage module for the Link Page Platform (in-memory implementation).

Responsibilities:
    - Append event records and answer profile/time-range queries
    - Hold a small link registry so the dashboard can join clicks to titles

Design:
    - In-memory reference implementations of the BaseEventStore and
      BaseLinkRegistry contracts.
    - Kept intentionally simple so unit/integration tests stay fast and
      deterministic. For production, use the PostgreSQL backend (db_storage.py).
    - The event list is guarded by a lock: the recorder may write from a
      thread pool while the dashboard reads.
"""

import threading
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..analytics.models import Link
from .base import BaseEventStore, BaseLinkRegistry


class EventStore(BaseEventStore):
    def __init__(self):
        """
        Initialize an empty, append-only event log.

        Internal schema:
            self.events = [
                {"id": str, "profile_id": str, "link_id": Optional[str],
                 "event_type": str, "device_type": str, "user_agent": str,
                 "created_at": datetime},
                ...
            ]
        """
        self.events: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def insert(self, record: Dict[str, Any]) -> bool:
        """
        Append a record.

        Rules:
            - A record without profile_id or created_at is rejected.
            - The stored copy is detached from the caller's dict.

        Returns:
            bool: True on success, False on validation failure.
        """
        if not record.get("profile_id") or record.get("created_at") is None:
            return False
        with self._lock:
            self.events.append(dict(record))
        return True

    def query(
        self,
        profile_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Return matching records newest first (inclusive bounds).

        Returns copies, so callers cannot mutate stored events.
        """
        with self._lock:
            rows = [dict(r) for r in self.events if r["profile_id"] == profile_id]
        if start is not None:
            rows = [r for r in rows if r["created_at"] >= start]
        if end is not None:
            rows = [r for r in rows if r["created_at"] <= end]
        rows.sort(key=lambda r: r["created_at"], reverse=True)
        return rows


class LinkRegistry(BaseLinkRegistry):
    def __init__(self):
        """
        Initialize an empty registry.

        Internal schema:
            self.links = { profile_id: { link_id: Link } }
        """
        self.links: Dict[str, Dict[str, Link]] = {}

    def add_link(self, profile_id: str, link: Link) -> Link:
        """
        Register (or replace) a link for a profile.

        Link management lives outside the analytics core; this exists so the
        in-memory backend can be populated by tests, seeds and demos.
        """
        if link.profile_id != profile_id:
            link = Link(
                id=link.id,
                title=link.title,
                url=link.url,
                order_index=link.order_index,
                is_active=link.is_active,
                profile_id=profile_id,
            )
        self.links.setdefault(profile_id, {})[link.id] = link
        return link

    def remove_link(self, profile_id: str, link_id: str) -> bool:
        """Drop a link; past click events keep pointing at its id."""
        return self.links.get(profile_id, {}).pop(link_id, None) is not None

    def list_links(self, profile_id: str) -> List[Link]:
        """
        All links of a profile, active or not.

        Returns:
            List[Link]: Sorted by order_index; equal indexes keep insertion order.
                        Empty for an unknown profile.
        """
        return sorted(self.links.get(profile_id, {}).values(), key=lambda l: l.order_index)

    def get_link(self, profile_id: str, link_id: str) -> Optional[Link]:
        """
        Look up one link of a profile.

        Returns:
            Optional[Link]: None if the profile has no such link.
        """
        return self.links.get(profile_id, {}).get(link_id)
