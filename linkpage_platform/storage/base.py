"""
Base storage interfaces for the Link Page Platform.

Purpose:
    Define two small, stable contracts the analytics core depends on:
      - an append-only event store (insert + time-range query)
      - a read-only link registry (list a profile's links, look one up)
    In-memory and PostgreSQL backends implement them without any change to
    the analytics code.

Testing & Coverage:
    These are abstract methods and are not executed directly in tests.
    We annotate them with `# pragma: no cover` so coverage tools don't
    penalize the project for un-runnable abstract declarations.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional

from ..analytics.models import Link


class BaseEventStore(ABC):
    """Abstract base class for append-only event stores."""

    @abstractmethod  # pragma: no cover
    def insert(self, record: Dict[str, Any]) -> bool:
        """
        Append one event record.

        Args:
            record: Flat event record, see `analytics.models.to_record`.

        Returns:
            bool: True if the record was stored, False if the store rejected it.
        """
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def query(
        self,
        profile_id: str,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
    ) -> List[Dict[str, Any]]:
        """
        Return a profile's event records with start <= created_at <= end,
        newest first. A None bound leaves that side open.
        """
        raise NotImplementedError


class BaseLinkRegistry(ABC):
    """Abstract base class for the (read-only) link registry."""

    @abstractmethod  # pragma: no cover
    def list_links(self, profile_id: str) -> List[Link]:
        """Return all links of a profile, active or not, ordered by order_index."""
        raise NotImplementedError

    @abstractmethod  # pragma: no cover
    def get_link(self, profile_id: str, link_id: str) -> Optional[Link]:
        """Return one link of a profile, or None if it does not exist."""
        raise NotImplementedError
