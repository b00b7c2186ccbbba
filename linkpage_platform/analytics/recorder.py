"""
Event recording for link-page analytics.

Responsibilities:
    - Validate what the caller wants recorded (page view, or click on a link)
    - Classify the client signature once, stamp time and id
    - Hand the record to the event store without ever failing the caller

Failure policy:
    Recording is best-effort. A store that raises or rejects the insert is
    logged and the event is dropped; no retry. `record()` returns None in
    every case, so a click handler can open the link regardless of outcome.
    With an executor the write is submitted and `record()` returns at once.
"""

import logging
import uuid
from concurrent.futures import Executor
from datetime import datetime, timezone
from typing import Callable, Optional, Union

from .device import classify_device
from .models import Event, EventType, LinkClickEvent, PageViewEvent, to_record

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class EventRecorder:
    def __init__(
        self,
        store,
        executor: Optional[Executor] = None,
        clock: Callable[[], datetime] = _utcnow,
        id_factory: Callable[[], str] = _new_id,
    ):
        """
        Args:
            store (BaseEventStore): Where events are appended.
            executor (Optional[Executor]): If given, writes are submitted to it
                instead of running inline.
            clock: Returns the current, timezone-aware time.
            id_factory: Returns a fresh event id.
        """
        self.store = store
        self.executor = executor
        self.clock = clock
        self.id_factory = id_factory

    def build_event(
        self,
        profile_id: str,
        event_type: Union[EventType, str],
        link_id: Optional[str] = None,
        user_agent: str = "",
    ) -> Event:
        """
        Construct (but do not store) one event.

        Raises:
            ValueError: On a missing profile, an unknown event type, or a click
                without a link id.
        """
        if not profile_id:
            raise ValueError("profile_id is required")
        event_type = EventType(event_type)
        user_agent = user_agent or ""
        common = dict(
            id=self.id_factory(),
            profile_id=profile_id,
            device_type=classify_device(user_agent),
            user_agent=user_agent,
            created_at=self.clock(),
        )
        if event_type is EventType.LINK_CLICK:
            if not link_id:
                raise ValueError("link_id is required for link_click events")
            return LinkClickEvent(link_id=link_id, **common)
        # link_id is ignored for page views
        return PageViewEvent(**common)

    def record(
        self,
        profile_id: str,
        event_type: Union[EventType, str],
        link_id: Optional[str] = None,
        user_agent: str = "",
    ) -> None:
        """
        Record one event, best-effort.

        Input errors (see build_event) raise before anything is dispatched.
        Store errors never reach the caller.
        """
        event = self.build_event(profile_id, event_type, link_id=link_id, user_agent=user_agent)
        if self.executor is None:
            self._write(event)
            return
        try:
            self.executor.submit(self._write, event)
        except RuntimeError:
            # Executor already shut down
            logger.warning("Dropping %s event %s: recorder executor unavailable",
                           event.event_type.value, event.id)

    def record_page_view(self, profile_id: str, user_agent: str = "") -> None:
        self.record(profile_id, EventType.PAGE_VIEW, user_agent=user_agent)

    def record_link_click(self, profile_id: str, link_id: str, user_agent: str = "") -> None:
        self.record(profile_id, EventType.LINK_CLICK, link_id=link_id, user_agent=user_agent)

    def _write(self, event: Event) -> bool:
        try:
            stored = self.store.insert(to_record(event))
        except Exception:
            logger.exception("Failed to record %s event for profile %s",
                             event.event_type.value, event.profile_id)
            return False
        if not stored:
            logger.warning("Event store rejected %s event %s for profile %s",
                           event.event_type.value, event.id, event.profile_id)
        return bool(stored)
