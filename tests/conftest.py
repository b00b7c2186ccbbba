"""
Global pytest fixtures for the Link Page Platform test suite.

Responsibilities:
    - Provide isolated in-memory EventStore and LinkRegistry fixtures
    - Provide an Analytics instance wired to them
    - Provide a fresh FastAPI TestClient via the app factory for integration tests
    - Provide a small factory for building events at fixed times

Why an app factory?
    Using `create_app()` with injected stores gives every test fresh in-memory
    state and lets the test inspect exactly what was recorded.
"""

import itertools
from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from main import create_app
from linkpage_platform.analytics.analytics import Analytics
from linkpage_platform.analytics.models import DeviceType, Link, LinkClickEvent, PageViewEvent
from linkpage_platform.storage.storage import EventStore, LinkRegistry

PROFILE_ID = "profile-1"

MOBILE_UA = "Mozilla/5.0 (iPhone; CPU iPhone OS 17_0 like Mac OS X) Mobile/15E148"
DESKTOP_UA = "Mozilla/5.0 (Windows NT 10.0; Win64; x64)"


@pytest.fixture
def event_store() -> EventStore:
    """Fresh, empty in-memory event store."""
    return EventStore()


@pytest.fixture
def links():
    """Three links in registry order A, B, C; C is inactive."""
    return [
        Link(id="link-a", title="A", url="https://a.example.com", order_index=0),
        Link(id="link-b", title="B", url="https://b.example.com", order_index=1),
        Link(id="link-c", title="C", url="https://c.example.com", order_index=2, is_active=False),
    ]


@pytest.fixture
def link_registry(links) -> LinkRegistry:
    """In-memory registry holding the `links` fixture for PROFILE_ID."""
    registry = LinkRegistry()
    for link in links:
        registry.add_link(PROFILE_ID, link)
    return registry


@pytest.fixture
def analytics(event_store, link_registry) -> Analytics:
    """Analytics with inline (synchronous) writes."""
    return Analytics(event_store, link_registry)


@pytest.fixture
def client(event_store, link_registry) -> TestClient:
    """
    Fresh TestClient over an app sharing the event_store/link_registry fixtures.

    TestClient runs background tasks before returning the response, so
    recorded events are visible to assertions right after a request.
    """
    return TestClient(create_app(event_store=event_store, link_registry=link_registry))


@pytest.fixture
def make_event():
    """
    Build events directly, bypassing the recorder.

    Usage:
        make_event("page_view", datetime(2026, 10, 1, 12, tzinfo=timezone.utc))
        make_event("link_click", when, link_id="link-a", device="mobile")
    """
    ids = itertools.count(1)

    def _make(event_type, when=None, link_id=None, device="desktop", profile_id=PROFILE_ID):
        when = when or datetime(2026, 10, 1, 12, 0, tzinfo=timezone.utc)
        common = dict(
            id=f"evt-{next(ids)}",
            profile_id=profile_id,
            device_type=DeviceType(device),
            user_agent=MOBILE_UA if device == "mobile" else DESKTOP_UA,
            created_at=when,
        )
        if event_type == "link_click":
            return LinkClickEvent(link_id=link_id, **common)
        return PageViewEvent(**common)

    return _make
