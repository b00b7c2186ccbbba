"""
Unit tests for EventRecorder.

Covers:
    - event construction (type, link id, device, timestamp, id)
    - input validation (unknown type, click without link)
    - best-effort writes: raising and rejecting stores never reach the caller
    - executor dispatch, including a shut-down executor
"""

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime, timezone

import pytest

from linkpage_platform.analytics.models import DeviceType, EventType, LinkClickEvent, PageViewEvent
from linkpage_platform.analytics.recorder import EventRecorder
from linkpage_platform.storage.storage import EventStore

FIXED_NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class _RaisingStore:
    def __init__(self):
        self.calls = 0

    def insert(self, record):
        self.calls += 1
        raise ConnectionError("event store unreachable")


class _RejectingStore:
    def insert(self, record):
        return False


@pytest.fixture
def store():
    return EventStore()


@pytest.fixture
def recorder(store):
    return EventRecorder(store, clock=lambda: FIXED_NOW, id_factory=lambda: "evt-1")


def test_page_view_is_stored_with_classification(recorder, store):
    recorder.record("p1", "page_view", user_agent="Mozilla/5.0 (Linux; Android 10)")
    assert len(store.events) == 1
    row = store.events[0]
    assert row == {
        "id": "evt-1",
        "profile_id": "p1",
        "link_id": None,
        "event_type": "page_view",
        "device_type": "mobile",
        "user_agent": "Mozilla/5.0 (Linux; Android 10)",
        "created_at": FIXED_NOW,
    }


def test_link_id_is_ignored_for_page_views(recorder):
    event = recorder.build_event("p1", EventType.PAGE_VIEW, link_id="l1")
    assert isinstance(event, PageViewEvent)
    assert event.link_id is None


def test_link_click_keeps_link_id(recorder, store):
    recorder.record_link_click("p1", "l1", user_agent="Mozilla/5.0 (Windows NT 10.0)")
    row = store.events[0]
    assert row["event_type"] == "link_click"
    assert row["link_id"] == "l1"
    assert row["device_type"] == "desktop"


def test_build_event_returns_tagged_variant(recorder):
    event = recorder.build_event("p1", "link_click", link_id="l1")
    assert isinstance(event, LinkClickEvent)
    assert event.device_type is DeviceType.DESKTOP
    assert event.created_at == FIXED_NOW


def test_default_clock_and_ids():
    store = EventStore()
    recorder = EventRecorder(store)
    recorder.record_page_view("p1")
    recorder.record_page_view("p1")
    ids = {row["id"] for row in store.events}
    assert len(ids) == 2
    assert all(row["created_at"].tzinfo is not None for row in store.events)


@pytest.mark.parametrize(
    "kwargs",
    [
        dict(profile_id="p1", event_type="scroll"),
        dict(profile_id="p1", event_type="link_click", link_id=None),
        dict(profile_id="", event_type="page_view"),
    ],
)
def test_invalid_input_raises_before_dispatch(recorder, store, kwargs):
    with pytest.raises(ValueError):
        recorder.record(**kwargs)
    assert store.events == []


def test_store_exception_is_logged_and_swallowed(caplog):
    store = _RaisingStore()
    recorder = EventRecorder(store)
    with caplog.at_level(logging.ERROR):
        assert recorder.record_link_click("p1", "l1") is None
    assert store.calls == 1
    assert "Failed to record link_click event" in caplog.text


def test_rejected_insert_is_logged(caplog):
    recorder = EventRecorder(_RejectingStore())
    with caplog.at_level(logging.WARNING):
        recorder.record_page_view("p1")
    assert "rejected page_view event" in caplog.text


def test_executor_dispatch_writes_in_background(store):
    with ThreadPoolExecutor(max_workers=1) as executor:
        recorder = EventRecorder(store, executor=executor)
        recorder.record_page_view("p1")
    # leaving the with-block waits for submitted writes
    assert len(store.events) == 1


def test_executor_failure_does_not_reach_caller(caplog):
    store = _RaisingStore()
    with ThreadPoolExecutor(max_workers=1) as executor:
        recorder = EventRecorder(store, executor=executor)
        with caplog.at_level(logging.ERROR):
            recorder.record_page_view("p1")
    assert store.calls == 1


def test_shut_down_executor_drops_event(store, caplog):
    executor = ThreadPoolExecutor(max_workers=1)
    executor.shutdown()
    recorder = EventRecorder(store, executor=executor)
    with caplog.at_level(logging.WARNING):
        recorder.record_page_view("p1")
    assert store.events == []
    assert "recorder executor unavailable" in caplog.text
