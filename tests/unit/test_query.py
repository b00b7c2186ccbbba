"""
Unit tests for RangeQuery, bound resolution and QueryGenerations.
"""

import logging
from datetime import date, datetime, timedelta, timezone

import pytest

from linkpage_platform.analytics.models import to_record
from linkpage_platform.analytics.query import QueryGenerations, RangeQuery, resolve_bounds
from linkpage_platform.storage.storage import EventStore


def _utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class _FailingStore:
    def query(self, profile_id, start=None, end=None):
        raise TimeoutError("read timed out")


class _SpyStore(EventStore):
    def __init__(self):
        super().__init__()
        self.queries = []

    def query(self, profile_id, start=None, end=None):
        self.queries.append((profile_id, start, end))
        return super().query(profile_id, start, end)


@pytest.fixture
def store(make_event):
    s = _SpyStore()
    for day in (1, 2, 3):
        s.insert(to_record(make_event("page_view", _utc(2026, 10, day, 0, 0))))
        s.insert(to_record(make_event("link_click", _utc(2026, 10, day, 23, 59, 59), link_id="link-a")))
    s.insert(to_record(make_event("page_view", _utc(2026, 10, 2, 12), profile_id="someone-else")))
    return s


# -------------------------
# resolve_bounds
# -------------------------

def test_dates_cover_whole_days():
    lower, upper = resolve_bounds(date(2026, 10, 1), date(2026, 10, 2))
    assert lower == _utc(2026, 10, 1)
    assert upper == _utc(2026, 10, 2, 23, 59, 59, 999999)


def test_naive_datetime_is_utc_and_aware_is_converted():
    lower, upper = resolve_bounds(
        datetime(2026, 10, 1, 6),
        datetime(2026, 10, 1, 12, tzinfo=timezone(timedelta(hours=2))),
    )
    assert lower == _utc(2026, 10, 1, 6)
    assert upper == _utc(2026, 10, 1, 10)
    assert upper.tzinfo == timezone.utc


def test_missing_bounds_stay_open():
    assert resolve_bounds() == (None, None)


# -------------------------
# RangeQuery.fetch
# -------------------------

def test_fetch_without_bounds_returns_profile_events_newest_first(store):
    events = RangeQuery(store).fetch("profile-1")
    assert len(events) == 6
    stamps = [e.created_at for e in events]
    assert stamps == sorted(stamps, reverse=True)
    assert {e.profile_id for e in events} == {"profile-1"}


def test_fetch_bounds_are_inclusive(store):
    events = RangeQuery(store).fetch("profile-1", date(2026, 10, 2), date(2026, 10, 2))
    assert len(events) == 2
    assert {e.created_at for e in events} == {_utc(2026, 10, 2), _utc(2026, 10, 2, 23, 59, 59)}


def test_fetch_only_start(store):
    events = RangeQuery(store).fetch("profile-1", start=date(2026, 10, 3))
    assert len(events) == 2


def test_fetch_only_end(store):
    events = RangeQuery(store).fetch("profile-1", end=datetime(2026, 10, 1, 23, 59, 59))
    assert len(events) == 2


def test_start_after_end_is_empty_without_store_call(store):
    events = RangeQuery(store).fetch("profile-1", date(2026, 10, 3), date(2026, 10, 1))
    assert events == []
    assert store.queries == []


def test_store_failure_degrades_to_empty(caplog):
    with caplog.at_level(logging.ERROR):
        assert RangeQuery(_FailingStore()).fetch("profile-1") == []
    assert "Failed to fetch events for profile profile-1" in caplog.text


def test_malformed_rows_are_skipped(store, caplog):
    store.insert({
        "id": "broken",
        "profile_id": "profile-1",
        "link_id": None,
        "event_type": "link_click",
        "device_type": "mobile",
        "user_agent": "",
        "created_at": _utc(2026, 10, 4),
    })
    with caplog.at_level(logging.WARNING):
        events = RangeQuery(store).fetch("profile-1")
    assert len(events) == 6
    assert "Skipping malformed event row 'broken'" in caplog.text


def test_fetch_resorts_unordered_store_output(make_event):
    older = make_event("page_view", _utc(2026, 10, 1))
    newer = make_event("page_view", _utc(2026, 10, 5))

    class _UnorderedStore:
        def query(self, profile_id, start=None, end=None):
            return [to_record(older), to_record(newer)]

    events = RangeQuery(_UnorderedStore()).fetch("profile-1")
    assert [e.id for e in events] == [newer.id, older.id]


# -------------------------
# QueryGenerations
# -------------------------

def test_latest_issued_token_is_current():
    gens = QueryGenerations()
    first = gens.issue("p1")
    second = gens.issue("p1")
    assert not gens.is_current("p1", first)
    assert gens.is_current("p1", second)


def test_tokens_are_tracked_per_key():
    gens = QueryGenerations()
    a = gens.issue("p1")
    b = gens.issue("p2")
    assert gens.is_current("p1", a)
    assert gens.is_current("p2", b)
    assert not gens.is_current("p3", a)


def test_store_returning_nothing_degrades_to_empty(caplog):
    class _NoRowsStore:
        def query(self, profile_id, start=None, end=None):
            return None

    with caplog.at_level(logging.ERROR):
        assert RangeQuery(_NoRowsStore()).fetch("profile-1") == []
    assert "Failed to fetch events for profile profile-1" in caplog.text


def test_non_mapping_rows_are_skipped(make_event, caplog):
    good = make_event("page_view", _utc(2026, 10, 1))

    class _TupleRowStore:
        def query(self, profile_id, start=None, end=None):
            return [("evt-x", "profile-1", "page_view"), to_record(good)]

    with caplog.at_level(logging.WARNING):
        events = RangeQuery(_TupleRowStore()).fetch("profile-1")
    assert [e.id for e in events] == [good.id]
    assert "Skipping malformed event row ('evt-x'" in caplog.text
