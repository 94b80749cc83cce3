"""Shared fixtures for Matchlog tests."""

import threading
from datetime import UTC, datetime

import pytest

from matchlog.config import clear_timezone_cache, set_timezone
from matchlog.core import (
    Event,
    EventsResponse,
    LeagueGroup,
    MatchlogBackend,
    NotifiedRecord,
    Stats,
    WatchedEvent,
)

# Wednesday; week starts Mon 2024-01-08, month starts 2024-01-01
FIXED_NOW = datetime(2024, 1, 10, 12, 0, tzinfo=UTC)


# =============================================================================
# TIMEZONE
# =============================================================================


@pytest.fixture(autouse=True)
def utc_timezone():
    """Pin the user timezone to UTC unless a test overrides it."""
    set_timezone("UTC")
    yield
    clear_timezone_cache()


@pytest.fixture
def madrid_timezone():
    set_timezone("Europe/Madrid")
    yield "Europe/Madrid"


@pytest.fixture
def fixed_now():
    return FIXED_NOW


# =============================================================================
# EVENTS
# =============================================================================


@pytest.fixture
def make_event():
    def _make(event_id="1", date="2024-01-10", time="20:00:00", home="Arsenal", away="Chelsea",
              league_id="4328", league_name="English Premier League"):
        return Event(
            event_id=event_id,
            league_id=league_id,
            league_name=league_name,
            date=date,
            time=time,
            home_team=home,
            away_team=away,
        )

    return _make


@pytest.fixture
def make_watched():
    def _make(event_id="1", date="2024-01-10", time="20:00:00", home="Arsenal", away="Chelsea",
              league_name="English Premier League", created_at="2024-01-10T22:00:00+00:00"):
        return WatchedEvent(
            id=event_id,
            event_id=event_id,
            league_id="4328",
            league_name=league_name,
            date=date,
            time=time,
            home_team=home,
            away_team=away,
            created_at=created_at,
        )

    return _make


# =============================================================================
# COLLABORATOR FAKES
# =============================================================================


class MemoryStore:
    """In-memory KeyValueStore."""

    def __init__(self):
        self.data: dict[str, str] = {}

    def get(self, key):
        return self.data.get(key)

    def set(self, key, value):
        self.data[key] = value

    def delete(self, key):
        self.data.pop(key, None)


class FakeScheduler:
    """NotificationScheduler that records calls."""

    def __init__(self, platform="ios", status="granted", grant=True):
        self.platform = platform
        self.status = status
        self.grant = grant
        self.channels: list[tuple[str, str]] = []
        self.requests = 0
        self.scheduled: dict[str, tuple[datetime, dict]] = {}
        self.cancelled: list[str] = []

    def ensure_channel(self, channel_id, name):
        self.channels.append((channel_id, name))

    def permission_status(self):
        return self.status

    def request_permission(self):
        self.requests += 1
        if self.grant:
            self.status = "granted"
        return self.grant

    def schedule_at(self, when, payload):
        notification_id = f"notif-{len(self.scheduled) + 1}"
        self.scheduled[notification_id] = (when, payload)
        return notification_id

    def cancel(self, notification_id):
        self.cancelled.append(notification_id)


class FakeBackend(MatchlogBackend):
    """MatchlogBackend with scripted responses, failures and gates.

    errors maps a method name to the exception it raises. gates maps an
    event id (or a date for fetches) to a threading.Event the call waits on.
    """

    def __init__(self):
        self.responses: dict[str, EventsResponse] = {}
        self.watched: dict[str, Event] = {}
        self.notified: dict[str, NotifiedRecord] = {}
        self.errors: dict[str, Exception] = {}
        self.gates: dict[str, threading.Event] = {}
        self.started: dict[str, threading.Event] = {}
        self.calls: list[tuple[str, str]] = []
        self._lock = threading.Lock()

    @property
    def name(self):
        return "fake"

    def _enter(self, method, key):
        with self._lock:
            self.calls.append((method, key))
            started = self.started.get(key)
        if started is not None:
            started.set()
        gate = self.gates.get(key)
        if gate is not None:
            assert gate.wait(5), f"gate for {key} never opened"
        if method in self.errors:
            raise self.errors[method]

    def fetch_events_by_date(self, date):
        self._enter("fetch_events_by_date", date)
        return self.responses.get(date, EventsResponse())

    def fetch_watched_events(self):
        self._enter("fetch_watched_events", "")
        return [WatchedEvent.from_event(e, "2024-01-10T12:00:00+00:00") for e in self.watched.values()]

    def add_watched_event(self, event):
        self._enter("add_watched_event", event.event_id)
        self.watched[event.event_id] = event

    def remove_watched_event(self, event_id):
        self._enter("remove_watched_event", event_id)
        self.watched.pop(event_id, None)

    def add_notified_event(self, event, notification_id):
        self._enter("add_notified_event", event.event_id)
        self.notified[event.event_id] = NotifiedRecord.from_event(event, notification_id)

    def remove_notified_event(self, event_id):
        self._enter("remove_notified_event", event_id)
        self.notified.pop(event_id, None)

    def get_notified_event(self, event_id):
        self._enter("get_notified_event", event_id)
        return self.notified.get(event_id)

    def mutation_calls(self, event_id):
        return [m for m, key in self.calls if key == event_id and m != "get_notified_event"]


@pytest.fixture
def memory_store():
    return MemoryStore()


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def fake_backend():
    return FakeBackend()


@pytest.fixture
def day_response(make_event):
    """Builder for an EventsResponse holding the given events in one league."""

    def _make(*events, watched=(), notified=(), stats=None):
        group = LeagueGroup(id="4328", name="English Premier League", events=list(events))
        return EventsResponse(
            leagues=(group,),
            watched_ids=frozenset(watched),
            notified_ids=frozenset(notified),
            stats=stats or Stats(),
        )

    return _make
