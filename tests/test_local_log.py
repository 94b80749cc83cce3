"""Tests for SQLite key-value storage and the local-only backend."""

import json

import pytest

from matchlog.core import LeagueGroup, NetworkError, Stats
from matchlog.database import SQLiteKeyValueStore, read_json, write_json
from matchlog.providers.tsdb.provider import DaySchedule
from matchlog.services.local import LocalMatchLog
from matchlog.services.session import MatchlogSession
from matchlog.utilities.constants import NOTIFIED_EVENTS_KEY, WATCHED_EVENTS_KEY


@pytest.fixture
def store(tmp_path):
    return SQLiteKeyValueStore(tmp_path / "matchlog.db")


class StaticProvider:
    """Provider returning fixed leagues per date."""

    def __init__(self, days=None, error=None):
        self.days = days or {}
        self.error = error
        self.closed = False

    def fetch_events_by_date(self, date_str):
        if self.error is not None:
            raise self.error
        leagues, failed = self.days.get(date_str, ([], []))
        return DaySchedule(date=date_str, leagues=list(leagues), failed_leagues=list(failed))

    def close(self):
        self.closed = True


@pytest.fixture
def provider(make_event):
    today = [
        LeagueGroup(
            id="4328",
            name="English Premier League",
            events=[make_event("1"), make_event("2", home="Spurs", away="Fulham")],
        )
    ]
    tomorrow = [LeagueGroup(id="4328", name="English Premier League", events=[make_event("3")])]
    return StaticProvider(
        {"2024-01-10": (today, ["4335"]), "2024-01-11": (tomorrow, [])}
    )


@pytest.fixture
def local(store, provider, fixed_now):
    return LocalMatchLog(store, provider=provider, clock=lambda: fixed_now)


# =============================================================================
# KEY-VALUE STORE
# =============================================================================


class TestSQLiteKeyValueStore:
    def test_get_missing(self, store):
        assert store.get("nope") is None

    def test_set_overwrites(self, store):
        store.set("k", "a")
        store.set("k", "b")
        assert store.get("k") == "b"

    def test_delete(self, store):
        store.set("k", "a")
        store.delete("k")
        store.delete("k")
        assert store.get("k") is None

    def test_persists_across_instances(self, tmp_path):
        SQLiteKeyValueStore(tmp_path / "db.sqlite").set("k", "v")
        assert SQLiteKeyValueStore(tmp_path / "db.sqlite").get("k") == "v"

    def test_json_helpers(self, store):
        write_json(store, "prefs", {"favoriteTeams": ["Arsenal"]})
        assert read_json(store, "prefs") == {"favoriteTeams": ["Arsenal"]}

    def test_corrupt_json_reads_as_default(self, store):
        store.set("prefs", "{not json")
        assert read_json(store, "prefs", default=[]) == []


# =============================================================================
# LOCAL BACKEND
# =============================================================================


class TestLocalFetch:
    def test_flags_restricted_to_queried_day(self, local, make_event):
        local.add_watched_event(make_event("1"))
        local.add_watched_event(make_event("3", date="2024-01-11"))
        local.add_notified_event(make_event("3", date="2024-01-11"), "notif-1")

        response = local.fetch_events_by_date("2024-01-10")

        assert response.watched_ids == frozenset({"1"})
        assert response.notified_ids == frozenset()
        assert response.failed_leagues == ("4335",)
        assert [e.event_id for e in response.leagues[0].events] == ["1", "2"]

    def test_stats_cover_all_watched(self, local, make_event):
        local.add_watched_event(make_event("1"))
        local.add_watched_event(make_event("3", date="2024-01-11"))
        local.add_watched_event(make_event("9", date="2023-11-02"))

        response = local.fetch_events_by_date("2024-01-10")

        assert response.stats == Stats(week_count=2, month_count=2, total_count=3)

    def test_provider_failure_propagates(self, store):
        local = LocalMatchLog(store, provider=StaticProvider(error=NetworkError("offline")))
        with pytest.raises(NetworkError):
            local.fetch_events_by_date("2024-01-10")


class TestLocalWatched:
    def test_add_is_idempotent(self, local, make_event):
        local.add_watched_event(make_event("1"))
        local.add_watched_event(make_event("1"))
        assert [e.event_id for e in local.fetch_watched_events()] == ["1"]

    def test_created_at_from_clock(self, local, make_event):
        local.add_watched_event(make_event("1"))
        assert local.fetch_watched_events()[0].created_at == "2024-01-10T12:00:00+00:00"

    def test_remove(self, local, make_event):
        local.add_watched_event(make_event("1"))
        local.add_watched_event(make_event("2"))
        local.remove_watched_event("1")
        local.remove_watched_event("missing")
        assert [e.event_id for e in local.fetch_watched_events()] == ["2"]

    def test_malformed_records_skipped(self, local, store):
        store.set(
            WATCHED_EVENTS_KEY,
            json.dumps([{"leagueName": "no id"}, {"eventId": "7", "date": "2024-01-02"}]),
        )
        assert [e.event_id for e in local.fetch_watched_events()] == ["7"]

    def test_corrupt_blob_reads_empty(self, local, store):
        store.set(WATCHED_EVENTS_KEY, "[[[")
        assert local.fetch_watched_events() == []


class TestLocalNotified:
    def test_round_trip_record(self, local, make_event):
        local.add_notified_event(make_event("1"), "notif-4")
        record = local.get_notified_event("1")
        assert record.notification_id == "notif-4"
        assert record.home_team == "Arsenal"

    def test_re_register_replaces(self, local, make_event):
        local.add_notified_event(make_event("1"), "notif-4")
        local.add_notified_event(make_event("1"), "notif-5")
        assert local.get_notified_event("1").notification_id == "notif-5"

    def test_remove(self, local, make_event):
        local.add_notified_event(make_event("1"), "notif-4")
        local.remove_notified_event("1")
        assert local.get_notified_event("1") is None

    def test_stored_keyed_by_event_id(self, local, store, make_event):
        local.add_notified_event(make_event("1"), "notif-4")
        assert set(json.loads(store.get(NOTIFIED_EVENTS_KEY))) == {"1"}

    def test_close_closes_provider(self, local, provider):
        local.close()
        assert provider.closed


class TestLocalSession:
    def test_toggle_persists_across_sessions(self, store, provider, make_event, fixed_now):
        def new_session():
            backend = LocalMatchLog(store, provider=provider, clock=lambda: fixed_now)
            return MatchlogSession(backend, clock=lambda: fixed_now)

        first = new_session()
        first.load()
        first.toggle_watched(make_event("2", home="Spurs", away="Fulham"))

        second = new_session()
        second.load()
        assert second.watched.members == frozenset({"2"})
        assert second.stats.total_count == 1
        assert second.failed_leagues == ("4335",)
