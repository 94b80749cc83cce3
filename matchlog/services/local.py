"""Local-only Matchlog backend.

Fixtures come straight from TheSportsDB; watched and notified records live
in a KeyValueStore as JSON blobs. Implements the same MatchlogBackend
contract as the HTTP BackendClient, so MatchlogSession runs unchanged on
either.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime

from matchlog.core import (
    Event,
    EventsResponse,
    KeyValueStore,
    MatchlogBackend,
    NotifiedRecord,
    WatchedEvent,
)
from matchlog.database.kv import read_json, write_json
from matchlog.providers.tsdb import TSDBProvider
from matchlog.services.insights import compute_stats
from matchlog.utilities.constants import NOTIFIED_EVENTS_KEY, WATCHED_EVENTS_KEY
from matchlog.utilities.tz import now_utc

logger = logging.getLogger(__name__)


class LocalMatchLog(MatchlogBackend):
    """MatchlogBackend over TheSportsDB plus device storage.

    Storage layout:
        WATCHED_EVENTS_KEY  -> [WatchedEvent.to_dict(), ...] in insertion order
        NOTIFIED_EVENTS_KEY -> {eventId: NotifiedRecord.to_dict(), ...}
    """

    def __init__(
        self,
        store: KeyValueStore,
        provider: TSDBProvider | None = None,
        clock: Callable[[], datetime] = now_utc,
    ):
        self._store = store
        self._provider = provider or TSDBProvider()
        self._clock = clock
        # Serializes read-modify-write of the JSON blobs
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return "local"

    # =========================================================================
    # STORAGE
    # =========================================================================

    def _load_watched(self) -> list[WatchedEvent]:
        events = []
        for item in read_json(self._store, WATCHED_EVENTS_KEY, default=[]) or []:
            try:
                events.append(WatchedEvent.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                logger.warning("[LOCAL] Skipping malformed watched record: %r", item)
        return events

    def _save_watched(self, events: list[WatchedEvent]) -> None:
        write_json(self._store, WATCHED_EVENTS_KEY, [e.to_dict() for e in events])

    def _load_notified(self) -> dict[str, NotifiedRecord]:
        records = {}
        raw = read_json(self._store, NOTIFIED_EVENTS_KEY, default={}) or {}
        for item in raw.values() if isinstance(raw, dict) else ():
            try:
                record = NotifiedRecord.from_dict(item)
            except (KeyError, TypeError, AttributeError):
                logger.warning("[LOCAL] Skipping malformed notified record: %r", item)
                continue
            records[record.event_id] = record
        return records

    def _save_notified(self, records: dict[str, NotifiedRecord]) -> None:
        write_json(
            self._store,
            NOTIFIED_EVENTS_KEY,
            {event_id: record.to_dict() for event_id, record in records.items()},
        )

    # =========================================================================
    # MatchlogBackend
    # =========================================================================

    def fetch_events_by_date(self, date: str) -> EventsResponse:
        """One day's fixtures with the flags of that day's events.

        Stats cover the full watched set, like the backend's.
        """
        schedule = self._provider.fetch_events_by_date(date)
        day_ids = {event.event_id for group in schedule.leagues for event in group.events}

        watched = self._load_watched()
        notified = self._load_notified()

        return EventsResponse(
            leagues=tuple(schedule.leagues),
            watched_ids=frozenset(e.event_id for e in watched if e.event_id in day_ids),
            notified_ids=frozenset(event_id for event_id in notified if event_id in day_ids),
            stats=compute_stats(watched, now=self._clock()),
            failed_leagues=tuple(schedule.failed_leagues),
        )

    def fetch_watched_events(self) -> list[WatchedEvent]:
        return self._load_watched()

    def add_watched_event(self, event: Event) -> None:
        with self._lock:
            watched = self._load_watched()
            if any(e.event_id == event.event_id for e in watched):
                return
            created_at = self._clock().isoformat(timespec="seconds")
            watched.append(WatchedEvent.from_event(event, created_at))
            self._save_watched(watched)
        logger.debug("[LOCAL] Watched %s", event.event_id)

    def remove_watched_event(self, event_id: str) -> None:
        with self._lock:
            watched = self._load_watched()
            remaining = [e for e in watched if e.event_id != event_id]
            if len(remaining) != len(watched):
                self._save_watched(remaining)
        logger.debug("[LOCAL] Unwatched %s", event_id)

    def add_notified_event(self, event: Event, notification_id: str) -> None:
        with self._lock:
            records = self._load_notified()
            records[event.event_id] = NotifiedRecord.from_event(event, notification_id)
            self._save_notified(records)

    def remove_notified_event(self, event_id: str) -> None:
        with self._lock:
            records = self._load_notified()
            if records.pop(event_id, None) is not None:
                self._save_notified(records)

    def get_notified_event(self, event_id: str) -> NotifiedRecord | None:
        return self._load_notified().get(event_id)

    def close(self) -> None:
        self._provider.close()
