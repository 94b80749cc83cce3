"""Optimistic flag toggles with per-id rollback.

One FlagStateMachine per flag kind ("watched", "notified"). Each event id is
either idle or pending; a toggle moves it idle -> pending with the flag
already flipped, and commit/rollback return it to idle.

    toggle = machine.begin("123")     # None if "123" is already pending
    try:
        backend.add_watched_event(event)
    except MatchlogError:
        machine.rollback(toggle)      # "123" reverts to toggle.previous
        raise
    machine.commit(toggle)
"""

import logging
import threading
from collections.abc import Iterable
from dataclasses import dataclass

logger = logging.getLogger(__name__)

KIND_WATCHED = "watched"
KIND_NOTIFIED = "notified"


@dataclass(frozen=True)
class PendingToggle:
    """An in-flight toggle: the value before it, and the one applied."""

    kind: str
    event_id: str
    previous: bool
    query_date: str | None = None

    @property
    def target(self) -> bool:
        return not self.previous


class FlagStateMachine:
    """Thread-safe id set with at most one in-flight toggle per id."""

    def __init__(self, kind: str, ids: Iterable[str] = ()):
        self.kind = kind
        self._ids: set[str] = set(ids)
        self._pending: dict[str, PendingToggle] = {}
        self._lock = threading.Lock()

    def begin(self, event_id: str, query_date: str | None = None) -> PendingToggle | None:
        """Flip the flag optimistically and mark the id pending.

        Returns None (and changes nothing) when the id already has a toggle
        in flight.
        """
        with self._lock:
            if event_id in self._pending:
                logger.debug("[TOGGLE] %s %s already pending, ignored", self.kind, event_id)
                return None
            toggle = PendingToggle(
                kind=self.kind,
                event_id=event_id,
                previous=event_id in self._ids,
                query_date=query_date,
            )
            self._apply(event_id, toggle.target)
            self._pending[event_id] = toggle
            return toggle

    def commit(self, toggle: PendingToggle) -> None:
        """Keep the optimistic value and return the id to idle."""
        with self._lock:
            if self._pending.get(toggle.event_id) is toggle:
                del self._pending[toggle.event_id]

    def rollback(self, toggle: PendingToggle) -> None:
        """Revert only this id to its pre-toggle value and return it to idle."""
        with self._lock:
            if self._pending.get(toggle.event_id) is not toggle:
                return
            del self._pending[toggle.event_id]
            self._apply(toggle.event_id, toggle.previous)
            logger.debug("[TOGGLE] %s %s rolled back", self.kind, toggle.event_id)

    def reset(self, ids: Iterable[str]) -> None:
        """Replace the id set from a fresh server snapshot.

        In-flight toggles keep their optimistic value on top of it.
        """
        with self._lock:
            self._ids = set(ids)
            for event_id, toggle in self._pending.items():
                self._apply(event_id, toggle.target)

    def discard(self, event_id: str) -> bool:
        """Unset an id changed elsewhere. A pending id is left to its toggle."""
        with self._lock:
            if event_id in self._pending:
                return False
            self._ids.discard(event_id)
            return True

    def clear(self) -> None:
        """Drop all ids and pending toggles (sign-out)."""
        with self._lock:
            self._ids.clear()
            self._pending.clear()

    def is_set(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._ids

    def is_pending(self, event_id: str) -> bool:
        with self._lock:
            return event_id in self._pending

    @property
    def members(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._ids)

    @property
    def pending_ids(self) -> frozenset[str]:
        with self._lock:
            return frozenset(self._pending)

    def _apply(self, event_id: str, value: bool) -> None:
        if value:
            self._ids.add(event_id)
        else:
            self._ids.discard(event_id)
