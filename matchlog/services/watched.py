"""Watched history: the user's full match log with optimistic removal.

Mirrors the fixtures session on a smaller scale. The list is fetched once and
cached until a forced refresh; removing an entry hides it at once, marks it
pending, and restores it if the backend call fails. A rejected session token
signs the whole session out.
"""

import logging
import threading

from matchlog.core import AuthenticationError, MatchlogError, WatchedDay, WatchedEvent
from matchlog.services.insights import group_watched_events
from matchlog.services.session import MatchlogSession
from matchlog.services.toggles import KIND_WATCHED, FlagStateMachine

logger = logging.getLogger(__name__)

SIGNED_OUT_HISTORY_MESSAGE = "Sign in to see your watched matches."


class WatchedHistory:
    """Cached watched list bound to a MatchlogSession."""

    def __init__(self, session: MatchlogSession):
        self._session = session
        self._lock = threading.Lock()
        self._cached: list[WatchedEvent] | None = None
        self._flags = FlagStateMachine(KIND_WATCHED)
        self.error: str | None = None

    @property
    def items(self) -> list[WatchedEvent]:
        """Cached entries minus those removed or being removed."""
        with self._lock:
            cached = list(self._cached or [])
        return [item for item in cached if self._flags.is_set(item.event_id)]

    @property
    def pending_ids(self) -> frozenset[str]:
        return self._flags.pending_ids

    def days(self) -> list[WatchedDay]:
        return group_watched_events(self.items)

    def load(self, force_refresh: bool = False) -> list[WatchedEvent]:
        """Watched entries, from the cached list unless force_refresh.

        Raises:
            AuthenticationError: session rejected (already signed out)
            NetworkError: backend failed (error set, cache kept)
        """
        if not self._session.is_signed_in:
            self._forget(SIGNED_OUT_HISTORY_MESSAGE)
            return []

        with self._lock:
            cached = self._cached
        if cached is not None and not force_refresh:
            self.error = None
            return self.items

        try:
            loaded = self._session.backend.fetch_watched_events()
        except AuthenticationError:
            self._signed_out()
            raise
        except MatchlogError as e:
            self.error = str(e)
            raise

        with self._lock:
            self._cached = list(loaded)
        self._flags.reset(item.event_id for item in loaded)
        self.error = None
        logger.debug("[HISTORY] Loaded %d watched matches", len(loaded))
        return self.items

    def remove(self, item: WatchedEvent) -> bool:
        """Unwatch one entry optimistically.

        Returns False when ignored because a removal for the same event is
        still in flight, or the entry is not in the list.

        Raises:
            AuthenticationError: session rejected (already signed out)
            NetworkError: backend failed (entry restored)
        """
        if not self._flags.is_set(item.event_id):
            return False
        toggle = self._flags.begin(item.event_id)
        if toggle is None:
            return False

        try:
            self._session.backend.remove_watched_event(item.event_id)
        except AuthenticationError:
            self._flags.rollback(toggle)
            self._signed_out()
            raise
        except Exception as e:
            self._flags.rollback(toggle)
            self.error = str(e)
            logger.warning("[HISTORY] Removing %s failed: %s", item.event_id, e)
            raise

        self._flags.commit(toggle)
        with self._lock:
            if self._cached is not None:
                self._cached = [i for i in self._cached if i.event_id != item.event_id]
        self.error = None
        self._session.note_unwatched(item)
        return True

    def sign_out(self) -> None:
        self._session.sign_out()
        self._forget("Signed out.")

    def _signed_out(self) -> None:
        self._session.handle_auth_error()
        self._forget(SIGNED_OUT_HISTORY_MESSAGE)

    def _forget(self, message: str) -> None:
        with self._lock:
            self._cached = None
        self._flags.clear()
        self.error = message
