"""Fixtures session: the active day, its cache and the user's flags.

MatchlogSession is the long-lived object a UI talks to. It owns the DayCache
and one FlagStateMachine per flag kind, and routes every mutation through
the optimistic toggle flow:

1. flip the flag locally and mark the id pending
2. call the backend (and the notification scheduler for reminders)
3. success: commit, patch the cached day, clear the error
4. failure: roll back that id; an AuthenticationError also signs out

Stats are kept as the last committed value plus the watched toggles still in
flight. A failed toggle is unstaged rather than inverted, so switching days
while it is pending cannot skew the count.

Only one toggle per event id is in flight; a second request for the same id
is ignored. Different ids proceed independently.
"""

import logging
import threading
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from matchlog.backend import BackendClient
from matchlog.config import Config, get_cache_ttl
from matchlog.core import (
    AuthenticationError,
    Event,
    EventsResponse,
    KeyValueStore,
    LeagueGroup,
    MatchlogBackend,
    MatchlogError,
    NotificationScheduler,
    PermissionDenied,
    PreconditionFailed,
    Stats,
    WatchedEvent,
)
from matchlog.database import SQLiteKeyValueStore
from matchlog.providers.tsdb import TSDBProvider
from matchlog.services.auth import TokenStore
from matchlog.services.insights import update_stats_for_toggle
from matchlog.services.local import LocalMatchLog
from matchlog.services.notifications import (
    cancel_match_notification,
    ensure_notification_permission,
    schedule_match_notification,
)
from matchlog.services.toggles import KIND_NOTIFIED, KIND_WATCHED, FlagStateMachine
from matchlog.utilities.cache import DayCache
from matchlog.utilities.tz import (
    STATUS_FUTURE,
    add_days,
    get_match_status,
    match_start,
    now_utc,
    today_value,
)

logger = logging.getLogger(__name__)

SIGNED_OUT_MESSAGE = "Sign in to see your fixtures."


def _with_id(ids: frozenset[str], event_id: str, present: bool) -> frozenset[str]:
    return ids | {event_id} if present else ids - {event_id}


class MatchlogSession:
    """State and operations behind the fixtures screen.

    token_store=None means local-only mode: there is no sign-in and the
    session is always considered signed in.
    """

    def __init__(
        self,
        backend: MatchlogBackend,
        cache: DayCache | None = None,
        scheduler: NotificationScheduler | None = None,
        token_store: TokenStore | None = None,
        clock: Callable[[], datetime] = now_utc,
        initial_date: str | None = None,
    ):
        self._backend = backend
        self._cache = cache if cache is not None else DayCache(ttl_seconds=get_cache_ttl())
        self._scheduler = scheduler
        self._token_store = token_store
        self._clock = clock
        self._lock = threading.Lock()

        self.watched = FlagStateMachine(KIND_WATCHED)
        self.notified = FlagStateMachine(KIND_NOTIFIED)

        self.active_date: str = initial_date or today_value(clock())
        self.leagues: list[LeagueGroup] = []
        self.stats = Stats()
        self.failed_leagues: tuple[str, ...] = ()
        self.error: str | None = None

        self._base_stats = Stats()
        self._staged: dict[str, tuple[Event, bool]] = {}

    @property
    def backend(self) -> MatchlogBackend:
        return self._backend

    @property
    def cache(self) -> DayCache:
        return self._cache

    # =========================================================================
    # AUTH
    # =========================================================================

    @property
    def is_signed_in(self) -> bool:
        if self._token_store is None:
            return True
        return self._token_store.get() is not None

    def sign_in(self, id_token: str) -> None:
        """Exchange an identity token for a session token and store it."""
        if self._token_store is None or not isinstance(self._backend, BackendClient):
            raise MatchlogError("Sign-in requires the Matchlog backend")
        token = self._backend.login(id_token)
        self._token_store.set(token)
        self.error = None
        logger.info("[AUTH] Signed in")

    def sign_out(self) -> None:
        """Forget the session token and every piece of user-scoped state."""
        if self._token_store is not None:
            self._token_store.clear()
        self._cache.clear()
        self.watched.clear()
        self.notified.clear()
        with self._lock:
            self.leagues = []
            self._base_stats = Stats()
            self._staged.clear()
            self.stats = Stats()
            self.failed_leagues = ()
            self.error = None

    def handle_auth_error(self) -> None:
        """Sign out after the backend rejected the session token."""
        logger.warning("[AUTH] Session rejected, signing out")
        self.sign_out()
        self.error = SIGNED_OUT_MESSAGE

    # =========================================================================
    # LOADING
    # =========================================================================

    def load(self, date: str | None = None, force_refresh: bool = False) -> EventsResponse:
        """Fixtures for a day, from cache unless force_refresh.

        The response is always cached, but only committed to session state if
        its date is still the active date when it arrives.
        """
        query = date or self.active_date

        if not force_refresh:
            cached = self._cache.get(query)
            if cached is not None:
                self._commit_response(query, cached)
                return cached

        try:
            response = self._backend.fetch_events_by_date(query)
        except AuthenticationError:
            self.handle_auth_error()
            raise
        except MatchlogError as e:
            if query == self.active_date:
                self.error = str(e)
            raise

        self._cache.set(query, response)
        self._commit_response(query, response)
        return response

    def _commit_response(self, query: str, response: EventsResponse) -> bool:
        with self._lock:
            if query != self.active_date:
                logger.debug("[SESSION] Dropping stale response for %s", query)
                return False
            self.leagues = list(response.leagues)
            self._base_stats = response.stats
            self._recompute_stats()
            self.failed_leagues = response.failed_leagues
            self.error = None
        self.watched.reset(response.watched_ids)
        self.notified.reset(response.notified_ids)
        return True

    def select_date(self, date: str) -> EventsResponse:
        with self._lock:
            self.active_date = date
        return self.load(date)

    def move_date(self, delta: int) -> EventsResponse:
        return self.select_date(add_days(self.active_date, delta))

    def jump_to_today(self) -> EventsResponse:
        return self.select_date(today_value(self._clock()))

    # =========================================================================
    # WATCHED
    # =========================================================================

    def toggle_watched(self, event: Event) -> bool:
        """Flip the watched flag of an event.

        Returns False when ignored because a toggle for the same event is
        still in flight.

        Raises:
            AuthenticationError: session rejected (already signed out)
            NetworkError: backend failed (flag and stats rolled back)
        """
        toggle = self.watched.begin(event.event_id, query_date=self.active_date)
        if toggle is None:
            return False

        with self._lock:
            self._staged[event.event_id] = (event, toggle.previous)
            self._recompute_stats()
        try:
            if toggle.previous:
                self._backend.remove_watched_event(event.event_id)
            else:
                self._backend.add_watched_event(event)
        except AuthenticationError:
            self.watched.rollback(toggle)
            self.handle_auth_error()
            raise
        except Exception as e:
            self.watched.rollback(toggle)
            with self._lock:
                self._staged.pop(event.event_id, None)
                self._recompute_stats()
            self.error = str(e)
            logger.warning("[TOGGLE] watched %s failed: %s", event.event_id, e)
            raise

        self.watched.commit(toggle)
        self._settle_stats(event, toggle.previous)
        self.error = None
        self._cache.patch(
            toggle.query_date,
            watched_ids=lambda ids: _with_id(ids, event.event_id, toggle.target),
        )
        return True

    def note_unwatched(self, item: WatchedEvent) -> None:
        """Apply a removal committed outside the fixtures screen.

        The event's day is evicted from the cache so its fixtures are
        refetched; every other cached day gets the new stats.
        """
        self.watched.discard(item.event_id)
        self._cache.invalidate(item.date)
        self._settle_stats(item, True, unstage=False)

    def _settle_stats(
        self, event: Event | WatchedEvent, was_watched: bool, unstage: bool = True
    ) -> None:
        """Move a confirmed toggle into the committed stats of every day."""
        now = self._clock()
        with self._lock:
            if unstage:
                self._staged.pop(event.event_id, None)
            self._base_stats = update_stats_for_toggle(
                self._base_stats, event, was_watched, now=now
            )
            self._recompute_stats()
        self._cache.patch_all(
            stats=lambda stats: update_stats_for_toggle(stats, event, was_watched, now=now)
        )

    def _recompute_stats(self) -> None:
        """Committed stats with in-flight toggles on top. Called with lock held."""
        now = self._clock()
        stats = self._base_stats
        for event, was_watched in self._staged.values():
            stats = update_stats_for_toggle(stats, event, was_watched, now=now)
        self.stats = stats

    # =========================================================================
    # NOTIFIED
    # =========================================================================

    def _check_can_register(self, event: Event) -> None:
        if get_match_status(event.date, event.time, now=self._clock()) != STATUS_FUTURE:
            raise PreconditionFailed()
        if match_start(event.date, event.time) is None:
            raise PreconditionFailed("Kickoff time not yet announced")
        if self._scheduler is None or not ensure_notification_permission(self._scheduler):
            raise PermissionDenied()

    def toggle_notified(self, event: Event) -> bool:
        """Schedule or cancel the pre-match reminder for an event.

        Returns False when ignored because a toggle for the same event is
        still in flight.

        Raises:
            PreconditionFailed: kickoff not safely in the future (nothing changed)
            PermissionDenied: notifications not allowed (nothing changed)
            AuthenticationError: session rejected (already signed out)
            NetworkError: backend failed (flag rolled back)
        """
        if self.notified.is_pending(event.event_id):
            return False

        if not self.notified.is_set(event.event_id):
            self._check_can_register(event)

        toggle = self.notified.begin(event.event_id, query_date=self.active_date)
        if toggle is None:
            return False

        try:
            if toggle.previous:
                self._unregister_reminder(event)
            else:
                self._register_reminder(event)
        except AuthenticationError:
            self.notified.rollback(toggle)
            self.handle_auth_error()
            raise
        except Exception as e:
            self.notified.rollback(toggle)
            self.error = str(e)
            logger.warning("[TOGGLE] notified %s failed: %s", event.event_id, e)
            raise

        self.notified.commit(toggle)
        self.error = None
        self._cache.patch(
            toggle.query_date,
            notified_ids=lambda ids: _with_id(ids, event.event_id, toggle.target),
        )
        return True

    def _register_reminder(self, event: Event) -> None:
        notification_id = schedule_match_notification(self._scheduler, event)
        try:
            self._backend.add_notified_event(event, notification_id)
        except Exception:
            # Don't leave an orphaned device notification behind
            cancel_match_notification(self._scheduler, notification_id)
            raise

    def _unregister_reminder(self, event: Event) -> None:
        record = self._backend.get_notified_event(event.event_id)
        if record is not None and record.notification_id:
            if self._scheduler is not None:
                cancel_match_notification(self._scheduler, record.notification_id)
            else:
                logger.warning(
                    "[NOTIFY] No scheduler to cancel %s for %s",
                    record.notification_id,
                    event.event_id,
                )
        self._backend.remove_notified_event(event.event_id)


# =============================================================================
# FACTORY
# =============================================================================


def create_session(
    use_backend: bool = False,
    db_path: Path | str | None = None,
    store: KeyValueStore | None = None,
    scheduler: NotificationScheduler | None = None,
    allow_partial: bool = False,
) -> MatchlogSession:
    """Build a session wired to local storage and the chosen backend.

    Local-only mode reads fixtures from TheSportsDB directly; backend mode
    talks to the Matchlog API with the stored session token.
    """
    if store is None:
        store = SQLiteKeyValueStore(db_path)
    cache = DayCache(ttl_seconds=get_cache_ttl())

    if use_backend:
        token_store = TokenStore(store)
        backend: MatchlogBackend = BackendClient(token_provider=token_store.get)
        logger.info("[STARTUP] Backend mode: %s", Config.API_BASE_URL)
        return MatchlogSession(backend, cache=cache, scheduler=scheduler, token_store=token_store)

    provider = TSDBProvider(api_key=Config.TSDB_API_KEY, allow_partial=allow_partial)
    logger.info("[STARTUP] Local-only mode")
    return MatchlogSession(
        LocalMatchLog(store, provider=provider),
        cache=cache,
        scheduler=scheduler,
    )
