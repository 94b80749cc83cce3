"""In-memory day cache with TTL support.

Holds the per-day EventsResponse envelope keyed by query date (YYYY-MM-DD),
so moving back and forth between days doesn't re-fetch fixtures.

Two lifetimes share one contract (get/set/patch/invalidate):
- TTL (default 5 minutes) for a long-lived process
- Session-scoped (ttl_seconds=None): entries never expire on their own and
  the owner calls clear() when the screen session ends

The owner (MatchlogSession) constructs one instance and passes it around;
there is no module-level cache.
"""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass, replace
from datetime import UTC, datetime, timedelta
from typing import Any

from matchlog.core.types import EventsResponse

logger = logging.getLogger(__name__)

# Default lifetime of a cached day (seconds)
CACHE_TTL_EVENTS = 5 * 60

# Fields of EventsResponse a patch may replace. The leagues payload is never
# touched by a patch.
PATCHABLE_FIELDS = frozenset({"watched_ids", "notified_ids", "stats"})


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass
class CacheEntry:
    """A cached day with expiration (None = session-scoped)."""

    value: EventsResponse
    expires_at: datetime | None
    last_accessed: datetime


def _check_patchable(changes: dict[str, Any]) -> None:
    unknown = set(changes) - PATCHABLE_FIELDS
    if unknown:
        raise ValueError(f"Cannot patch cache fields: {sorted(unknown)}")


def _apply_patch(entry: CacheEntry, changes: dict[str, Any]) -> None:
    resolved = {}
    for key, value in changes.items():
        if callable(value):
            value = value(getattr(entry.value, key))
        if key in ("watched_ids", "notified_ids"):
            value = frozenset(value)
        resolved[key] = value
    entry.value = replace(entry.value, **resolved)


class DayCache:
    """Thread-safe date-keyed cache with optional TTL and size limit.

    Features:
    - Time-based expiration (TTL), or none for session scope
    - Field-level patch of watched/notified ids and stats
    - Maximum size limit with LRU eviction
    - Injected clock for deterministic tests

    Usage:
        cache = DayCache(ttl_seconds=300)
        cache.set("2024-01-06", response)
        cache.patch("2024-01-06", watched_ids=frozenset({"123"}))
        cached = cache.get("2024-01-06")  # None if missing or expired
    """

    DEFAULT_MAX_SIZE = 60

    def __init__(
        self,
        ttl_seconds: int | None = CACHE_TTL_EVENTS,
        max_size: int = DEFAULT_MAX_SIZE,
        clock: Callable[[], datetime] = _utc_now,
    ):
        if ttl_seconds is not None and ttl_seconds < 0:
            raise ValueError(f"ttl_seconds must be >= 0 or None, got {ttl_seconds}")
        self._cache: dict[str, CacheEntry] = {}
        # 0 disables caching: entries are expired on arrival
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        self._max_size = max_size
        self._clock = clock
        self._lock = threading.Lock()
        self._hits = 0
        self._misses = 0

    @property
    def session_scoped(self) -> bool:
        return self._ttl is None

    def _is_expired(self, entry: CacheEntry, now: datetime) -> bool:
        return entry.expires_at is not None and now >= entry.expires_at

    def _live_entry(self, date: str, now: datetime) -> CacheEntry | None:
        """Entry for date if present and not expired. Called with lock held."""
        entry = self._cache.get(date)
        if entry is None:
            return None
        if self._is_expired(entry, now):
            del self._cache[date]
            return None
        return entry

    def get(self, date: str) -> EventsResponse | None:
        """Cached day if present and not expired. A miss and an expiry look the same."""
        now = self._clock()
        with self._lock:
            entry = self._live_entry(date, now)
            if entry is None:
                self._misses += 1
                return None
            entry.last_accessed = now
            self._hits += 1
            return entry.value

    def set(self, date: str, data: EventsResponse) -> None:
        """Store a day, unconditionally overwriting any existing entry."""
        now = self._clock()
        expires_at = now + self._ttl if self._ttl is not None else None

        with self._lock:
            if self._max_size > 0 and date not in self._cache:
                self._evict_if_needed(now)

            self._cache[date] = CacheEntry(
                value=data,
                expires_at=expires_at,
                last_accessed=now,
            )

    def patch(self, date: str, **changes: Any) -> bool:
        """Replace watched_ids/notified_ids/stats of a cached day in place.

        Keeps the cached leagues and the original expiry. Returns False (and
        changes nothing) when the day isn't cached or has expired.

        A change may be a callable; it gets the current field value under the
        cache lock, so concurrent patches of one day don't lose updates:

            cache.patch(day, watched_ids=lambda ids: ids | {"123"})

        Raises:
            ValueError: for any field other than watched_ids, notified_ids, stats
        """
        _check_patchable(changes)
        now = self._clock()
        with self._lock:
            entry = self._live_entry(date, now)
            if entry is None:
                logger.debug("[CACHE] Patch skipped, %s not cached", date)
                return False
            _apply_patch(entry, changes)
            return True

    def patch_all(self, **changes: Any) -> int:
        """Patch every live day. Returns the number of days patched.

        For fields that span all days, such as stats over the whole watched
        set. Same field rules as patch(); a callable runs once per day.
        """
        _check_patchable(changes)
        now = self._clock()
        with self._lock:
            live = [d for d in list(self._cache) if self._live_entry(d, now) is not None]
            for date in live:
                _apply_patch(self._cache[date], changes)
            return len(live)

    def invalidate(self, date: str) -> None:
        """Evict one day (next get() is a miss)."""
        with self._lock:
            self._cache.pop(date, None)

    def _evict_if_needed(self, now: datetime) -> None:
        """Evict entries if cache is at max size. Called with lock held."""
        if self._max_size <= 0:
            return

        # First, remove expired entries
        expired_keys = [k for k, v in self._cache.items() if self._is_expired(v, now)]
        for key in expired_keys:
            del self._cache[key]

        # If still at/over max, evict least recently used
        while self._cache and len(self._cache) >= self._max_size:
            lru_key = min(self._cache, key=lambda k: self._cache[k].last_accessed)
            del self._cache[lru_key]

    def clear(self) -> None:
        """Clear all cached days (session end, sign-out)."""
        with self._lock:
            self._cache.clear()
            self._hits = 0
            self._misses = 0

    @property
    def size(self) -> int:
        """Current number of entries (including possibly expired)."""
        return len(self._cache)

    def stats(self) -> dict:
        """Get cache statistics."""
        now = self._clock()
        with self._lock:
            total = len(self._cache)
            expired = sum(1 for v in self._cache.values() if self._is_expired(v, now))
            total_requests = self._hits + self._misses
            hit_rate = self._hits / total_requests if total_requests > 0 else 0
            return {
                "total_entries": total,
                "active_entries": total - expired,
                "expired_entries": expired,
                "max_size": self._max_size,
                "session_scoped": self.session_scoped,
                "hits": self._hits,
                "misses": self._misses,
                "hit_rate": round(hit_rate, 3),
            }
