"""TheSportsDB API HTTP client.

Handles raw HTTP requests to TSDB endpoints with rate limiting and retries.
No data transformation - just fetch and return JSON.

Rate limits (free tier):
- 30 requests/minute overall

Rate limit handling:
- Preemptive: Sliding window limiter prevents hitting API limit
- Reactive: If we get 429, wait and retry with exponential backoff
- All waits are tracked for UI feedback

Unlike a best-effort scraper, a failed request raises NetworkError: the
per-day fetch must know a league is missing rather than see it as empty.
"""

import logging
import threading
import time
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime

import httpx

from matchlog.core import LeagueConfig, NetworkError

logger = logging.getLogger(__name__)

TSDB_BASE_URL = "https://www.thesportsdb.com/api/v1/json"


@dataclass
class RateLimitStats:
    """Statistics about rate limiting for UI feedback.

    Tracks both preemptive waits (our limiter) and reactive waits (429 responses).
    """

    total_requests: int = 0
    preemptive_waits: int = 0  # Times our limiter made us wait
    reactive_waits: int = 0  # Times we hit 429 from API
    total_wait_seconds: float = 0.0
    last_wait_at: datetime | None = None
    last_wait_seconds: float = 0.0
    session_start: datetime = field(default_factory=datetime.now)

    @property
    def is_rate_limited(self) -> bool:
        """True if we've had to wait at all this session."""
        return self.preemptive_waits > 0 or self.reactive_waits > 0

    def to_dict(self) -> dict:
        return {
            "total_requests": self.total_requests,
            "preemptive_waits": self.preemptive_waits,
            "reactive_waits": self.reactive_waits,
            "total_wait_seconds": round(self.total_wait_seconds, 1),
            "last_wait_at": self.last_wait_at.isoformat() if self.last_wait_at else None,
            "last_wait_seconds": round(self.last_wait_seconds, 1),
            "is_rate_limited": self.is_rate_limited,
            "session_start": self.session_start.isoformat(),
        }


class RateLimiter:
    """Sliding window rate limiter with statistics tracking.

    Never fails - always waits and continues.
    Premium API keys bypass rate limiting entirely.
    """

    def __init__(
        self,
        max_requests: int = 30,
        window_seconds: float = 60.0,
        is_premium: bool = False,
        sleep=time.sleep,
    ):
        self._max_requests = max_requests
        self._window = window_seconds
        self._is_premium = is_premium
        self._sleep = sleep
        self._requests: deque[float] = deque()
        self._lock = threading.Lock()
        self._stats = RateLimitStats()

    @property
    def stats(self) -> RateLimitStats:
        return self._stats

    def record_reactive_wait(self, wait_seconds: float) -> None:
        """Record a reactive wait (429 response from API)."""
        with self._lock:
            self._stats.reactive_waits += 1
            self._stats.total_wait_seconds += wait_seconds
            self._stats.last_wait_at = datetime.now()
            self._stats.last_wait_seconds = wait_seconds

    def acquire(self) -> None:
        """Block until a request slot is available."""
        with self._lock:
            self._stats.total_requests += 1
            if self._is_premium:
                return

            now = time.monotonic()
            while self._requests and self._requests[0] < now - self._window:
                self._requests.popleft()

            if len(self._requests) >= self._max_requests:
                wait_seconds = max(self._requests[0] + self._window - now, 0.0)
                self._stats.preemptive_waits += 1
                self._stats.total_wait_seconds += wait_seconds
                self._stats.last_wait_at = datetime.now()
                self._stats.last_wait_seconds = wait_seconds

                logger.info(
                    "[TSDB] Free API limit reached (%d/min). Waiting %.0fs...",
                    self._max_requests,
                    wait_seconds,
                )

                # Release lock while sleeping so other threads can read stats
                self._lock.release()
                try:
                    self._sleep(wait_seconds)
                finally:
                    self._lock.acquire()

                now = time.monotonic()
                while self._requests and self._requests[0] < now - self._window:
                    self._requests.popleft()

            self._requests.append(time.monotonic())


class TSDBClient:
    """Low-level TheSportsDB API client with rate limiting.

    API key resolution:
    1. Explicit api_key parameter (from config)
    2. Free test key "123"
    """

    FREE_API_KEY = "123"

    # Exponential backoff for 429 responses
    # Starts at 5s, doubles each retry, caps at 120s
    BACKOFF_BASE = 5.0
    BACKOFF_MAX = 120.0
    BACKOFF_MAX_RETRIES = 5

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float = 10.0,
        retry_count: int = 3,
        retry_delay: float = 1.0,
        requests_per_minute: int = 30,
        http_client: httpx.Client | None = None,
        sleep=time.sleep,
    ):
        self._explicit_key = api_key
        self._timeout = timeout
        self._retry_count = max(retry_count, 1)
        self._retry_delay = retry_delay
        self._sleep = sleep
        self._client = http_client
        self._client_lock = threading.Lock()
        self._rate_limiter = RateLimiter(
            max_requests=requests_per_minute,
            window_seconds=60.0,
            is_premium=self.is_premium,
            sleep=sleep,
        )
        if self.is_premium:
            logger.info("[TSDB] Using premium API key - rate limiting disabled")

    @property
    def _api_key(self) -> str:
        return self._explicit_key or self.FREE_API_KEY

    @property
    def is_premium(self) -> bool:
        """Check if using premium API key."""
        return self._api_key != self.FREE_API_KEY

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                # Double-check after acquiring lock
                if self._client is None:
                    self._client = httpx.Client(
                        timeout=self._timeout,
                        limits=httpx.Limits(max_connections=10, max_keepalive_connections=5),
                    )
        return self._client

    def _request(self, endpoint: str, params: dict | None = None) -> dict:
        """Make HTTP request with rate limiting and retry logic.

        1. Preemptive: sliding window limiter (free key only)
        2. Reactive: on 429, exponential backoff (5s, 10s, 20s, 40s, 80s)
        3. Transport errors and 5xx: linear retry up to retry_count attempts

        Raises:
            NetworkError: when every attempt failed
        """
        self._rate_limiter.acquire()

        url = f"{TSDB_BASE_URL}/{self._api_key}/{endpoint}"
        backoff_attempt = 0
        failures = 0
        last_error = "no attempt made"

        while True:
            try:
                response = self._get_client().get(url, params=params)

                if response.status_code == 429:
                    backoff_attempt += 1
                    if backoff_attempt > self.BACKOFF_MAX_RETRIES:
                        logger.warning(
                            "[TSDB] 429 persisted after %d retries", self.BACKOFF_MAX_RETRIES
                        )
                        raise NetworkError("TheSportsDB rate limit exceeded", status_code=429)

                    wait_seconds = min(
                        self.BACKOFF_BASE * (2 ** (backoff_attempt - 1)),
                        self.BACKOFF_MAX,
                    )
                    self._rate_limiter.record_reactive_wait(wait_seconds)
                    logger.info(
                        "[TSDB] 429 rate limit hit. Retry %d/%d in %.0fs...",
                        backoff_attempt,
                        self.BACKOFF_MAX_RETRIES,
                        wait_seconds,
                    )
                    self._sleep(wait_seconds)
                    continue

                response.raise_for_status()
                return response.json()

            except httpx.HTTPStatusError as e:
                status = e.response.status_code
                logger.warning("[TSDB] HTTP %d for %s", status, endpoint)
                if status < 500:
                    raise NetworkError(f"TheSportsDB request failed: {status}", status) from e
                last_error = f"HTTP {status}"

            except (httpx.RequestError, ValueError) as e:
                # ValueError: body wasn't JSON
                logger.warning("[TSDB] Request failed for %s: %s", endpoint, e)
                last_error = str(e) or type(e).__name__

            failures += 1
            if failures >= self._retry_count:
                raise NetworkError(f"TheSportsDB request failed: {last_error}")
            self._sleep(self._retry_delay * failures)

    def get_events_by_date(self, league: LeagueConfig, date_str: str) -> list[dict]:
        """Fetch raw events for a league on a specific date.

        Uses eventsday.php, which takes the league NAME (strLeague), not ID.
        TSDB answers {"events": null} for an empty day.

        Args:
            league: Configured league
            date_str: Date in YYYY-MM-DD format

        Returns:
            Raw TSDB event dicts (possibly empty)
        """
        result = self._request("eventsday.php", {"d": date_str, "l": league.query_name})
        events = result.get("events") if isinstance(result, dict) else None
        return events if isinstance(events, list) else []

    def rate_limit_stats(self) -> RateLimitStats:
        """Get rate limit statistics for UI feedback."""
        return self._rate_limiter.stats

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None
