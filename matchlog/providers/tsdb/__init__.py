"""TheSportsDB provider."""

from matchlog.providers.tsdb.client import RateLimiter, RateLimitStats, TSDBClient
from matchlog.providers.tsdb.normalizer import normalize_event, normalize_events
from matchlog.providers.tsdb.provider import DaySchedule, TSDBProvider

__all__ = [
    "DaySchedule",
    "RateLimitStats",
    "RateLimiter",
    "TSDBClient",
    "TSDBProvider",
    "normalize_event",
    "normalize_events",
]
