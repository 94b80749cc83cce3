"""Core types, interfaces and error kinds."""

from matchlog.core.errors import (
    AuthenticationError,
    MatchlogError,
    NetworkError,
    ParseError,
    PermissionDenied,
    PreconditionFailed,
)
from matchlog.core.interfaces import KeyValueStore, MatchlogBackend, NotificationScheduler
from matchlog.core.types import (
    PLACEHOLDER,
    TBD,
    Event,
    EventsResponse,
    Insights,
    LeagueConfig,
    LeagueGroup,
    NotifiedRecord,
    Stats,
    UserPreferences,
    WatchedDay,
    WatchedEvent,
)

__all__ = [
    "PLACEHOLDER",
    "TBD",
    "AuthenticationError",
    "Event",
    "EventsResponse",
    "Insights",
    "KeyValueStore",
    "LeagueConfig",
    "LeagueGroup",
    "MatchlogBackend",
    "MatchlogError",
    "NetworkError",
    "NotificationScheduler",
    "NotifiedRecord",
    "ParseError",
    "PermissionDenied",
    "PreconditionFailed",
    "Stats",
    "UserPreferences",
    "WatchedDay",
    "WatchedEvent",
]
