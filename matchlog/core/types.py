"""Core data types for Matchlog.

All data structures are dataclasses with attribute access.
Python attributes are snake_case; the wire and storage format is camelCase,
converted by the to_dict()/from_dict() helpers.
"""

from dataclasses import dataclass, field
from typing import Any

# Placeholder for a team name or kickoff time the provider hasn't finalized
TBD = "TBD"

# Placeholder for empty insight fields
PLACEHOLDER = "—"


def _optional_int(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class LeagueConfig:
    """A configured league to query each day.

    id is the provider league ID (TSDB idLeague). provider_league_name is the
    strLeague value TSDB's eventsday.php expects, when it differs from name.
    """

    id: str
    name: str
    badge: str | None = None
    provider_league_name: str | None = None

    @property
    def query_name(self) -> str:
        return self.provider_league_name or self.name


@dataclass(frozen=True)
class Event:
    """A single scheduled fixture."""

    event_id: str
    league_id: str
    league_name: str
    date: str  # YYYY-MM-DD, nominal day in UTC
    time: str  # HH:MM[:SS] in UTC, "" or "TBD" when unscheduled
    home_team: str
    away_team: str
    league_badge: str | None = None
    home_score: int | None = None
    away_score: int | None = None

    def to_dict(self) -> dict:
        return {
            "eventId": self.event_id,
            "leagueId": self.league_id,
            "leagueName": self.league_name,
            "leagueBadge": self.league_badge,
            "date": self.date,
            "time": self.time,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Event":
        return cls(
            event_id=str(data["eventId"]),
            league_id=str(data.get("leagueId") or ""),
            league_name=data.get("leagueName") or "",
            league_badge=data.get("leagueBadge") or None,
            date=data.get("date") or "",
            time=data.get("time") or "",
            home_team=data.get("homeTeam") or TBD,
            away_team=data.get("awayTeam") or TBD,
            home_score=_optional_int(data.get("homeScore")),
            away_score=_optional_int(data.get("awayScore")),
        )


@dataclass
class LeagueGroup:
    """Events partitioned by league for a single queried date."""

    id: str
    name: str
    badge: str | None = None
    events: list[Event] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "badge": self.badge,
            "events": [e.to_dict() for e in self.events],
        }


@dataclass(frozen=True)
class WatchedEvent:
    """A fixture the user marked as watched.

    id is the backend row id in backend-synced mode, or the event_id itself
    in local-only mode.
    """

    id: int | str
    event_id: str
    league_id: str
    league_name: str
    date: str
    time: str | None
    home_team: str
    away_team: str
    created_at: str
    home_score: int | None = None
    away_score: int | None = None

    @classmethod
    def from_event(cls, event: Event, created_at: str) -> "WatchedEvent":
        return cls(
            id=event.event_id,
            event_id=event.event_id,
            league_id=event.league_id,
            league_name=event.league_name,
            date=event.date,
            time=event.time or None,
            home_team=event.home_team,
            away_team=event.away_team,
            home_score=event.home_score,
            away_score=event.away_score,
            created_at=created_at,
        )

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "eventId": self.event_id,
            "leagueId": self.league_id,
            "leagueName": self.league_name,
            "date": self.date,
            "time": self.time,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "homeScore": self.home_score,
            "awayScore": self.away_score,
            "createdAt": self.created_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "WatchedEvent":
        event_id = str(data["eventId"])
        return cls(
            id=data.get("id", event_id),
            event_id=event_id,
            league_id=str(data.get("leagueId") or ""),
            league_name=data.get("leagueName") or "",
            date=data.get("date") or "",
            time=data.get("time") or None,
            home_team=data.get("homeTeam") or TBD,
            away_team=data.get("awayTeam") or TBD,
            home_score=_optional_int(data.get("homeScore")),
            away_score=_optional_int(data.get("awayScore")),
            created_at=data.get("createdAt") or "",
        )


@dataclass(frozen=True)
class NotifiedRecord:
    """Registration record of a scheduled pre-match reminder."""

    event_id: str
    notification_id: str
    league_id: str = ""
    league_name: str = ""
    date: str = ""
    time: str = ""
    home_team: str = TBD
    away_team: str = TBD

    @classmethod
    def from_event(cls, event: Event, notification_id: str) -> "NotifiedRecord":
        return cls(
            event_id=event.event_id,
            notification_id=notification_id,
            league_id=event.league_id,
            league_name=event.league_name,
            date=event.date,
            time=event.time,
            home_team=event.home_team,
            away_team=event.away_team,
        )

    def to_dict(self) -> dict:
        return {
            "eventId": self.event_id,
            "leagueId": self.league_id,
            "leagueName": self.league_name,
            "date": self.date,
            "time": self.time,
            "homeTeam": self.home_team,
            "awayTeam": self.away_team,
            "notificationId": self.notification_id,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NotifiedRecord":
        return cls(
            event_id=str(data["eventId"]),
            notification_id=str(data["notificationId"]),
            league_id=str(data.get("leagueId") or ""),
            league_name=data.get("leagueName") or "",
            date=data.get("date") or "",
            time=data.get("time") or "",
            home_team=data.get("homeTeam") or TBD,
            away_team=data.get("awayTeam") or TBD,
        )


@dataclass(frozen=True)
class Stats:
    """Watched counts relative to now. Derived, never stored."""

    week_count: int = 0
    month_count: int = 0
    total_count: int = 0

    def to_dict(self) -> dict:
        return {
            "weekCount": self.week_count,
            "monthCount": self.month_count,
            "totalCount": self.total_count,
        }


@dataclass(frozen=True)
class Insights:
    """Derived personal statistics over the watched set.

    top_weekday holds the busiest calendar day, display-formatted.
    """

    top_team: str = PLACEHOLDER
    top_league: str = PLACEHOLDER
    top_weekday: str = PLACEHOLDER
    week_count: int = 0
    month_count: int = 0
    total_count: int = 0


@dataclass(frozen=True)
class EventsResponse:
    """Per-day envelope: league groups plus the user's flags and stats.

    Frozen so cached values are only ever replaced (DayCache.patch), never
    edited in place.
    """

    leagues: tuple[LeagueGroup, ...] = ()
    watched_ids: frozenset[str] = frozenset()
    notified_ids: frozenset[str] = frozenset()
    stats: Stats = field(default_factory=Stats)
    # League ids whose fetch failed when partial results were allowed
    failed_leagues: tuple[str, ...] = ()


@dataclass(frozen=True)
class WatchedDay:
    """One row of group_watched_events(): a day and its watched items."""

    date: str
    items: list[WatchedEvent]


@dataclass
class UserPreferences:
    """Per-user display preferences, persisted as a JSON blob."""

    collapsed_leagues: list[str] = field(default_factory=list)
    hidden_leagues: list[str] = field(default_factory=list)
    league_order: list[str] = field(default_factory=list)
    favorite_teams: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "collapsedLeagues": list(self.collapsed_leagues),
            "hiddenLeagues": list(self.hidden_leagues),
            "leagueOrder": list(self.league_order),
            "favoriteTeams": list(self.favorite_teams),
        }

    @classmethod
    def from_dict(cls, data: dict | None) -> "UserPreferences":
        data = data or {}
        return cls(
            collapsed_leagues=list(data.get("collapsedLeagues") or []),
            hidden_leagues=list(data.get("hiddenLeagues") or []),
            league_order=list(data.get("leagueOrder") or []),
            favorite_teams=list(data.get("favoriteTeams") or []),
        )
