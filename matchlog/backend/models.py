"""Pydantic models for Matchlog backend responses.

The backend speaks camelCase JSON; models accept it via aliases and convert
to core dataclasses with to_core().
"""

from pydantic import BaseModel, ConfigDict, Field, field_validator

from matchlog.core import (
    TBD,
    Event,
    EventsResponse,
    LeagueGroup,
    NotifiedRecord,
    Stats,
    UserPreferences,
    WatchedEvent,
)


class _WireModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


def _score(value):
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


class StatsModel(_WireModel):
    week_count: int = Field(0, alias="weekCount")
    month_count: int = Field(0, alias="monthCount")
    total_count: int = Field(0, alias="totalCount")

    def to_core(self) -> Stats:
        return Stats(
            week_count=self.week_count,
            month_count=self.month_count,
            total_count=self.total_count,
        )


class EventModel(_WireModel):
    event_id: str = Field(alias="eventId")
    league_id: str = Field("", alias="leagueId")
    league_name: str = Field("", alias="leagueName")
    league_badge: str | None = Field(None, alias="leagueBadge")
    date: str | None = None
    time: str | None = None
    home_team: str | None = Field(None, alias="homeTeam")
    away_team: str | None = Field(None, alias="awayTeam")
    home_score: int | None = Field(None, alias="homeScore")
    away_score: int | None = Field(None, alias="awayScore")

    @field_validator("event_id", "league_id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return "" if value is None else str(value)

    @field_validator("home_score", "away_score", mode="before")
    @classmethod
    def _lenient_score(cls, value):
        return _score(value)

    def to_core(self) -> Event:
        return Event(
            event_id=self.event_id,
            league_id=self.league_id,
            league_name=self.league_name,
            league_badge=self.league_badge or None,
            date=self.date or "",
            time=self.time or "",
            home_team=self.home_team or TBD,
            away_team=self.away_team or TBD,
            home_score=self.home_score,
            away_score=self.away_score,
        )


class LeagueGroupModel(_WireModel):
    id: str
    name: str
    badge: str | None = None
    events: list[EventModel] = Field(default_factory=list)

    @field_validator("id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return str(value)

    def to_core(self) -> LeagueGroup:
        return LeagueGroup(
            id=self.id,
            name=self.name,
            badge=self.badge or None,
            events=[e.to_core() for e in self.events if e.date],
        )


class EventsResponseModel(_WireModel):
    """GET /events?date= envelope."""

    leagues: list[LeagueGroupModel] = Field(default_factory=list)
    watched_ids: list[str] = Field(default_factory=list, alias="watchedIds")
    notified_ids: list[str] = Field(default_factory=list, alias="notifiedIds")
    stats: StatsModel = Field(default_factory=StatsModel)

    @field_validator("leagues", mode="before")
    @classmethod
    def _leagues(cls, value):
        return value or []

    @field_validator("stats", mode="before")
    @classmethod
    def _stats(cls, value):
        return value or {}

    @field_validator("watched_ids", "notified_ids", mode="before")
    @classmethod
    def _ids(cls, value):
        return [str(v) for v in value or []]

    def to_core(self) -> EventsResponse:
        return EventsResponse(
            leagues=tuple(g.to_core() for g in self.leagues),
            watched_ids=frozenset(self.watched_ids),
            notified_ids=frozenset(self.notified_ids),
            stats=self.stats.to_core(),
        )


class WatchedEventModel(_WireModel):
    id: int | str
    event_id: str = Field(alias="eventId")
    league_id: str = Field("", alias="leagueId")
    league_name: str = Field("", alias="leagueName")
    date: str | None = None
    time: str | None = None
    home_team: str | None = Field(None, alias="homeTeam")
    away_team: str | None = Field(None, alias="awayTeam")
    home_score: int | None = Field(None, alias="homeScore")
    away_score: int | None = Field(None, alias="awayScore")
    created_at: str | None = Field(None, alias="createdAt")

    @field_validator("event_id", "league_id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return "" if value is None else str(value)

    @field_validator("home_score", "away_score", mode="before")
    @classmethod
    def _lenient_score(cls, value):
        return _score(value)

    def to_core(self) -> WatchedEvent:
        return WatchedEvent(
            id=self.id,
            event_id=self.event_id,
            league_id=self.league_id,
            league_name=self.league_name,
            date=self.date or "",
            time=self.time or None,
            home_team=self.home_team or TBD,
            away_team=self.away_team or TBD,
            home_score=self.home_score,
            away_score=self.away_score,
            created_at=self.created_at or "",
        )


class WatchedListModel(_WireModel):
    """GET /watched/list envelope."""

    events: list[WatchedEventModel] = Field(default_factory=list)

    @field_validator("events", mode="before")
    @classmethod
    def _events(cls, value):
        return value or []


class NotifiedModel(_WireModel):
    """GET /notified?eventId= response."""

    event_id: str = Field(alias="eventId")
    notification_id: str = Field(alias="notificationId")
    league_id: str = Field("", alias="leagueId")
    league_name: str = Field("", alias="leagueName")
    date: str | None = None
    time: str | None = None
    home_team: str | None = Field(None, alias="homeTeam")
    away_team: str | None = Field(None, alias="awayTeam")

    @field_validator("event_id", "notification_id", "league_id", mode="before")
    @classmethod
    def _stringify(cls, value):
        return "" if value is None else str(value)

    def to_core(self) -> NotifiedRecord:
        return NotifiedRecord(
            event_id=self.event_id,
            notification_id=self.notification_id,
            league_id=self.league_id,
            league_name=self.league_name,
            date=self.date or "",
            time=self.time or "",
            home_team=self.home_team or TBD,
            away_team=self.away_team or TBD,
        )


class PreferencesModel(_WireModel):
    collapsed_leagues: list[str] = Field(default_factory=list, alias="collapsedLeagues")
    hidden_leagues: list[str] = Field(default_factory=list, alias="hiddenLeagues")
    league_order: list[str] = Field(default_factory=list, alias="leagueOrder")
    favorite_teams: list[str] = Field(default_factory=list, alias="favoriteTeams")

    @field_validator(
        "collapsed_leagues", "hidden_leagues", "league_order", "favorite_teams", mode="before"
    )
    @classmethod
    def _lists(cls, value):
        return [str(v) for v in value or []]

    def to_core(self) -> UserPreferences:
        return UserPreferences(
            collapsed_leagues=list(self.collapsed_leagues),
            hidden_leagues=list(self.hidden_leagues),
            league_order=list(self.league_order),
            favorite_teams=list(self.favorite_teams),
        )


class PreferencesResponseModel(_WireModel):
    """GET/PUT /preferences envelope."""

    preferences: PreferencesModel = Field(default_factory=PreferencesModel)

    @field_validator("preferences", mode="before")
    @classmethod
    def _preferences(cls, value):
        return value or {}


class LoginResponseModel(_WireModel):
    """POST /mobile/login response."""

    token: str
