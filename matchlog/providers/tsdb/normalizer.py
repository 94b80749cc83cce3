"""TheSportsDB event normalization.

Maps raw eventsday.php records into Event, tolerating missing/null fields:
- Records without idEvent or dateEvent are dropped (can't be keyed or grouped)
- League id/name fall back to the configured league
- Null team names become "TBD", null kickoff time becomes ""
- Scores are parsed to int; null or non-numeric scores become None

ParseError never leaves this module; the offending record is dropped or the
field defaulted.
"""

import logging
from collections.abc import Iterable

from matchlog.core import TBD, Event, LeagueConfig, ParseError

logger = logging.getLogger(__name__)


def _require_text(data: dict, key: str) -> str:
    value = data.get(key)
    if value is None:
        raise ParseError(f"missing {key}")
    text = str(value).strip()
    if not text:
        raise ParseError(f"empty {key}")
    return text


def _parse_score(value) -> int | None:
    """Parse score value. Non-numeric scores are treated as unknown."""
    if value is None or value == "":
        return None
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        try:
            # "2.0" shows up for some feeds
            as_float = float(value)
        except (TypeError, ValueError):
            logger.debug("[TSDB] Non-numeric score %r treated as unknown", value)
            return None
        return int(as_float) if as_float.is_integer() else None


def _team_name(value) -> str:
    if value is None:
        return TBD
    name = str(value).strip()
    return name or TBD


def normalize_event(data: dict, league: LeagueConfig) -> Event | None:
    """Parse a TSDB event dict into an Event, or None if it can't be keyed."""
    try:
        event_id = _require_text(data, "idEvent")
        event_date = _require_text(data, "dateEvent")
    except ParseError as e:
        logger.debug("[TSDB] Dropping event %s: %s", data.get("idEvent", "unknown"), e)
        return None

    return Event(
        event_id=event_id,
        league_id=str(data.get("idLeague") or league.id),
        league_name=data.get("strLeague") or league.name,
        league_badge=data.get("strLeagueBadge") or league.badge,
        date=event_date,
        time=(data.get("strTime") or "").strip(),
        home_team=_team_name(data.get("strHomeTeam")),
        away_team=_team_name(data.get("strAwayTeam")),
        home_score=_parse_score(data.get("intHomeScore")),
        away_score=_parse_score(data.get("intAwayScore")),
    )


def normalize_events(records: Iterable[dict] | None, league: LeagueConfig) -> list[Event]:
    """Normalize a batch for one league/day. Returns at most len(records) events."""
    events = []
    for data in records or []:
        if not isinstance(data, dict):
            continue
        event = normalize_event(data, league)
        if event is not None:
            events.append(event)
    return events
