"""Watched-event statistics and insights.

Pure functions over a snapshot of WatchedEvents: no I/O, deterministic for a
given snapshot and "now". Week/month bucketing everywhere goes through
local_date_key() so stats, insights and incremental updates never disagree on
which day an event belongs to.
"""

from collections import Counter
from collections.abc import Iterable
from datetime import datetime

from matchlog.core.types import (
    PLACEHOLDER,
    TBD,
    Event,
    Insights,
    Stats,
    WatchedDay,
    WatchedEvent,
)
from matchlog.utilities.tz import (
    DateOnly,
    FullTimestamp,
    UtcWallClock,
    format_busiest_day,
    format_date,
    now_user,
    parse_date_only,
    parse_moment,
    parse_timestamp,
    start_of_month,
    start_of_week,
)


def _created_day(created_at: str | None) -> str | None:
    instant = parse_timestamp(created_at)
    if instant is not None:
        return format_date(instant)
    day = parse_date_only(created_at)
    return day.isoformat() if day else None


def local_date_key(date: str | None, time: str | None, created_at: str | None = None) -> str | None:
    """Effective local YYYY-MM-DD of a watched event.

    Fallback chain:
    1. date is a full timestamp -> its local date
    2. date + time as UTC wall clock -> local date
    3. the raw date's leading YYYY-MM-DD
    4. created_at
    Returns None when none of these yields a day.
    """
    if date:
        moment = parse_moment(date, time)
        if isinstance(moment, FullTimestamp | UtcWallClock):
            return format_date(moment.instant)
        if isinstance(moment, DateOnly):
            return moment.day.isoformat()
        return date[:10]
    return _created_day(created_at)


def _window_starts(now: datetime | None) -> tuple[str, str]:
    current = now or now_user()
    return format_date(start_of_week(current)), format_date(start_of_month(current))


def _event_key(event: Event | WatchedEvent) -> str | None:
    return local_date_key(event.date, event.time, getattr(event, "created_at", None))


def compute_stats(events: Iterable[WatchedEvent], now: datetime | None = None) -> Stats:
    """Week/month/total watched counts relative to now (user timezone)."""
    week_start, month_start = _window_starts(now)
    week_count = month_count = total = 0

    for event in events:
        total += 1
        key = _event_key(event)
        if key is None:
            continue
        if key >= week_start:
            week_count += 1
        if key >= month_start:
            month_count += 1

    return Stats(week_count=week_count, month_count=month_count, total_count=total)


def _top(counts: Counter) -> str:
    # most_common keeps insertion order among equal counts: first seen wins
    if not counts:
        return PLACEHOLDER
    return counts.most_common(1)[0][0]


def compute_insights(events: Iterable[WatchedEvent], now: datetime | None = None) -> Insights:
    """Top team, top league and busiest day plus the stats counts.

    Home and away teams both count toward the team table. Empty input yields
    placeholders and zeros.
    """
    events = list(events)
    if not events:
        return Insights()

    team_counts: Counter = Counter()
    league_counts: Counter = Counter()
    day_counts: Counter = Counter()

    for event in events:
        for team in (event.home_team, event.away_team):
            if team and team != TBD:
                team_counts[team] += 1
        if event.league_name:
            league_counts[event.league_name] += 1
        key = _event_key(event)
        if key:
            day_counts[key] += 1

    stats = compute_stats(events, now)
    busiest = _top(day_counts)

    return Insights(
        top_team=_top(team_counts),
        top_league=_top(league_counts),
        top_weekday=busiest if busiest == PLACEHOLDER else format_busiest_day(busiest),
        week_count=stats.week_count,
        month_count=stats.month_count,
        total_count=stats.total_count,
    )


def group_watched_events(events: Iterable[WatchedEvent]) -> list[WatchedDay]:
    """Group by date, most recent day first, each day's items by kickoff time.

    Events without a date fall under the local day they were marked watched.
    """
    grouped: dict[str, list[WatchedEvent]] = {}
    for event in events:
        key = event.date or _created_day(event.created_at) or ""
        grouped.setdefault(key, []).append(event)

    days = [
        WatchedDay(date=key, items=sorted(items, key=lambda e: e.time or ""))
        for key, items in grouped.items()
    ]
    days.sort(key=lambda day: day.date, reverse=True)
    return days


def update_stats_for_toggle(
    stats: Stats,
    event: Event | WatchedEvent,
    was_watched: bool,
    now: datetime | None = None,
) -> Stats:
    """Apply one watched toggle to aggregate stats without a full recompute.

    was_watched is the state before the toggle: True removes the event from
    the counts, False adds it.
    """
    delta = -1 if was_watched else 1
    week_start, month_start = _window_starts(now)
    key = _event_key(event)

    in_week = key is not None and key >= week_start
    in_month = key is not None and key >= month_start

    return Stats(
        week_count=stats.week_count + (delta if in_week else 0),
        month_count=stats.month_count + (delta if in_month else 0),
        total_count=stats.total_count + delta,
    )
