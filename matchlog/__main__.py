"""Command-line entry point.

Usage:
    python -m matchlog fixtures [--date YYYY-MM-DD] [--partial]
    python -m matchlog watched
    python -m matchlog unwatch EVENT_ID
    python -m matchlog stats

Runs in local-only mode (TheSportsDB + local storage) unless --backend is
given, in which case the stored session token is used against the Matchlog
API.
"""

import argparse
import logging
import sys

from matchlog.backend import BackendClient
from matchlog.config import VERSION, set_timezone
from matchlog.core import AuthenticationError, Event, LeagueGroup, MatchlogError
from matchlog.database import SQLiteKeyValueStore
from matchlog.services import (
    MatchlogSession,
    PreferencesService,
    WatchedHistory,
    apply_league_order,
    build_favorites_group,
    compute_insights,
    count_events,
    create_session,
    visible_leagues,
)
from matchlog.utilities.logging import setup_logging
from matchlog.utilities.tz import format_display_date, format_event_time, is_match_live

logger = logging.getLogger(__name__)


def _score_line(event: Event) -> str:
    if event.home_score is None or event.away_score is None:
        return ""
    return f" ({event.home_score}-{event.away_score})"


def _print_league(session: MatchlogSession, group: LeagueGroup, collapsed: bool) -> None:
    print(f"\n{group.name} [{len(group.events)}]")
    if collapsed:
        return
    for event in group.events:
        marks = ""
        if session.watched.is_set(event.event_id):
            marks += " ✓"
        if session.notified.is_set(event.event_id):
            marks += " 🔔"
        if is_match_live(event.date, event.time):
            marks += " LIVE"
        kickoff = format_event_time(event.date, event.time)
        print(f"  {kickoff:>5}  {event.home_team} vs {event.away_team}{_score_line(event)}{marks}")


def cmd_fixtures(session: MatchlogSession, prefs: PreferencesService, args) -> int:
    if args.date:
        session.select_date(args.date)
    else:
        session.load()

    preferences = prefs.fetch()
    leagues = apply_league_order(session.leagues, preferences.league_order)
    leagues = visible_leagues(leagues, preferences.hidden_leagues)
    leagues = build_favorites_group(leagues, preferences.favorite_teams)

    print(f"{format_display_date(session.active_date)}: {count_events(leagues)} matches")
    for group in leagues:
        _print_league(session, group, group.id in preferences.collapsed_leagues)

    if session.failed_leagues:
        print(f"\nUnavailable leagues: {', '.join(session.failed_leagues)}")
    return 0


def cmd_watched(session: MatchlogSession, prefs: PreferencesService, args) -> int:
    history = WatchedHistory(session)
    history.load()
    days = history.days()
    if not days:
        print("No watched matches yet.")
        return 0
    for day in days:
        print(f"\n{format_display_date(day.date)}")
        for item in day.items:
            kickoff = format_event_time(item.date, item.time)
            print(f"  {kickoff:>5}  {item.home_team} vs {item.away_team}  ({item.league_name})")
    return 0


def cmd_unwatch(session: MatchlogSession, prefs: PreferencesService, args) -> int:
    history = WatchedHistory(session)
    item = next((i for i in history.load() if i.event_id == args.event_id), None)
    if item is None:
        print(f"Match {args.event_id} is not in your watched list.", file=sys.stderr)
        return 1
    history.remove(item)
    print(f"Removed {item.home_team} vs {item.away_team} ({format_display_date(item.date)})")
    return 0


def cmd_stats(session: MatchlogSession, prefs: PreferencesService, args) -> int:
    insights = compute_insights(WatchedHistory(session).load())
    print(f"This week:    {insights.week_count}")
    print(f"This month:   {insights.month_count}")
    print(f"All time:     {insights.total_count}")
    print(f"Top team:     {insights.top_team}")
    print(f"Top league:   {insights.top_league}")
    print(f"Busiest day:  {insights.top_weekday}")
    return 0


COMMANDS = {
    "fixtures": cmd_fixtures,
    "watched": cmd_watched,
    "unwatch": cmd_unwatch,
    "stats": cmd_stats,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="matchlog", description="Track the football matches you watch"
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {VERSION}")
    parser.add_argument(
        "--backend", action="store_true", help="Use the Matchlog backend instead of local storage"
    )
    parser.add_argument("--db", help="Local storage database path")
    parser.add_argument("--timezone", help="IANA timezone for display (e.g. Europe/London)")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING or ERROR")

    subparsers = parser.add_subparsers(dest="command", required=True)

    fixtures = subparsers.add_parser("fixtures", help="Show one day's fixtures")
    fixtures.add_argument("--date", help="Day to show (YYYY-MM-DD, default today)")
    fixtures.add_argument(
        "--partial",
        action="store_true",
        help="Show the leagues that loaded even if some failed",
    )

    subparsers.add_parser("watched", help="List watched matches by day")
    unwatch = subparsers.add_parser("unwatch", help="Remove a match from the watched list")
    unwatch.add_argument("event_id", help="TheSportsDB event id")
    subparsers.add_parser("stats", help="Show watching insights")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(log_level=args.log_level)

    if args.timezone:
        set_timezone(args.timezone)

    store = SQLiteKeyValueStore(args.db)
    session = create_session(
        use_backend=args.backend,
        store=store,
        allow_partial=getattr(args, "partial", False),
    )
    client = session.backend if isinstance(session.backend, BackendClient) else None
    prefs = PreferencesService(store, client=client)

    if not session.is_signed_in:
        print("Not signed in. Sign in from the app first.", file=sys.stderr)
        return 2

    try:
        return COMMANDS[args.command](session, prefs, args)
    except AuthenticationError:
        print("Session expired. Sign in again.", file=sys.stderr)
        return 2
    except MatchlogError as e:
        logger.debug("[CLI] %s failed", args.command, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        session.backend.close()


if __name__ == "__main__":
    sys.exit(main())
