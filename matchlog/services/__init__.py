"""Service layer: session, watched history, toggles, insights, preferences, notifications."""

from matchlog.services.auth import TokenStore
from matchlog.services.insights import (
    compute_insights,
    compute_stats,
    group_watched_events,
    local_date_key,
    update_stats_for_toggle,
)
from matchlog.services.local import LocalMatchLog
from matchlog.services.preferences import (
    PreferencesService,
    apply_league_order,
    build_favorites_group,
    count_events,
    move_league,
    visible_leagues,
)
from matchlog.services.session import MatchlogSession, create_session
from matchlog.services.toggles import FlagStateMachine, PendingToggle
from matchlog.services.watched import WatchedHistory

__all__ = [
    "FlagStateMachine",
    "LocalMatchLog",
    "MatchlogSession",
    "PendingToggle",
    "PreferencesService",
    "TokenStore",
    "WatchedHistory",
    "apply_league_order",
    "build_favorites_group",
    "compute_insights",
    "compute_stats",
    "count_events",
    "create_session",
    "group_watched_events",
    "local_date_key",
    "move_league",
    "update_stats_for_toggle",
    "visible_leagues",
]
