"""Static configuration data.

Default league set queried each day and storage key names.
"""

from matchlog.core.types import LeagueConfig

# =============================================================================
# DEFAULT LEAGUES
# Top five European leagues plus the Champions League, in display order.
# id is TheSportsDB idLeague; eventsday.php is queried by strLeague name.
# =============================================================================

DEFAULT_LEAGUES: tuple[LeagueConfig, ...] = (
    LeagueConfig(id="4328", name="English Premier League"),
    LeagueConfig(id="4335", name="Spanish La Liga"),
    LeagueConfig(id="4332", name="Italian Serie A"),
    LeagueConfig(id="4331", name="German Bundesliga"),
    LeagueConfig(id="4334", name="French Ligue 1"),
    LeagueConfig(id="4480", name="UEFA Champions League"),
)


# =============================================================================
# STORAGE KEYS
# Versioned so a format change can ship under a new key.
# =============================================================================

SESSION_TOKEN_KEY = "matchlog.sessionToken.v1"
WATCHED_EVENTS_KEY = "matchlog.watchedEvents.v1"
NOTIFIED_EVENTS_KEY = "matchlog.notifiedEvents.v1"
PREFERENCES_KEY = "matchlog.preferences.v1"

# Synthetic league group for favourite-team fixtures
FAVORITES_GROUP_ID = "favorites"
FAVORITES_GROUP_NAME = "Favorites"

# Android notification channel for match reminders
NOTIFICATION_CHANNEL_ID = "match-notifications"
NOTIFICATION_CHANNEL_NAME = "Match Notifications"
