"""User display preferences.

Collapsed/hidden leagues, league order and favourite teams. The backend is
the source of truth when signed in; device storage keeps the last known copy
so the fixtures screen renders offline. In local-only mode the device copy is
the only copy.
"""

import logging
import re
from collections.abc import Iterable, Sequence

from unidecode import unidecode

from matchlog.backend import BackendClient
from matchlog.core import KeyValueStore, LeagueGroup, NetworkError, UserPreferences
from matchlog.database.kv import read_json, write_json
from matchlog.utilities.constants import (
    FAVORITES_GROUP_ID,
    FAVORITES_GROUP_NAME,
    PREFERENCES_KEY,
)

logger = logging.getLogger(__name__)

DIRECTION_UP = "up"
DIRECTION_DOWN = "down"

# Python field -> backend JSON key
_WIRE_NAMES = {
    "collapsed_leagues": "collapsedLeagues",
    "hidden_leagues": "hiddenLeagues",
    "league_order": "leagueOrder",
    "favorite_teams": "favoriteTeams",
}


# =============================================================================
# PURE HELPERS
# =============================================================================


def normalize_team_name(value: str) -> str:
    """Accent-, case- and punctuation-insensitive team key."""
    normalized = unidecode(value).lower().strip()
    normalized = re.sub(r"[^\w\s]", " ", normalized)
    return " ".join(normalized.split())


def _toggle_member(items: Sequence[str], value: str) -> list[str]:
    if value in items:
        return [item for item in items if item != value]
    return [*items, value]


def apply_league_order(leagues: Iterable[LeagueGroup], order: Sequence[str]) -> list[LeagueGroup]:
    """Sort league groups by a saved id order.

    Leagues missing from the order keep their relative position after the
    ordered ones.
    """
    rank = {league_id: i for i, league_id in enumerate(order)}
    return sorted(leagues, key=lambda group: rank.get(group.id, len(rank)))


def move_league(order: Sequence[str], league_id: str, direction: str) -> list[str]:
    """Swap a league with its neighbour. Moving past either end is a no-op."""
    if direction not in (DIRECTION_UP, DIRECTION_DOWN):
        raise ValueError(f"direction must be 'up' or 'down', got {direction!r}")

    new_order = list(order)
    if league_id not in new_order:
        return new_order

    idx = new_order.index(league_id)
    other = idx - 1 if direction == DIRECTION_UP else idx + 1
    if 0 <= other < len(new_order):
        new_order[idx], new_order[other] = new_order[other], new_order[idx]
    return new_order


def visible_leagues(leagues: Iterable[LeagueGroup], hidden: Iterable[str]) -> list[LeagueGroup]:
    hidden_ids = set(hidden)
    return [group for group in leagues if group.id not in hidden_ids]


def build_favorites_group(
    leagues: Sequence[LeagueGroup], favorite_teams: Iterable[str]
) -> list[LeagueGroup]:
    """Pull favourite-team fixtures into a leading "Favorites" group.

    Events are moved, not copied: each fixture appears in exactly one group,
    so count_events() over the result equals the count before regrouping.
    Input groups are left untouched.
    """
    favorites = {normalize_team_name(team) for team in favorite_teams if team}
    if not favorites:
        return list(leagues)

    picked = []
    regrouped = []
    for group in leagues:
        kept = []
        for event in group.events:
            if (
                normalize_team_name(event.home_team) in favorites
                or normalize_team_name(event.away_team) in favorites
            ):
                picked.append(event)
            else:
                kept.append(event)
        regrouped.append(LeagueGroup(id=group.id, name=group.name, badge=group.badge, events=kept))

    if not picked:
        return list(leagues)

    favorites_group = LeagueGroup(id=FAVORITES_GROUP_ID, name=FAVORITES_GROUP_NAME, events=picked)
    return [favorites_group, *regrouped]


def count_events(leagues: Iterable[LeagueGroup]) -> int:
    return sum(len(group.events) for group in leagues)


# =============================================================================
# SERVICE
# =============================================================================


class PreferencesService:
    """Read and update preferences, remote-first with a device copy.

    client=None runs in local-only mode.
    """

    def __init__(self, store: KeyValueStore, client: BackendClient | None = None):
        self._store = store
        self._client = client

    def cached(self) -> UserPreferences:
        data = read_json(self._store, PREFERENCES_KEY, default={})
        return UserPreferences.from_dict(data if isinstance(data, dict) else {})

    def _save(self, preferences: UserPreferences) -> None:
        write_json(self._store, PREFERENCES_KEY, preferences.to_dict())

    def fetch(self) -> UserPreferences:
        """Remote preferences, or the device copy when the backend is unreachable.

        AuthenticationError still propagates.
        """
        if self._client is None:
            return self.cached()
        try:
            preferences = self._client.fetch_preferences()
        except NetworkError as e:
            logger.error("[PREFS] Failed to fetch preferences, using cached copy: %s", e)
            return self.cached()
        self._save(preferences)
        return preferences

    def update(self, **changes: list[str]) -> UserPreferences:
        """Apply a partial update, e.g. update(hidden_leagues=["4328"]).

        Raises:
            ValueError: unknown preference field
            NetworkError / AuthenticationError: remote update failed
        """
        unknown = set(changes) - set(_WIRE_NAMES)
        if unknown:
            raise ValueError(f"Unknown preference fields: {sorted(unknown)}")

        if self._client is None:
            current = self.cached()
            for name, value in changes.items():
                setattr(current, name, list(value))
            self._save(current)
            return current

        wire = {_WIRE_NAMES[name]: list(value) for name, value in changes.items()}
        try:
            preferences = self._client.update_preferences(wire)
        except NetworkError as e:
            logger.error("[PREFS] Failed to update preferences: %s", e)
            raise
        self._save(preferences)
        return preferences

    def toggle_league_collapsed(self, league_id: str) -> UserPreferences:
        current = self.cached().collapsed_leagues
        return self.update(collapsed_leagues=_toggle_member(current, league_id))

    def toggle_league_hidden(self, league_id: str) -> UserPreferences:
        current = self.cached().hidden_leagues
        return self.update(hidden_leagues=_toggle_member(current, league_id))

    def update_league_order(self, order: Sequence[str]) -> UserPreferences:
        return self.update(league_order=list(order))

    def toggle_favorite_team(self, team_name: str) -> UserPreferences:
        current = self.cached().favorite_teams
        return self.update(favorite_teams=_toggle_member(current, team_name))

