"""Tests for display preferences: pure helpers and the preferences service."""

import pytest

from matchlog.core import AuthenticationError, LeagueGroup, NetworkError, UserPreferences
from matchlog.services.preferences import (
    PreferencesService,
    apply_league_order,
    build_favorites_group,
    count_events,
    move_league,
    normalize_team_name,
    visible_leagues,
)
from matchlog.utilities.constants import PREFERENCES_KEY


def group(league_id, *events, name=None):
    return LeagueGroup(id=league_id, name=name or f"League {league_id}", events=list(events))


# =============================================================================
# HELPERS
# =============================================================================


class TestNormalizeTeamName:
    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("Atlético Madrid", "atletico madrid"),
            ("  Brighton & Hove Albion ", "brighton hove albion"),
            ("Bayern München", "bayern munchen"),
            ("PSG", "psg"),
        ],
    )
    def test_normalization(self, raw, expected):
        assert normalize_team_name(raw) == expected


class TestLeagueOrder:
    def test_apply_order_unknown_last(self):
        leagues = [group("a"), group("b"), group("c"), group("d")]
        ordered = apply_league_order(leagues, ["c", "a"])
        assert [g.id for g in ordered] == ["c", "a", "b", "d"]

    def test_empty_order_keeps_input(self):
        leagues = [group("b"), group("a")]
        assert [g.id for g in apply_league_order(leagues, [])] == ["b", "a"]

    def test_move_up_and_down(self):
        assert move_league(["a", "b", "c"], "b", "up") == ["b", "a", "c"]
        assert move_league(["a", "b", "c"], "b", "down") == ["a", "c", "b"]

    def test_move_past_ends_is_noop(self):
        assert move_league(["a", "b"], "a", "up") == ["a", "b"]
        assert move_league(["a", "b"], "b", "down") == ["a", "b"]

    def test_move_unknown_league(self):
        assert move_league(["a", "b"], "z", "up") == ["a", "b"]

    def test_bad_direction(self):
        with pytest.raises(ValueError):
            move_league(["a"], "a", "left")

    def test_move_does_not_mutate_input(self):
        order = ["a", "b"]
        move_league(order, "b", "up")
        assert order == ["a", "b"]


class TestVisibleLeagues:
    def test_hidden_removed(self):
        leagues = [group("a"), group("b")]
        assert [g.id for g in visible_leagues(leagues, ["b"])] == ["a"]


class TestFavoritesGroup:
    def test_moves_matching_events(self, make_event):
        arsenal = make_event("1", home="Arsenal", away="Chelsea")
        spurs = make_event("2", home="Spurs", away="Fulham")
        atleti = make_event("3", home="Girona", away="Atlético Madrid", league_id="4335")
        leagues = [group("4328", arsenal, spurs), group("4335", atleti)]

        regrouped = build_favorites_group(leagues, ["arsenal", "Atletico Madrid"])

        assert regrouped[0].id == "favorites"
        assert regrouped[0].name == "Favorites"
        assert [e.event_id for e in regrouped[0].events] == ["1", "3"]
        assert [e.event_id for e in regrouped[1].events] == ["2"]
        assert regrouped[2].events == []
        assert count_events(regrouped) == count_events(leagues) == 3

    def test_input_groups_untouched(self, make_event):
        leagues = [group("4328", make_event("1"))]
        build_favorites_group(leagues, ["Arsenal"])
        assert [e.event_id for e in leagues[0].events] == ["1"]

    def test_no_favorites(self, make_event):
        leagues = [group("4328", make_event("1"))]
        assert build_favorites_group(leagues, []) == leagues

    def test_no_matches(self, make_event):
        leagues = [group("4328", make_event("1"))]
        assert build_favorites_group(leagues, ["Leeds"]) == leagues


# =============================================================================
# SERVICE
# =============================================================================


class FakePreferencesClient:
    def __init__(self, remote=None, error=None):
        self.remote = remote or UserPreferences()
        self.error = error
        self.updates: list[dict] = []

    def fetch_preferences(self):
        if self.error is not None:
            raise self.error
        return self.remote

    def update_preferences(self, changes):
        self.updates.append(changes)
        if self.error is not None:
            raise self.error
        merged = self.remote.to_dict() | changes
        self.remote = UserPreferences.from_dict(merged)
        return self.remote


class TestLocalPreferences:
    def test_defaults_empty(self, memory_store):
        prefs = PreferencesService(memory_store).fetch()
        assert prefs == UserPreferences()

    def test_update_merges(self, memory_store):
        service = PreferencesService(memory_store)
        service.update(hidden_leagues=["4335"])
        prefs = service.update(league_order=["4335", "4328"])
        assert prefs.hidden_leagues == ["4335"]
        assert prefs.league_order == ["4335", "4328"]
        assert service.cached() == prefs

    def test_unknown_field_rejected(self, memory_store):
        with pytest.raises(ValueError):
            PreferencesService(memory_store).update(theme=["dark"])

    def test_toggles(self, memory_store):
        service = PreferencesService(memory_store)
        service.toggle_league_collapsed("4328")
        service.toggle_league_hidden("4332")
        service.toggle_favorite_team("Arsenal")
        prefs = service.toggle_favorite_team("Leeds")
        assert prefs.collapsed_leagues == ["4328"]
        assert prefs.hidden_leagues == ["4332"]
        assert prefs.favorite_teams == ["Arsenal", "Leeds"]

        prefs = service.toggle_league_collapsed("4328")
        assert prefs.collapsed_leagues == []

    def test_corrupt_cache_reads_defaults(self, memory_store):
        memory_store.set(PREFERENCES_KEY, "not json")
        assert PreferencesService(memory_store).cached() == UserPreferences()


class TestRemotePreferences:
    def test_fetch_refreshes_cache(self, memory_store):
        client = FakePreferencesClient(UserPreferences(favorite_teams=["Arsenal"]))
        service = PreferencesService(memory_store, client=client)
        assert service.fetch().favorite_teams == ["Arsenal"]
        assert service.cached().favorite_teams == ["Arsenal"]

    def test_network_failure_falls_back_to_cache(self, memory_store):
        PreferencesService(memory_store).update(hidden_leagues=["4335"])
        client = FakePreferencesClient(error=NetworkError("offline"))
        prefs = PreferencesService(memory_store, client=client).fetch()
        assert prefs.hidden_leagues == ["4335"]

    def test_auth_failure_propagates(self, memory_store):
        client = FakePreferencesClient(error=AuthenticationError())
        with pytest.raises(AuthenticationError):
            PreferencesService(memory_store, client=client).fetch()

    def test_update_sends_wire_names(self, memory_store):
        client = FakePreferencesClient()
        service = PreferencesService(memory_store, client=client)
        prefs = service.update_league_order(["4335", "4328"])

        assert client.updates == [{"leagueOrder": ["4335", "4328"]}]
        assert prefs.league_order == ["4335", "4328"]
        assert service.cached().league_order == ["4335", "4328"]

    def test_update_failure_leaves_cache(self, memory_store):
        client = FakePreferencesClient(error=NetworkError("offline"))
        service = PreferencesService(memory_store, client=client)
        with pytest.raises(NetworkError):
            service.toggle_league_hidden("4328")
        assert service.cached().hidden_leagues == []
