"""Tests for the Matchlog backend HTTP client."""

import json

import httpx
import pytest

from matchlog.backend import BackendClient
from matchlog.core import AuthenticationError, NetworkError, Stats
from matchlog.services.auth import TokenStore
from matchlog.services.session import MatchlogSession

BASE_URL = "https://api.matchlog.test"


class Recorder:
    """MockTransport handler returning one canned response and keeping requests."""

    def __init__(self, response=None):
        self.response = response if response is not None else httpx.Response(200, json={})
        self.requests: list[httpx.Request] = []

    def __call__(self, request):
        self.requests.append(request)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def last_json(self):
        return json.loads(self.last.content)


def make_client(response=None, token="session-token"):
    recorder = Recorder(response)
    client = BackendClient(
        token_provider=lambda: token,
        base_url=BASE_URL,
        http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
    )
    return client, recorder


EVENTS_PAYLOAD = {
    "leagues": [
        {
            "id": 4328,
            "name": "English Premier League",
            "badge": None,
            "events": [
                {
                    "eventId": 2052711,
                    "leagueId": "4328",
                    "leagueName": "English Premier League",
                    "date": "2024-01-13",
                    "time": "15:00:00",
                    "homeTeam": "Arsenal",
                    "awayTeam": None,
                    "homeScore": "2",
                    "awayScore": None,
                },
                {"eventId": "99", "date": None},
            ],
        }
    ],
    "watchedIds": ["2052711", 7],
    "notifiedIds": None,
    "stats": {"weekCount": 1, "monthCount": 3, "totalCount": 12},
}


# =============================================================================
# REQUESTS AND ERROR MAPPING
# =============================================================================


class TestRequests:
    def test_bearer_token_sent(self):
        client, recorder = make_client(httpx.Response(200, json={}))
        client.fetch_events_by_date("2024-01-13")

        assert recorder.last.headers["Authorization"] == "Bearer session-token"
        assert recorder.last.url.path == "/events"
        assert recorder.last.url.params["date"] == "2024-01-13"

    def test_token_read_on_every_request(self):
        tokens = iter(["first", "second"])
        recorder = Recorder()
        client = BackendClient(
            token_provider=lambda: next(tokens),
            base_url=BASE_URL,
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )
        client.fetch_events_by_date("2024-01-13")
        client.fetch_events_by_date("2024-01-13")
        assert [r.headers["Authorization"] for r in recorder.requests] == [
            "Bearer first",
            "Bearer second",
        ]

    def test_missing_token_fails_without_request(self):
        client, recorder = make_client(token=None)
        with pytest.raises(AuthenticationError):
            client.fetch_events_by_date("2024-01-13")
        assert recorder.requests == []

    def test_401_is_authentication_error(self):
        client, _ = make_client(httpx.Response(401, text="expired"))
        with pytest.raises(AuthenticationError):
            client.remove_watched_event("1")

    def test_server_error_uses_body_text(self):
        client, _ = make_client(httpx.Response(500, text="Database unavailable"))
        with pytest.raises(NetworkError) as exc_info:
            client.fetch_watched_events()
        assert str(exc_info.value) == "Database unavailable"
        assert exc_info.value.status_code == 500

    def test_server_error_without_body(self):
        client, _ = make_client(httpx.Response(502))
        with pytest.raises(NetworkError, match="Request failed: 502"):
            client.fetch_watched_events()

    def test_transport_error_is_network_error(self):
        client, _ = make_client(httpx.ConnectError("connection refused"))
        with pytest.raises(NetworkError):
            client.fetch_events_by_date("2024-01-13")

    def test_invalid_json_is_network_error(self):
        client, _ = make_client(httpx.Response(200, text="<html>oops</html>"))
        with pytest.raises(NetworkError):
            client.fetch_events_by_date("2024-01-13")

    def test_unexpected_shape_is_network_error(self):
        client, _ = make_client(httpx.Response(200, json={"leagues": "soon"}))
        with pytest.raises(NetworkError):
            client.fetch_events_by_date("2024-01-13")


# =============================================================================
# EVENTS
# =============================================================================


class TestFetchEvents:
    def test_envelope_converted(self):
        client, _ = make_client(httpx.Response(200, json=EVENTS_PAYLOAD))
        response = client.fetch_events_by_date("2024-01-13")

        league = response.leagues[0]
        assert league.id == "4328"
        # Undated events are dropped
        assert [e.event_id for e in league.events] == ["2052711"]

        event = league.events[0]
        assert event.away_team == "TBD"
        assert event.home_score == 2
        assert event.away_score is None

        assert response.watched_ids == frozenset({"2052711", "7"})
        assert response.notified_ids == frozenset()
        assert response.stats == Stats(week_count=1, month_count=3, total_count=12)

    def test_empty_envelope(self):
        client, _ = make_client(httpx.Response(200, json={"leagues": None, "stats": None}))
        response = client.fetch_events_by_date("2024-01-13")
        assert response.leagues == ()
        assert response.stats == Stats()

    def test_watched_list(self):
        payload = {
            "events": [
                {
                    "id": 41,
                    "eventId": "1",
                    "leagueName": "Spanish La Liga",
                    "date": "2024-01-06",
                    "time": None,
                    "homeTeam": "Girona",
                    "awayTeam": "Atletico Madrid",
                    "createdAt": "2024-01-06T22:10:00Z",
                }
            ]
        }
        client, recorder = make_client(httpx.Response(200, json=payload))
        (watched,) = client.fetch_watched_events()

        assert recorder.last.url.path == "/watched/list"
        assert watched.id == 41
        assert watched.time is None
        assert watched.created_at == "2024-01-06T22:10:00Z"


# =============================================================================
# MUTATIONS
# =============================================================================


class TestMutations:
    def test_add_watched_body(self, make_event):
        client, recorder = make_client(httpx.Response(201))
        client.add_watched_event(make_event("5", home="Leeds", away="Everton"))

        assert recorder.last.method == "POST"
        assert recorder.last.url.path == "/watched"
        body = recorder.last_json()
        assert body["eventId"] == "5"
        assert body["homeTeam"] == "Leeds"
        assert body["awayTeam"] == "Everton"
        assert body["leagueId"] == "4328"

    def test_remove_watched_body(self):
        client, recorder = make_client(httpx.Response(204))
        client.remove_watched_event("5")
        assert recorder.last.method == "DELETE"
        assert recorder.last_json() == {"eventId": "5"}

    def test_add_notified_carries_notification_id(self, make_event):
        client, recorder = make_client(httpx.Response(200, json={"ok": True}))
        client.add_notified_event(make_event("5"), "notif-9")
        body = recorder.last_json()
        assert recorder.last.url.path == "/notified"
        assert body["eventId"] == "5"
        assert body["notificationId"] == "notif-9"

    def test_remove_notified(self):
        client, recorder = make_client(httpx.Response(204))
        client.remove_notified_event("5")
        assert recorder.last.method == "DELETE"
        assert recorder.last_json() == {"eventId": "5"}


class TestGetNotified:
    def test_found(self):
        payload = {"notified": {"eventId": "5", "notificationId": "notif-9", "homeTeam": "Leeds"}}
        client, recorder = make_client(httpx.Response(200, json=payload))
        record = client.get_notified_event("5")

        assert recorder.last.url.params["eventId"] == "5"
        assert record.notification_id == "notif-9"
        assert record.home_team == "Leeds"
        assert record.away_team == "TBD"

    def test_unwrapped_payload(self):
        client, _ = make_client(
            httpx.Response(200, json={"eventId": "5", "notificationId": "notif-9"})
        )
        assert client.get_notified_event("5").event_id == "5"

    @pytest.mark.parametrize(
        "response",
        [
            httpx.Response(404, text="Not found"),
            httpx.Response(200, json={"notified": None}),
            httpx.Response(200, json={"eventId": "5"}),
            httpx.Response(204),
        ],
    )
    def test_absent(self, response):
        client, _ = make_client(response)
        assert client.get_notified_event("5") is None

    def test_other_errors_propagate(self):
        client, _ = make_client(httpx.Response(500))
        with pytest.raises(NetworkError):
            client.get_notified_event("5")

    @pytest.mark.parametrize("body", [["notif-9"], {"notified": "notif-9"}, "notif-9"])
    def test_malformed_body_is_network_error(self, body):
        client, _ = make_client(httpx.Response(200, json=body))
        with pytest.raises(NetworkError, match="Malformed response from /notified"):
            client.get_notified_event("5")


# =============================================================================
# AUTH AND PREFERENCES
# =============================================================================


class TestLogin:
    def test_login_without_session_token(self):
        client, recorder = make_client(httpx.Response(200, json={"token": "abc"}), token=None)
        assert client.login("google-id-token") == "abc"
        assert "Authorization" not in recorder.last.headers
        assert recorder.last_json() == {"idToken": "google-id-token"}

    def test_login_missing_token_is_network_error(self):
        client, _ = make_client(httpx.Response(200, json={}), token=None)
        with pytest.raises(NetworkError):
            client.login("google-id-token")

    def test_session_sign_in_stores_token(self, memory_store):
        token_store = TokenStore(memory_store)
        recorder = Recorder(httpx.Response(200, json={"token": "abc"}))
        client = BackendClient(
            token_provider=token_store.get,
            base_url=BASE_URL,
            http_client=httpx.Client(transport=httpx.MockTransport(recorder)),
        )
        session = MatchlogSession(client, token_store=token_store)

        assert not session.is_signed_in
        session.sign_in("google-id-token")
        assert session.is_signed_in
        assert token_store.get() == "abc"


class TestPreferences:
    def test_fetch(self):
        payload = {"preferences": {"hiddenLeagues": ["4335"], "favoriteTeams": None}}
        client, recorder = make_client(httpx.Response(200, json=payload))
        prefs = client.fetch_preferences()

        assert recorder.last.url.path == "/preferences"
        assert prefs.hidden_leagues == ["4335"]
        assert prefs.favorite_teams == []

    def test_update_sends_partial_body(self):
        payload = {"preferences": {"leagueOrder": ["4335", "4328"]}}
        client, recorder = make_client(httpx.Response(200, json=payload))
        prefs = client.update_preferences({"leagueOrder": ["4335", "4328"]})

        assert recorder.last.method == "PUT"
        assert recorder.last_json() == {"leagueOrder": ["4335", "4328"]}
        assert prefs.league_order == ["4335", "4328"]
