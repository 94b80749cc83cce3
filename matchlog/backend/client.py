"""Matchlog backend HTTP client.

Backend-synced mode: the backend proxies TheSportsDB and owns the user's
watched/notified records. One GET /events?date= round trip returns the day's
leagues together with the user's watchedIds/notifiedIds and aggregate stats.

Error mapping (no caller ever string-matches messages):
- No session token, or HTTP 401 -> AuthenticationError
- Transport failure, other non-2xx, malformed body -> NetworkError
"""

import logging
import threading
from collections.abc import Callable

import httpx
from pydantic import BaseModel, ValidationError

from matchlog.backend.models import (
    EventsResponseModel,
    LoginResponseModel,
    NotifiedModel,
    PreferencesResponseModel,
    WatchedListModel,
)
from matchlog.config import Config
from matchlog.core import (
    AuthenticationError,
    Event,
    EventsResponse,
    MatchlogBackend,
    NetworkError,
    NotifiedRecord,
    UserPreferences,
    WatchedEvent,
)

logger = logging.getLogger(__name__)

TokenProvider = Callable[[], str | None]


class BackendClient(MatchlogBackend):
    """HTTP client for the Matchlog backend API.

    The session token is read through token_provider on every authenticated
    request, so signing in or out takes effect immediately.
    """

    def __init__(
        self,
        token_provider: TokenProvider,
        base_url: str | None = None,
        timeout: float | None = None,
        http_client: httpx.Client | None = None,
    ):
        self._token_provider = token_provider
        self._base_url = (base_url or Config.API_BASE_URL).rstrip("/")
        self._timeout = timeout if timeout is not None else Config.HTTP_TIMEOUT
        self._client = http_client
        self._client_lock = threading.Lock()

    @property
    def name(self) -> str:
        return "backend"

    def _get_client(self) -> httpx.Client:
        if self._client is None:
            with self._client_lock:
                if self._client is None:
                    self._client = httpx.Client(timeout=self._timeout)
        return self._client

    def _request_json(
        self,
        method: str,
        path: str,
        *,
        body: dict | None = None,
        params: dict | None = None,
        include_auth: bool = True,
    ) -> dict | None:
        headers = {"Content-Type": "application/json"}
        if include_auth:
            token = self._token_provider()
            if not token:
                raise AuthenticationError()
            headers["Authorization"] = f"Bearer {token}"

        url = f"{self._base_url}{path}"
        try:
            response = self._get_client().request(
                method, url, json=body, params=params, headers=headers
            )
        except httpx.RequestError as e:
            logger.warning("[BACKEND] %s %s failed: %s", method, path, e)
            raise NetworkError(str(e) or "Network request failed") from e

        if response.status_code == 401:
            logger.info("[BACKEND] %s %s rejected session (401)", method, path)
            raise AuthenticationError()

        if not response.is_success:
            text = response.text.strip()
            logger.warning("[BACKEND] %s %s -> HTTP %d", method, path, response.status_code)
            raise NetworkError(
                text or f"Request failed: {response.status_code}",
                status_code=response.status_code,
            )

        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise NetworkError(f"Malformed response from {path}") from e

    def _parse(self, model: type[BaseModel], payload, path: str):
        try:
            return model.model_validate(payload if payload is not None else {})
        except ValidationError as e:
            logger.warning("[BACKEND] Unexpected response shape from %s: %s", path, e)
            raise NetworkError(f"Malformed response from {path}") from e

    # =========================================================================
    # AUTH
    # =========================================================================

    def login(self, id_token: str) -> str:
        """Exchange a Google ID token for a Matchlog session token."""
        payload = self._request_json(
            "POST", "/mobile/login", body={"idToken": id_token}, include_auth=False
        )
        return self._parse(LoginResponseModel, payload, "/mobile/login").token

    # =========================================================================
    # EVENTS
    # =========================================================================

    def fetch_events_by_date(self, date: str) -> EventsResponse:
        payload = self._request_json("GET", "/events", params={"date": date})
        return self._parse(EventsResponseModel, payload, "/events").to_core()

    # =========================================================================
    # WATCHED
    # =========================================================================

    def fetch_watched_events(self) -> list[WatchedEvent]:
        payload = self._request_json("GET", "/watched/list")
        parsed = self._parse(WatchedListModel, payload, "/watched/list")
        return [e.to_core() for e in parsed.events]

    def add_watched_event(self, event: Event) -> None:
        self._request_json(
            "POST",
            "/watched",
            body={
                "eventId": event.event_id,
                "leagueId": event.league_id,
                "leagueName": event.league_name,
                "date": event.date,
                "time": event.time,
                "homeTeam": event.home_team,
                "awayTeam": event.away_team,
                "homeScore": event.home_score,
                "awayScore": event.away_score,
            },
        )

    def remove_watched_event(self, event_id: str) -> None:
        self._request_json("DELETE", "/watched", body={"eventId": event_id})

    # =========================================================================
    # NOTIFIED
    # =========================================================================

    def add_notified_event(self, event: Event, notification_id: str) -> None:
        record = NotifiedRecord.from_event(event, notification_id)
        self._request_json("POST", "/notified", body=record.to_dict())

    def remove_notified_event(self, event_id: str) -> None:
        self._request_json("DELETE", "/notified", body={"eventId": event_id})

    def get_notified_event(self, event_id: str) -> NotifiedRecord | None:
        """Look up the stored reminder registration, or None if there is none."""
        try:
            payload = self._request_json("GET", "/notified", params={"eventId": event_id})
        except NetworkError as e:
            if e.status_code == 404:
                return None
            raise

        if isinstance(payload, dict) and "notified" in payload:
            payload = payload["notified"]
        if not payload:
            return None
        if not isinstance(payload, dict):
            raise NetworkError("Malformed response from /notified")
        if not payload.get("notificationId"):
            return None
        return self._parse(NotifiedModel, payload, "/notified").to_core()

    # =========================================================================
    # PREFERENCES
    # =========================================================================

    def fetch_preferences(self) -> UserPreferences:
        payload = self._request_json("GET", "/preferences")
        return self._parse(PreferencesResponseModel, payload, "/preferences").preferences.to_core()

    def update_preferences(self, changes: dict) -> UserPreferences:
        """PUT a partial update (camelCase keys); returns the merged preferences."""
        payload = self._request_json("PUT", "/preferences", body=changes)
        return self._parse(PreferencesResponseModel, payload, "/preferences").preferences.to_core()

    def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            self._client.close()
            self._client = None
