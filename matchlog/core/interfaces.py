"""Abstract interfaces for Matchlog.

Defines the contracts that collaborators must implement.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from typing import Protocol

from matchlog.core.types import Event, EventsResponse, NotifiedRecord, WatchedEvent

# =============================================================================
# DEVICE COLLABORATORS
# =============================================================================


class KeyValueStore(Protocol):
    """Persistent string key-value storage (device storage).

    Values are JSON blobs serialized by the caller.
    """

    def get(self, key: str) -> str | None:
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        ...


class NotificationScheduler(Protocol):
    """OS local-notification capability.

    permission_status() returns "granted", "denied" or "undetermined".
    schedule_at() returns the provider-assigned notification handle that
    cancel() later needs.
    """

    platform: str  # "ios" | "android" | other

    def ensure_channel(self, channel_id: str, name: str) -> None:
        ...

    def permission_status(self) -> str:
        ...

    def request_permission(self) -> bool:
        ...

    def schedule_at(self, when: datetime, payload: dict) -> str:
        ...

    def cancel(self, notification_id: str) -> None:
        ...


# =============================================================================
# MATCHLOG BACKEND - watched/notified persistence plus per-day fixtures
# =============================================================================


class MatchlogBackend(ABC):
    """Where fixtures come from and where the user's flags live.

    Implemented by the HTTP BackendClient (backend-synced mode) and by
    LocalMatchLog (TheSportsDB + device storage).
    """

    @property
    @abstractmethod
    def name(self) -> str:
        ...

    @abstractmethod
    def fetch_events_by_date(self, date: str) -> EventsResponse:
        """Fixtures for one day with the user's watched/notified ids and stats."""
        ...

    @abstractmethod
    def fetch_watched_events(self) -> list[WatchedEvent]:
        ...

    @abstractmethod
    def add_watched_event(self, event: Event) -> None:
        ...

    @abstractmethod
    def remove_watched_event(self, event_id: str) -> None:
        ...

    @abstractmethod
    def add_notified_event(self, event: Event, notification_id: str) -> None:
        ...

    @abstractmethod
    def remove_notified_event(self, event_id: str) -> None:
        ...

    @abstractmethod
    def get_notified_event(self, event_id: str) -> NotifiedRecord | None:
        ...

    def close(self) -> None:
        """Release underlying resources. No-op by default."""
        return None
