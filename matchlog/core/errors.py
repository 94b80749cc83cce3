"""Error kinds raised across Matchlog.

Callers branch on the exception class, never on message text.
"""


class MatchlogError(Exception):
    """Base class for all Matchlog errors."""


class AuthenticationError(MatchlogError):
    """Session token missing, expired or rejected (HTTP 401).

    Fatal to the session: the caller signs out and asks for a new login.
    Never retried.
    """

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NetworkError(MatchlogError):
    """Transport failure or non-2xx (other than 401) response.

    Recoverable: roll back optimistic state, show the message, retry later.
    """

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class ParseError(MatchlogError):
    """Malformed upstream field. Absorbed inside the normalizer."""


class PermissionDenied(MatchlogError):
    """The device declined notification permission."""

    def __init__(self, message: str = "Notification permission denied"):
        super().__init__(message)


class PreconditionFailed(MatchlogError):
    """A reminder was requested for a match that isn't safely in the future."""

    def __init__(self, message: str = "Cannot set a reminder for this match"):
        super().__init__(message)
