"""Session token persistence."""

import logging

from matchlog.core import KeyValueStore
from matchlog.utilities.constants import SESSION_TOKEN_KEY

logger = logging.getLogger(__name__)


class TokenStore:
    """The backend session token, kept in device storage."""

    def __init__(self, store: KeyValueStore):
        self._store = store

    def get(self) -> str | None:
        return self._store.get(SESSION_TOKEN_KEY) or None

    def set(self, token: str) -> None:
        self._store.set(SESSION_TOKEN_KEY, token)

    def clear(self) -> None:
        self._store.delete(SESSION_TOKEN_KEY)
        logger.info("[AUTH] Session token cleared")
