"""Key-value storage over SQLite.

The Python counterpart of device storage: string keys mapped to string
values (JSON blobs serialized by the caller).
"""

import json
import logging
import threading
from pathlib import Path
from sqlite3 import Connection
from typing import Any

from matchlog.database.connection import get_db, init_db

logger = logging.getLogger(__name__)


# =============================================================================
# ROW OPERATIONS
# =============================================================================


def get_value(conn: Connection, key: str) -> str | None:
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def set_value(conn: Connection, key: str, value: str) -> None:
    conn.execute(
        """INSERT INTO kv_store (key, value, updated_at)
           VALUES (?, ?, CURRENT_TIMESTAMP)
           ON CONFLICT(key) DO UPDATE SET
               value = excluded.value,
               updated_at = CURRENT_TIMESTAMP""",
        (key, value),
    )


def delete_value(conn: Connection, key: str) -> bool:
    """Delete a key. Returns True if a row was removed."""
    cursor = conn.execute("DELETE FROM kv_store WHERE key = ?", (key,))
    return cursor.rowcount > 0


# =============================================================================
# STORE
# =============================================================================


class SQLiteKeyValueStore:
    """KeyValueStore backed by a SQLite file.

    Each call opens a short-lived connection; writers in this process are
    serialized by a lock.
    """

    def __init__(self, db_path: Path | str | None = None):
        self._db_path = db_path
        self._lock = threading.RLock()
        init_db(db_path)

    def get(self, key: str) -> str | None:
        with get_db(self._db_path) as conn:
            return get_value(conn, key)

    def set(self, key: str, value: str) -> None:
        with self._lock, get_db(self._db_path) as conn:
            set_value(conn, key, value)

    def delete(self, key: str) -> None:
        with self._lock, get_db(self._db_path) as conn:
            delete_value(conn, key)


def read_json(store, key: str, default: Any = None) -> Any:
    """Read and decode a JSON blob; a corrupt blob reads as default."""
    raw = store.get(key)
    if raw is None:
        return default
    try:
        return json.loads(raw)
    except ValueError:
        logger.warning("[DB] Discarding unreadable value for %s", key)
        return default


def write_json(store, key: str, value: Any) -> None:
    store.set(key, json.dumps(value))
