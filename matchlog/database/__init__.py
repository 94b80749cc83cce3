"""Database layer."""

from matchlog.database.connection import get_connection, get_db, init_db
from matchlog.database.kv import (
    SQLiteKeyValueStore,
    delete_value,
    get_value,
    read_json,
    set_value,
    write_json,
)

__all__ = [
    "SQLiteKeyValueStore",
    "delete_value",
    "get_connection",
    "get_db",
    "get_value",
    "init_db",
    "read_json",
    "set_value",
    "write_json",
]
