"""Database connection management.

Simple SQLite connection handling with schema initialization.
"""

import logging
import sqlite3
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from matchlog.config import Config

logger = logging.getLogger(__name__)

# Schema file location
SCHEMA_PATH = Path(__file__).parent / "schema.sql"


def _resolve_path(db_path: Path | str | None) -> Path:
    return Path(db_path) if db_path else Path(Config.DATABASE_PATH)


def get_connection(db_path: Path | str | None = None) -> sqlite3.Connection:
    """Get a database connection.

    Args:
        db_path: Path to database file. Uses Config.DATABASE_PATH if not specified.

    Returns:
        SQLite connection with row factory set to sqlite3.Row
    """
    path = _resolve_path(db_path)

    # check_same_thread=False: toggles and league fetches run on worker threads
    conn = sqlite3.connect(path, timeout=30.0, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")
    conn.execute("PRAGMA busy_timeout=30000")
    return conn


@contextmanager
def get_db(db_path: Path | str | None = None) -> Generator[sqlite3.Connection, None, None]:
    """Context manager for database connections.

    Usage:
        with get_db() as conn:
            row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    """
    conn = get_connection(db_path)
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()


def init_db(db_path: Path | str | None = None) -> None:
    """Initialize database with schema.

    Creates the parent directory and tables if they don't exist.
    Safe to call multiple times.
    """
    path = _resolve_path(db_path)
    path.parent.mkdir(parents=True, exist_ok=True)

    with get_db(path) as conn:
        conn.executescript(SCHEMA_PATH.read_text())

    logger.debug("[DB] Initialized %s", path)
