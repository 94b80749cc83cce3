"""Application configuration.

Single source of truth for all configuration values.
Loads from environment variables with .env file support.
"""

import os
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from dotenv import load_dotenv

# =============================================================================
# VERSION - Read from pyproject.toml (single source of truth)
# =============================================================================


def _get_version() -> str:
    """Read version - prefer pyproject.toml, fall back to installed metadata."""
    try:
        import tomllib

        pyproject_path = Path(__file__).parent.parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                data = tomllib.load(f)
                return data.get("project", {}).get("version", "0.0.0")
    except (OSError, KeyError, ValueError):
        pass

    try:
        from importlib.metadata import PackageNotFoundError, version

        return version("matchlog")
    except (ImportError, PackageNotFoundError):
        pass

    return "0.0.0"


VERSION = _get_version()

# Load .env file from project root
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_ENV_FILE = _PROJECT_ROOT / ".env"
load_dotenv(_ENV_FILE)

DEFAULT_DEV_BASE_URL = "http://localhost:3000/api"
DEFAULT_PROD_BASE_URL = "https://matchlog-eta.vercel.app/api"


class Config:
    """Application configuration singleton.

    All configuration values should be accessed through this class.
    Values are loaded from environment variables with sensible defaults.
    """

    # User timezone - "local" for every date/time rendering
    _timezone_from_env: str | None = os.getenv("MATCHLOG_TIMEZONE") or os.getenv("TZ")
    _timezone_cache: str | None = None

    _DEFAULT_TIMEZONE: str = "UTC"

    # Backend
    ENV: str = os.getenv("MATCHLOG_ENV", "prod").lower()
    API_BASE_URL: str = os.getenv("MATCHLOG_API_BASE_URL") or (
        DEFAULT_DEV_BASE_URL if ENV == "dev" else DEFAULT_PROD_BASE_URL
    )
    HTTP_TIMEOUT: float = float(os.getenv("MATCHLOG_HTTP_TIMEOUT", "10"))

    # TheSportsDB (local-only mode)
    TSDB_API_KEY: str | None = os.getenv("TSDB_API_KEY")

    # Local storage
    DATABASE_PATH: str = os.getenv(
        "MATCHLOG_DB_PATH",
        str(_PROJECT_ROOT / "data" / "matchlog.db"),
    )

    # Day cache lifetime (seconds)
    CACHE_TTL_SECONDS: int = int(os.getenv("MATCHLOG_CACHE_TTL", "300"))

    # Reminder lead time before kickoff (minutes)
    NOTIFY_LEAD_MINUTES: int = int(os.getenv("MATCHLOG_NOTIFY_LEAD_MINUTES", "30"))

    @classmethod
    def get_timezone_str(cls) -> str:
        """Get the user timezone as a string.

        Priority:
        1. Runtime override (set_timezone)
        2. MATCHLOG_TIMEZONE / TZ env var (if valid)
        3. UTC
        """
        if cls._timezone_cache:
            return cls._timezone_cache

        if cls._timezone_from_env:
            try:
                ZoneInfo(cls._timezone_from_env)
                return cls._timezone_from_env
            except (ZoneInfoNotFoundError, ValueError):
                pass

        return cls._DEFAULT_TIMEZONE

    @classmethod
    def get_timezone(cls) -> ZoneInfo:
        """Get the user timezone as a ZoneInfo object.

        This is THE method for getting timezone. Use it everywhere.
        """
        return ZoneInfo(cls.get_timezone_str())

    @classmethod
    def set_timezone(cls, timezone: str) -> None:
        """Set the timezone override (validated)."""
        ZoneInfo(timezone)
        cls._timezone_cache = timezone

    @classmethod
    def clear_timezone_cache(cls) -> None:
        """Clear the timezone override."""
        cls._timezone_cache = None

    @classmethod
    def reload(cls) -> None:
        """Reload configuration from environment.

        Useful for testing or runtime config changes.
        """
        load_dotenv(_ENV_FILE, override=True)
        cls._timezone_from_env = os.getenv("MATCHLOG_TIMEZONE") or os.getenv("TZ")
        cls.ENV = os.getenv("MATCHLOG_ENV", "prod").lower()
        cls.API_BASE_URL = os.getenv("MATCHLOG_API_BASE_URL") or (
            DEFAULT_DEV_BASE_URL if cls.ENV == "dev" else DEFAULT_PROD_BASE_URL
        )
        cls.HTTP_TIMEOUT = float(os.getenv("MATCHLOG_HTTP_TIMEOUT", "10"))
        cls.TSDB_API_KEY = os.getenv("TSDB_API_KEY")
        cls.DATABASE_PATH = os.getenv(
            "MATCHLOG_DB_PATH",
            str(_PROJECT_ROOT / "data" / "matchlog.db"),
        )
        cls.CACHE_TTL_SECONDS = int(os.getenv("MATCHLOG_CACHE_TTL", "300"))
        cls.NOTIFY_LEAD_MINUTES = int(os.getenv("MATCHLOG_NOTIFY_LEAD_MINUTES", "30"))


def get_user_timezone() -> ZoneInfo:
    """Get the configured user timezone.

    This is the single source of truth for timezone.
    Import this function wherever you need timezone.
    """
    return Config.get_timezone()


def set_timezone(timezone: str) -> None:
    """Override the user timezone at runtime."""
    Config.set_timezone(timezone)


def clear_timezone_cache() -> None:
    """Drop the runtime timezone override."""
    Config.clear_timezone_cache()


def get_cache_ttl() -> int:
    return Config.CACHE_TTL_SECONDS


def get_notify_lead_minutes() -> int:
    return Config.NOTIFY_LEAD_MINUTES
