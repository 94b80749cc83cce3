"""Logging setup for the matchlog command line.

Output goes to stderr so it never mixes with command output on stdout.
Modules log with a bracketed tag naming the area:

    logger = logging.getLogger(__name__)
    logger.info("[TOGGLE] watched %s failed: %s", event_id, error)

Environment variables:
    MATCHLOG_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: WARNING)
    MATCHLOG_LOG_FORMAT: "text" or "json" (default: text)
"""

import json
import logging
import os
import re
import sys
from datetime import UTC, datetime

_configured = False

_TAG_RE = re.compile(r"^\[([A-Z_]+)\]\s*")


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with the [TAG] prefix split out."""

    def format(self, record: logging.LogRecord) -> str:
        message = record.getMessage()
        tag = None
        if match := _TAG_RE.match(message):
            tag = match.group(1)
            message = message[match.end():]

        log_data = {
            "timestamp": datetime.now(UTC).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "tag": tag,
            "message": message,
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data)


def _get_formatter(use_json: bool) -> logging.Formatter:
    if use_json:
        return JSONFormatter()
    return logging.Formatter(fmt="%(levelname)-8s %(name)s | %(message)s")


def setup_logging(log_level: str | None = None, use_json: bool | None = None) -> None:
    """Install the stderr handler. Later calls are no-ops.

    Args:
        log_level: Override MATCHLOG_LOG_LEVEL
        use_json: Override MATCHLOG_LOG_FORMAT (True for JSON lines)
    """
    global _configured
    if _configured:
        return

    level_name = (log_level or os.getenv("MATCHLOG_LOG_LEVEL", "WARNING")).upper()
    level = getattr(logging, level_name, None)
    if not isinstance(level, int):
        level = logging.WARNING
    if use_json is None:
        use_json = os.getenv("MATCHLOG_LOG_FORMAT", "text").lower() == "json"

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(_get_formatter(use_json))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    # httpx logs every request at INFO
    for name in ("httpx", "httpcore"):
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True
    logging.getLogger("matchlog").debug("[STARTUP] Log level %s", logging.getLevelName(level))
