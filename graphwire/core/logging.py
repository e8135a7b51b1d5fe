"""Graphwire structured JSON logging.

Every record becomes one JSON object on stdout. Request-scoped details are
passed through ``extra=`` and copied onto the object when present::

    logger.info("Facebook responded", extra={"endpoint": url, "status_code": 200})
"""

import logging
import json
import sys
from datetime import datetime, timezone
from graphwire.config import settings

EXTRA_FIELDS = ("endpoint", "http_method", "status_code", "duration_ms", "query_count")


class JSONFormatter(logging.Formatter):
    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        entry.update(
            {key: getattr(record, key) for key in EXTRA_FIELDS if hasattr(record, key)}
        )
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


def _resolve_level(name: str) -> int:
    level = logging.getLevelName(name.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Return ``graphwire.<name>``, attaching the JSON stdout handler on first use."""
    logger = logging.getLogger(f"graphwire.{name}")
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JSONFormatter())
        logger.addHandler(handler)
    logger.setLevel(_resolve_level(settings.log_level))
    return logger
