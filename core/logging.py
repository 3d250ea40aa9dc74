# core/logging.py
import json
import logging
import sys
from typing import Any, Dict, Optional

from config import Settings, get_settings

PLAIN_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"

_EXTRA_FIELDS = ("request_id", "symbol", "provider", "tier")


class StructuredFormatter(logging.Formatter):
    """One JSON object per record, with engine extras when present."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": self.formatTime(record),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "line": record.lineno,
        }

        for field in _EXTRA_FIELDS:
            if hasattr(record, field):
                log_entry[field] = getattr(record, field)

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


def _level(name: Optional[str]) -> int:
    return getattr(logging, str(name or "info").strip().upper(), logging.INFO)


def setup_logging(settings: Optional[Settings] = None) -> logging.Logger:
    """Configure the root logger (plain or JSON). Safe to call more than once."""
    settings = settings or get_settings()

    logger = logging.getLogger()
    logger.setLevel(_level(settings.log_level))

    # Clear existing handlers
    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    if settings.log_json:
        console_handler.setFormatter(StructuredFormatter())
    else:
        console_handler.setFormatter(logging.Formatter(PLAIN_FORMAT))
    logger.addHandler(console_handler)

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    return logger


__all__ = ["setup_logging", "StructuredFormatter", "PLAIN_FORMAT"]
