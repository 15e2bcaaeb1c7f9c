"""
Structured logging.

Production writes one JSON object per record, tagged with the service name
and environment plus whatever a caller passes as ``extra_fields`` (the
request middleware adds method, path, status and timing). Development
writes plain text lines.
"""
import logging
import sys
import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from core.config import settings

SERVICE_NAME = "training-intelligence-api"
TEXT_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"

# Libraries that log every query/connection at INFO
QUIET_LOGGERS = ("sqlalchemy.engine", "urllib3", "redis", "alembic.runtime.migration")


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "environment": settings.ENVIRONMENT,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        if record.exc_info:
            entry["exception_type"] = record.exc_info[0].__name__ if record.exc_info[0] else None
            entry["exception"] = self.formatException(record.exc_info)

        extra_fields = getattr(record, "extra_fields", None)
        if isinstance(extra_fields, dict):
            entry.update(extra_fields)

        return json.dumps(entry, default=str)


def use_json_format(log_format: Optional[str] = None) -> bool:
    log_format = (log_format or settings.LOG_FORMAT).lower()
    return log_format == "json" or settings.ENVIRONMENT == "production"


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> logging.Logger:
    """
    Configure the root logger. Called once from main at startup.

    ``level`` and ``log_format`` default to LOG_LEVEL and LOG_FORMAT.
    Production always logs JSON.
    """
    log_level = getattr(logging, (level or settings.LOG_LEVEL).upper(), logging.INFO)
    formatter = JSONFormatter() if use_json_format(log_format) else logging.Formatter(TEXT_FORMAT)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return root_logger
