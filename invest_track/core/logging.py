"""
Logging configuration.

- **Console handler**: human-readable coloured lines for local development.
- **Rotating JSON files**: one file for everything, one for ERROR and above,
  both size-capped by ``LOG_FILE_MAX_BYTES`` / ``LOG_FILE_BACKUP_COUNT``.
- **Request-ID correlation**: ``RequestIDMiddleware`` stores the current
  request ID in a context variable; ``RequestContextFilter`` copies it onto
  every record so service-layer log lines carry it without passing it around.

Call ``setup_logging()`` once during application startup.  Modules obtain
loggers with ``logging.getLogger(__name__)`` as usual.
"""

import json
import logging
import os
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional

from invest_track.core.config import settings

LOG_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.dirname(__file__))), "logs")
LOG_FILE = "investtrack.log"
ERROR_LOG_FILE = "investtrack-error.log"

request_id_var: ContextVar[Optional[str]] = ContextVar("request_id", default=None)

# Attributes callers may pass via ``extra=`` that are promoted to JSON keys.
_EXTRA_FIELDS = ("user_id", "investment_id", "status_code", "method", "path", "elapsed_ms")


class RequestContextFilter(logging.Filter):
    """Attach the active request ID (if any) to each log record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if getattr(record, "request_id", None) is None:
            record.request_id = request_id_var.get()
        return True


class JSONFormatter(logging.Formatter):
    """
    Formats log records as single-line JSON objects.

    Output example::

        {"timestamp": "2025-02-17T10:30:00.123+00:00", "level": "INFO",
         "logger": "invest_track.services.investment_service",
         "message": "Created investment 7 for user 3", "request_id": "..."}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        request_id = getattr(record, "request_id", None)
        if request_id:
            log_entry["request_id"] = request_id

        if record.exc_info and record.exc_info[0] is not None:
            log_entry["exception"] = self.formatException(record.exc_info)

        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                log_entry[key] = val

        return json.dumps(log_entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Coloured single-line output for terminals."""

    COLOURS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        colour = self.COLOURS.get(record.levelname, self.RESET)
        timestamp = datetime.fromtimestamp(record.created, tz=timezone.utc).strftime(
            "%Y-%m-%d %H:%M:%S"
        )
        request_id = getattr(record, "request_id", None)
        rid_str = f" [{request_id[:8]}]" if request_id else ""

        base = (
            f"{timestamp} | {colour}{record.levelname:<8}{self.RESET} | "
            f"{record.name}{rid_str} | {record.getMessage()}"
        )
        if record.exc_info and record.exc_info[0] is not None:
            base += "\n" + self.formatException(record.exc_info)
        return base


def _rotating_handler(filename: str, level: int) -> RotatingFileHandler:
    handler = RotatingFileHandler(
        filename=os.path.join(LOG_DIR, filename),
        maxBytes=settings.LOG_FILE_MAX_BYTES,
        backupCount=settings.LOG_FILE_BACKUP_COUNT,
        encoding="utf-8",
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestContextFilter())
    return handler


def setup_logging() -> None:
    """
    Configure the root logger with console + rotating file handlers.

    Idempotent: returns immediately if the root logger already has handlers.
    ``DEBUG=true`` forces DEBUG level and SQL echo; otherwise ``LOG_LEVEL``
    decides.
    """
    root_logger = logging.getLogger()
    if root_logger.handlers:
        return

    level = (
        logging.DEBUG
        if settings.DEBUG
        else getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)
    )
    root_logger.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(ConsoleFormatter())
    console_handler.addFilter(RequestContextFilter())
    root_logger.addHandler(console_handler)

    os.makedirs(LOG_DIR, exist_ok=True)
    root_logger.addHandler(_rotating_handler(LOG_FILE, level))
    root_logger.addHandler(_rotating_handler(ERROR_LOG_FILE, logging.ERROR))

    # Quiet third-party loggers
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("passlib").setLevel(logging.ERROR)
    logging.getLogger("sqlalchemy.engine").setLevel(
        logging.DEBUG if settings.DEBUG else logging.WARNING
    )

    root_logger.info(
        "Logging initialized — level=%s, dir=%s, max_size=%s MB, backups=%d",
        logging.getLevelName(level),
        LOG_DIR,
        settings.LOG_FILE_MAX_BYTES // (1024 * 1024),
        settings.LOG_FILE_BACKUP_COUNT,
    )
