"""
Structured logging configuration.

- Development / testing: one readable line per record, tagged with the caller
- Production: one JSON object per record
- Level: LOG_LEVEL (config or env)

Every record emitted inside a request carries ``request_id``, ``profile_id``
and ``role`` (see RequestContextFilter), so service-level lines such as
"Recommendation ... confirmed" can be traced to a caller without each
service passing the profile to its logger.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone

from flask import g, has_request_context

_EXTRA_FIELDS = (
    "method",
    "path",
    "status",
    "duration_ms",
    "remote_addr",
    "request_id",
    "profile_id",
    "role",
)

_NOISY_LOGGERS = ("urllib3", "werkzeug", "sqlalchemy.engine", "flask_limiter")


class RequestContextFilter(logging.Filter):
    """Copy request id and caller from ``g`` onto the record."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not has_request_context():
            return True
        if getattr(record, "request_id", None) is None:
            record.request_id = getattr(g, "request_id", None)
        auth = getattr(g, "auth", None)
        profile = getattr(auth, "profile", None) or {}
        if getattr(record, "profile_id", None) is None:
            record.profile_id = profile.get("id")
        if getattr(record, "role", None) is None:
            record.role = profile.get("role")
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per line for the log aggregator."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "line": record.lineno,
        }
        for key in _EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        if record.exc_info and record.exc_info[0] is not None:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, ensure_ascii=False, default=str)


class ReadableFormatter(logging.Formatter):
    """Coloured single-line format for a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        ts = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        tags = []
        duration = getattr(record, "duration_ms", None)
        if duration is not None:
            tags.append(f"{duration:.0f}ms")
        profile_id = getattr(record, "profile_id", None)
        if profile_id:
            tags.append(f"{getattr(record, 'role', None) or '?'}:{profile_id[:8]}")
        request_id = getattr(record, "request_id", None)
        if request_id:
            tags.append(request_id)
        suffix = f" [{' '.join(tags)}]" if tags else ""
        line = f"{color}{ts} {record.levelname:<8}{self.RESET} {record.name}: {record.getMessage()}{suffix}"
        if record.exc_info and record.exc_info[0] is not None:
            line += "\n" + self.formatException(record.exc_info)
        return line


def configure_logging(app):
    """
    Install a single stderr handler on the root logger.

    Default level: DEBUG in development, WARNING in testing, INFO in production.
    """
    is_testing = app.config.get("TESTING", False)
    is_prod = not app.config.get("DEBUG", False) and not is_testing

    default_level = "INFO" if is_prod else ("WARNING" if is_testing else "DEBUG")
    level_name = (app.config.get("LOG_LEVEL") or os.getenv("LOG_LEVEL") or default_level).upper()
    level = getattr(logging, level_name, logging.INFO)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if is_prod else ReadableFormatter())
    handler.addFilter(RequestContextFilter())
    handler.setLevel(level)

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level)

    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
    app.logger.setLevel(level)

    if not is_testing:
        app.logger.info("Logging configured: level=%s format=%s", level_name, "JSON" if is_prod else "readable")
