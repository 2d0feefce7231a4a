"""Structured logging configuration for reqcli.

This module provides a logging setup using Python's standard logging
module, with an optional JSON formatter for machine consumption. All
handlers write to stderr: stdout is reserved for the HTTP response.
"""

import json
import logging
import logging.config
import sys
import traceback
from datetime import datetime
from typing import Any, Dict, Optional


class JSONFormatter(logging.Formatter):
    """JSON formatter for structured logging.

    Outputs log records as one JSON object per line.

    Attributes:
        fields: List of fields to include in JSON output
    """

    # Standard fields always included
    STANDARD_FIELDS = ["name", "levelname", "message", "timestamp"]

    # Contextual fields for request tracking
    CONTEXT_FIELDS = [
        "method",        # HTTP method
        "url",           # Target URL
        "status_code",   # HTTP response status
        "duration_ms",   # Request duration in milliseconds
        "auth_scheme",   # Authenticator in use (basic, bearer, oauth2, custom)
        "rate_limit",    # Configured rate spec
    ]

    def __init__(
        self,
        fields: Optional[list] = None,
        datefmt: Optional[str] = None,
    ):
        """Initialize JSON formatter.

        Args:
            fields: Custom fields to include (defaults to all standard + context)
            datefmt: Date format string (ISO8601 by default)
        """
        super().__init__(datefmt=datefmt)
        self.fields = fields or (self.STANDARD_FIELDS + self.CONTEXT_FIELDS)

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON."""
        log_data: Dict[str, Any] = {}

        record.message = record.getMessage()

        log_data["timestamp"] = datetime.now().astimezone().isoformat()
        log_data["level"] = record.levelname
        log_data["logger"] = record.name
        log_data["message"] = record.message

        log_data["source"] = {
            "file": record.pathname,
            "line": record.lineno,
            "function": record.funcName,
        }

        for field in self.CONTEXT_FIELDS:
            if hasattr(record, field):
                value = getattr(record, field)
                if value is not None and value != "-":
                    log_data[field] = value

        # Anything else passed through extra=
        for key, value in record.__dict__.items():
            if key not in (
                "name", "msg", "args", "levelname", "levelno", "pathname",
                "filename", "module", "exc_info", "exc_text", "stack_info",
                "lineno", "funcName", "created", "msecs", "relativeCreated",
                "thread", "threadName", "processName", "process", "message",
                "asctime", "timestamp", "logger", "level", "source",
                "taskName",
            ):
                if key not in self.CONTEXT_FIELDS:
                    log_data.setdefault("extra", {})[key] = value

        if record.exc_info and record.exc_info != (None, None, None):
            log_data["exception"] = traceback.format_exception(*record.exc_info)

        return json.dumps(log_data, default=str, ensure_ascii=False)


class ContextFilter(logging.Filter):
    """Logging filter that adds default request context to log records."""

    CONTEXT_DEFAULTS = {
        "method": None,
        "url": None,
        "status_code": None,
        "duration_ms": None,
        "auth_scheme": None,
        "rate_limit": None,
    }

    def filter(self, record: logging.LogRecord) -> bool:
        for field, default in self.CONTEXT_DEFAULTS.items():
            if not hasattr(record, field):
                setattr(record, field, default)
        return True


def get_logging_config(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> Dict[str, Any]:
    """Get logging configuration dictionary.

    Args:
        log_level: Overrides ``settings.log_level``
        log_format: Overrides ``settings.log_format`` (text, structured or json)

    Returns:
        Logging configuration dict compatible with logging.config.dictConfig
    """
    from reqcli.app.core.config import settings

    log_format = (log_format or settings.log_format).lower()
    log_level = (log_level or settings.log_level).upper()

    formatters = {
        "standard": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        },
        "structured": {
            "format": "%(asctime)s - %(name)s - %(levelname)s - %(message)s - method=%(method)s - url=%(url)s - auth=%(auth_scheme)s"
        },
    }

    if log_format == "json":
        formatters["json"] = {
            "()": "reqcli.app.core.logging.JSONFormatter",
        }
        default_formatter = "json"
    else:
        default_formatter = "structured" if log_format == "structured" else "standard"

    handlers = {
        "console": {
            "class": "logging.StreamHandler",
            "level": log_level,
            "formatter": default_formatter,
            "stream": sys.stderr,
            "filters": ["context"],
        },
    }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": formatters,
        "filters": {
            "context": {
                "()": "reqcli.app.core.logging.ContextFilter",
            },
        },
        "handlers": handlers,
        "loggers": {
            "reqcli": {
                "level": log_level,
                "handlers": ["console"],
                "propagate": False,
            },
            "httpx": {
                "level": "WARNING",
                "handlers": ["console"],
                "propagate": False,
            },
        },
        "root": {
            "level": "WARNING",
            "handlers": ["console"],
        },
    }


def setup_logging(
    log_level: Optional[str] = None,
    log_format: Optional[str] = None,
) -> None:
    """Configure logging for the client."""
    logging.config.dictConfig(get_logging_config(log_level, log_format))

    # httpcore is very chatty at DEBUG
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def get_logger(name: str = "reqcli") -> logging.Logger:
    """Get a logger instance with the specified name."""
    return logging.getLogger(name)


def get_log_context(
    method: Optional[str] = None,
    url: Optional[str] = None,
    status_code: Optional[int] = None,
    auth_scheme: Optional[str] = None,
    **extra
) -> Dict[str, Any]:
    """Create a log context dictionary for use with the extra parameter.

    Example:
        >>> logger.info(
        ...     "Response received",
        ...     extra=get_log_context(method="GET", status_code=200)
        ... )
    """
    context = {
        "method": method,
        "url": url,
        "status_code": status_code,
        "auth_scheme": auth_scheme,
    }
    context.update(extra)
    return {k: v for k, v in context.items() if v is not None}
