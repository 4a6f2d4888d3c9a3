"""
Central logging configuration for the authentication core.

Provides:
- Structured logging (JSON in production, human-readable in development)
- Origin-address correlation via contextvars (bound for the duration of a login)
- Environment-aware log levels

Usage:
    from authcore.logging_config import get_logger
    logger = get_logger(__name__)
    logger.info("Account registered", extra={"account_id": str(account.id)})

Never pass plaintext passwords or token secrets to a logger.
"""

import json
import logging
import sys
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Iterator, Optional

# Context var for the client origin address - bound by AuthCore.login
origin_address_var: ContextVar[Optional[str]] = ContextVar("origin_address", default=None)


def get_origin_address() -> Optional[str]:
    """Get the current origin address from context, if set."""
    return origin_address_var.get()


@contextmanager
def bind_origin_address(origin_address: Optional[str]) -> Iterator[None]:
    """Make origin_address visible to every log record emitted inside the block."""
    token = origin_address_var.set(origin_address)
    try:
        yield
    finally:
        origin_address_var.reset(token)


class OriginAddressFilter(logging.Filter):
    """Filter that adds origin_address to log records from context."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.origin_address = get_origin_address() or "-"  # type: ignore[attr-defined]
        return True


_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "pathname", "process", "processName", "relativeCreated",
    "stack_info", "exc_info", "exc_text", "thread", "threadName",
    "message", "taskName", "origin_address",
))


class JsonFormatter(logging.Formatter):
    """Format log records as JSON for production log aggregators."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        origin = getattr(record, "origin_address", None)
        if origin and origin != "-":
            log_obj["origin_address"] = origin

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Anything passed via extra= in the log call
        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and value is not None:
                try:
                    json.dumps(value)
                    log_obj[key] = value
                except (TypeError, ValueError):
                    log_obj[key] = str(value)

        return json.dumps(log_obj)


def _create_dev_formatter() -> logging.Formatter:
    return logging.Formatter(
        "%(asctime)s %(levelname)-5s [%(name)s] origin=%(origin_address)s %(message)s",
        datefmt="%H:%M:%S",
    )


def configure_logging(
    *,
    log_level: str = "INFO",
    environment: str = "development",
    debug: bool = False,
) -> None:
    """
    Configure application-wide logging.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        environment: 'development' or 'production'
        debug: If True, use DEBUG level regardless of log_level
    """
    level = logging.DEBUG if debug else getattr(logging, log_level.upper(), logging.INFO)

    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicates on reconfigure
    for h in root.handlers[:]:
        root.removeHandler(h)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(level)
    handler.addFilter(OriginAddressFilter())

    if environment == "production":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(_create_dev_formatter())

    root.addHandler(handler)

    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for the given module name.

    Records automatically carry origin_address while a login is in progress.
    """
    return logging.getLogger(name)
