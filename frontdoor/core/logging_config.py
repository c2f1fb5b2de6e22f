"""
Structured logging configuration for frontdoor.

Provides JSON-formatted logging with correlation IDs plus the level names
used by the router and access loggers.
"""

import json
import logging
import sys
import uuid
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Optional

# Named loggers used by the dispatch pipeline
ROUTER_LOGGER = "frontdoor.router"
ACCESS_LOGGER = "frontdoor.access"

# "NONE" disables a logger entirely; it has no numeric level
LOG_LEVELS = {
    "NONE": None,
    "TRACE": logging.DEBUG,
    "DEBUG": logging.DEBUG,
    "INFO": logging.INFO,
    "WARN": logging.WARNING,
    "WARNING": logging.WARNING,
    "ERROR": logging.ERROR,
    "CRITICAL": logging.CRITICAL,
}

# Context variable for correlation ID (used across request lifecycle)
correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

_RESERVED_ATTRS = {
    "name", "msg", "args", "levelname", "levelno", "pathname",
    "filename", "module", "lineno", "funcName", "created",
    "msecs", "relativeCreated", "thread", "threadName", "taskName",
    "processName", "process", "exc_info", "exc_text", "stack_info",
}


def parse_log_level(name: str) -> Optional[int]:
    """
    Translate a configured level name into a ``logging`` level.

    Args:
        name: Level name such as "INFO" or "NONE" (case-insensitive)

    Returns:
        The numeric level, or None when the name is "NONE"

    Raises:
        ValueError: If the name is not a known level
    """
    key = name.strip().upper()
    if key not in LOG_LEVELS:
        raise ValueError(f"Unknown log level: {name}")
    return LOG_LEVELS[key]


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON"""

        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        correlation_id = correlation_id_ctx.get()
        if correlation_id:
            log_entry["correlation_id"] = correlation_id

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        extra_fields = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if extra_fields:
            log_entry["extra"] = extra_fields

        return json.dumps(log_entry, default=self._json_default)

    def _json_default(self, obj: Any) -> str:
        """JSON serializer for objects not serializable by default"""
        if isinstance(obj, datetime):
            return obj.isoformat()
        return str(obj)


def setup_logging(
    log_level: str = "INFO",
    enable_json: bool = True,
    log_file: Optional[str] = None,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Root logging level (DEBUG, INFO, WARN, ERROR)
        enable_json: Whether to use JSON formatting
        log_file: Optional file path for logging
    """
    logging.root.handlers.clear()

    if enable_json:
        formatter: logging.Formatter = StructuredFormatter()
    else:
        formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(formatter)

    root_logger = logging.getLogger()
    root_logger.setLevel(parse_log_level(log_level) or logging.CRITICAL + 1)
    root_logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file)
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    # Reduce noise from external libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("boto3").setLevel(logging.WARNING)
    logging.getLogger("botocore").setLevel(logging.WARNING)


def get_correlation_id() -> str:
    """
    Get or create a correlation ID for request tracking.

    Returns:
        str: Correlation ID for current context
    """
    correlation_id = correlation_id_ctx.get()
    if not correlation_id:
        correlation_id = str(uuid.uuid4())
        correlation_id_ctx.set(correlation_id)
    return correlation_id


def init_application_logging(settings) -> None:
    """Initialize logging for the application from its settings"""
    setup_logging(
        log_level=settings.log_level,
        enable_json=settings.json_logging,
        log_file=settings.log_file,
    )

    # The router logger must admit its configured level, or the request
    # logger middleware is never installed
    router_level = parse_log_level(settings.router_log_level)
    if router_level is not None and not settings.disable_router_log:
        logging.getLogger(ROUTER_LOGGER).setLevel(router_level)

    logger = logging.getLogger("frontdoor.startup")
    logger.info(
        "Structured logging initialized",
        extra={
            "json_logging": settings.json_logging,
            "log_level": settings.log_level,
            "router_log_level": settings.router_log_level,
            "correlation_id": get_correlation_id(),
        },
    )
