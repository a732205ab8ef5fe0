"""
Structured JSON logging configuration.

Sets up application-wide logging with:
- Consistent field names across all logs
- Repository context (entity type, operation name)
- Request correlation IDs when called from HTTP handlers

Logs go to stdout so any log aggregator can pick them up.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


# Attributes present on every LogRecord; anything else came in via `extra`.
_RESERVED_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "taskName", "exc_info", "exc_text", "stack_info",
})


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as single-line JSON objects with:
    - timestamp: ISO 8601 UTC
    - level, message, logger
    - exception: formatted traceback (if any)
    - any extra fields (entity, operation, request_id, ...)

    Example output:
        {"timestamp": "2026-01-15T10:30:00.123456+00:00", "level": "WARNING",
         "message": "Repository operation failed", "logger": "entity_repository.repositories.repository",
         "entity": "User", "operation": "create"}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "message": record.getMessage(),
            "logger": record.name,
        }

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        if record.stack_info:
            log_data["stack_info"] = self.formatStack(record.stack_info)

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and key not in log_data and value is not None:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True
) -> None:
    """
    Configure application logging.

    Replaces any handlers on the root logger with a single stdout handler.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSONFormatter (True) or a plain text format (False)

    Note:
        Call once at application startup, before any logging occurs.
    """
    root_logger = logging.getLogger()

    log_level = getattr(logging, level.upper(), logging.INFO)
    root_logger.setLevel(log_level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)

    if json_format:
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        )

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    # SQL echo is controlled by the engine, not the root level
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance with given name.

    Example:
        logger = get_logger(__name__)
        logger.info("Entity created", extra={"entity": "User"})
    """
    return logging.getLogger(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    entity: Optional[str] = None,
    operation: Optional[str] = None,
    request_id: Optional[str] = None,
    **extra_fields: Any
) -> None:
    """
    Log message with repository context fields.

    Args:
        logger: Logger instance
        level: Log level name (debug, info, warning, error, critical)
        message: Log message
        entity: Entity class name the operation targeted
        operation: Repository operation name (count, create, list, ...)
        request_id: Request correlation ID
        **extra_fields: Additional fields to include

    Example:
        log_with_context(logger, "warning", "Repository operation failed",
                         entity="User", operation="create", error="UNIQUE constraint failed")
    """
    extra: Dict[str, Any] = {}

    if entity is not None:
        extra["entity"] = entity
    if operation is not None:
        extra["operation"] = operation
    if request_id is not None:
        extra["request_id"] = request_id

    extra.update(extra_fields)

    log_method = getattr(logger, level.lower())
    log_method(message, extra=extra)
