"""
Structured JSON logging configuration.

Sets up application-wide JSON logging with consistent field names for
service operations:
- Timestamp, level, message, logger name
- Request correlation IDs (from the HTTP layer)
- Service / entity names, event names, document ids and counts

Logs go to stdout, one JSON object per line.
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

# Attributes every LogRecord carries; anything else came in through `extra`
_RESERVED_RECORD_ATTRS = frozenset({
    "name", "msg", "args", "created", "filename", "funcName",
    "levelname", "levelno", "lineno", "module", "msecs",
    "message", "pathname", "process", "processName", "relativeCreated",
    "thread", "threadName", "exc_info", "exc_text", "stack_info",
    "taskName",
})

CONTEXT_FIELDS = (
    "request_id",
    "service",
    "entity",
    "event",
    "document_id",
    "count",
)


class JSONFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Outputs log records as single-line JSON objects:
    - timestamp: ISO 8601 UTC
    - level, message, logger
    - exception: formatted traceback when exc_info is set
    - the context fields in CONTEXT_FIELDS when present
    - any other field passed through ``extra``

    Example output:
        {"timestamp": "2025-11-24T10:30:00.123456+00:00", "level": "DEBUG",
         "message": "String filter title like 'sun'", "logger": "modelservice.services.pictures",
         "service": "pictures"}
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

        for field in CONTEXT_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_data[field] = value

        for key, value in record.__dict__.items():
            if key not in _RESERVED_RECORD_ATTRS and key not in log_data:
                log_data[key] = value

        return json.dumps(log_data, default=str)


def setup_logging(
    level: str = "INFO",
    json_format: bool = True
) -> None:
    """
    Configure application logging.

    Sets up the root logger with the given level and a single stdout
    handler, replacing any handler already installed.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSONFormatter (True) or a plain text format (False)

    Note:
        Call this once at application startup, before any logging occurs.
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

    # Suppress noisy third-party loggers
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """
    Get logger instance with given name.

    Example:
        logger = get_logger(__name__)
        logger.info("Bulk update done", extra={"service": "pictures", "count": 3})
    """
    return logging.getLogger(name)


class ServiceLoggerAdapter(logging.LoggerAdapter):
    """LoggerAdapter that merges per-call ``extra`` with the bound context."""

    def process(self, msg: Any, kwargs: Dict[str, Any]):
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs


def get_service_logger(service_name: str) -> ServiceLoggerAdapter:
    """
    Get a logger bound to a service name.

    Every record emitted through the adapter carries ``service``.
    """
    return ServiceLoggerAdapter(
        logging.getLogger(f"modelservice.services.{service_name}"),
        {"service": service_name},
    )


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    request_id: Optional[str] = None,
    service: Optional[str] = None,
    entity: Optional[str] = None,
    event: Optional[str] = None,
    document_id: Optional[int] = None,
    count: Optional[int] = None,
    **extra_fields: Any
) -> None:
    """
    Log message with structured context fields.

    Example:
        log_with_context(
            logger,
            "info",
            "Document deleted",
            service="pictures",
            document_id=12,
        )
    """
    extra: Dict[str, Any] = {}

    if request_id is not None:
        extra["request_id"] = request_id
    if service is not None:
        extra["service"] = service
    if entity is not None:
        extra["entity"] = entity
    if event is not None:
        extra["event"] = event
    if document_id is not None:
        extra["document_id"] = document_id
    if count is not None:
        extra["count"] = count

    extra.update(extra_fields)

    log_method = getattr(logger, level.lower())
    log_method(message, extra=extra)
