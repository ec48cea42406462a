"""
Structured logging with correlation IDs and JSON formatting.

Usage:
    from observability import get_logger

    logger = get_logger(__name__)
    logger.info("Source completed", extra={
        "provider_id": "printables",
        "result_count": 10,
    })

Every record carries the correlation id of the request that produced it, so
the log lines of one search (including the lines emitted by the shared
fetch task that other requests joined) can be grouped.
"""

import logging
import os
import uuid
from contextvars import ContextVar
from typing import Optional, Dict, Any

from pythonjsonlogger import jsonlogger

_correlation_id_ctx: ContextVar[Optional[str]] = ContextVar("correlation_id", default=None)

SERVICE_NAME = "model-search-api"


def get_correlation_id() -> Optional[str]:
    return _correlation_id_ctx.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id_ctx.set(correlation_id)


def generate_correlation_id() -> str:
    return f"req-{uuid.uuid4().hex[:16]}"


class correlation_id_context:
    """Context manager binding a correlation ID for the enclosed block."""

    def __init__(self, correlation_id: Optional[str] = None):
        self.correlation_id = correlation_id or generate_correlation_id()
        self.token = None

    def __enter__(self):
        self.token = _correlation_id_ctx.set(self.correlation_id)
        return self.correlation_id

    def __exit__(self, exc_type, exc_val, exc_tb):
        _correlation_id_ctx.reset(self.token)


class CorrelationIDFilter(logging.Filter):
    """Adds correlation_id to all log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = get_correlation_id() or "none"
        return True


class SensitiveDataFilter(logging.Filter):
    """Redacts credentials that may end up in structured extras."""

    SENSITIVE_KEYS = {
        "password", "token", "api_key", "secret", "authorization",
        "cookie", "set-cookie", "sentry_dsn", "database_url",
    }

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.args, dict):
            record.args = self._redact(record.args)

        for key in list(record.__dict__.keys()):
            if key.lower() in self.SENSITIVE_KEYS:
                setattr(record, key, "[REDACTED]")

        return True

    def _redact(self, data: Any) -> Any:
        if isinstance(data, dict):
            return {
                k: "[REDACTED]" if str(k).lower() in self.SENSITIVE_KEYS else self._redact(v)
                for k, v in data.items()
            }
        if isinstance(data, (list, tuple)):
            return type(data)(self._redact(item) for item in data)
        return data


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON formatter adding service, environment and correlation fields."""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)

        log_record["timestamp"] = self.formatTime(record, self.datefmt)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["correlation_id"] = getattr(record, "correlation_id", "none")
        log_record["environment"] = os.getenv("ENVIRONMENT", "development")
        log_record["service"] = SERVICE_NAME

        if record.exc_info:
            log_record["exception"] = self.formatException(record.exc_info)


def setup_logging(level: Optional[str] = None, log_format: Optional[str] = None) -> None:
    """
    Configure the root logger.

    Environment variables (used when arguments are omitted):
    - LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL
    - LOG_FORMAT: json or text (default: json in production, text elsewhere)
    - ENVIRONMENT: development, staging, production
    """
    level = (level or os.getenv("LOG_LEVEL", "INFO")).upper()
    log_format = log_format or os.getenv(
        "LOG_FORMAT", "json" if os.getenv("ENVIRONMENT") == "production" else "text"
    )

    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler()
    if log_format == "json":
        formatter = CustomJsonFormatter(
            "%(timestamp)s %(level)s %(logger)s %(correlation_id)s %(message)s",
            rename_fields={"timestamp": "@timestamp"},
        )
    else:
        formatter = logging.Formatter(
            "%(asctime)s | %(levelname)-8s | %(correlation_id)s | %(name)s | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
    handler.setFormatter(formatter)
    handler.addFilter(CorrelationIDFilter())
    handler.addFilter(SensitiveDataFilter())

    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    # Reduce noise from third-party libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)
