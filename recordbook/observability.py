"""
Observability Module - Logging and Metrics

Provides:
- Structured JSON logging with operation context
- Human-readable text logging for development
- Operation counters (created, rejected, skipped rows, etc.)

Configuration:
- RECORDBOOK_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- RECORDBOOK_LOG_FORMAT: json, text (default: text)

Usage:
    from recordbook.observability import get_logger, operation_context

    logger = get_logger(__name__)
    with operation_context("book", "create"):
        logger.info("Book created", key=isbn)
"""

import json
import logging
import os
import sys
from collections import Counter
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterator

# Context variables for operation tracking
entity_var: ContextVar[str] = ContextVar("entity", default="")
action_var: ContextVar[str] = ContextVar("action", default="")


# ============================================================
# CONFIGURATION
# ============================================================

def _get_log_level() -> int:
    level_str = os.environ.get("RECORDBOOK_LOG_LEVEL", "INFO").upper()
    levels = {
        "DEBUG": logging.DEBUG,
        "INFO": logging.INFO,
        "WARNING": logging.WARNING,
        "ERROR": logging.ERROR,
        "CRITICAL": logging.CRITICAL,
    }
    return levels.get(level_str, logging.INFO)


def _use_json_logging() -> bool:
    return os.environ.get("RECORDBOOK_LOG_FORMAT", "").lower() == "json"


# ============================================================
# STRUCTURED LOGGING
# ============================================================

_RESERVED_ATTRS = frozenset((
    "name", "msg", "args", "created", "levelname", "levelno",
    "pathname", "filename", "module", "lineno", "funcName",
    "exc_info", "exc_text", "stack_info", "message", "msecs",
    "relativeCreated", "thread", "threadName", "processName",
    "process", "taskName",
))


class StructuredFormatter(logging.Formatter):
    """
    JSON formatter for structured logging.

    Output format:
    {
        "timestamp": "2024-01-15T10:30:00.000Z",
        "level": "INFO",
        "logger": "recordbook.core.registry",
        "message": "Book{ ISBN: 0136019701, ... } created!",
        "entity": "book",
        "action": "create",
        ...extra fields...
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        entity = entity_var.get()
        if entity:
            log_data["entity"] = entity

        action = action_var.get()
        if action:
            log_data["action"] = action

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key.startswith("_"):
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data)


class TextFormatter(logging.Formatter):
    """Human-readable formatter for development."""

    def format(self, record: logging.LogRecord) -> str:
        prefix = ""
        entity = entity_var.get()
        if entity:
            action = action_var.get()
            prefix = f"[{entity}:{action}] " if action else f"[{entity}] "

        timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")

        msg = f"{timestamp} {record.levelname:8} {prefix}{record.name}: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


class ContextLogger(logging.LoggerAdapter):
    """
    Logger adapter that accepts structured fields as keyword arguments.

    Usage:
        logger = get_logger(__name__)
        logger.info("Book created", key="0136019701")
    """

    def process(self, msg: str, kwargs: Dict[str, Any]) -> tuple:
        extra = kwargs.get("extra", {})

        for key in list(kwargs.keys()):
            if key not in ("exc_info", "stack_info", "stacklevel", "extra"):
                extra[key] = kwargs.pop(key)

        kwargs["extra"] = extra
        return msg, kwargs


def get_logger(name: str) -> ContextLogger:
    """
    Get a structured logger for the given name.

    Args:
        name: Logger name (typically __name__)

    Returns:
        ContextLogger instance with structured output
    """
    logger = logging.getLogger(name)
    return ContextLogger(logger, {})


def setup_logging() -> None:
    """
    Configure logging for the application.

    Call this once at startup (the CLI does).
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(_get_log_level())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(_get_log_level())

    if _use_json_logging():
        handler.setFormatter(StructuredFormatter())
    else:
        handler.setFormatter(TextFormatter())

    root_logger.addHandler(handler)


@contextmanager
def operation_context(entity: str, action: str) -> Iterator[None]:
    """Tag every log line emitted inside the block with entity and action."""
    entity_token = entity_var.set(entity)
    action_token = action_var.set(action)
    try:
        yield
    finally:
        action_var.reset(action_token)
        entity_var.reset(entity_token)


# ============================================================
# METRICS
# ============================================================

@dataclass
class MetricsCollector:
    """
    Simple in-memory operation counters.

    Keys are "<entity>.<outcome>", e.g. "book.created", "book.rejected",
    "employee.rows_skipped".
    """

    counts: Counter = field(default_factory=Counter)

    def record(self, entity: str, outcome: str, amount: int = 1) -> None:
        self.counts[f"{entity}.{outcome}"] += amount

    def get(self, entity: str, outcome: str) -> int:
        return self.counts[f"{entity}.{outcome}"]

    def get_summary(self) -> Dict[str, int]:
        return dict(sorted(self.counts.items()))

    def reset(self) -> None:
        self.counts.clear()


# Global metrics instance
_metrics = MetricsCollector()


def get_metrics() -> MetricsCollector:
    """Get the global metrics collector."""
    return _metrics
