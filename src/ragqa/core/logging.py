"""
Logging utilities for the question-answering pipeline.

Provides structured logging with correlation fields for tracing a build or
query run across its stages (ingestion → segmentation → embedding →
ranking → assembly → completion).
"""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional


CORRELATION_FIELDS = ("run_id", "stage", "batch", "command")


class StructuredFormatter(logging.Formatter):
    """
    Formatter that outputs JSON-structured log lines.

    Each log line includes:
    - Standard log fields (timestamp, level, message, logger)
    - Correlation fields if present (run_id, stage, batch, command)
    """

    def __init__(self, include_timestamp: bool = True):
        super().__init__()
        self.include_timestamp = include_timestamp

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record as JSON."""
        log_entry = {
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        if self.include_timestamp:
            log_entry["timestamp"] = datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat()

        for name in CORRELATION_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_entry[name] = value

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Formatter that outputs human-readable log lines with correlation context.

    Format: TIMESTAMP - LOGGER - LEVEL - MESSAGE [run_id=X stage=Y]
    """

    def __init__(self, include_timestamp: bool = True):
        if include_timestamp:
            fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
        else:
            fmt = "%(name)s - %(levelname)s - %(message)s"
        super().__init__(fmt)

    def format(self, record: logging.LogRecord) -> str:
        """Format the log record with correlation context."""
        base = super().format(record)

        context_parts = []
        for name in ("run_id", "stage"):
            value = getattr(record, name, None)
            if value is not None:
                context_parts.append(f"{name}={value}")

        if context_parts:
            return f"{base} [{' '.join(context_parts)}]"
        return base


def configure_logging(
    level: int = logging.INFO,
    include_timestamp: bool = True,
    structured: bool = False,
) -> None:
    """
    Configure logging for the ragqa package.

    Args:
        level: Logging level (default: INFO)
        include_timestamp: Whether to include timestamp in log messages
        structured: If True, output JSON-structured logs; if False, human-readable
    """
    package_logger = logging.getLogger("ragqa")
    package_logger.setLevel(level)

    # Only add handler if none exist (avoid duplicate handlers)
    if not package_logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)

        if structured:
            formatter = StructuredFormatter(include_timestamp=include_timestamp)
        else:
            formatter = HumanReadableFormatter(include_timestamp=include_timestamp)

        handler.setFormatter(formatter)
        package_logger.addHandler(handler)
    else:
        for handler in package_logger.handlers:
            handler.setLevel(level)


class CorrelationContext:
    """
    Context manager for adding correlation fields to log records.

    Example:
        >>> with CorrelationContext(run_id="abc", stage="embedding"):
        ...     log_with_context(logger, logging.INFO, "Embedding batch")
    """

    _current: Optional["CorrelationContext"] = None

    def __init__(
        self,
        run_id: Optional[str] = None,
        stage: Optional[str] = None,
        **extra: Any,
    ):
        parent = CorrelationContext.get_current()
        own = {"run_id": run_id, "stage": stage, **extra}
        parent.update({k: v for k, v in own.items() if v is not None})
        self.context = parent
        self._previous: Optional["CorrelationContext"] = None

    def __enter__(self) -> "CorrelationContext":
        self._previous = CorrelationContext._current
        CorrelationContext._current = self
        return self

    def __exit__(self, *args) -> None:
        CorrelationContext._current = self._previous

    @classmethod
    def get_current(cls) -> Dict[str, Any]:
        """Get the current correlation context."""
        if cls._current is None:
            return {}
        return cls._current.context.copy()


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    **extra: Any,
) -> None:
    """
    Log a message with correlation context.

    Merges the current CorrelationContext with any extra fields provided.
    """
    context = CorrelationContext.get_current()
    context.update(extra)
    logger.log(level, message, extra=context)
