"""Logging setup for dataset-unpack.

Console output uses one of three formats; the optional log file always
gets JSON lines. Structured fields reach the formatters two ways: per call
through ``extra={"extra_fields": {...}}``, or for a whole block of work
through :class:`LogContext`.
"""

import json
import logging
import logging.handlers
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional

from .errors import DatasetUnpackError


def record_fields(record: logging.LogRecord) -> Dict[str, Any]:
    """Structured fields of a record; per-call fields win over context fields."""
    fields = dict(getattr(record, "context_fields", None) or {})
    fields.update(getattr(record, "extra_fields", None) or {})
    return fields


class StructuredFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            exc_type, exc, _ = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc),
                "traceback": self.formatException(record.exc_info),
            }
            # Archive errors carry the entry, path and errno they failed on
            if isinstance(exc, DatasetUnpackError) and exc.context:
                log_data["exception"]["context"] = exc.context

        log_data.update(record_fields(record))

        return json.dumps(log_data, default=str)


class _FieldsFormatter(logging.Formatter):
    """Text formatter appending structured fields as ``[key=value ...]``."""

    def formatMessage(self, record: logging.LogRecord) -> str:
        text = super().formatMessage(record)
        fields = record_fields(record)
        if fields:
            pairs = " ".join(f"{key}={value}" for key, value in fields.items())
            text = f"{text} [{pairs}]"
        return text


class DetailedFormatter(_FieldsFormatter):
    """Human-readable detailed formatter."""

    def __init__(self) -> None:
        super().__init__(
            fmt="%(asctime)s | %(levelname)-8s | %(name)s:%(funcName)s:%(lineno)d | %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )


class SimpleFormatter(_FieldsFormatter):
    """Severity, logger and message; what the CLI prints by default."""

    def __init__(self) -> None:
        super().__init__(fmt="%(levelname)-8s | %(name)s | %(message)s")


FORMATTERS = {
    "simple": SimpleFormatter,
    "detailed": DetailedFormatter,
    "json": StructuredFormatter,
}


def setup_logging(
    level: str = "INFO",
    format: str = "simple",
    log_file: Optional[Path] = None,
    max_file_size_mb: int = 10,
    backup_count: int = 5,
) -> None:
    """Configure the root logger.

    Replaces any handlers already installed, so calling it twice does not
    duplicate output.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Console format (simple, detailed, json); unknown names fall
            back to simple
        log_file: Optional log file; rotated, always JSON
        max_file_size_mb: Size at which the log file is rotated
        backup_count: Number of rotated files to keep
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setFormatter(FORMATTERS.get(format.lower(), SimpleFormatter)())
    root_logger.addHandler(console_handler)

    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_file_size_mb * 1024 * 1024,
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.setFormatter(StructuredFormatter())
        root_logger.addHandler(file_handler)


class LogContext:
    """Attach fields to every record logged under ``logger``'s namespace.

    Fields land on records as ``context_fields``. Contexts nest; the inner
    one wins on conflicting keys. The record factory is process-wide, so
    contexts belong at a single-threaded entry point such as the CLI.
    """

    def __init__(self, logger: logging.Logger, **fields: Any) -> None:
        self.logger = logger
        self.fields = fields
        self._previous_factory = None

    def _applies_to(self, name: str) -> bool:
        prefix = self.logger.name
        return prefix == "root" or name == prefix or name.startswith(f"{prefix}.")

    def __enter__(self) -> "LogContext":
        previous = self._previous_factory = logging.getLogRecordFactory()

        def record_factory(*args: Any, **kwargs: Any) -> logging.LogRecord:
            record = previous(*args, **kwargs)
            if self._applies_to(record.name):
                inherited = getattr(record, "context_fields", None) or {}
                record.context_fields = {**inherited, **self.fields}
            return record

        logging.setLogRecordFactory(record_factory)
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        logging.setLogRecordFactory(self._previous_factory)
