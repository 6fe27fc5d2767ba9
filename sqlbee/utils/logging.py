"""Logging helpers for sqlbee.

Library modules take a logger from :func:`get_logger` and attach structured fields
with :func:`log_with_context`. Nothing is configured on import: an application, or
the ``sqlbee`` console script, calls :func:`configure_logging` to send records to
stderr as JSON lines or as plain text.
"""

import json
import logging
import sys
from contextvars import ContextVar
from typing import Any, Optional

from sqlbee.exceptions import ImproperConfigurationError

__all__ = (
    "SimpleFormatter",
    "StructuredFormatter",
    "configure_logging",
    "get_correlation_id",
    "get_logger",
    "log_with_context",
    "record_fields",
    "set_correlation_id",
)

ROOT_LOGGER_NAME = "sqlbee"
FIELDS_ATTRIBUTE = "extra_fields"
SIMPLE_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_correlation_id: "ContextVar[Optional[str]]" = ContextVar("sqlbee_correlation_id", default=None)


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Tag records formatted in the current context with ``correlation_id``; ``None`` clears it."""
    _correlation_id.set(correlation_id)


def get_correlation_id() -> Optional[str]:
    return _correlation_id.get()


def record_fields(record: logging.LogRecord) -> "dict[str, Any]":
    """The fields :func:`log_with_context` attached to ``record``."""
    return dict(getattr(record, FIELDS_ATTRIBUTE, None) or {})


class StructuredFormatter(logging.Formatter):
    """Formats each record as a single JSON object.

    The object holds the time, level, logger name and message, then the correlation
    id when one is set, then the record's fields, then the traceback if any.
    """

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "time": self.formatTime(record, self.datefmt),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            entry["correlation_id"] = correlation_id
        for key, value in record_fields(record).items():
            entry.setdefault(key, value)
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)


class SimpleFormatter(logging.Formatter):
    """One text line per record, with the record's fields appended as ``key=value``."""

    def __init__(self) -> None:
        super().__init__(SIMPLE_FORMAT)

    def formatMessage(self, record: logging.LogRecord) -> str:  # noqa: N802
        line = super().formatMessage(record)
        fields = record_fields(record)
        correlation_id = get_correlation_id()
        if correlation_id is not None:
            fields.setdefault("correlation_id", correlation_id)
        if not fields:
            return line
        return line + " " + " ".join(f"{key}={value}" for key, value in fields.items())


FORMATTERS: "dict[str, type[logging.Formatter]]" = {
    "structured": StructuredFormatter,
    "simple": SimpleFormatter,
}


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ``sqlbee`` logger, or the child logger ``sqlbee.<name>``.

    Names already under the ``sqlbee`` namespace are used as given.
    """
    if not name or name == ROOT_LOGGER_NAME:
        return logging.getLogger(ROOT_LOGGER_NAME)
    if name.startswith(ROOT_LOGGER_NAME + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")


def configure_logging(
    level: str = "INFO",
    format_style: str = "structured",
    log_to_file: Optional[str] = None,
    extra_handlers: "Optional[list[logging.Handler]]" = None,
) -> logging.Logger:
    """Install handlers on the ``sqlbee`` logger, replacing any installed before.

    Args:
        level: Level name, such as ``DEBUG`` or ``warning``.
        format_style: ``structured`` for JSON lines or ``simple`` for text, on stderr.
        log_to_file: Also write JSON lines to this path.
        extra_handlers: Handlers added as given, keeping their own formatters.

    Raises:
        ImproperConfigurationError: If the level or format style is unknown.

    Returns:
        The configured ``sqlbee`` logger.
    """
    level_number = logging.getLevelName(level.upper())
    if not isinstance(level_number, int):
        msg = f"unknown log level: {level}"
        raise ImproperConfigurationError(msg)
    formatter_class = FORMATTERS.get(format_style)
    if formatter_class is None:
        msg = f"unknown log format: {format_style} (expected one of {', '.join(FORMATTERS)})"
        raise ImproperConfigurationError(msg)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    handlers[0].setFormatter(formatter_class())
    if log_to_file:
        handlers.append(logging.FileHandler(log_to_file))
        handlers[-1].setFormatter(StructuredFormatter())
    handlers.extend(extra_handlers or ())

    root = logging.getLogger(ROOT_LOGGER_NAME)
    for handler in list(root.handlers):
        root.removeHandler(handler)
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level_number)
    root.propagate = False

    log_with_context(
        root, logging.DEBUG, "sqlbee logging configured", level=level, format_style=format_style, handlers=len(handlers)
    )
    return root


def log_with_context(logger: logging.Logger, level: int, message: str, /, **fields: Any) -> None:
    """Log ``message`` with ``fields`` attached for the sqlbee formatters.

    Args:
        logger: The logger to use.
        level: Log level.
        message: Log message, used as is.
        **fields: Structured fields, such as ``transformer="softdelete"``.
    """
    if logger.isEnabledFor(level):
        logger.log(level, message, extra={FIELDS_ATTRIBUTE: fields}, stacklevel=2)
