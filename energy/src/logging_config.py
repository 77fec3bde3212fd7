"""
Structured JSON logging configuration for the energy report tool.

Provides a custom JSON formatter and a ``setup_logging()`` function
that replaces the default logging configuration with structured output
on stderr, keeping stdout free for the report itself. Each log record
is emitted as a single JSON line containing ``timestamp``, ``level``,
``logger`` and ``message``, plus a ``context`` object when the caller
passed ``extra={"context": {...}}``.

CHANGELOG:
- 2026-10-19: Attach structured context to records (STORY-004)
- 2026-10-19: Initial creation (STORY-002)

TODO:
- None
"""

import json
import logging
import sys
from datetime import UTC, datetime

_TEXT_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class JSONFormatter(logging.Formatter):
    """Logging formatter that outputs a single JSON object per line.

    Fields emitted:
    - ``timestamp``: ISO-8601 UTC timestamp.
    - ``level``: Log level name (INFO, WARNING, ERROR, ...).
    - ``logger``: Logger name.
    - ``message``: Formatted log message.
    - ``context``: Structured diagnostic payload, only when present.
    """

    def format(self, record: logging.LogRecord) -> str:
        """Format *record* as a JSON string.

        Args:
            record: The log record to format.

        Returns:
            A single-line JSON string.
        """
        log_entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = getattr(record, "context", None)
        if context is not None:
            log_entry["context"] = context
        return json.dumps(log_entry, default=str)


class TextFormatter(logging.Formatter):
    """Plain text formatter that appends the context as compact JSON."""

    def __init__(self) -> None:
        super().__init__(_TEXT_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = getattr(record, "context", None)
        if context is not None:
            line = f"{line} {json.dumps(context, default=str, sort_keys=True)}"
        return line


def setup_logging(level: int = logging.INFO, json_output: bool = True) -> None:
    """Configure the root logger to write diagnostics to stderr.

    Removes any existing handlers on the root logger and installs
    a single ``StreamHandler`` on ``sys.stderr``.

    Args:
        level: Logging level for the root logger. Defaults to
            ``logging.INFO``.
        json_output: Use :class:`JSONFormatter` when True, otherwise
            :class:`TextFormatter`.
    """
    root = logging.getLogger()
    root.setLevel(level)

    # Remove existing handlers to avoid duplicate output.
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_output else TextFormatter())
    root.addHandler(handler)
