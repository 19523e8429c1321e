"""
Logging setup for the CLI and embedding hosts.

Log lines are either plain text or one JSON object per line. JSON lines
carry the store context (which backend, which operation, which record)
when a record was logged through ``StoreLoggerAdapter`` or with ``extra``.
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

#: Record attributes copied into JSON lines when present.
CONTEXT_FIELDS = ("backend", "operation", "target", "record_id", "key")

PLAIN_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class StructuredJsonFormatter(logging.Formatter):
    """Render a record as a single JSON line.

    Always present: ``timestamp`` (UTC, ISO 8601), ``level``, ``logger`` and
    ``message``. Context fields are added only when set on the record.
    """

    def format(self, record: logging.LogRecord) -> str:
        line: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                line[name] = value if isinstance(value, (str, int, float, bool)) else str(value)
        if record.exc_info:
            line["exception"] = self.formatException(record.exc_info)
        return json.dumps(line, ensure_ascii=False)


def configure_structured_logging(
    level: int = logging.INFO,
    logger_name: str | None = None,
    json_output: bool = True,
) -> logging.Logger:
    """Point a logger at stderr, replacing any handlers it already has.

    Args:
        level: Logging level
        logger_name: Logger to configure (default: root logger)
        json_output: JSON lines when true, plain text otherwise

    Returns:
        The configured logger
    """
    logger = logging.getLogger(logger_name)
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    formatter = StructuredJsonFormatter() if json_output else logging.Formatter(PLAIN_FORMAT)
    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def get_store_logger(name: str) -> logging.Logger:
    """Return the ``dualstore.<name>`` logger (e.g. ``sync``, ``sqlite``)."""
    return logging.getLogger(f"dualstore.{name}")


class StoreLoggerAdapter(logging.LoggerAdapter):
    """Attach fixed store context to every record.

    Context given at the call site through ``extra`` takes precedence over
    the adapter's own.
    """

    def process(self, msg: str, kwargs: dict[str, Any]) -> tuple[str, dict[str, Any]]:
        kwargs["extra"] = {**self.extra, **kwargs.get("extra", {})}
        return msg, kwargs
