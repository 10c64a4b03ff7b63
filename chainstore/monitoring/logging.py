"""
Structured logging for store operations.

The store layer attaches operation context to its log records through
``extra`` (operation, key, error_type, attempt, ...). StoreJsonFormatter
emits those fields as JSON lines; setup_store_logging wires a console
handler on the "chainstore" logger namespace.

Usage:
    >>> from chainstore.monitoring.logging import setup_store_logging
    >>> setup_store_logging("DEBUG", json_format=True)
"""

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from chainstore.core.env import EnvManager

LOGGER_NAMESPACE = "chainstore"


class StoreJsonFormatter(logging.Formatter):
    """JSON formatter that carries store operation context."""

    # Fields to extract from log record if present
    _EXTRA_FIELDS = (
        "operation",
        "key",
        "error_type",
        "original_error",
        "attempt",
        "max_attempts",
        "duration_ms",
        "ttl",
    )

    def format(self, record: logging.LogRecord) -> str:
        log_entry = self._build_base_entry(record)
        self._add_record_extras(log_entry, record)
        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_entry, default=str)

    def _build_base_entry(self, record: logging.LogRecord) -> dict[str, Any]:
        return {
            "timestamp": datetime.fromtimestamp(record.created, UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

    def _add_record_extras(self, log_entry: dict[str, Any], record: logging.LogRecord) -> None:
        for field in self._EXTRA_FIELDS:
            value = getattr(record, field, None)
            if value is not None:
                log_entry[field] = value


def setup_store_logging(
    log_level: str = "INFO",
    json_format: bool = False,
    stream: Any = None,
) -> logging.Logger:
    """
    Configure console logging for the chainstore namespace.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR)
        json_format: Emit JSON lines instead of plain text
        stream: Target stream (stderr by default)

    Returns:
        The configured namespace logger
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        msg = f"Unknown log level: {log_level}"
        raise ValueError(msg)

    root_logger = logging.getLogger(LOGGER_NAMESPACE)
    root_logger.setLevel(level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler(stream or sys.stderr)
    if json_format:
        console_handler.setFormatter(StoreJsonFormatter())
    else:
        console_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
    root_logger.addHandler(console_handler)

    return root_logger


def setup_logging_from_env(env: EnvManager | None = None) -> logging.Logger:
    """Configure logging from CHAINSTORE_LOG_LEVEL and CHAINSTORE_LOG_FORMAT."""
    env = env or EnvManager()
    return setup_store_logging(
        log_level=env.get("CHAINSTORE_LOG_LEVEL", "INFO"),  # type: ignore[arg-type]
        json_format=(env.get("CHAINSTORE_LOG_FORMAT", "text") or "").lower() == "json",
    )
