"""Logging configuration for forgekit."""

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any

# Attributes forgekit attaches via ``logger.info(..., extra={...})``
EXTRA_FIELDS = ("event", "file", "action", "duration_ms", "task")


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {name: getattr(record, name) for name in EXTRA_FIELDS if hasattr(record, name)}


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat().replace("+00:00", "Z"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **_extras(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class ConsoleFormatter(logging.Formatter):
    """Colored single-line output with write/hook fields in brackets."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname, "")
        timestamp = datetime.now().strftime("%H:%M:%S")

        parts = []
        for name, value in _extras(record).items():
            parts.append(f"{value:.1f}ms" if name == "duration_ms" else f"{name}={value}")
        suffix = f" [{', '.join(parts)}]" if parts else ""

        message = f"{timestamp} {color}{record.levelname:8}{self.RESET} {record.name}: {record.getMessage()}{suffix}"
        if record.exc_info:
            message += "\n" + self.formatException(record.exc_info)
        return message


def setup_logging(debug: bool = False, json_logs: bool = False) -> None:
    """Configure the root logger.

    Args:
        debug: Enable debug level logging
        json_logs: Use JSON format (ignored in debug mode)
    """
    level = logging.DEBUG if debug else logging.INFO

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(JSONFormatter() if json_logs and not debug else ConsoleFormatter())

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    for existing_handler in root_logger.handlers[:]:
        root_logger.removeHandler(existing_handler)
    root_logger.addHandler(handler)

    logging.getLogger(__name__).debug(
        f"Logging configured: level={logging.getLevelName(level)}, json={json_logs}"
    )


def configure_logging(config=None) -> None:
    """Set up logging from ``FORGEKIT_DEBUG`` / ``FORGEKIT_JSON_LOGS``.

    Call once from the embedding application's entry point.
    """
    from forgekit.config import settings

    config = config or settings
    setup_logging(debug=config.debug, json_logs=config.json_logs)
