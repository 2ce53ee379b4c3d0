"""Logging infrastructure for Chef Assistant.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Records may carry context passed via ``extra``:
- request_id: forwarder request correlation id
- upstream_status: HTTP status returned by the upstream API
- generation: suggestion client search generation
"""

import json
import logging
import os
import sys
from typing import Any

# Context attributes copied from log records into formatted output, in order
CONTEXT_FIELDS = ("request_id", "upstream_status", "generation")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Collect the context fields present on a log record.

    Args:
        record: Log record, possibly carrying attributes set via ``extra``.

    Returns:
        Mapping of context field name to value, only for fields that are set.
    """
    return {
        field: getattr(record, field)
        for field in CONTEXT_FIELDS
        if getattr(record, field, None) is not None
    }


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON."""

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as JSON.

        Args:
            record: Log record to format.

        Returns:
            JSON string with timestamp, level, logger name, message, context
            fields, and optional traceback.
        """
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        # Include exception traceback if present
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        # Include request_id, upstream_status and generation if present in record
        log_data.update(record_context(record))

        return json.dumps(log_data)


class RichTextFormatter(logging.Formatter):
    """Formatter that outputs colored text with emoji icons."""

    # ANSI color codes
    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "RESET": "\033[0m",       # Reset
    }

    # Emoji icons for each level
    ICONS = {
        "DEBUG": "🔍",
        "INFO": "ℹ️",
        "WARNING": "⚠️",
        "ERROR": "❌",
    }

    def format(self, record: logging.LogRecord) -> str:
        """Format log record as colored text.

        Args:
            record: Log record to format.

        Returns:
            Formatted string with color codes, emoji icon and, when present,
            a trailing [key=value ...] context block.
        """
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        icon = self.ICONS.get(level, "")
        reset = self.COLORS["RESET"]

        # Format: YYYY-MM-DD HH:MM:SS
        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")

        # Build message
        message = f"{color}{icon} {timestamp} {level:<8} {record.name:<16} {record.getMessage()}"

        # Append context fields, e.g. [request_id=1a2b3c4d upstream_status=503]
        context = record_context(record)
        if context:
            message += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"

        message += reset

        # Include exception traceback if present
        if record.exc_info:
            message += f"\n{self.formatException(record.exc_info)}"

        return message


def get_logger(name: str) -> logging.Logger:
    """Create and configure logger instance.

    Args:
        name: Logger name, typically module name.

    Returns:
        Configured logger instance.
    """
    logger_instance = logging.getLogger(name)

    # Return existing logger if already configured
    if logger_instance.handlers:
        return logger_instance

    # Read configuration from environment
    log_level_str = os.getenv("LOG_LEVEL", "INFO").upper()
    log_type = os.getenv("LOG_TYPE", "text").lower()

    # Set log level
    log_level = getattr(logging, log_level_str, logging.INFO)
    logger_instance.setLevel(log_level)

    # Create console handler; stdout belongs to query.py results
    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(log_level)

    # Choose and attach formatter
    if log_type == "json":
        formatter = JSONFormatter()
    else:
        formatter = RichTextFormatter()

    handler.setFormatter(formatter)
    logger_instance.addHandler(handler)

    return logger_instance


# Create module-level logger instance
logger = get_logger("chef_assistant")

# Suppress verbose informational logs from external libraries
# (per-request access lines and SDK debug messages clutter output)
logging.getLogger("aiohttp.access").setLevel(logging.WARNING)  # Suppress forwarder access lines
logging.getLogger("google.genai").setLevel(logging.WARNING)  # Suppress Gemini debug logs
