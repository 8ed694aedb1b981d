"""Logging infrastructure for the Recipe Wildcard AI core.

Provides centralized logging with configurable format (text/JSON) and level.
Configured via environment variables:
- LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
- LOG_TYPE: text, json (default: text)

Pipeline runs and wizard transitions carry context on every record
(``run_id``, ``variant``, ``wizard_step``). Bind it once with
``log_context(run_id=..., variant=...)`` instead of repeating ``extra=``.
"""

import json
import logging
import os
import sys
from typing import Any

CONTEXT_FIELDS = ("run_id", "variant", "wizard_step")

# Client libraries that log every HTTP request at INFO
QUIET_LIBRARIES = ("google.genai", "aiohttp", "httpx", "hpack", "postgrest", "supabase")


def record_context(record: logging.LogRecord) -> dict[str, Any]:
    """Context fields present on the record, in CONTEXT_FIELDS order."""
    return {field: getattr(record, field) for field in CONTEXT_FIELDS if getattr(record, field, None) is not None}


class JSONFormatter(logging.Formatter):
    """One JSON object per record; context fields become top-level keys."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            **record_context(record),
        }
        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)


class RichTextFormatter(logging.Formatter):
    """Colored console lines with an icon and a compact context tag.

    Example: ``🍳 2026-01-01 12:00:00 INFO  recipe_wildcard [import 1f2e3d4c] Calling model``
    """

    COLORS = {
        "DEBUG": "\033[36m",      # Cyan
        "INFO": "\033[32m",       # Green
        "WARNING": "\033[33m",    # Yellow
        "ERROR": "\033[31m",      # Red
        "RESET": "\033[0m",
    }

    ICONS = {
        "DEBUG": "🔍",
        "INFO": "🍳",
        "WARNING": "⚠️",
        "ERROR": "❌",
    }

    @staticmethod
    def context_tag(record: logging.LogRecord) -> str:
        context = record_context(record)
        parts = [context[key] for key in ("variant", "run_id") if key in context]
        tag = f"[{' '.join(parts)}] " if parts else ""
        if "wizard_step" in context:
            tag += f"<{context['wizard_step']}> "
        return tag

    def format(self, record: logging.LogRecord) -> str:
        level = record.levelname
        color = self.COLORS.get(level, self.COLORS["RESET"])
        icon = self.ICONS.get(level, "")
        reset = self.COLORS["RESET"]

        timestamp = self.formatTime(record, "%Y-%m-%d %H:%M:%S")
        message = (
            f"{color}{icon} {timestamp} {level:<8} {record.name:<20} "
            f"{self.context_tag(record)}{record.getMessage()}{reset}"
        )
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

    log_level = getattr(logging, os.getenv("LOG_LEVEL", "INFO").upper(), logging.INFO)
    log_type = os.getenv("LOG_TYPE", "text").lower()
    logger_instance.setLevel(log_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if log_type == "json" else RichTextFormatter())
    logger_instance.addHandler(handler)

    return logger_instance


def log_context(**fields: Any) -> logging.LoggerAdapter:
    """Adapter over the module logger that stamps ``fields`` on every record."""
    unknown = set(fields) - set(CONTEXT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown log context fields: {', '.join(sorted(unknown))}")
    return logging.LoggerAdapter(logger, fields)


logger = get_logger("recipe_wildcard")

for library in QUIET_LIBRARIES:
    logging.getLogger(library).setLevel(logging.WARNING)
