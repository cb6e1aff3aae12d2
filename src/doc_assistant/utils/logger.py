"""
Logging Utilities

Structured logging for the document assistant.

- Colored console output while developing
- One JSON object per line in production (JSON_LOGGING=true)
- Structured fields via extra={"extra_fields": {...}}
"""

import os
import sys
import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional
from dotenv import load_dotenv

load_dotenv()

LOG_LEVEL = os.getenv("LOG_LEVEL", "info").upper()

JSON_LOGGING = os.getenv("JSON_LOGGING", "false").lower() == "true"

PACKAGE_PREFIX = "doc_assistant."

# Libraries that log every request at INFO
NOISY_LOGGERS = ("slack_sdk", "httpx", "openai", "chromadb", "uvicorn.access")


def _short_name(name: str) -> str:
    return name[len(PACKAGE_PREFIX):] if name.startswith(PACKAGE_PREFIX) else name


class JSONFormatter(logging.Formatter):
    """Emit each record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "module": _short_name(record.name),
            "msg": record.getMessage(),
        }

        fields = getattr(record, "extra_fields", None)
        if fields:
            entry.update(fields)

        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)

        # Slack and OpenAI payloads can contain datetimes and pydantic models
        return json.dumps(entry, default=str)


class ConsoleFormatter(logging.Formatter):
    """Human-readable lines with a colored level tag."""

    LEVEL_COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(self, use_color: bool = True):
        super().__init__()
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        level = f"{record.levelname:7}"
        if self.use_color and record.levelname in self.LEVEL_COLORS:
            level = f"{self.LEVEL_COLORS[record.levelname]}{level}{self.RESET}"

        clock = datetime.fromtimestamp(record.created).strftime("%H:%M:%S")
        line = f"{clock} {level} {_short_name(record.name)}: {record.getMessage()}"

        fields = getattr(record, "extra_fields", None)
        if fields:
            line += " | " + " ".join(f"{k}={v}" for k, v in fields.items())

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)

        return line


def setup_logging(level: Optional[str] = None, json_logging: Optional[bool] = None) -> None:
    """
    Configure the root logger. Call once, before the server starts.

    Args:
        level: debug, info, warning or error (defaults to LOG_LEVEL)
        json_logging: Force JSON output on or off (defaults to JSON_LOGGING)
    """
    log_level = getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO)
    use_json = JSON_LOGGING if json_logging is None else json_logging

    root = logging.getLogger()
    root.setLevel(log_level)
    for existing in root.handlers[:]:
        root.removeHandler(existing)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(JSONFormatter() if use_json else ConsoleFormatter(use_color=sys.stdout.isatty()))
    root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Get the logger for a module (pass __name__)."""
    return logging.getLogger(name)


def log_tool_call(
    logger: logging.Logger,
    tool_name: str,
    args: dict,
    result: Optional[Any] = None,
    error: Optional[str] = None,
    duration_ms: Optional[float] = None,
) -> None:
    """
    Record one tool dispatch.

    Failures are logged at WARNING: the error is reported back to the user
    in the chat response, so it is not a server fault.

    Args:
        logger: Logger of the calling module
        tool_name: Tool the model requested
        args: Validated tool arguments
        result: Status report payload, on success
        error: Error code, on failure
        duration_ms: Time spent in the tool
    """
    fields: dict[str, Any] = {"tool": tool_name, "args": json.dumps(args or {}, sort_keys=True)}
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 1)

    if error:
        fields["error"] = error
        logger.warning(f"{tool_name} returned an error", extra={"extra_fields": fields})
        return

    if isinstance(result, dict) and "total" in result:
        fields["users"] = result["total"]
    logger.info(f"{tool_name} completed", extra={"extra_fields": fields})


def log_chat_response(
    logger: logging.Logger,
    user_message: str,
    prompt_kind: str,
    document_count: int,
    context_length: int,
    response: Optional[str],
    duration_ms: Optional[float] = None,
    tool_used: Optional[str] = None,
) -> None:
    """
    Record a finished chat turn. Message text is never logged, only sizes.

    Args:
        logger: Logger of the calling module
        user_message: The user's message
        prompt_kind: System prompt that was selected (basic, no_match, context)
        document_count: Documents attached to the request
        context_length: Characters of retrieved context
        response: Text sent back (None when a tool result is returned)
        duration_ms: End-to-end handling time
        tool_used: Tool the model requested, if any
    """
    fields: dict[str, Any] = {
        "prompt": prompt_kind,
        "documents": document_count,
        "context_chars": context_length,
        "message_chars": len(user_message),
        "response_chars": len(response or ""),
    }
    if duration_ms is not None:
        fields["duration_ms"] = round(duration_ms, 1)
    if tool_used:
        fields["tool"] = tool_used

    logger.info("Chat turn answered", extra={"extra_fields": fields})
