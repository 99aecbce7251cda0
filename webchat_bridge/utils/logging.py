"""
Structured JSON logging for webchat-bridge.

Provides standardized logging with:
- JSON formatted output to stderr
- UTC timestamps with timezone info
- Structured context fields
- Redaction of DevTools session ids and bearer tokens
- Component-based logger creation

All logs use Python's standard logging module with custom formatting.
Log level defaults to INFO, use setup_logging(verbose=True) for DEBUG.

Examples:
    >>> from webchat_bridge.utils.logging import setup_logging, get_logger
    >>> setup_logging(verbose=True)
    >>> logger = get_logger("bridge.tabs")
    >>> logger.info("Tab selected", extra={"context": {"url": "https://claude.ai/new"}})

Security:
    - A DevTools websocket URL grants full control of the browser; its
      session id is never logged in full
    - Only stderr is used (stdout reserved for user output)
"""

import json
import logging
import re
import sys
from typing import Any

from webchat_bridge.utils.time import utc_timestamp


class JSONFormatter(logging.Formatter):
    """
    Custom formatter that outputs logs as JSON with structured fields.

    Each log record is formatted as a JSON object with:
    - timestamp: ISO 8601 UTC timestamp
    - level: Log level (INFO, WARNING, ERROR, DEBUG)
    - component: Module/component name (from logger name)
    - message: Human-readable log message
    - context: Additional structured data (from 'context' in extra)
    - exception: Formatted traceback when exc_info is set
    """

    def format(self, record: logging.LogRecord) -> str:
        log_entry = {
            "timestamp": utc_timestamp(),
            "level": record.levelname,
            "component": record.name,
            "message": record.getMessage(),
        }

        if hasattr(record, "context") and isinstance(record.context, dict):
            log_entry["context"] = record.context

        if record.exc_info:
            log_entry["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_entry)


class SecretRedactingFilter(logging.Filter):
    """
    Logging filter that redacts browser control secrets from log messages.

    Prevents accidental logging of:
    - DevTools websocket session ids (ws://host:9222/devtools/browser/<uuid>)
    - Bearer tokens

    Replaces secrets with redacted versions showing only last 4 chars:
    "/devtools/browser/3f1e...c9a2" -> "/devtools/browser/***c9a2"
    "Bearer abc123xyz789..." -> "Bearer ***z789"
    """

    SECRET_PATTERNS = [
        (
            re.compile(r"/devtools/(browser|page)/[a-zA-Z0-9-]{8,}"),
            "/devtools/{kind}/***{last4}",
        ),
        (re.compile(r"\bBearer\s+[a-zA-Z0-9_.-]{20,}\b"), "Bearer ***{last4}"),
    ]

    def filter(self, record: logging.LogRecord) -> bool:
        record.msg = self._redact_secrets(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {
                    k: self._redact_secrets(str(v)) for k, v in record.args.items()
                }
            elif isinstance(record.args, tuple):
                record.args = tuple(
                    self._redact_secrets(str(arg)) for arg in record.args
                )

        if hasattr(record, "context") and isinstance(record.context, dict):
            record.context = self._redact_dict(record.context)

        return True

    def _redact_secrets(self, text: str) -> str:
        for pattern, template in self.SECRET_PATTERNS:

            def redact_match(match: re.Match) -> str:
                matched = match.group(0)
                kind = match.group(1) if match.groups() else ""
                return template.format(kind=kind, last4=matched[-4:])

            text = pattern.sub(redact_match, text)

        return text

    def _redact_dict(self, data: dict[str, Any]) -> dict[str, Any]:
        result = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self._redact_secrets(value)
            elif isinstance(value, dict):
                result[key] = self._redact_dict(value)
            elif isinstance(value, list):
                result[key] = [
                    self._redact_secrets(v) if isinstance(v, str) else v for v in value
                ]
            else:
                result[key] = value
        return result


def setup_logging(verbose: bool = False) -> None:
    """
    Configure structured JSON logging for the application.

    Sets up a stderr handler with the JSON formatter and the redacting
    filter. Log level is DEBUG if verbose=True, INFO otherwise.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG if verbose else logging.INFO)

    # Remove any existing handlers (prevents duplicate logs)
    root_logger.handlers.clear()

    handler = logging.StreamHandler(sys.stderr)
    handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(SecretRedactingFilter())

    root_logger.addHandler(handler)


def get_logger(component: str) -> logging.Logger:
    """Get a logger instance for a specific component."""
    return logging.getLogger(component)


def log_with_context(
    logger: logging.Logger,
    level: int,
    message: str,
    context: dict[str, Any] | None = None,
) -> None:
    """
    Log a message with structured context.

    Equivalent to logger.log(level, message, extra={'context': {...}})

    Example:
        >>> logger = get_logger("bridge.stream")
        >>> log_with_context(
        ...     logger,
        ...     logging.INFO,
        ...     "Reply scraped",
        ...     context={"platform": "claude", "chars": 812},
        ... )
    """
    extra = {"context": context} if context is not None else None
    logger.log(level, message, extra=extra)
