"""
FHEVM SDK structured logging.

Provides consistent logging across the SDK with:
- JSON output for production (FHEVM_ENVIRONMENT=production)
- Compact human-readable output for development
- Redaction of signatures, key material and other secrets passed as extras

Usage:
    from fhevm_sdk.logging import get_logger, configure_logging

    configure_logging(level="DEBUG")
    logger = get_logger(__name__)
    logger.debug("Key cache hit", extra={"contract_address": "0x..."})
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

ROOT_LOGGER = "fhevm_sdk"

# Extra field names that must never reach a log sink
SENSITIVE_PATTERNS = frozenset(
    {
        "signature",
        "authorization",
        "key_material",
        "public_key",
        "private_key",
        "secret",
        "token",
        "api_key",
        "password",
    }
)

# Attributes every LogRecord carries; anything else came in through `extra`
_RECORD_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "taskName"}


def _is_sensitive_key(key: str) -> bool:
    key_lower = key.lower()
    return any(pattern in key_lower for pattern in SENSITIVE_PATTERNS)


def _redact(data: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively replace sensitive values in a mapping."""
    redacted = {}
    for key, value in data.items():
        if _is_sensitive_key(key):
            redacted[key] = "[REDACTED]"
        elif isinstance(value, dict):
            redacted[key] = _redact(value)
        else:
            redacted[key] = value
    return redacted


def _extra_fields(record: logging.LogRecord) -> Dict[str, Any]:
    extras = {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}
    return _redact(extras)


class StructuredFormatter(logging.Formatter):
    """JSON formatter for production log pipelines."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        extras = _extra_fields(record)
        if extras:
            log_data["extra"] = extras

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class DevelopmentFormatter(logging.Formatter):
    """Human-readable formatter for local development."""

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
        reset = self.RESET if color else ""

        timestamp = datetime.fromtimestamp(record.created).strftime("%H:%M:%S.%f")[:-3]
        name = record.name.split(".")[-1][:12].ljust(12)
        formatted = f"{timestamp} {color}{record.levelname:8}{reset} {name} {record.getMessage()}"

        extras = _extra_fields(record)
        if extras:
            formatted += " " + " ".join(f"{k}={v}" for k, v in extras.items())

        if record.exc_info:
            formatted += "\n" + self.formatException(record.exc_info)

        return formatted


def configure_logging(
    level: str = "INFO",
    json_format: Optional[bool] = None,
    stream: Any = None,
) -> None:
    """
    Configure logging for the SDK.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        json_format: Use JSON output. Default: True when FHEVM_ENVIRONMENT=production
        stream: Output stream. Default: sys.stderr
    """
    if json_format is None:
        json_format = os.environ.get("FHEVM_ENVIRONMENT", "development") == "production"

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(getattr(logging, level.upper()))
    root_logger.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setFormatter(StructuredFormatter() if json_format else DevelopmentFormatter())
    root_logger.addHandler(handler)

    root_logger.propagate = False


def get_logger(name: str) -> logging.Logger:
    """Get a logger namespaced under the SDK root logger."""
    if not name.startswith(ROOT_LOGGER):
        name = f"{ROOT_LOGGER}.{name}"
    return logging.getLogger(name)


if not logging.getLogger(ROOT_LOGGER).handlers:
    configure_logging(level=os.environ.get("FHEVM_LOG_LEVEL", "WARNING"))


__all__ = [
    "configure_logging",
    "get_logger",
    "StructuredFormatter",
    "DevelopmentFormatter",
]
