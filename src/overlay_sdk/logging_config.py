"""
Structured logging configuration for the Overlay SDK.

Provides JSON-formatted structured logging with:
- Security filtering (no wallet keys, mnemonics or keyed RPC URLs)
- Low-cardinality fields (RPC URLs reduced to host, no raw payloads)
- Decimal values rendered as strings, never floats

Usage:
    from overlay_sdk.logging_config import setup_logging, get_logger

    setup_logging()  # Call once at startup
    logger = get_logger(__name__)
    logger.info("message", extra={"key": "value"})
"""

from __future__ import annotations

import json
import logging
import re
import sys
from datetime import UTC, datetime
from decimal import Decimal
from typing import Any
from urllib.parse import urlsplit

# Matches URLs; RPC providers embed API keys in the path or query
_URL_PATTERN = re.compile(r"(https?://[^\s\"'<>]+|wss?://[^\s\"'<>]+)")
_SENSITIVE_PATTERNS: list[tuple[re.Pattern[str], str]] = [
    # 0x-prefixed 32-byte private keys (an address is only 20 bytes)
    (re.compile(r"\b0x[0-9a-fA-F]{64}\b"), "[PRIVATE_KEY]"),
    # key=value style secrets
    (
        re.compile(
            r"\b(private[_-]?key|api[_-]?key|apikey|mnemonic|seed)[=:]\s*['\"]?[^\s'\"]+['\"]?",
            re.I,
        ),
        "[SECRET]",
    ),
    # Bearer tokens
    (re.compile(r"\b(bearer|token)[=:\s]+['\"]?[\w\-\.]+['\"]?", re.I), "[TOKEN]"),
]

# Fields that should NEVER appear in logs
BLOCKED_FIELDS: frozenset[str] = frozenset(
    {
        "private_key",
        "privatekey",
        "mnemonic",
        "seed",
        "keystore",
        "passphrase",
        "password",
        "secret",
        "api_key",
        "token",
        "authorization",
    }
)

# field -> replacement for high-cardinality values
HIGH_CARDINALITY_FIELDS: dict[str, str] = {
    "rpc_url": "rpc_host",  # Host only
    "calldata": "[CALLDATA]",
    "payload": "[PAYLOAD]",
    "positions": "[POSITIONS_LIST]",
}

# LogRecord attributes that are not user extras
_RECORD_ATTRS: frozenset[str] = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "stack_info",
        "exc_info",
        "exc_text",
        "thread",
        "threadName",
        "message",
        "taskName",
    }
)


def _url_host(url: str) -> str:
    """Reduce a URL to scheme://host, dropping path, query and userinfo."""
    parts = urlsplit(url)
    host = parts.hostname or ""
    if not host:
        return "[URL]"
    return f"{parts.scheme}://{host}"


def _sanitize_text(text: str) -> str:
    """Sanitize free-form text (msg, exc) to remove secrets.

    - URLs -> scheme://host
    - 32-byte hex keys -> [PRIVATE_KEY]
    - key=value secrets, bearer tokens -> redacted
    """
    if not text:
        return text

    result = _URL_PATTERN.sub(lambda m: _url_host(m.group(1)), text)
    for pattern, replacement in _SENSITIVE_PATTERNS:
        result = pattern.sub(replacement, result)
    return result


def _filter_log_record(record: dict[str, Any], *, _depth: int = 0) -> dict[str, Any]:
    """Filter sensitive and high-cardinality fields from log record.

    Recursively filters nested dicts up to depth 3.
    """
    if _depth > 3:
        return {"_truncated": "max depth exceeded"}

    filtered: dict[str, Any] = {}

    for key, value in record.items():
        key_lower = key.lower()

        if any(blocked in key_lower for blocked in BLOCKED_FIELDS):
            continue

        if key_lower in HIGH_CARDINALITY_FIELDS:
            if key_lower == "rpc_url" and isinstance(value, str):
                filtered["rpc_host"] = _url_host(value)
            else:
                filtered[key] = HIGH_CARDINALITY_FIELDS[key_lower]
            continue

        if isinstance(value, (bool, int, float, type(None))):
            filtered[key] = value
        elif isinstance(value, Decimal):
            filtered[key] = str(value)
        elif isinstance(value, str):
            filtered[key] = _sanitize_text(value)
        elif isinstance(value, (list, tuple)):
            if len(value) <= 10:
                filtered[key] = [str(v) if isinstance(v, Decimal) else v for v in value]
            else:
                filtered[key] = f"[list:{len(value)} items]"
        elif isinstance(value, dict):
            filtered[key] = _filter_log_record(value, _depth=_depth + 1)
        else:
            filtered[key] = _sanitize_text(str(value))

    return filtered


def _extras(record: logging.LogRecord) -> dict[str, Any]:
    return {k: v for k, v in record.__dict__.items() if k not in _RECORD_ATTRS}


class JsonFormatter(logging.Formatter):
    """JSON log formatter, one object per line.

    Output format:
    {"ts":"2024-01-01T00:00:00.000+00:00","level":"INFO","logger":"module","msg":"...", ...}
    """

    def format(self, record: logging.LogRecord) -> str:
        log_dict: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=UTC).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "logger": record.name,
            "msg": _sanitize_text(record.getMessage()),
        }

        if record.levelno >= logging.WARNING:
            log_dict["file"] = record.filename
            log_dict["line"] = record.lineno

        if record.exc_info:
            log_dict["exc"] = _sanitize_text(self.formatException(record.exc_info))

        extra = _extras(record)
        if extra:
            log_dict.update(_filter_log_record(extra))

        return json.dumps(log_dict, default=str, ensure_ascii=False)


class SimpleFormatter(logging.Formatter):
    """Human-readable formatter for development/testing."""

    def format(self, record: logging.LogRecord) -> str:
        base = f"{record.levelname:8s} {record.name}: {_sanitize_text(record.getMessage())}"

        extra = _extras(record)
        if extra:
            filtered = _filter_log_record(extra)
            if filtered:
                extra_str = " ".join(f"{k}={v}" for k, v in filtered.items())
                base = f"{base} | {extra_str}"

        return base


def setup_logging(
    *,
    level: int | str = logging.INFO,
    json_format: bool = True,
    stream: Any = None,
) -> None:
    """Configure structured logging for the application.

    Call once at application startup. Library code never calls this.

    Args:
        level: Log level (default INFO).
        json_format: Use JSON formatter (default True for production).
        stream: Output stream (default stderr).
    """
    if stream is None:
        stream = sys.stderr

    handler = logging.StreamHandler(stream)
    handler.setFormatter(JsonFormatter() if json_format else SimpleFormatter())

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers.clear()
    root.addHandler(handler)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance (typically get_logger(__name__))."""
    return logging.getLogger(name)
