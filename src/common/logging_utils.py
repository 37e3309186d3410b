"""Centralized logging helpers shared by the resolver, registry and CLI runners.

Every module logs through ``logging.getLogger(__name__)`` and attaches a
structured payload built by :func:`extra_context`. URLs are passed through
:func:`safe_url` before they are logged so registry credentials never leak.
"""
from __future__ import annotations

import logging
import os
import re
import time
import urllib.parse
from typing import Any, Dict, Optional

from constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "auth", "password", "key", "secret"}
_TOKEN_PATTERN = re.compile(
    r"(?i)(_authToken|_auth|token|password)(\s*[=:]\s*)([^\s\"']+)"
)


def configure_logging(level: Optional[str] = None) -> None:
    """Install the default root handler and apply the configured level.

    The level comes from ``level`` when given, else from the
    ``LATESTVER_LOG_LEVEL`` environment variable, else INFO. Calling this more
    than once does not stack handlers.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    level_value = getattr(logging, level_name, logging.INFO)
    if not isinstance(level_value, int):
        level_value = logging.INFO

    root = logging.getLogger()
    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
        root.addHandler(handler)
    root.setLevel(level_value)


def is_debug_enabled(logger: logging.Logger) -> bool:
    """Return True when DEBUG records from ``logger`` would be emitted."""
    return logger.isEnabledFor(logging.DEBUG)


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra=`` mapping for structured log records.

    Keys whose value is None are dropped so records stay compact.
    """
    return {key: value for key, value in fields.items() if value is not None}


def redact(text: str) -> str:
    """Mask credential-looking assignments (``_authToken=...``) in free text."""
    if not text:
        return text
    return _TOKEN_PATTERN.sub(lambda m: f"{m.group(1)}{m.group(2)}[REDACTED]", text)


def safe_url(url: str) -> str:
    """Strip userinfo and sensitive query parameters from ``url``."""
    try:
        parts = urllib.parse.urlsplit(url)
    except ValueError:
        return redact(url)

    netloc = parts.netloc
    if "@" in netloc:
        netloc = "[REDACTED]@" + netloc.rsplit("@", 1)[1]

    query = parts.query
    if query:
        pairs = urllib.parse.parse_qsl(query, keep_blank_values=True)
        query = urllib.parse.urlencode(
            [
                (key, "[REDACTED]" if key.lower() in _SENSITIVE_QUERY_KEYS else value)
                for key, value in pairs
            ],
            safe="[]",
        )

    return urllib.parse.urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start: Optional[float] = None
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> float:
        """Elapsed milliseconds; reads the running clock while still inside the block."""
        if self._start is None:
            return 0.0
        end = self._end if self._end is not None else time.perf_counter()
        return round((end - self._start) * 1000, 2)
