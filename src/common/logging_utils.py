"""Logging helpers shared by the CLI, the tester and the registry client.

Structured fields ride along on ``extra=`` so handlers that care about them
(JSON formatters, log shippers) can pick them up, while the default console
format stays terse.
"""
from __future__ import annotations

import logging
import os
import re
import time
from typing import Any, Callable, Dict, List, Optional, Tuple
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from constants import Constants

_SENSITIVE_QUERY_KEYS = {"token", "access_token", "api_key", "apikey", "key", "secret", "password"}
_REDACTED = "[REDACTED]"


def configure_logging(level: Optional[str] = None) -> None:
    """Install a single console handler on the root logger.

    The level comes from ``level`` or the TYPESPUB_LOG_LEVEL environment
    variable, defaulting to INFO. Calling this twice does not stack handlers.
    """
    level_name = (level or os.environ.get(Constants.ENV_LOG_LEVEL) or "INFO").upper()
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_typespub", False):
            root.removeHandler(handler)
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(Constants.LOG_FORMAT))
    handler._typespub = True  # type: ignore[attr-defined]
    root.addHandler(handler)
    root.setLevel(getattr(logging, level_name, logging.INFO))


def extra_context(**fields: Any) -> Dict[str, Any]:
    """Build an ``extra`` payload, dropping fields that are None."""
    return {k: v for k, v in fields.items() if v is not None}


def is_debug_enabled(logger: logging.Logger) -> bool:
    return logger.isEnabledFor(logging.DEBUG)


def redact(text: str) -> str:
    """Mask bearer tokens and basic-auth credentials in free text."""
    text = re.sub(r"(?i)(bearer\s+)[A-Za-z0-9._\-]+", r"\1" + _REDACTED, text)
    return re.sub(r"(//)[^/@\s:]+:[^/@\s]+@", r"\1" + _REDACTED + "@", text)


def safe_url(url: str) -> str:
    """Return ``url`` with credentials and sensitive query values masked."""
    try:
        parts = urlsplit(url)
    except ValueError:
        return redact(url)
    netloc = parts.netloc
    if "@" in netloc:
        netloc = _REDACTED + "@" + netloc.rsplit("@", 1)[1]
    query = parts.query
    if query:
        pairs = [
            (k, _REDACTED if k.lower() in _SENSITIVE_QUERY_KEYS else v)
            for k, v in parse_qsl(query, keep_blank_values=True)
        ]
        query = urlencode(pairs, safe="[]")
    return urlunsplit((parts.scheme, netloc, parts.path, query, parts.fragment))


class Timer:
    """Context manager measuring wall-clock duration in milliseconds."""

    def __init__(self) -> None:
        self._start = 0.0
        self._end: Optional[float] = None

    def __enter__(self) -> "Timer":
        self._start = time.perf_counter()
        self._end = None
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self._end = time.perf_counter()

    def duration_ms(self) -> int:
        end = self._end if self._end is not None else time.perf_counter()
        return int((end - self._start) * 1000)


class PackageLog:
    """Buffers log lines for one package so concurrent runs don't interleave.

    Lines are replayed through a real logger with :meth:`flush_to` once the
    package is done.
    """

    def __init__(self, name: str):
        self.name = name
        self._lines: List[Tuple[int, str]] = []

    def info(self, message: str) -> None:
        self._lines.append((logging.INFO, message))

    def error(self, message: str) -> None:
        self._lines.append((logging.ERROR, message))

    @property
    def lines(self) -> List[Tuple[int, str]]:
        return list(self._lines)

    @property
    def has_errors(self) -> bool:
        return any(level >= logging.ERROR for level, _ in self._lines)

    def flush_to(self, logger: logging.Logger, fmt: Callable[[str], str] = lambda m: "\t" + m) -> None:
        """Replay buffered lines through ``logger`` and clear the buffer."""
        for level, message in self._lines:
            for line in message.splitlines() or [""]:
                logger.log(level, fmt(line), extra=extra_context(package=self.name))
        self._lines.clear()
