"""
Structured internal diagnostics for non-fatal errors.

Diagnostics are off by default and enabled with
``CLOUDLOG_CORE__INTERNAL_LOGGING_ENABLED=true``. When enabled each warning is
written as one JSON line to stderr. ``warn`` never raises into its caller.
"""

from __future__ import annotations

import sys
import threading
import time
from typing import Any, Callable

import orjson

# Cached on first use; tests reset it through ``_reset_for_tests``
_internal_logging_enabled: bool | None = None

# Seconds during which repeats of the same ``_rate_limit_key`` are dropped
RATE_LIMIT_WINDOW_SECONDS = 5.0

_rate_limit_lock = threading.Lock()
_last_emitted: dict[str, float] = {}


def _stderr_writer(payload: dict[str, Any]) -> None:
    line = orjson.dumps(payload, default=str)
    sys.stderr.write(line.decode("utf-8") + "\n")
    sys.stderr.flush()


_writer: Callable[[dict[str, Any]], None] = _stderr_writer


def is_enabled() -> bool:
    global _internal_logging_enabled
    if _internal_logging_enabled is None:
        try:
            from .settings import Settings

            _internal_logging_enabled = bool(Settings().core.internal_logging_enabled)
        except Exception:
            _internal_logging_enabled = False
    return _internal_logging_enabled


def _allow(key: str | None) -> bool:
    if key is None:
        return True
    now = time.monotonic()
    with _rate_limit_lock:
        last = _last_emitted.get(key)
        if last is not None and now - last < RATE_LIMIT_WINDOW_SECONDS:
            return False
        _last_emitted[key] = now
    return True


def warn(
    component: str,
    message: str,
    *,
    _rate_limit_key: str | None = None,
    **fields: Any,
) -> None:
    """Emit a WARN diagnostic for ``component`` when internal logging is on."""
    try:
        if not is_enabled() or not _allow(_rate_limit_key):
            return
        payload: dict[str, Any] = {
            "timestamp": time.time(),
            "level": "WARN",
            "component": component,
            "message": message,
        }
        payload.update(fields)
        _writer(payload)
    except Exception:
        # Diagnostics must never break the caller
        return


def set_writer_for_tests(writer: Callable[[dict[str, Any]], None]) -> None:
    global _writer
    _writer = writer


def _reset_for_tests() -> None:
    global _internal_logging_enabled, _writer
    _internal_logging_enabled = None
    _writer = _stderr_writer
    with _rate_limit_lock:
        _last_emitted.clear()
