"""Graceful shutdown handling for cloudlog writers.

This module provides:
- Atexit handler that stops and drains pending entries on normal exit
- WeakSet-based writer registration to avoid keeping writers alive

The handler is best-effort: it waits for each writer's final flush up to
``writer.shutdown_timeout_seconds`` and never raises.
"""

from __future__ import annotations

import atexit
import weakref
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .writer import AsyncWriter


_shutdown_in_progress: bool = False
_registered_writers: weakref.WeakSet[Any] = weakref.WeakSet()


def _get_shutdown_settings() -> dict[str, Any]:
    """Get shutdown settings from Settings, with fallback defaults."""
    try:
        from .settings import Settings

        settings = Settings()
        return {
            "atexit_drain_enabled": settings.writer.atexit_drain_enabled,
            "shutdown_timeout_seconds": settings.writer.shutdown_timeout_seconds,
        }
    except Exception:  # pragma: no cover - invalid env falls back to defaults
        return {
            "atexit_drain_enabled": True,
            "shutdown_timeout_seconds": 2.0,
        }


def register_writer(writer: AsyncWriter) -> None:
    """Register a writer for automatic drain on interpreter exit."""
    _registered_writers.add(writer)


def unregister_writer(writer: AsyncWriter) -> None:
    """Unregister a writer, typically once it has reached the stopped state."""
    _registered_writers.discard(writer)


def registered_writers() -> list[Any]:
    return list(_registered_writers)


def _drain_single_writer(writer: Any, timeout: float) -> None:
    try:
        writer.stop()
        writer.wait_until_stopped(timeout)
    except Exception:
        pass  # Best effort - don't crash on exit


def _atexit_handler() -> None:
    """Best-effort drain of all writers on normal exit.

    Called by atexit; should never raise.
    """
    global _shutdown_in_progress

    if _shutdown_in_progress:
        return

    settings = _get_shutdown_settings()
    if not settings["atexit_drain_enabled"]:
        return

    _shutdown_in_progress = True
    timeout = settings["shutdown_timeout_seconds"]

    # Snapshot the writers (WeakSet iteration can fail if GC runs)
    try:
        writers = list(_registered_writers)
    except Exception:  # pragma: no cover - rare GC race
        return

    # Request every stop first so final flushes overlap
    for writer in writers:
        try:
            writer.stop()
        except Exception:
            pass
    for writer in writers:
        _drain_single_writer(writer, timeout)


def _reset_for_tests() -> None:
    global _shutdown_in_progress
    _shutdown_in_progress = False
    _registered_writers.clear()


atexit.register(_atexit_handler)
