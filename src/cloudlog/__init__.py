"""
Public entrypoints for cloudlog.

Provides ``get_writer()`` and ``runtime()`` plus the value types callers need
to build entries.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator

from ._version import __version__
from .core.buffer import BackpressurePolicy
from .core.entry import Entry, GroupKey, Resource, Severity
from .core.errors import (
    BackpressureError,
    CloudLogError,
    FlushError,
    InvalidArgument,
    WriterClosed,
)
from .core.flush import ErrorHook
from .core.settings import Settings
from .core.writer import AsyncWriter, WriterState
from .handler import CloudLoggingHandler
from .metrics.metrics import MetricsCollector as _MetricsCollector

__all__ = [
    "AsyncWriter",
    "BackpressureError",
    "BackpressurePolicy",
    "CloudLogError",
    "CloudLoggingHandler",
    "Entry",
    "FlushError",
    "GroupKey",
    "InvalidArgument",
    "Resource",
    "Settings",
    "Severity",
    "WriterClosed",
    "WriterState",
    "get_writer",
    "runtime",
    "__version__",
    "VERSION",
]


def get_writer(
    settings: Settings | None = None,
    *,
    sink: Any | None = None,
    on_error: ErrorHook | None = None,
) -> AsyncWriter:
    """Return a writer configured from settings.

    Without an explicit ``sink`` the HTTP sink is used when
    ``http.project_id`` is configured and the stdout sink otherwise. The
    background thread starts with the first write.

    Example:
        ```python
        import cloudlog
        from cloudlog import Entry, Severity

        writer = cloudlog.get_writer()
        writer.write_entries(
            [Entry("service started", severity=Severity.INFO)],
            log_name="web_app_log",
            labels={"env": "production"},
        )
        writer.stop_and_wait(2.0)
        ```
    """
    cfg = settings or Settings()
    if sink is None:
        if cfg.http.project_id:
            from .sinks.http import HttpEntriesSink, HttpEntriesSinkConfig

            sink = HttpEntriesSink(
                HttpEntriesSinkConfig(
                    project_id=cfg.http.project_id,
                    endpoint=cfg.http.endpoint,
                    headers=cfg.http.headers,
                    timeout_seconds=cfg.http.timeout_seconds,
                )
            )
        else:
            from .sinks.stdout import StdoutEntriesSink

            sink = StdoutEntriesSink()
    metrics: _MetricsCollector | None = None
    if cfg.core.enable_metrics:
        metrics = _MetricsCollector(enabled=True)
    return AsyncWriter(
        sink,
        interval_seconds=cfg.writer.interval_seconds,
        max_pending_entries=cfg.writer.max_pending_entries,
        backpressure_policy=cfg.writer.backpressure_policy,
        backpressure_wait_ms=cfg.writer.backpressure_wait_ms,
        on_error=on_error,
        metrics=metrics,
        name=cfg.core.app_name,
        shutdown_timeout_seconds=cfg.writer.shutdown_timeout_seconds,
    )


@contextmanager
def runtime(
    *,
    settings: Settings | None = None,
    sink: Any | None = None,
    on_error: ErrorHook | None = None,
) -> Iterator[AsyncWriter]:
    """Context manager that yields a writer and drains it on exit."""
    cfg = settings or Settings()
    writer = get_writer(cfg, sink=sink, on_error=on_error)
    try:
        yield writer
    finally:
        writer.stop_and_wait(cfg.writer.shutdown_timeout_seconds)


VERSION = __version__
