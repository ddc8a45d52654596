"""
Flush executor: drains a buffer snapshot through the remote write sink.

Each group is written with one sink call, in first-seen group order, with its
entries in append order. A failing group never prevents the remaining groups
from being attempted. Failures are wrapped in ``FlushError`` and handed to the
error hook exactly once; nothing is retried or re-buffered here.
"""

from __future__ import annotations

import inspect
import time
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Sequence, Union

from ..metrics.metrics import MetricsCollector
from .buffer import Snapshot
from .diagnostics import warn
from .entry import Entry, GroupKey
from .errors import FlushError

ErrorHook = Callable[[FlushError], Union[None, Awaitable[None]]]


def report_flush_error(error: FlushError) -> None:
    """Default error hook: surface the failure through internal diagnostics."""
    warn("writer", "group write failed", **error.context())


@dataclass(frozen=True)
class FlushResult:
    """Outcome of one flush cycle."""

    groups_written: int = 0
    groups_failed: int = 0
    entries_written: int = 0
    entries_failed: int = 0

    @property
    def ok(self) -> bool:
        return self.groups_failed == 0


def _sink_name(sink: Any) -> str:
    return getattr(sink, "name", type(sink).__name__)


class FlushExecutor:
    """Writes snapshot groups to a sink with per-group failure isolation."""

    def __init__(
        self,
        sink: Any,
        *,
        on_error: ErrorHook | None = None,
        metrics: MetricsCollector | None = None,
    ) -> None:
        self._sink = sink
        self._on_error: ErrorHook = on_error or report_flush_error
        self._metrics = metrics

    async def flush(self, snapshot: Snapshot) -> FlushResult:
        if not snapshot:
            return FlushResult()
        start = time.perf_counter()
        groups_written = groups_failed = entries_written = entries_failed = 0
        for key, entries in snapshot:
            if await self._write_group(key, entries):
                groups_written += 1
                entries_written += len(entries)
            else:
                groups_failed += 1
                entries_failed += len(entries)
        await self._record_flush_metrics(time.perf_counter() - start)
        return FlushResult(
            groups_written=groups_written,
            groups_failed=groups_failed,
            entries_written=entries_written,
            entries_failed=entries_failed,
        )

    async def _write_group(self, key: GroupKey, entries: Sequence[Entry]) -> bool:
        """Write one group. Returns True on success."""
        try:
            result = self._sink.write_entries(
                list(entries),
                log_name=key.log_name,
                resource=key.resource,
                labels=key.labels,
            )
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            await self._record_group_failed(key, len(entries))
            await self._report(FlushError(key, entries, exc))
            return False
        await self._record_group_written(len(entries))
        return True

    async def _report(self, error: FlushError) -> None:
        try:
            result = self._on_error(error)
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            # A faulty hook must not stop the remaining groups
            warn(
                "writer",
                "error hook failed",
                sink=_sink_name(self._sink),
                error_type=type(exc).__name__,
                error=str(exc),
                _rate_limit_key="error-hook",
            )

    async def _record_group_written(self, entry_count: int) -> None:
        if self._metrics is None:
            return
        try:
            await self._metrics.record_group_written(entry_count)
        except Exception:
            pass

    async def _record_group_failed(self, key: GroupKey, entry_count: int) -> None:
        if self._metrics is None:
            return
        try:
            await self._metrics.record_group_failed(entry_count, log_name=key.log_name)
        except Exception:
            pass

    async def _record_flush_metrics(self, latency_seconds: float) -> None:
        if self._metrics is None:
            return
        try:
            await self._metrics.record_flush(latency_seconds=latency_seconds)
        except Exception:
            pass


__all__ = ["ErrorHook", "FlushExecutor", "FlushResult", "report_flush_error"]
