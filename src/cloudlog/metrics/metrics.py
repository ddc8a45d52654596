"""
Async-first flush metrics for the cloudlog writer.

Implements minimal Prometheus-compatible counters and a histogram for the
flush path.

Design goals:
- Pure async/await, called only from the writer's background loop
- Zero global state; each collector owns an isolated registry
- Safe no-op exporters when disabled, while in-memory counters still track
  totals for tests
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Any

from prometheus_client import CollectorRegistry, Counter, Histogram


@dataclass
class WriterMetrics:
    """Captured runtime metrics for quick assertions in tests."""

    flushes: int = 0
    groups_written: int = 0
    groups_failed: int = 0
    entries_written: int = 0
    entries_failed: int = 0


class MetricsCollector:
    """Writer-scoped async metrics collector."""

    def __init__(self, *, enabled: bool = False) -> None:
        self._enabled = bool(enabled)
        self._lock = asyncio.Lock()
        self._state = WriterMetrics()

        self._c_written: Any | None = None
        self._c_failed: Any | None = None
        self._h_flush_latency: Any | None = None
        self._registry: CollectorRegistry | None = None

        if self._enabled:
            # Isolated registry avoids duplicate registration across writers
            self._registry = CollectorRegistry()
            self._c_written = Counter(
                "cloudlog_entries_written_total",
                "Total number of entries accepted by the remote write call",
                registry=self._registry,
            )
            self._c_failed = Counter(
                "cloudlog_entries_failed_total",
                "Total number of entries whose group write failed",
                ["log_name"],
                registry=self._registry,
            )
            self._h_flush_latency = Histogram(
                "cloudlog_flush_seconds",
                "Latency of one flush cycle across all groups",
                buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0),
                registry=self._registry,
            )

    @property
    def is_enabled(self) -> bool:
        return self._enabled

    @property
    def registry(self) -> CollectorRegistry | None:
        """Expose the isolated Prometheus registry when enabled."""
        return self._registry

    async def record_group_written(self, entry_count: int) -> None:
        async with self._lock:
            self._state.groups_written += 1
            self._state.entries_written += entry_count
        if self._c_written is not None:
            self._c_written.inc(entry_count)

    async def record_group_failed(self, entry_count: int, *, log_name: str) -> None:
        async with self._lock:
            self._state.groups_failed += 1
            self._state.entries_failed += entry_count
        if self._c_failed is not None:
            self._c_failed.labels(log_name=log_name).inc(entry_count)

    async def record_flush(self, *, latency_seconds: float) -> None:
        async with self._lock:
            self._state.flushes += 1
        if self._h_flush_latency is not None:
            self._h_flush_latency.observe(latency_seconds)

    async def snapshot(self) -> WriterMetrics:
        async with self._lock:
            return replace(self._state)
