"""
Async writer: buffers entries from caller threads and flushes them in the
background.

Callers append entries with ``write_entries``; the call only validates,
groups and buffers, then wakes the background loop. One dedicated daemon
thread per writer owns an asyncio event loop, waits on a condition variable
for new data, a lifecycle transition or the interval timer, and drains the
whole buffer through the flush executor on each wake while running.

Lifecycle::

    running <-> suspended
       |            |
       +--> stopping --> stopped

The buffer and the state share one lock. A snapshot is taken and the buffer
cleared under that lock, and the stopped transition happens atomically with
the empty-buffer check, so no entry is split, dropped or written twice.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import time
from enum import Enum
from typing import Any, Iterable, Mapping

from ..metrics.metrics import MetricsCollector
from . import shutdown
from .buffer import BackpressurePolicy, PendingBuffer
from .diagnostics import warn
from .entry import Entry, GroupKey, Resource
from .errors import BackpressureError, InvalidArgument, WriterClosed
from .flush import ErrorHook, FlushExecutor, FlushResult


class WriterState(str, Enum):
    RUNNING = "running"
    SUSPENDED = "suspended"
    STOPPING = "stopping"
    STOPPED = "stopped"


def _coerce_entries(entries: Entry | Iterable[Entry]) -> list[Entry]:
    if isinstance(entries, Entry):
        return [entries]
    if isinstance(entries, (str, bytes, Mapping)):
        raise InvalidArgument("entries must be an Entry or a sequence of Entry")
    try:
        batch = list(entries)
    except TypeError:
        raise InvalidArgument(
            "entries must be an Entry or a sequence of Entry"
        ) from None
    if not batch:
        raise InvalidArgument("entries must not be empty")
    for item in batch:
        if not isinstance(item, Entry):
            raise InvalidArgument(
                f"entries must contain Entry objects, got {type(item).__name__}"
            )
    return batch


class AsyncWriter:
    """Background batching writer for log entries.

    Args:
        sink: Remote write collaborator exposing
            ``write_entries(entries, *, log_name, resource, labels)``, sync or
            async, with optional async ``start``/``stop`` hooks.
        interval_seconds: Longest the loop sleeps without a wake signal.
        max_pending_entries: Optional bound on buffered entries.
        backpressure_policy: What ``write_entries`` does at the bound.
        backpressure_wait_ms: Wait budget under ``BackpressurePolicy.WAIT``.
        on_error: Hook receiving a ``FlushError`` per failed group.
        metrics: Optional collector for flush counters.
        name: Used for the background thread name and diagnostics.
        register_for_shutdown: Drain this writer from the atexit handler.
        shutdown_timeout_seconds: How long leaving a ``with`` block waits for
            the final flush.
    """

    def __init__(
        self,
        sink: Any,
        *,
        interval_seconds: float = 5.0,
        max_pending_entries: int | None = None,
        backpressure_policy: BackpressurePolicy | str = BackpressurePolicy.WAIT,
        backpressure_wait_ms: int = 50,
        on_error: ErrorHook | None = None,
        metrics: MetricsCollector | None = None,
        name: str = "cloudlog",
        register_for_shutdown: bool = True,
        shutdown_timeout_seconds: float = 2.0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be > 0")
        if max_pending_entries is not None and max_pending_entries <= 0:
            raise ValueError("max_pending_entries must be > 0")
        if backpressure_wait_ms < 0:
            raise ValueError("backpressure_wait_ms must be >= 0")
        if shutdown_timeout_seconds <= 0:
            raise ValueError("shutdown_timeout_seconds must be > 0")
        self._sink = sink
        self._name = name
        self._interval_seconds = interval_seconds
        self._max_pending_entries = max_pending_entries
        self._backpressure_policy = BackpressurePolicy(backpressure_policy)
        self._backpressure_wait_seconds = backpressure_wait_ms / 1000.0
        self._shutdown_timeout_seconds = shutdown_timeout_seconds
        self._executor = FlushExecutor(sink, on_error=on_error, metrics=metrics)
        self._metrics = metrics

        self._buffer = PendingBuffer()
        self._state = WriterState.RUNNING
        self._lock = threading.Lock()
        # All three conditions share the one lock guarding buffer and state
        self._wake = threading.Condition(self._lock)
        self._space = threading.Condition(self._lock)
        self._flushed = threading.Condition(self._lock)
        self._wake_pending = False
        self._flush_requested = 0
        self._flush_completed = 0
        self._entries_failed = 0
        self._thread: threading.Thread | None = None
        self._stopped_event = threading.Event()

        if register_for_shutdown:
            shutdown.register_writer(self)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> WriterState:
        with self._lock:
            return self._state

    def is_running(self) -> bool:
        return self.state is WriterState.RUNNING

    def is_suspended(self) -> bool:
        return self.state is WriterState.SUSPENDED

    def is_stopped(self) -> bool:
        return self.state is WriterState.STOPPED

    @property
    def pending_entries(self) -> int:
        with self._lock:
            return self._buffer.entry_count

    @property
    def pending_groups(self) -> int:
        with self._lock:
            return len(self._buffer)

    @property
    def failed_entries(self) -> int:
        """Entries dropped because their group write failed, since creation."""
        with self._lock:
            return self._entries_failed

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------

    def write_entries(
        self,
        entries: Entry | Iterable[Entry],
        *,
        log_name: str,
        resource: Resource | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> None:
        """Buffer entries for ``(log_name, resource, labels)`` and wake the loop.

        Never waits on the network. Under a configured bound with the wait
        policy it may wait up to ``backpressure_wait_ms`` for buffer space.

        Raises:
            InvalidArgument: entries are empty or attributes are malformed.
            WriterClosed: the writer has reached the stopped state.
            BackpressureError: the bounded buffer stayed full.
        """
        batch = _coerce_entries(entries)
        key = GroupKey.from_attributes(log_name, resource, labels)
        with self._lock:
            if self._state is WriterState.STOPPED:
                raise WriterClosed(f"writer {self._name!r} is stopped")
            self._reserve_space(len(batch))
            self._buffer.append(key, batch)
            self._ensure_thread()
            self._signal()

    def _reserve_space(self, count: int) -> None:
        # Caller holds the lock
        limit = self._max_pending_entries
        if limit is None or self._fits(count, limit):
            return
        if self._backpressure_policy is BackpressurePolicy.REJECT:
            warn(
                "writer",
                "pending buffer full; entries rejected",
                writer=self._name,
                pending=self._buffer.entry_count,
                requested=count,
                _rate_limit_key="backpressure",
            )
            raise BackpressureError(
                f"pending buffer holds {self._buffer.entry_count} of "
                f"{limit} entries; cannot accept {count} more"
            )
        deadline = time.monotonic() + self._backpressure_wait_seconds
        while not self._fits(count, limit):
            if self._state is WriterState.STOPPED:
                raise WriterClosed(f"writer {self._name!r} is stopped")
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise BackpressureError(
                    f"timed out waiting for space for {count} entries"
                )
            self._space.wait(remaining)

    def _fits(self, count: int, limit: int) -> bool:
        # An oversized batch is still accepted into an empty buffer
        return not self._buffer or self._buffer.entry_count + count <= limit

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def suspend(self) -> None:
        """Stop flushing while continuing to buffer. Idempotent."""
        with self._lock:
            if self._state is WriterState.RUNNING:
                self._state = WriterState.SUSPENDED
                # Release flush() waiters; nothing flushes until resumed
                self._flushed.notify_all()

    def resume(self) -> None:
        """Resume flushing and wake the loop immediately. Idempotent."""
        with self._lock:
            if self._state is WriterState.SUSPENDED:
                self._state = WriterState.RUNNING
                self._signal()

    def stop(self) -> None:
        """Request a final flush and stop. Does not block."""
        with self._lock:
            if self._state in (WriterState.STOPPING, WriterState.STOPPED):
                return
            if self._thread is None:
                # Nothing was ever buffered, so there is nothing to flush
                self._finish_locked()
                self._stopped_event.set()
            else:
                self._state = WriterState.STOPPING
                self._signal()
        if self._stopped_event.is_set():
            shutdown.unregister_writer(self)

    def wait_until_stopped(self, timeout: float | None = None) -> bool:
        """Block until the writer is stopped. Returns False on timeout."""
        return self._stopped_event.wait(timeout)

    async def wait_until_stopped_async(self, timeout: float | None = None) -> bool:
        """Coroutine form of ``wait_until_stopped`` for asyncio callers."""
        return await asyncio.to_thread(self._stopped_event.wait, timeout)

    def stop_and_wait(self, timeout: float | None = None) -> bool:
        self.stop()
        return self.wait_until_stopped(timeout)

    def flush(self, timeout: float | None = None) -> bool:
        """Flush everything buffered so far and wait for the writes.

        Returns True once all entries buffered before the call were handed to
        the sink, False on timeout or when the writer is suspended.
        """
        with self._lock:
            if self._state is WriterState.STOPPED or self._thread is None:
                return True
            if self._state is WriterState.SUSPENDED:
                return False
            if threading.current_thread() is self._thread:
                raise RuntimeError("flush() cannot be called from the writer thread")
            self._flush_requested += 1
            target = self._flush_requested
            self._signal()
            deadline = None if timeout is None else time.monotonic() + timeout
            while self._flush_completed < target:
                if self._state is WriterState.SUSPENDED:
                    return False
                remaining = None if deadline is None else deadline - time.monotonic()
                if remaining is not None and remaining <= 0:
                    return False
                self._flushed.wait(remaining)
            return True

    def __enter__(self) -> AsyncWriter:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.stop_and_wait(self._shutdown_timeout_seconds)

    def logger(
        self,
        log_name: str,
        resource: Resource | None = None,
        labels: Mapping[str, str] | None = None,
        *,
        name: str | None = None,
        level: int = logging.NOTSET,
    ) -> logging.Logger:
        """Return a stdlib logger whose records are written through this writer."""
        from ..handler import CloudLoggingHandler

        GroupKey.from_attributes(log_name, resource, labels)
        logger = logging.getLogger(name or f"cloudlog.{log_name}")
        # One bridge per logger; a repeat call replaces the previous handler
        for existing in list(logger.handlers):
            if isinstance(existing, CloudLoggingHandler):
                logger.removeHandler(existing)
                existing.close()
        handler = CloudLoggingHandler(
            self, log_name, resource=resource, labels=labels, level=level
        )
        logger.addHandler(handler)
        logger.propagate = False
        if level != logging.NOTSET:
            logger.setLevel(level)
        return logger

    # ------------------------------------------------------------------
    # Background loop
    # ------------------------------------------------------------------

    def _signal(self) -> None:
        # Caller holds the lock
        self._wake_pending = True
        self._wake.notify_all()

    def _ensure_thread(self) -> None:
        # Caller holds the lock
        if self._thread is None:
            self._thread = threading.Thread(
                target=self._run, name=f"{self._name}-writer", daemon=True
            )
            self._thread.start()

    def _finish_locked(self) -> None:
        self._state = WriterState.STOPPED
        self._flush_completed = self._flush_requested
        self._flushed.notify_all()
        self._space.notify_all()

    def _run(self) -> None:
        loop = asyncio.new_event_loop()
        try:
            loop.run_until_complete(self._call_sink_hook("start"))
            while self._run_cycle(loop):
                pass
            loop.run_until_complete(self._call_sink_hook("stop"))
        except Exception as exc:
            warn(
                "writer",
                "writer loop error",
                writer=self._name,
                error_type=type(exc).__name__,
                error=str(exc),
            )
        finally:
            loop.close()
            with self._lock:
                if self._state is not WriterState.STOPPED:
                    self._finish_locked()
            shutdown.unregister_writer(self)
            self._stopped_event.set()

    def _run_cycle(self, loop: asyncio.AbstractEventLoop) -> bool:
        """Wait for a trigger and flush once. Returns False when stopped."""
        with self._lock:
            while not self._wake_pending and self._state is not WriterState.STOPPING:
                if not self._wake.wait(self._interval_seconds):
                    break
            self._wake_pending = False
            if self._state is WriterState.SUSPENDED:
                return True
            if self._state is WriterState.STOPPING and not self._buffer:
                self._finish_locked()
                return False
            target = self._flush_requested
            snapshot = self._buffer.drain()
            self._space.notify_all()
        result = FlushResult()
        if snapshot:
            result = loop.run_until_complete(self._executor.flush(snapshot))
        with self._lock:
            self._entries_failed += result.entries_failed
            if target > self._flush_completed:
                self._flush_completed = target
            self._flushed.notify_all()
        return True

    async def _call_sink_hook(self, hook: str) -> None:
        method = getattr(self._sink, hook, None)
        if method is None:
            return
        try:
            result = method()
            if inspect.isawaitable(result):
                await result
        except Exception as exc:
            warn(
                "sink",
                f"sink {hook} failed",
                writer=self._name,
                error_type=type(exc).__name__,
                error=str(exc),
            )


__all__ = ["AsyncWriter", "WriterState"]
