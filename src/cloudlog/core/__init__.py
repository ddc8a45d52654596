from .buffer import BackpressurePolicy, PendingBuffer
from .entry import Entry, GroupKey, Resource, Severity
from .errors import (
    BackpressureError,
    CloudLogError,
    FlushError,
    InvalidArgument,
    WriterClosed,
)
from .flush import FlushExecutor, FlushResult
from .writer import AsyncWriter, WriterState

__all__ = [
    "AsyncWriter",
    "BackpressureError",
    "BackpressurePolicy",
    "CloudLogError",
    "Entry",
    "FlushError",
    "FlushExecutor",
    "FlushResult",
    "GroupKey",
    "InvalidArgument",
    "PendingBuffer",
    "Resource",
    "Severity",
    "WriterClosed",
    "WriterState",
]
