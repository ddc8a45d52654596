"""
Error types raised by the async writer and reported by the flush executor.

Argument and lifecycle errors are raised synchronously to the caller of
``AsyncWriter.write_entries``. ``FlushError`` is never raised into callers;
it is handed to the writer's error hook after a group fails to write.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from .entry import Entry, GroupKey


class CloudLogError(Exception):
    """Base class for all cloudlog errors."""


class InvalidArgument(CloudLogError, ValueError):
    """A call into the writer carried malformed entries or attributes."""


class WriterClosed(CloudLogError, RuntimeError):
    """The writer reached the stopped state and no longer accepts entries."""


class BackpressureError(CloudLogError):
    """The pending buffer is at its configured bound."""


class FlushError(CloudLogError):
    """One group failed to write during a flush cycle.

    Carries only the failed group's own attributes and entries. The message
    names the log name and entry count and never includes payloads.
    """

    def __init__(
        self,
        group_key: GroupKey,
        entries: Sequence[Entry],
        cause: BaseException | None = None,
    ) -> None:
        self.group_key = group_key
        self.entries = tuple(entries)
        self.entry_count = len(self.entries)
        detail = f": {type(cause).__name__}: {cause}" if cause is not None else ""
        super().__init__(
            f"failed to write {self.entry_count} entries to log "
            f"{group_key.log_name!r}{detail}"
        )
        self.__cause__ = cause

    @property
    def log_name(self) -> str:
        return self.group_key.log_name

    def context(self) -> dict[str, object]:
        """Structured fields suitable for diagnostics or metrics labels."""
        resource = self.group_key.resource
        return {
            "log_name": self.group_key.log_name,
            "resource_type": resource.type if resource is not None else None,
            "labels": self.group_key.labels,
            "entry_count": self.entry_count,
            "error_type": type(self.__cause__).__name__
            if self.__cause__ is not None
            else None,
            "error": str(self.__cause__) if self.__cause__ is not None else None,
        }


__all__ = [
    "BackpressureError",
    "CloudLogError",
    "FlushError",
    "InvalidArgument",
    "WriterClosed",
]
