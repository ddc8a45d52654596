"""
Pending buffer and backpressure policy for the async writer.

This module contains:
- BackpressurePolicy: WAIT or REJECT when a bounded buffer is full
- PendingBuffer: ordered GroupKey -> entries staging area

Design:
- Group order is first-seen-first; entry order within a group is append order
- A drained group is removed immediately; no key ever maps to an empty list
- Not synchronized on its own; the owning writer serializes every call under
  its lock so a snapshot never sees a partially appended group
"""

from __future__ import annotations

from enum import Enum
from typing import Iterator, Sequence

from .entry import Entry, GroupKey
from .errors import InvalidArgument

Snapshot = list[tuple[GroupKey, tuple[Entry, ...]]]


class BackpressurePolicy(str, Enum):
    WAIT = "wait"  # Wait up to backpressure_wait_ms for the loop to drain
    REJECT = "reject"  # Raise BackpressureError immediately when full


class PendingBuffer:
    """Ordered mapping of group keys to entries awaiting flush."""

    __slots__ = ("_entry_count", "_groups")

    def __init__(self) -> None:
        # dict preserves insertion order, which gives first-seen group order
        self._groups: dict[GroupKey, list[Entry]] = {}
        self._entry_count = 0

    @property
    def entry_count(self) -> int:
        """Total number of entries across all groups."""
        return self._entry_count

    def __len__(self) -> int:
        return len(self._groups)

    def __bool__(self) -> bool:
        return bool(self._groups)

    def __contains__(self, key: object) -> bool:
        return key in self._groups

    def __iter__(self) -> Iterator[GroupKey]:
        return iter(list(self._groups))

    def append(self, key: GroupKey, entries: Sequence[Entry]) -> None:
        """Append entries to the group for ``key``, creating it if absent."""
        if not entries:
            raise InvalidArgument("cannot append an empty entry sequence")
        group = self._groups.get(key)
        if group is None:
            group = self._groups[key] = []
        group.extend(entries)
        self._entry_count += len(entries)

    def drain(self) -> Snapshot:
        """Remove and return every group in first-seen order."""
        snapshot = [(key, tuple(entries)) for key, entries in self._groups.items()]
        self._groups.clear()
        self._entry_count = 0
        return snapshot


__all__ = ["BackpressurePolicy", "PendingBuffer", "Snapshot"]
