from __future__ import annotations

from typing import Awaitable, Mapping, Protocol, Sequence, runtime_checkable

from ..core.entry import Entry, Resource
from .http import HttpEntriesSink, HttpEntriesSinkConfig
from .stdout import StdoutEntriesSink


@runtime_checkable
class EntriesSink(Protocol):
    """Remote write collaborator used by the flush executor.

    ``write_entries`` receives one group per call, entries in buffer order.
    It may be a plain function or a coroutine function; raising signals that
    the whole group failed. The writer performs no retry and assumes no
    idempotence. ``start``/``stop`` are optional lifecycle hooks awaited on
    the writer's background thread.
    """

    def write_entries(
        self,
        entries: Sequence[Entry],
        *,
        log_name: str,
        resource: Resource | None,
        labels: Mapping[str, str],
    ) -> Awaitable[None] | None:  # noqa: D401
        ...


__all__ = [
    "EntriesSink",
    "HttpEntriesSink",
    "HttpEntriesSinkConfig",
    "StdoutEntriesSink",
]
