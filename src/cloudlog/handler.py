"""Stdlib logging bridge.

A :class:`logging.Handler` that turns each record into an :class:`Entry` and
hands it to an :class:`AsyncWriter`. ``emit`` only buffers; the network write
happens on the writer's background thread.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Mapping

from .core.entry import Entry, Resource, Severity

if TYPE_CHECKING:
    from .core.writer import AsyncWriter


class CloudLoggingHandler(logging.Handler):
    """Route stdlib log records into an async writer.

    Typical usage::

        writer = cloudlog.get_writer()
        logging.getLogger().addHandler(
            CloudLoggingHandler(writer, "web_app_log", labels={"env": "prod"})
        )
    """

    def __init__(
        self,
        writer: AsyncWriter,
        log_name: str,
        *,
        resource: Resource | None = None,
        labels: Mapping[str, str] | None = None,
        level: int = logging.NOTSET,
    ) -> None:
        super().__init__(level)
        self._writer = writer
        self._log_name = log_name
        self._resource = resource
        self._labels = dict(labels or {})

    @property
    def writer(self) -> AsyncWriter:
        return self._writer

    def to_entry(self, record: logging.LogRecord) -> Entry:
        return Entry(
            payload=self.format(record),
            severity=Severity.from_logging_level(record.levelno),
            timestamp=datetime.fromtimestamp(record.created, tz=timezone.utc),
            log_name=self._log_name,
            resource=self._resource,
            labels=self._labels,
        )

    def emit(self, record: logging.LogRecord) -> None:
        try:
            self._writer.write_entries(
                [self.to_entry(record)],
                log_name=self._log_name,
                resource=self._resource,
                labels=self._labels,
            )
        except Exception:
            self.handleError(record)


__all__ = ["CloudLoggingHandler"]
