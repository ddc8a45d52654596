"""
Log entry value objects and the grouping key derived from them.

This module provides the Entry, Resource and Severity types used to describe
a single structured log line, and GroupKey, the value identity used to batch
entries that share a destination into one remote write call.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .errors import InvalidArgument


class Severity(str, Enum):
    """Cloud logging severity ladder."""

    DEFAULT = "DEFAULT"
    DEBUG = "DEBUG"
    INFO = "INFO"
    NOTICE = "NOTICE"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"
    ALERT = "ALERT"
    EMERGENCY = "EMERGENCY"

    @property
    def priority(self) -> int:
        return _SEVERITY_PRIORITY[self]

    @classmethod
    def coerce(cls, value: Severity | str | int) -> Severity:
        """Resolve a member, a case-insensitive name, or a numeric value."""
        if isinstance(value, Severity):
            return value
        if isinstance(value, str):
            try:
                return cls[value.strip().upper()]
            except KeyError:
                raise InvalidArgument(f"unknown severity: {value!r}") from None
        if isinstance(value, int) and not isinstance(value, bool):
            for member, priority in _SEVERITY_PRIORITY.items():
                if priority == value:
                    return member
        raise InvalidArgument(f"unknown severity: {value!r}")

    @classmethod
    def from_logging_level(cls, levelno: int) -> Severity:
        """Map a stdlib logging level number onto the severity ladder."""
        if levelno >= logging.CRITICAL:
            return cls.CRITICAL
        if levelno >= logging.ERROR:
            return cls.ERROR
        if levelno >= logging.WARNING:
            return cls.WARNING
        if levelno >= logging.INFO:
            return cls.INFO
        if levelno >= logging.DEBUG:
            return cls.DEBUG
        return cls.DEFAULT


_SEVERITY_PRIORITY: dict[Severity, int] = {
    Severity.DEFAULT: 0,
    Severity.DEBUG: 100,
    Severity.INFO: 200,
    Severity.NOTICE: 300,
    Severity.WARNING: 400,
    Severity.ERROR: 500,
    Severity.CRITICAL: 600,
    Severity.ALERT: 700,
    Severity.EMERGENCY: 800,
}


def _frozen_labels(labels: Mapping[str, str] | None, *, what: str) -> Mapping[str, str]:
    if labels is None:
        return MappingProxyType({})
    if not isinstance(labels, Mapping):
        raise InvalidArgument(f"{what} must be a mapping, got {type(labels).__name__}")
    for key, value in labels.items():
        if not isinstance(key, str) or not isinstance(value, str):
            raise InvalidArgument(f"{what} keys and values must be strings")
    return MappingProxyType(dict(labels))


@dataclass(frozen=True, eq=False)
class Resource:
    """Monitored resource descriptor (e.g. ``gce_instance`` plus its labels)."""

    type: str
    labels: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.type, str) or not self.type.strip():
            raise InvalidArgument("resource type must be a non-empty string")
        object.__setattr__(
            self, "labels", _frozen_labels(self.labels, what="resource labels")
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Resource):
            return NotImplemented
        return self.type == other.type and dict(self.labels) == dict(other.labels)

    def __hash__(self) -> int:
        return hash((self.type, tuple(sorted(self.labels.items()))))

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.type, "labels": dict(self.labels)}


@dataclass(frozen=True)
class Entry:
    """One immutable log line.

    ``log_name``, ``resource`` and ``labels`` describe where the entry
    belongs; the writer groups by the attributes passed to
    ``write_entries`` rather than reading them from each entry.
    """

    payload: str | Mapping[str, Any]
    severity: Severity = Severity.DEFAULT
    timestamp: datetime | None = None
    log_name: str | None = None
    resource: Resource | None = None
    labels: Mapping[str, str] = field(default_factory=dict)
    insert_id: str | None = None

    def __post_init__(self) -> None:
        if isinstance(self.payload, Mapping):
            object.__setattr__(self, "payload", MappingProxyType(dict(self.payload)))
        elif not isinstance(self.payload, str):
            raise InvalidArgument("entry payload must be a string or a mapping")
        object.__setattr__(self, "severity", Severity.coerce(self.severity))
        if self.timestamp is not None and not isinstance(self.timestamp, datetime):
            raise InvalidArgument("entry timestamp must be a datetime")
        if self.resource is not None and not isinstance(self.resource, Resource):
            raise InvalidArgument("entry resource must be a Resource")
        object.__setattr__(
            self, "labels", _frozen_labels(self.labels, what="entry labels")
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert entry to a plain dictionary."""
        payload = self.payload
        return {
            "payload": dict(payload) if isinstance(payload, Mapping) else payload,
            "severity": self.severity.value,
            "timestamp": self.timestamp.isoformat() if self.timestamp else None,
            "log_name": self.log_name,
            "resource": self.resource.to_dict() if self.resource else None,
            "labels": dict(self.labels),
            "insert_id": self.insert_id,
        }

    def __hash__(self) -> int:
        # Mapping payload values may be unhashable; keys keep eq-consistency
        payload = self.payload
        payload_key = payload if isinstance(payload, str) else tuple(sorted(payload))
        return hash(
            (
                payload_key,
                self.severity,
                self.timestamp,
                self.log_name,
                self.resource,
                tuple(sorted(self.labels.items())),
                self.insert_id,
            )
        )


_LabelItems = tuple[tuple[str, str], ...]


@dataclass(frozen=True)
class GroupKey:
    """Value identity of a destination: log name, resource and labels.

    Two keys built from equal attributes compare and hash equal regardless of
    label ordering. Entries are combined into one write only when their keys
    are equal.
    """

    log_name: str
    resource_type: str | None = None
    resource_labels: _LabelItems = ()
    label_items: _LabelItems = ()

    @classmethod
    def from_attributes(
        cls,
        log_name: str,
        resource: Resource | None = None,
        labels: Mapping[str, str] | None = None,
    ) -> GroupKey:
        if not isinstance(log_name, str) or not log_name.strip():
            raise InvalidArgument("log_name must be a non-empty string")
        if resource is not None and not isinstance(resource, Resource):
            raise InvalidArgument(
                f"resource must be a Resource, got {type(resource).__name__}"
            )
        frozen = _frozen_labels(labels, what="labels")
        return cls(
            log_name=log_name,
            resource_type=resource.type if resource is not None else None,
            resource_labels=(
                tuple(sorted(resource.labels.items())) if resource is not None else ()
            ),
            label_items=tuple(sorted(frozen.items())),
        )

    @property
    def resource(self) -> Resource | None:
        if self.resource_type is None:
            return None
        return Resource(self.resource_type, dict(self.resource_labels))

    @property
    def labels(self) -> dict[str, str]:
        return dict(self.label_items)


__all__ = ["Entry", "GroupKey", "Resource", "Severity"]
