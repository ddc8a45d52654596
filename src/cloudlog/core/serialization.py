"""
Serialization of grouped entries into write-request bodies.

Builds the JSON shape of a cloud logging ``WriteLogEntriesRequest`` for one
group and encodes it with orjson without an intermediate ``str``. Only the
bundled sinks use this module; the writer itself never serializes.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Mapping, Sequence
from urllib.parse import quote

import orjson

from .entry import Entry, Resource
from .errors import CloudLogError


class SerializationError(CloudLogError):
    """A request body could not be encoded as JSON."""


def _default(obj: Any) -> Any:
    """Default serializer hook for unsupported types.

    Keep minimal; prefer payloads to be plain JSON types already.
    """
    if isinstance(obj, Mapping):
        return dict(obj)
    if hasattr(obj, "model_dump"):
        return obj.model_dump(exclude_none=True)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


@dataclass
class SerializedView:
    """A lightweight container exposing zero-copy friendly views."""

    data: bytes

    @property
    def view(self) -> memoryview:
        return memoryview(self.data)

    def __bytes__(self) -> bytes:
        return self.data


def full_log_name(project_id: str, log_name: str) -> str:
    """Return ``projects/{project}/logs/{log}``; full names pass through."""
    if log_name.startswith("projects/"):
        return log_name
    return f"projects/{project_id}/logs/{quote(log_name, safe='')}"


def format_timestamp(value: datetime) -> str:
    """RFC 3339 in UTC; naive datetimes are taken as UTC."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def entry_to_api(
    entry: Entry,
    *,
    log_name: str,
    resource: Resource | None,
    labels: Mapping[str, str],
) -> dict[str, Any]:
    """Map one entry to its API representation.

    Request-level attributes fill in whatever the entry leaves unset.
    """
    item: dict[str, Any] = {
        "logName": log_name,
        "severity": entry.severity.value,
    }
    effective_resource = entry.resource or resource
    if effective_resource is not None:
        item["resource"] = effective_resource.to_dict()
    merged_labels = {**labels, **entry.labels}
    if merged_labels:
        item["labels"] = merged_labels
    if isinstance(entry.payload, str):
        item["textPayload"] = entry.payload
    else:
        item["jsonPayload"] = dict(entry.payload)
    if entry.timestamp is not None:
        item["timestamp"] = format_timestamp(entry.timestamp)
    if entry.insert_id:
        item["insertId"] = entry.insert_id
    return item


def build_write_request(
    entries: Sequence[Entry],
    *,
    project_id: str,
    log_name: str,
    resource: Resource | None,
    labels: Mapping[str, str],
) -> dict[str, Any]:
    name = full_log_name(project_id, log_name)
    body: dict[str, Any] = {"logName": name}
    if resource is not None:
        body["resource"] = resource.to_dict()
    if labels:
        body["labels"] = dict(labels)
    body["entries"] = [
        entry_to_api(entry, log_name=name, resource=resource, labels=labels)
        for entry in entries
    ]
    return body


def serialize_mapping_to_json_bytes(payload: Mapping[str, Any]) -> SerializedView:
    """Serialize mapping to JSON bytes using orjson without intermediate str."""
    try:
        data = orjson.dumps(payload, default=_default)
    except TypeError as e:
        raise SerializationError(f"Serialization failed: {e}") from e
    return SerializedView(data=data)


__all__ = [
    "SerializationError",
    "SerializedView",
    "build_write_request",
    "entry_to_api",
    "format_timestamp",
    "full_log_name",
    "serialize_mapping_to_json_bytes",
]
