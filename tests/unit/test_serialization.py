from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from cloudlog.core.entry import Entry, Resource, Severity
from cloudlog.core.serialization import (
    SerializationError,
    build_write_request,
    entry_to_api,
    format_timestamp,
    full_log_name,
    serialize_mapping_to_json_bytes,
)


@pytest.mark.parametrize(
    ("log_name", "expected"),
    [
        ("web_app_log", "projects/test/logs/web_app_log"),
        ("app/requests", "projects/test/logs/app%2Frequests"),
        ("projects/other/logs/x", "projects/other/logs/x"),
    ],
)
def test_full_log_name(log_name: str, expected: str) -> None:
    assert full_log_name("test", log_name) == expected


def test_format_timestamp_normalizes_to_utc() -> None:
    naive = datetime(2024, 1, 1, 0, 0, 0)
    plus_two = datetime(2024, 1, 1, 2, 0, 0, tzinfo=timezone(timedelta(hours=2)))
    assert format_timestamp(naive) == "2024-01-01T00:00:00Z"
    assert format_timestamp(plus_two) == "2024-01-01T00:00:00Z"


def test_entry_values_override_request_defaults() -> None:
    entry = Entry(
        "hello",
        severity=Severity.WARNING,
        resource=Resource("k8s_container", {"pod": "p1"}),
        labels={"env": "staging", "req": "1"},
        insert_id="abc",
    )
    item = entry_to_api(
        entry,
        log_name="projects/test/logs/web_app_log",
        resource=Resource("global"),
        labels={"env": "production", "team": "core"},
    )
    assert item == {
        "logName": "projects/test/logs/web_app_log",
        "severity": "WARNING",
        "resource": {"type": "k8s_container", "labels": {"pod": "p1"}},
        "labels": {"env": "staging", "team": "core", "req": "1"},
        "textPayload": "hello",
        "insertId": "abc",
    }


def test_build_write_request_without_resource_or_labels() -> None:
    body = build_write_request(
        [Entry({"k": 1})],
        project_id="test",
        log_name="web_app_log",
        resource=None,
        labels={},
    )
    assert set(body) == {"logName", "entries"}
    assert body["entries"] == [
        {
            "logName": "projects/test/logs/web_app_log",
            "severity": "DEFAULT",
            "jsonPayload": {"k": 1},
        }
    ]


def test_serialize_rejects_unsupported_values() -> None:
    with pytest.raises(SerializationError):
        serialize_mapping_to_json_bytes({"bad": object()})


def test_serialize_returns_bytes_view() -> None:
    view = serialize_mapping_to_json_bytes({"a": 1})
    assert bytes(view) == b'{"a":1}'
    assert view.view.tobytes() == b'{"a":1}'
