from __future__ import annotations

from typing import Any, Mapping, Sequence

import pytest

from cloudlog.core.entry import Entry, GroupKey, Resource
from cloudlog.core.errors import FlushError
from cloudlog.core.flush import FlushExecutor
from cloudlog.metrics.metrics import MetricsCollector
from cloudlog.testing import MockEntriesSink, MockEntriesSinkConfig

PROD = GroupKey.from_attributes(
    "web_app_log", Resource("gce_instance", {"zone": "global"}), {"env": "production"}
)
STAGING = GroupKey.from_attributes(
    "web_app_log", Resource("gce_instance", {"zone": "global"}), {"env": "staging"}
)


def _entries(*payloads: str) -> tuple[Entry, ...]:
    return tuple(Entry(p) for p in payloads)


@pytest.mark.asyncio
async def test_writes_each_group_once_in_snapshot_order() -> None:
    sink = MockEntriesSink()
    executor = FlushExecutor(sink)

    result = await executor.flush(
        [(PROD, _entries("p1", "p2")), (STAGING, _entries("s1"))]
    )

    assert [c.labels for c in sink.calls] == [{"env": "production"}, {"env": "staging"}]
    assert sink.calls[0].payloads == ["p1", "p2"]
    assert sink.calls[0].log_name == "web_app_log"
    assert sink.calls[0].resource == Resource("gce_instance", {"zone": "global"})
    assert result.groups_written == 2
    assert result.entries_written == 3
    assert result.ok


@pytest.mark.asyncio
async def test_empty_snapshot_is_a_no_op() -> None:
    sink = MockEntriesSink()
    result = await FlushExecutor(sink).flush([])
    assert sink.calls == []
    assert result.groups_written == 0


@pytest.mark.asyncio
async def test_failed_group_does_not_block_other_groups() -> None:
    sink = MockEntriesSink(
        MockEntriesSinkConfig(
            fail_when=lambda _name, labels: labels["env"] == "production"
        )
    )
    reported: list[FlushError] = []
    executor = FlushExecutor(sink, on_error=reported.append)

    result = await executor.flush(
        [(PROD, _entries("p1", "p2")), (STAGING, _entries("s1"))]
    )

    assert [c.payloads for c in sink.calls] == [["s1"]]
    assert len(sink.failures) == 1
    assert len(reported) == 1
    error = reported[0]
    assert error.group_key == PROD
    assert error.entry_count == 2
    assert [e.payload for e in error.entries] == ["p1", "p2"]
    assert isinstance(error.__cause__, RuntimeError)
    assert "p1" not in str(error)
    assert result.groups_failed == 1
    assert result.entries_failed == 2
    assert result.groups_written == 1
    assert not result.ok


@pytest.mark.asyncio
async def test_async_error_hook_is_awaited() -> None:
    sink = MockEntriesSink(MockEntriesSinkConfig(fail_log_names={"web_app_log"}))
    seen: list[int] = []

    async def hook(error: FlushError) -> None:
        seen.append(error.entry_count)

    await FlushExecutor(sink, on_error=hook).flush([(PROD, _entries("a"))])

    assert seen == [1]


@pytest.mark.asyncio
async def test_hook_failure_is_contained(capture_diagnostics: list[dict]) -> None:
    sink = MockEntriesSink(
        MockEntriesSinkConfig(
            fail_when=lambda _name, labels: labels["env"] == "production"
        )
    )

    def hook(_error: FlushError) -> None:
        raise ValueError("hook broke")

    result = await FlushExecutor(sink, on_error=hook).flush(
        [(PROD, _entries("a")), (STAGING, _entries("b"))]
    )

    assert result.groups_written == 1
    assert any(d["message"] == "error hook failed" for d in capture_diagnostics)


@pytest.mark.asyncio
async def test_default_hook_reports_through_diagnostics(
    capture_diagnostics: list[dict],
) -> None:
    sink = MockEntriesSink(MockEntriesSinkConfig(fail_log_names={"web_app_log"}))

    await FlushExecutor(sink).flush([(PROD, _entries("a", "b"))])

    assert len(capture_diagnostics) == 1
    diag = capture_diagnostics[0]
    assert diag["component"] == "writer"
    assert diag["log_name"] == "web_app_log"
    assert diag["entry_count"] == 2
    assert diag["labels"] == {"env": "production"}


@pytest.mark.asyncio
async def test_sync_sink_is_supported() -> None:
    calls: list[tuple[str, list[Any]]] = []

    class SyncSink:
        def write_entries(
            self,
            entries: Sequence[Entry],
            *,
            log_name: str,
            resource: Resource | None,
            labels: Mapping[str, str],
        ) -> None:
            calls.append((log_name, [e.payload for e in entries]))

    result = await FlushExecutor(SyncSink()).flush([(PROD, _entries("a"))])

    assert calls == [("web_app_log", ["a"])]
    assert result.ok


@pytest.mark.asyncio
async def test_records_metrics() -> None:
    metrics = MetricsCollector(enabled=True)
    sink = MockEntriesSink(
        MockEntriesSinkConfig(
            fail_when=lambda _name, labels: labels["env"] == "staging"
        )
    )

    await FlushExecutor(sink, on_error=lambda _e: None, metrics=metrics).flush(
        [(PROD, _entries("a", "b")), (STAGING, _entries("c"))]
    )

    snap = await metrics.snapshot()
    assert snap.flushes == 1
    assert snap.groups_written == 1
    assert snap.entries_written == 2
    assert snap.groups_failed == 1
    assert snap.entries_failed == 1
    assert metrics.registry is not None
    assert metrics.registry.get_sample_value("cloudlog_entries_written_total") == 2.0
    assert (
        metrics.registry.get_sample_value(
            "cloudlog_entries_failed_total", {"log_name": "web_app_log"}
        )
        == 1.0
    )
