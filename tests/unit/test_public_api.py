from __future__ import annotations

import io

import orjson
import pytest

import cloudlog
from cloudlog import Entry, Settings
from cloudlog.sinks import HttpEntriesSink, StdoutEntriesSink
from cloudlog.testing import MockEntriesSink


def test_exports() -> None:
    for name in cloudlog.__all__:
        assert hasattr(cloudlog, name), name
    assert cloudlog.VERSION == cloudlog.__version__


def test_get_writer_defaults_to_stdout_sink() -> None:
    writer = cloudlog.get_writer()
    try:
        assert isinstance(writer._sink, StdoutEntriesSink)
        assert writer.name == "cloudlog"
    finally:
        writer.stop_and_wait(1.0)


def test_get_writer_uses_http_sink_when_project_configured(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("CLOUDLOG_HTTP__PROJECT_ID", "test")
    monkeypatch.setenv("CLOUDLOG_CORE__ENABLE_METRICS", "true")
    writer = cloudlog.get_writer()
    try:
        assert isinstance(writer._sink, HttpEntriesSink)
        assert writer._sink.config.project_id == "test"
        assert writer._metrics is not None and writer._metrics.is_enabled
    finally:
        writer.stop_and_wait(1.0)


def test_get_writer_applies_writer_settings() -> None:
    settings = Settings(
        writer={"max_pending_entries": 1, "backpressure_policy": "reject"}
    )
    writer = cloudlog.get_writer(settings, sink=MockEntriesSink())
    try:
        writer.suspend()
        writer.write_entries([Entry("a")], log_name="web_app_log")
        with pytest.raises(cloudlog.BackpressureError):
            writer.write_entries([Entry("b")], log_name="web_app_log")
    finally:
        writer.stop_and_wait(1.0)


def test_runtime_drains_on_exit(wait_timeout: float) -> None:
    sink = MockEntriesSink()
    with cloudlog.runtime(sink=sink) as writer:
        writer.write_entries([Entry("hello")], log_name="web_app_log")
    assert writer.is_stopped()
    assert [c.payloads for c in sink.calls] == [["hello"]]


def test_stdout_sink_writes_one_line_per_group(wait_timeout: float) -> None:
    stream = io.StringIO()
    sink = StdoutEntriesSink(project_id="test", stream=stream)
    with cloudlog.runtime(sink=sink) as w:
        w.suspend()
        for payload, env in (("a", "production"), ("b", "staging")):
            w.write_entries(
                [Entry(payload)], log_name="web_app_log", labels={"env": env}
            )
        w.resume()

    lines = stream.getvalue().splitlines()
    assert len(lines) == 2
    bodies = [orjson.loads(line) for line in lines]
    assert [b["labels"] for b in bodies] == [{"env": "production"}, {"env": "staging"}]
    assert bodies[0]["logName"] == "projects/test/logs/web_app_log"
