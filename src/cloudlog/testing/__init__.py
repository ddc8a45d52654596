"""
Testing utilities for code that writes through cloudlog.

Example:
    from cloudlog import AsyncWriter
    from cloudlog.testing import MockEntriesSink, create_entries

    def test_writes():
        sink = MockEntriesSink()
        writer = AsyncWriter(sink, register_for_shutdown=False)
        writer.write_entries(create_entries("hello"), log_name="app")
        writer.stop_and_wait(1.0)
        assert sink.calls[0].payloads == ["hello"]
"""

from .factories import create_entries, create_entry, create_resource
from .mocks import MockEntriesSink, MockEntriesSinkConfig, RecordedWrite

__all__ = [
    "MockEntriesSink",
    "MockEntriesSinkConfig",
    "RecordedWrite",
    "create_entries",
    "create_entry",
    "create_resource",
]
