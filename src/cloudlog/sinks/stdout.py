from __future__ import annotations

import sys
from typing import Mapping, Sequence, TextIO

from ..core.entry import Entry, Resource
from ..core.serialization import build_write_request, serialize_mapping_to_json_bytes


class StdoutEntriesSink:
    """Sink that writes one JSON request body per group to stdout.

    Useful for local development; the body has the same shape the HTTP sink
    posts, with ``project_id`` filling in the full log name.
    """

    name = "stdout"

    def __init__(
        self, *, project_id: str = "local", stream: TextIO | None = None
    ) -> None:
        self._project_id = project_id
        self._stream = stream

    def write_entries(
        self,
        entries: Sequence[Entry],
        *,
        log_name: str,
        resource: Resource | None,
        labels: Mapping[str, str],
    ) -> None:
        body = build_write_request(
            entries,
            project_id=self._project_id,
            log_name=log_name,
            resource=resource,
            labels=labels,
        )
        view = serialize_mapping_to_json_bytes(body)
        stream = self._stream if self._stream is not None else sys.stdout
        stream.write(view.data.decode("utf-8") + "\n")
        stream.flush()
