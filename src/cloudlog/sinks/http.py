"""
HTTP entries:write sink.

POSTs one ``WriteLogEntriesRequest``-shaped JSON body per group using a
single ``httpx.AsyncClient`` owned by the writer's background loop. Non-2xx
responses raise so the flush executor reports the group as failed. Only
static headers are sent; credentials are the caller's concern.
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

import httpx
from pydantic import BaseModel, ConfigDict, Field, field_validator

from ..core.entry import Entry, Resource
from ..core.serialization import build_write_request, serialize_mapping_to_json_bytes
from ..core.settings import DEFAULT_WRITE_ENDPOINT

__all__ = ["HttpEntriesSink", "HttpEntriesSinkConfig"]


class HttpEntriesSinkConfig(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid", validate_default=True)

    project_id: str
    endpoint: str = DEFAULT_WRITE_ENDPOINT
    headers: dict[str, str] = Field(default_factory=dict)
    timeout_seconds: float = Field(default=10.0, gt=0.0)

    @field_validator("project_id")
    @classmethod
    def _ensure_project_id(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("project_id must not be empty")
        return value

    @field_validator("headers", mode="before")
    @classmethod
    def _coerce_headers(cls, value: Mapping[str, str] | None) -> dict[str, str]:
        if value is None:
            return {}
        return dict(value)


class HttpEntriesSink:
    """Remote write collaborator posting grouped entries over HTTP."""

    name = "http"

    def __init__(
        self,
        config: HttpEntriesSinkConfig | dict | None = None,
        *,
        client: httpx.AsyncClient | None = None,
        **kwargs: Any,
    ) -> None:
        if isinstance(config, HttpEntriesSinkConfig):
            cfg = config.model_copy(update=kwargs) if kwargs else config
        else:
            cfg = HttpEntriesSinkConfig(**{**(config or {}), **kwargs})
        self._config = cfg
        self._client = client
        self._owns_client = client is None
        self._last_status: int | None = None
        self._last_error: str | None = None

    @property
    def config(self) -> HttpEntriesSinkConfig:
        return self._config

    async def start(self) -> None:
        self._ensure_client()

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self._config.timeout_seconds)
            self._owns_client = True
        return self._client

    async def stop(self) -> None:
        if self._client is not None and self._owns_client:
            await self._client.aclose()
            self._client = None

    async def write_entries(
        self,
        entries: Sequence[Entry],
        *,
        log_name: str,
        resource: Resource | None,
        labels: Mapping[str, str],
    ) -> None:
        body = build_write_request(
            entries,
            project_id=self._config.project_id,
            log_name=log_name,
            resource=resource,
            labels=labels,
        )
        view = serialize_mapping_to_json_bytes(body)
        headers = {"Content-Type": "application/json", **self._config.headers}
        client = self._ensure_client()
        try:
            resp = await client.post(
                self._config.endpoint, content=view.data, headers=headers
            )
        except httpx.HTTPError as exc:
            self._last_status = None
            self._last_error = str(exc)
            raise
        self._last_status = resp.status_code
        if resp.status_code >= 400:
            self._last_error = resp.text[:256]
            resp.raise_for_status()
        self._last_error = None

    async def health_check(self) -> bool:
        return (
            self._last_error is None
            and self._last_status is not None
            and self._last_status < 400
        )
