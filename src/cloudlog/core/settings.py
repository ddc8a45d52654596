"""
Configuration models for cloudlog using Pydantic v2 Settings.

Every field can be set from the environment with the ``CLOUDLOG_`` prefix and
``__`` as the nested delimiter, e.g. ``CLOUDLOG_WRITER__INTERVAL_SECONDS=1``.
"""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import (  # type: ignore[import-not-found]
    BaseSettings,
    SettingsConfigDict,
)

DEFAULT_WRITE_ENDPOINT = "https://logging.googleapis.com/v2/entries:write"


class CoreSettings(BaseModel):
    """Process-wide behavior that is not specific to one writer."""

    app_name: str = Field(default="cloudlog", description="Logical application name")
    # Structured internal diagnostics for non-fatal errors (writer/sink/hook)
    internal_logging_enabled: bool = Field(
        default=False, description=("Emit WARN diagnostics for internal errors")
    )
    enable_metrics: bool = Field(
        default=False,
        description=("Enable Prometheus-compatible metrics"),
    )

    @field_validator("app_name")
    @classmethod
    def _ensure_app_name_non_empty(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("app_name must not be empty")
        return value


class WriterSettings(BaseModel):
    """Async writer scheduling, buffering and shutdown settings."""

    interval_seconds: float = Field(
        default=5.0,
        gt=0.0,
        description=("Maximum time the background loop sleeps between flushes"),
    )
    max_pending_entries: int | None = Field(
        default=None,
        ge=1,
        description=("Upper bound on buffered entries; None leaves it unbounded"),
    )
    backpressure_policy: Literal["wait", "reject"] = Field(
        default="wait",
        description=("Behavior when max_pending_entries would be exceeded"),
    )
    backpressure_wait_ms: int = Field(
        default=50,
        ge=0,
        description=("Milliseconds to wait for buffer space under the wait policy"),
    )
    shutdown_timeout_seconds: float = Field(
        default=2.0,
        gt=0.0,
        description=("Maximum time to wait for the final flush on shutdown"),
    )
    atexit_drain_enabled: bool = Field(
        default=True,
        description=("Stop and drain registered writers at interpreter exit"),
    )


class HttpSinkSettings(BaseModel):
    """Settings for the bundled HTTP entries:write collaborator."""

    project_id: str | None = Field(
        default=None, description=("Project that owns the logs; enables HTTP sink")
    )
    endpoint: str = Field(default=DEFAULT_WRITE_ENDPOINT)
    timeout_seconds: float = Field(default=10.0, gt=0.0)
    headers: dict[str, str] = Field(default_factory=dict)


class Settings(BaseSettings):
    """Top-level configuration model."""

    core: CoreSettings = Field(default_factory=CoreSettings)
    writer: WriterSettings = Field(default_factory=WriterSettings)
    http: HttpSinkSettings = Field(default_factory=HttpSinkSettings)

    model_config = SettingsConfigDict(
        env_prefix="CLOUDLOG_",
        env_nested_delimiter="__",
        extra="ignore",
        case_sensitive=False,
    )

    def to_dict(self) -> dict[str, object]:
        from typing import cast

        return cast(
            dict[str, object],
            self.model_dump(by_alias=True, exclude_none=True),
        )
