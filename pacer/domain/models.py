from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from pacer.domain.constants import (
    CHANNEL_NAME_PATTERN,
    DEFAULT_LEADING,
    DEFAULT_TRAILING,
    MAX_CHANNEL_NAME_LENGTH,
)


# --- Debounce Options ---


class DebounceOptions(BaseModel):
    """Edge and max-wait configuration for a debounce controller."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    leading: bool = DEFAULT_LEADING
    trailing: bool = DEFAULT_TRAILING
    max_wait: float | None = Field(default=None, alias="maxWait")


# --- Channels ---


class ChannelConfig(BaseModel):
    """Configuration of a named debounced channel."""

    name: str = Field(
        min_length=1,
        max_length=MAX_CHANNEL_NAME_LENGTH,
        pattern=CHANNEL_NAME_PATTERN,
    )
    wait_ms: float = Field(ge=0)
    leading: bool = DEFAULT_LEADING
    trailing: bool = DEFAULT_TRAILING
    max_wait_ms: float | None = Field(default=None, ge=0)

    def to_options(self) -> DebounceOptions:
        return DebounceOptions(
            leading=self.leading,
            trailing=self.trailing,
            max_wait=self.max_wait_ms,
        )


class ChannelConfigRequest(BaseModel):
    """Request body for PUT /channels/{name}."""

    wait_ms: float | None = Field(
        default=None,
        ge=0,
        description="Quiet period in milliseconds. Falls back to the service default.",
    )
    leading: bool = DEFAULT_LEADING
    trailing: bool = DEFAULT_TRAILING
    max_wait_ms: float | None = Field(default=None, ge=0)


class ChannelStatus(BaseModel):
    """Current state of a channel."""

    name: str
    wait_ms: float
    leading: bool
    trailing: bool
    max_wait_ms: float | None = None
    pending: bool
    executions: int


class ChannelListResponse(BaseModel):
    """Response from GET /channels."""

    channels: list[ChannelStatus]
    total: int


# --- Invocation ---


class InvokeRequest(BaseModel):
    """Request body for POST /channels/{name}/invoke."""

    payload: Any = None


class ExecutionEventItem(BaseModel):
    """A single execution of a channel's operation."""

    channel: str
    sequence: int
    payload: Any = None
    timestamp: datetime


class InvokeResponse(BaseModel):
    """Outcome of an invoke, flush or cancel request."""

    channel: str
    executed: bool
    execution: ExecutionEventItem | None = None
    pending: bool


class ExecutionEventsResponse(BaseModel):
    """Response from GET /events."""

    events: list[ExecutionEventItem]
    total: int


# --- Health ---


class HealthResponse(BaseModel):
    """Response from GET /health."""

    status: str
    timestamp: str
    channels: int = 0
    pending_channels: int = 0
