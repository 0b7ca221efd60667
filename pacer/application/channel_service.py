import threading
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

from pacer.domain.models import ChannelConfig, ChannelStatus
from pacer.infrastructure.debouncer import Debouncer, debounce
from pacer.infrastructure.event_log import EventLog, ExecutionEvent
from pacer.infrastructure.scheduler import Scheduler, ThreadingScheduler
from pacer.logging_config import get_logger

logger = get_logger(__name__)

Sink = Callable[[str, Any], None]


class ChannelNotFoundError(KeyError):
    """Raised when a channel name is not registered."""

    def __init__(self, name: str) -> None:
        super().__init__(name)
        self.name = name


@dataclass(frozen=True)
class InvokeResult:
    """What happened to a channel after invoke, flush or cancel."""

    channel: str
    execution: ExecutionEvent | None
    pending: bool

    @property
    def executed(self) -> bool:
        return self.execution is not None


@dataclass
class _Channel:
    config: ChannelConfig
    debouncer: Debouncer | None = None
    executions: int = 0
    lock: threading.Lock = field(default_factory=threading.Lock)


class ChannelService:
    """Host named debounce controllers and record what they actually run.

    `sink` is for embedding the service in another program: each execution
    is forwarded to `sink(channel, payload)`. The HTTP app wires no sink and
    only records executions in the event log.
    """

    def __init__(
        self,
        scheduler: Scheduler | None = None,
        event_log: EventLog | None = None,
        sink: Sink | None = None,
    ) -> None:
        self._scheduler = scheduler or ThreadingScheduler()
        self._event_log = event_log or EventLog()
        self._sink = sink
        self._channels: dict[str, _Channel] = {}
        self._lock = threading.Lock()

    def register(self, config: ChannelConfig) -> ChannelStatus:
        """Create a channel, or replace one with the same name."""
        channel = _Channel(config=config)
        channel.debouncer = debounce(
            lambda payload: self._dispatch(channel, payload),
            config.wait_ms,
            config.to_options(),
            scheduler=self._scheduler,
        )
        with self._lock:
            previous = self._channels.get(config.name)
            self._channels[config.name] = channel

        if previous is not None and previous.debouncer is not None:
            previous.debouncer.cancel()
            logger.info("Channel replaced: %s", config.name)
        else:
            logger.info(
                "Channel registered: %s (wait=%.0fms, leading=%s, trailing=%s, max_wait=%s)",
                config.name,
                config.wait_ms,
                config.leading,
                config.trailing,
                config.max_wait_ms,
            )
        return self._status(channel)

    def remove(self, name: str) -> None:
        """Cancel and drop a channel. Pending work is discarded."""
        with self._lock:
            channel = self._channels.pop(name, None)
        if channel is None:
            raise ChannelNotFoundError(name)
        channel.debouncer.cancel()
        logger.info("Channel removed: %s", name)

    def invoke(self, name: str, payload: Any = None) -> InvokeResult:
        """Feed one request into the channel's debounce controller."""
        channel = self._get(name)
        execution = channel.debouncer(payload)
        return InvokeResult(name, execution, channel.debouncer.pending())

    def flush(self, name: str) -> InvokeResult:
        """Run the channel's pending trailing execution now, if any."""
        channel = self._get(name)
        execution = channel.debouncer.flush()
        return InvokeResult(name, execution, channel.debouncer.pending())

    def cancel(self, name: str) -> InvokeResult:
        """Drop the channel's pending execution."""
        channel = self._get(name)
        channel.debouncer.cancel()
        return InvokeResult(name, None, channel.debouncer.pending())

    def get_status(self, name: str) -> ChannelStatus:
        return self._status(self._get(name))

    def list_channels(self) -> list[ChannelStatus]:
        """Return the status of every channel, sorted by name."""
        with self._lock:
            channels = sorted(self._channels.values(), key=lambda c: c.config.name)
        return [self._status(c) for c in channels]

    def get_recent_events(
        self, limit: int = 50, channel: str | None = None
    ) -> list[ExecutionEvent]:
        """Return recent executions, newest first."""
        return self._event_log.get_recent(limit, channel=channel)

    def shutdown(self) -> None:
        """Cancel every channel. Called during application shutdown."""
        with self._lock:
            channels = list(self._channels.values())
        for channel in channels:
            channel.debouncer.cancel()
        logger.info("All channels cancelled (%d)", len(channels))

    def _get(self, name: str) -> _Channel:
        with self._lock:
            channel = self._channels.get(name)
        if channel is None:
            raise ChannelNotFoundError(name)
        return channel

    def _status(self, channel: _Channel) -> ChannelStatus:
        config = channel.config
        with channel.lock:
            executions = channel.executions
        return ChannelStatus(
            name=config.name,
            wait_ms=config.wait_ms,
            leading=config.leading,
            trailing=config.trailing,
            max_wait_ms=config.max_wait_ms,
            pending=channel.debouncer.pending(),
            executions=executions,
        )

    def _dispatch(self, channel: _Channel, payload: Any) -> ExecutionEvent:
        """The debounced operation: record the execution and forward the payload."""
        with channel.lock:
            channel.executions += 1
            sequence = channel.executions
        event = ExecutionEvent(
            channel=channel.config.name, sequence=sequence, payload=payload
        )
        self._event_log.record(event)
        logger.info("Channel executed: %s (#%d)", event.channel, sequence)
        if self._sink is not None:
            self._sink(event.channel, payload)
        return event
