"""Thread-safe ring buffer for channel executions."""

import threading
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from pacer.domain.constants import EVENT_LOG_MAXLEN


@dataclass(frozen=True)
class ExecutionEvent:
    """A single run of a channel's debounced operation."""

    channel: str
    sequence: int  # Per-channel, starting at 1
    payload: Any = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(tz=timezone.utc))


class EventLog:
    """Thread-safe ring buffer that stores the most recent executions."""

    def __init__(self, maxlen: int = EVENT_LOG_MAXLEN) -> None:
        self._buffer: deque[ExecutionEvent] = deque(maxlen=maxlen)
        self._lock = threading.Lock()

    def record(self, event: ExecutionEvent) -> None:
        """Append an event to the ring buffer."""
        with self._lock:
            self._buffer.append(event)

    def get_recent(self, limit: int = 50, channel: str | None = None) -> list[ExecutionEvent]:
        """Return the most recent events, newest first, optionally for one channel."""
        with self._lock:
            items = list(self._buffer)
        if channel is not None:
            items = [e for e in items if e.channel == channel]
        return list(reversed(items))[:limit]

    def __len__(self) -> int:
        with self._lock:
            return len(self._buffer)
