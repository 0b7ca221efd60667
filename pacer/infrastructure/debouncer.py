"""Debounce controller that limits how often an operation runs during a burst of calls."""

import functools
import math
import threading
from collections.abc import Callable, Mapping
from typing import Any

from pacer.domain.constants import DEFAULT_LEADING, DEFAULT_TRAILING, DEFAULT_WAIT_MS
from pacer.domain.models import DebounceOptions
from pacer.infrastructure.scheduler import Scheduler, ThreadingScheduler
from pacer.logging_config import get_logger

logger = get_logger(__name__)


class InvalidOperationError(TypeError):
    """Raised when a debounce controller is built around a non-callable."""


def coerce_ms(value: Any) -> float:
    """Coerce a duration to milliseconds. Non-numeric or non-finite values become 0."""
    try:
        number = float(value)
    except (TypeError, ValueError):
        return DEFAULT_WAIT_MS
    if not math.isfinite(number):
        return DEFAULT_WAIT_MS
    return number


def coerce_max_wait(value: Any) -> float | None:
    """Coerce a max-wait bound. Non-numeric or non-finite values leave it unset."""
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


class Debouncer:
    """Run `operation` at most once per burst of calls.

    A burst is a run of calls each made within `wait` ms of the previous one.
    With `leading` the first call of a burst runs the operation right away.
    With `trailing` (the default) the operation runs once the burst has been
    quiet for `wait` ms, using the arguments of the last call. `max_wait`
    bounds how long a burst may hold execution back; a non-numeric or
    non-finite `max_wait` leaves the bound unset.

    Calling the instance is the `invoke` operation. `cancel`, `flush` and
    `pending` control the scheduled trailing check.
    """

    def __init__(
        self,
        operation: Callable[..., Any],
        wait: Any = DEFAULT_WAIT_MS,
        *,
        leading: bool = DEFAULT_LEADING,
        trailing: bool = DEFAULT_TRAILING,
        max_wait: Any = None,
        scheduler: Scheduler | None = None,
    ) -> None:
        if not callable(operation):
            raise InvalidOperationError(
                f"Expected a callable operation, got {type(operation).__name__}"
            )
        functools.update_wrapper(self, operation, updated=())
        self._operation = operation
        self._wait = coerce_ms(wait)
        self._leading = bool(leading)
        self._trailing = bool(trailing)
        self._max_wait = coerce_max_wait(max_wait)
        self._scheduler = scheduler or ThreadingScheduler()
        self._lock = threading.RLock()

        self._last_call_time: float | None = None
        self._last_invoke_time = 0.0
        self._pending_args: tuple[tuple[Any, ...], dict[str, Any]] | None = None
        self._timer: Any = None
        self._generation = 0

    @property
    def wait(self) -> float:
        return self._wait

    @property
    def max_wait(self) -> float | None:
        return self._max_wait

    @property
    def leading(self) -> bool:
        return self._leading

    @property
    def trailing(self) -> bool:
        return self._trailing

    def __call__(self, *args: Any, **kwargs: Any) -> Any:
        with self._lock:
            now = self._scheduler.now()
            is_invoking = self._should_invoke(now)

            self._last_call_time = now
            self._pending_args = (args, kwargs)

            if is_invoking:
                if self._timer is None:
                    return self._leading_edge(now)
                if self._max_wait is not None:
                    # Burst outlived max_wait: run now and restart the quiet period.
                    self._start_timer(self._wait)
                    return self._invoke(now)
            if self._timer is None:
                self._start_timer(self._wait)
            return None

    def cancel(self) -> None:
        """Drop any scheduled check and reset to idle. Pending calls are lost."""
        with self._lock:
            if self._timer is not None:
                logger.debug("Debounce cancelled for: %s", self._name)
            self._stop_timer()
            self._last_invoke_time = 0.0
            self._last_call_time = None
            self._pending_args = None

    def flush(self) -> Any:
        """Run the trailing edge now if a check is pending and return its result."""
        with self._lock:
            if self._timer is None:
                return None
            return self._trailing_edge(self._scheduler.now())

    def pending(self) -> bool:
        """Return True while a trailing check is scheduled."""
        with self._lock:
            return self._timer is not None

    # --- State machine ---

    @property
    def _name(self) -> str:
        return getattr(self._operation, "__qualname__", repr(self._operation))

    def _should_invoke(self, now: float) -> bool:
        if self._last_call_time is None:
            return True
        since_call = now - self._last_call_time
        since_invoke = now - self._last_invoke_time
        return (
            since_call >= self._wait
            or since_call < 0
            or (self._max_wait is not None and since_invoke >= self._max_wait)
        )

    def _remaining_wait(self, now: float) -> float:
        assert self._last_call_time is not None
        remaining = self._wait - (now - self._last_call_time)
        if self._max_wait is None:
            return remaining
        return min(remaining, self._max_wait - (now - self._last_invoke_time))

    def _invoke(self, now: float) -> Any:
        args, kwargs = self._pending_args or ((), {})
        self._pending_args = None
        self._last_invoke_time = now
        return self._operation(*args, **kwargs)

    def _leading_edge(self, now: float) -> Any:
        self._last_invoke_time = now
        self._start_timer(self._wait)
        return self._invoke(now) if self._leading else None

    def _trailing_edge(self, now: float) -> Any:
        self._stop_timer()
        if self._trailing and self._pending_args is not None:
            return self._invoke(now)
        self._last_call_time = None
        self._pending_args = None
        return None

    # --- Timer plumbing ---

    def _start_timer(self, delay: float) -> None:
        self._stop_timer()
        self._generation += 1
        generation = self._generation
        self._timer = self._scheduler.schedule(
            delay, lambda: self._on_timer(generation)
        )

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._scheduler.unschedule(self._timer)
            self._timer = None

    def _on_timer(self, generation: int) -> None:
        """Timer callback. Failures of the operation stop here and are logged."""
        try:
            self._timer_expired(generation)
        except Exception:
            logger.exception("Debounced operation failed for: %s", self._name)

    def _timer_expired(self, generation: int) -> None:
        with self._lock:
            # A timer that fired after being stopped or replaced is stale.
            if self._timer is None or generation != self._generation:
                return
            self._timer = None
            now = self._scheduler.now()
            if self._should_invoke(now):
                self._trailing_edge(now)
                return
            delay = self._remaining_wait(now)
            logger.debug("Debounce rescheduled in %.1f ms for: %s", delay, self._name)
            self._start_timer(delay)


def debounce(
    operation: Callable[..., Any],
    wait: Any = DEFAULT_WAIT_MS,
    options: DebounceOptions | Mapping[str, Any] | None = None,
    *,
    scheduler: Scheduler | None = None,
) -> Debouncer:
    """Build a `Debouncer` from an options model or mapping.

    Mappings accept `leading`, `trailing` and `maxWait` (or `max_wait`).
    Missing keys keep their defaults.
    """
    if options is None:
        options = DebounceOptions()
    elif not isinstance(options, DebounceOptions):
        options = DebounceOptions.model_validate(dict(options))
    return Debouncer(
        operation,
        wait,
        leading=options.leading,
        trailing=options.trailing,
        max_wait=options.max_wait,
        scheduler=scheduler,
    )


def simple_debounce(
    operation: Callable[..., Any],
    wait: Any,
    *,
    scheduler: Scheduler | None = None,
) -> Callable[..., None]:
    """Return a function that runs `operation` once calls stop for `wait` ms.

    Every call drops the previously scheduled run and schedules a new one
    with its own arguments. There is no leading edge, flush or cancel.
    """
    if not callable(operation):
        raise InvalidOperationError(
            f"Expected a callable operation, got {type(operation).__name__}"
        )
    delay = coerce_ms(wait)
    timer_scheduler = scheduler or ThreadingScheduler()
    lock = threading.Lock()
    handle: Any = None
    generation = 0

    def fire(token: int, args: tuple[Any, ...], kwargs: dict[str, Any]) -> None:
        nonlocal handle
        with lock:
            # A run that was replaced by a later call is stale.
            if token != generation:
                return
            handle = None
        operation(*args, **kwargs)

    @functools.wraps(operation)
    def debounced(*args: Any, **kwargs: Any) -> None:
        nonlocal handle, generation
        with lock:
            if handle is not None:
                timer_scheduler.unschedule(handle)
            generation += 1
            handle = timer_scheduler.schedule(
                delay, functools.partial(fire, generation, args, kwargs)
            )

    return debounced
