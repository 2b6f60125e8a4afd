"""Typed event catalogue and the in-process emitter the runner publishes on.

The runner never awaits its listeners: sync listeners run inline in
registration order, and a listener returning an awaitable is scheduled on
the running loop. Payloads are frozen dataclasses whose mutable inputs are
copied into read-only views, so every listener sees the same value.
``journey`` and ``step`` are the registered models themselves. The runner
walks a snapshot of the step list, so a listener changing ``journey.steps``
does not change which steps run.

Example:
    >>> emitter = EventEmitter()
    >>> emitter.on(EventType.STEP_END, lambda e: print(e.step.name, e.status))
    >>> emitter.emit(EventType.STEP_END, payload)
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING, Any

from synthqa.core.models import StepStatus

if TYPE_CHECKING:
    from synthqa.core.models import Journey, Step, StepResult

logger = logging.getLogger(__name__)

Listener = Callable[[Any], Any]


class EventType(str, Enum):
    """Closed catalogue of notifications emitted during a run."""

    START = "start"
    JOURNEY_REGISTER = "journey:register"
    JOURNEY_START = "journey:start"
    JOURNEY_END = "journey:end"
    STEP_START = "step:start"
    STEP_END = "step:end"
    END = "end"


def freeze_mapping(value: Mapping[str, Any] | None = None) -> Mapping[str, Any]:
    """Return a read-only copy of ``value`` (empty mapping for None)."""
    return MappingProxyType(dict(value or {}))


def freeze_sequence(value: Iterable[Any] | None) -> tuple[Any, ...] | None:
    if value is None:
        return None
    return tuple(value)


@dataclass(frozen=True)
class StartEvent:
    num_journeys: int


@dataclass(frozen=True)
class JourneyRegisterEvent:
    journey: Journey


@dataclass(frozen=True)
class JourneyStartEvent:
    journey: Journey
    timestamp: int
    params: Mapping[str, Any] = field(default_factory=freeze_mapping)

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", freeze_mapping(self.params))


@dataclass(frozen=True)
class JourneyEndEvent:
    """Emitted once per executed journey, after all of its step events."""

    journey: Journey
    status: StepStatus
    start: float
    end: float
    error: BaseException | None = None
    params: Mapping[str, Any] = field(default_factory=freeze_mapping)
    filmstrips: tuple[Any, ...] | None = None
    networkinfo: tuple[Any, ...] | None = None
    browserconsole: tuple[Any, ...] | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "params", freeze_mapping(self.params))
        object.__setattr__(self, "filmstrips", freeze_sequence(self.filmstrips))
        object.__setattr__(self, "networkinfo", freeze_sequence(self.networkinfo))
        object.__setattr__(self, "browserconsole", freeze_sequence(self.browserconsole))


@dataclass(frozen=True)
class StepStartEvent:
    journey: Journey
    step: Step


@dataclass(frozen=True)
class StepEndEvent:
    """Step outcome plus the monotonic start/end pair of the step."""

    journey: Journey
    step: Step
    start: float
    end: float
    status: StepStatus
    url: str | None = None
    metrics: Mapping[str, float] | None = None
    error: BaseException | None = None
    screenshot: str | None = None

    def __post_init__(self) -> None:
        if self.metrics is not None:
            object.__setattr__(self, "metrics", freeze_mapping(self.metrics))

    @classmethod
    def from_result(
        cls,
        journey: Journey,
        step: Step,
        start: float,
        end: float,
        result: StepResult,
    ) -> StepEndEvent:
        return cls(
            journey=journey,
            step=step,
            start=start,
            end=end,
            status=result.status,
            url=result.url,
            metrics=result.metrics,
            error=result.error,
            screenshot=result.screenshot,
        )


@dataclass(frozen=True)
class EndEvent:
    pass


EVENT_PAYLOADS: dict[EventType, type] = {
    EventType.START: StartEvent,
    EventType.JOURNEY_REGISTER: JourneyRegisterEvent,
    EventType.JOURNEY_START: JourneyStartEvent,
    EventType.JOURNEY_END: JourneyEndEvent,
    EventType.STEP_START: StepStartEvent,
    EventType.STEP_END: StepEndEvent,
    EventType.END: EndEvent,
}


class EventEmitter:
    """Observer registry keyed by event type.

    Attributes:
        fail_on_listener_error: Re-raise listener exceptions instead of
            logging them and moving on to the next listener.
    """

    def __init__(self, fail_on_listener_error: bool = False) -> None:
        self.fail_on_listener_error = fail_on_listener_error
        self._listeners: dict[EventType, list[Listener]] = {
            event: [] for event in EventType
        }
        self._pending: set[asyncio.Future[Any]] = set()

    def on(self, event: EventType | str, listener: Listener) -> None:
        """Subscribe ``listener`` to ``event``."""
        self._listeners[EventType(event)].append(listener)

    def once(self, event: EventType | str, listener: Listener) -> None:
        """Subscribe ``listener`` for the next emission of ``event`` only."""
        event = EventType(event)

        def wrapper(payload: Any) -> Any:
            self.off(event, wrapper)
            return listener(payload)

        self.on(event, wrapper)

    def off(self, event: EventType | str, listener: Listener) -> None:
        """Unsubscribe ``listener``; unknown listeners are ignored."""
        listeners = self._listeners[EventType(event)]
        if listener in listeners:
            listeners.remove(listener)

    def listener_count(self, event: EventType | str) -> int:
        return len(self._listeners[EventType(event)])

    def remove_all_listeners(self) -> None:
        for listeners in self._listeners.values():
            listeners.clear()

    def emit(self, event: EventType | str, payload: Any) -> None:
        """Deliver ``payload`` to every listener of ``event`` in order.

        Raises:
            TypeError: If ``payload`` is not the catalogue type for ``event``.
        """
        event = EventType(event)
        expected = EVENT_PAYLOADS[event]
        if not isinstance(payload, expected):
            raise TypeError(
                f"Event '{event.value}' expects {expected.__name__}, "
                f"got {type(payload).__name__}"
            )

        for listener in list(self._listeners[event]):
            try:
                result = listener(payload)
                if inspect.isawaitable(result):
                    self._schedule(result)
            except Exception:
                if self.fail_on_listener_error:
                    raise
                logger.exception(f"Listener for '{event.value}' failed")

    def _schedule(self, awaitable: Any) -> None:
        future = asyncio.ensure_future(awaitable)
        self._pending.add(future)
        future.add_done_callback(self._on_listener_done)

    def _on_listener_done(self, future: asyncio.Future[Any]) -> None:
        self._pending.discard(future)
        if future.cancelled():
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Async listener failed: {error!r}")

    async def drain(self) -> None:
        """Wait for scheduled async listeners to finish."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
