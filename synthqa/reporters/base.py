"""Abstract base reporter class for SynthQA.

Reporters are observers: they subscribe to the runner's events when they are
constructed and render the run as it happens, writing to ``stream``. The
runner builds one reporter per run as ``reporter(runner, stream=outfd)``.

Example:
    >>> class CountingReporter(BaseReporter):
    ...     def on_step_end(self, event: StepEndEvent) -> None:
    ...         pass
    ...
    ...     def on_journey_end(self, event: JourneyEndEvent) -> None:
    ...         self.write(f"{event.journey.name}: {event.status.value}")
"""

from __future__ import annotations

import sys
from abc import ABC, abstractmethod
from typing import IO, TYPE_CHECKING, Any

from synthqa.core.events import (
    EndEvent,
    EventType,
    JourneyEndEvent,
    JourneyRegisterEvent,
    JourneyStartEvent,
    StartEvent,
    StepEndEvent,
    StepStartEvent,
)
from synthqa.core.models import StepStatus

if TYPE_CHECKING:
    from synthqa.runner import Runner


class BaseReporter(ABC):
    """Abstract base class for all SynthQA reporters.

    The base class keeps per-run counters and wires every ``on_*`` method to
    the matching event. Subclasses must implement ``on_step_end`` and
    ``on_journey_end``; the other handlers are optional.

    Attributes:
        runner: The runner whose events are reported.
        stream: Text stream the report is written to (stdout by default).
        metrics: Step counts keyed by status.
        journeys: Journey counts keyed by status.
    """

    def __init__(self, runner: Runner, stream: IO[str] | None = None) -> None:
        self.runner = runner
        self.stream = stream or sys.stdout
        self.metrics: dict[StepStatus, int] = {status: 0 for status in StepStatus}
        self.journeys: dict[StepStatus, int] = {status: 0 for status in StepStatus}
        self._handlers: list[tuple[EventType, Any]] = [
            (EventType.START, self._handle_start),
            (EventType.JOURNEY_REGISTER, self.on_journey_register),
            (EventType.JOURNEY_START, self.on_journey_start),
            (EventType.STEP_START, self.on_step_start),
            (EventType.STEP_END, self._handle_step_end),
            (EventType.JOURNEY_END, self._handle_journey_end),
            (EventType.END, self._handle_end),
        ]
        for event, handler in self._handlers:
            runner.on(event, handler)

    def _handle_start(self, event: StartEvent) -> None:
        self.metrics = {status: 0 for status in StepStatus}
        self.journeys = {status: 0 for status in StepStatus}
        self.on_start(event)

    def _handle_step_end(self, event: StepEndEvent) -> None:
        self.metrics[event.status] += 1
        self.on_step_end(event)

    def _handle_journey_end(self, event: JourneyEndEvent) -> None:
        self.journeys[event.status] += 1
        self.on_journey_end(event)

    def _handle_end(self, event: EndEvent) -> None:
        try:
            self.on_end(event)
        finally:
            self.close()

    def on_start(self, event: StartEvent) -> None:
        pass

    def on_journey_register(self, event: JourneyRegisterEvent) -> None:
        pass

    def on_journey_start(self, event: JourneyStartEvent) -> None:
        pass

    def on_step_start(self, event: StepStartEvent) -> None:
        pass

    @abstractmethod
    def on_step_end(self, event: StepEndEvent) -> None:
        """Handle the outcome of a single step."""
        ...

    @abstractmethod
    def on_journey_end(self, event: JourneyEndEvent) -> None:
        """Handle the outcome of a journey, including its artifacts."""
        ...

    def on_end(self, event: EndEvent) -> None:
        pass

    def write(self, text: str) -> None:
        self.stream.write(text + "\n")
        self.stream.flush()

    def close(self) -> None:
        """Stop listening to the runner."""
        for event, handler in self._handlers:
            self.runner.off(event, handler)
