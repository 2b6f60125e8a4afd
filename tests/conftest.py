"""Pytest fixtures for SynthQA tests.

Everything browser-facing is faked so the suite runs without Playwright
browsers installed.
"""

from __future__ import annotations

import asyncio
import io
from typing import Any

import pytest

from synthqa.config import RunOptions
from synthqa.core.context import JourneyContext
from synthqa.core.events import EventType
from synthqa.core.gatherer import Driver
from synthqa.core.models import Journey
from synthqa.core.pause import EventResumeSignal
from synthqa.plugins.types import BrowserMessage, PluginKind, PluginOutput, StepInfo
from synthqa.runner import Runner


class MockRequest:
    """Mock Playwright request."""

    def __init__(
        self,
        url: str,
        navigation: bool = True,
        method: str = "GET",
        resource_type: str = "document",
    ) -> None:
        self.url = url
        self.method = method
        self.resource_type = resource_type
        self.failure: str | None = None
        self._navigation = navigation

    def is_navigation_request(self) -> bool:
        return self._navigation


class MockResponse:
    def __init__(self, request: MockRequest, status: int = 200) -> None:
        self.request = request
        self.status = status


class MockConsoleMessage:
    def __init__(self, text: str, type: str = "error", location: dict[str, Any] | None = None) -> None:
        self.text = text
        self.type = type
        self.location = location or {}


class MockPage:
    """Mock Playwright page with an event registry and a fake screenshot."""

    def __init__(self, url: str = "about:blank") -> None:
        self.url = url
        self.listeners: dict[str, list[Any]] = {}
        self.load_states: list[str] = []
        self.screenshot_calls: list[dict[str, Any]] = []
        self.screenshot_error: Exception | None = None
        self.screenshot_bytes = b"img"

    def on(self, event: str, handler: Any) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Any) -> None:
        handlers = self.listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def listener_count(self, event: str) -> int:
        return len(self.listeners.get(event, []))

    def fire(self, event: str, payload: Any) -> None:
        for handler in list(self.listeners.get(event, [])):
            handler(payload)

    async def goto(self, url: str) -> None:
        self.fire("request", MockRequest(url, navigation=True))
        self.url = url

    async def wait_for_load_state(self, state: str = "load") -> None:
        self.load_states.append(state)

    async def screenshot(self, **kwargs: Any) -> bytes:
        self.screenshot_calls.append(kwargs)
        if self.screenshot_error is not None:
            raise self.screenshot_error
        return self.screenshot_bytes


class MockCDPSession:
    """Mock CDP session answering Performance and Tracing commands."""

    def __init__(self) -> None:
        self.sent: list[tuple[str, dict[str, Any] | None]] = []
        self.listeners: dict[str, list[Any]] = {}
        self.metrics = [
            {"name": "Nodes", "value": 42},
            {"name": "TaskDuration", "value": 0.5},
            {"name": "NotSupported", "value": 1},
        ]
        self.trace_events: list[dict[str, Any]] = []
        self.complete_trace = True

    def on(self, event: str, handler: Any) -> None:
        self.listeners.setdefault(event, []).append(handler)

    def remove_listener(self, event: str, handler: Any) -> None:
        handlers = self.listeners.get(event, [])
        if handler in handlers:
            handlers.remove(handler)

    def fire(self, event: str, params: dict[str, Any]) -> None:
        for handler in list(self.listeners.get(event, [])):
            handler(params)

    async def send(self, method: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        self.sent.append((method, params))
        if method == "Performance.getMetrics":
            return {"metrics": self.metrics}
        if method == "Tracing.end":
            self.fire("Tracing.dataCollected", {"value": self.trace_events})
            if self.complete_trace:
                self.fire("Tracing.tracingComplete", {})
        return {}


class MockPerformance:
    def __init__(self, metrics: dict[str, float] | None = None) -> None:
        self.metrics = metrics if metrics is not None else {"Nodes": 10.0}

    async def get_metrics(self) -> dict[str, float]:
        return dict(self.metrics)


class MockPluginManager:
    """Mock plugin manager recording pre-step calls."""

    def __init__(self, plugins: dict[PluginKind, Any] | None = None) -> None:
        self.plugins = plugins or {}
        self.steps: list[str] = []
        self.output_calls = 0
        self.output_error: Exception | None = None
        self.browserconsole = [BrowserMessage(text="boom", type="error", timestamp=1)]

    def on_step(self, step: Any) -> None:
        self.steps.append(step.name)

    def get(self, kind: PluginKind | str) -> Any | None:
        return self.plugins.get(PluginKind(kind))

    async def output(self) -> PluginOutput:
        self.output_calls += 1
        if self.output_error is not None:
            raise self.output_error
        return PluginOutput(filmstrips=[], networkinfo=[], browserconsole=list(self.browserconsole))


def make_driver(page: MockPage | None = None) -> Driver:
    return Driver(
        browser=object(),
        context=object(),
        page=page or MockPage(),
        client=MockCDPSession(),
    )


class MockGatherer:
    """Mock gatherer counting driver setup and dispose calls."""

    def __init__(self) -> None:
        self.drivers: list[Driver] = []
        self.plugin_managers: list[MockPluginManager] = []
        self.disposed: list[Driver] = []
        self.setup_error: Exception | None = None
        self.recording_error: Exception | None = None
        self.output_error: Exception | None = None
        self.plugins: dict[PluginKind, Any] = {}

    async def setup_driver(self, options: RunOptions) -> Driver:
        if self.setup_error is not None:
            raise self.setup_error
        driver = make_driver()
        self.drivers.append(driver)
        return driver

    async def begin_recording(self, driver: Driver, options: RunOptions) -> MockPluginManager:
        if self.recording_error is not None:
            raise self.recording_error
        manager = MockPluginManager(dict(self.plugins))
        manager.output_error = self.output_error
        self.plugin_managers.append(manager)
        return manager

    async def dispose(self, driver: Driver) -> None:
        self.disposed.append(driver)

    def dispose_count(self, driver: Driver) -> int:
        return sum(1 for d in self.disposed if d is driver)


class EventRecorder:
    """Records every event a runner emits, in order."""

    def __init__(self, runner: Runner) -> None:
        self.events: list[tuple[EventType, Any]] = []
        for event in EventType:
            runner.on(event, self._recorder(event))

    def _recorder(self, event: EventType) -> Any:
        def record(payload: Any) -> None:
            self.events.append((event, payload))

        return record

    @property
    def types(self) -> list[str]:
        return [event.value for event, _ in self.events]

    def payloads(self, event: EventType) -> list[Any]:
        return [payload for kind, payload in self.events if kind is event]


def make_journey(name: str, steps: dict[str, Any]) -> Journey:
    """Build a journey whose callback registers ``steps`` in order."""

    def register() -> None:
        for step_name, callback in steps.items():
            journey.add_step(step_name, callback)

    journey = Journey(name=name, callback=register)
    return journey


def ok() -> None:
    return None


def fail(message: str = "x") -> Any:
    def callback() -> None:
        raise RuntimeError(message)

    return callback


async def wait_until(predicate: Any, attempts: int = 200) -> None:
    for _ in range(attempts):
        if predicate():
            return
        await asyncio.sleep(0)
    raise AssertionError("condition not reached")


@pytest.fixture
def gatherer() -> MockGatherer:
    return MockGatherer()


@pytest.fixture
def resume_signal() -> EventResumeSignal:
    return EventResumeSignal()


@pytest.fixture
def runner(gatherer: MockGatherer, resume_signal: EventResumeSignal) -> Runner:
    return Runner(gatherer=gatherer, resume_signal=resume_signal)


@pytest.fixture
def recorder(runner: Runner) -> EventRecorder:
    return EventRecorder(runner)


@pytest.fixture
def outfd() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def options(outfd: io.StringIO) -> RunOptions:
    return RunOptions(outfd=outfd)


@pytest.fixture
def page() -> MockPage:
    return MockPage()


@pytest.fixture
def plugin_manager() -> MockPluginManager:
    return MockPluginManager({PluginKind.PERFORMANCE: MockPerformance()})


@pytest.fixture
def journey_context(page: MockPage, plugin_manager: MockPluginManager) -> JourneyContext:
    return JourneyContext(
        start=0.0,
        driver=make_driver(page),
        plugin_manager=plugin_manager,
    )


@pytest.fixture
def step_info() -> StepInfo:
    return StepInfo(name="open", index=1)
