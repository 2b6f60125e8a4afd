"""Tests for the plugin manager and the built-in plugins."""

from __future__ import annotations

from typing import Any

import pytest

from synthqa.config import RunOptions
from synthqa.core import gatherer as gatherer_module
from synthqa.core.gatherer import Driver, Gatherer
from synthqa.core.models import Step
from synthqa.errors import DriverError, PluginError
from synthqa.plugins import (
    BrowserConsole,
    NetworkManager,
    PerformanceManager,
    PluginKind,
    PluginManager,
    StepInfo,
    Tracing,
    filter_filmstrips,
)
from synthqa.plugins.tracing import TRACE_CATEGORIES
from tests.conftest import (
    MockCDPSession,
    MockConsoleMessage,
    MockPage,
    MockRequest,
    MockResponse,
    make_driver,
    ok,
)


@pytest.fixture
def driver() -> Driver:
    return make_driver()


def screenshot_event(ts: int, snapshot: str = "frame") -> dict:
    return {"name": "Screenshot", "ts": ts, "args": {"snapshot": snapshot}}


class TestFilterFilmstrips:
    """Tests for film strip extraction."""

    def test_relative_to_navigation_start(self) -> None:
        events = [
            {"name": "navigationStart", "ts": 1000},
            screenshot_event(1500, "a"),
            {"name": "Layout", "ts": 1600},
            screenshot_event(2500, "b"),
        ]

        filmstrips = filter_filmstrips(events)

        assert [(f.snapshot, f.start_time) for f in filmstrips] == [("a", 500), ("b", 1500)]
        assert filmstrips[0].name == "Screenshot"
        assert filmstrips[0].ts == 1500

    def test_sorted_by_timestamp(self) -> None:
        events = [screenshot_event(3000, "late"), screenshot_event(2000, "early")]

        filmstrips = filter_filmstrips(events)

        assert [f.snapshot for f in filmstrips] == ["early", "late"]
        assert filmstrips[0].start_time == 0

    def test_no_screenshots(self) -> None:
        assert filter_filmstrips([{"name": "navigationStart", "ts": 1}]) == []

    def test_screenshot_without_snapshot_ignored(self) -> None:
        assert filter_filmstrips([{"name": "Screenshot", "ts": 1, "args": {}}]) == []


class TestPerformanceManager:
    """Tests for the CDP metrics collector."""

    @pytest.mark.asyncio
    async def test_supported_metrics_only(self) -> None:
        client = MockCDPSession()
        perf = PerformanceManager(client)

        await perf.start()
        metrics = await perf.get_metrics()
        await perf.stop()

        assert metrics == {"Nodes": 42.0, "TaskDuration": 0.5}
        assert [method for method, _ in client.sent] == [
            "Performance.enable",
            "Performance.getMetrics",
            "Performance.disable",
        ]


class TestTracing:
    """Tests for trace recording."""

    @pytest.mark.asyncio
    async def test_collects_events_until_complete(self) -> None:
        client = MockCDPSession()
        client.trace_events = [screenshot_event(10)]
        tracer = Tracing()

        await tracer.start(client)
        events = await tracer.stop(client)

        assert events == [screenshot_event(10)]
        method, params = client.sent[0]
        assert method == "Tracing.start"
        assert params["traceConfig"]["includedCategories"] == TRACE_CATEGORIES
        assert client.listeners["Tracing.dataCollected"] == []
        assert client.listeners["Tracing.tracingComplete"] == []

    @pytest.mark.asyncio
    async def test_stop_gives_up_when_trace_never_completes(self) -> None:
        client = MockCDPSession()
        client.complete_trace = False
        tracer = Tracing(complete_timeout=0.01)

        await tracer.start(client)
        with pytest.raises(PluginError):
            await tracer.stop(client)

        assert client.listeners["Tracing.dataCollected"] == []
        assert client.listeners["Tracing.tracingComplete"] == []


class TestNetworkManager:
    """Tests for request timing capture."""

    def test_request_lifecycle(self, step_info: StepInfo) -> None:
        page = MockPage()
        network = NetworkManager(page)
        network.start()
        network.current_step = step_info

        request = MockRequest("https://example.com/")
        page.fire("request", request)
        page.fire("response", MockResponse(request, status=200))
        page.fire("requestfinished", request)

        failed = MockRequest("https://example.com/missing.js", navigation=False, resource_type="script")
        failed.failure = "net::ERR_FAILED"
        page.fire("request", failed)
        page.fire("requestfailed", failed)

        entries = network.stop()

        assert [e.url for e in entries] == ["https://example.com/", "https://example.com/missing.js"]
        first, second = entries
        assert first.status == 200
        assert first.step == step_info
        assert first.is_navigation_request is True
        assert first.duration_ms is not None and first.duration_ms >= 0
        assert second.failure == "net::ERR_FAILED"
        assert second.resource_type == "script"
        assert page.listener_count("request") == 0


class TestBrowserConsole:
    """Tests for console capture."""

    def test_keeps_warnings_and_errors(self, step_info: StepInfo) -> None:
        page = MockPage()
        console = BrowserConsole(page)
        console.start()
        console.current_step = step_info

        page.fire("console", MockConsoleMessage("debug noise", type="log"))
        page.fire("console", MockConsoleMessage("deprecated", type="warning"))
        page.fire("pageerror", RuntimeError("uncaught"))

        messages = console.stop()

        assert [(m.type, m.text) for m in messages] == [("warning", "deprecated"), ("error", "uncaught")]
        assert all(m.step == step_info for m in messages)
        assert page.listener_count("console") == 0


class TestPluginManager:
    """Tests for the capability registry."""

    @pytest.mark.asyncio
    async def test_get_returns_none_for_absent_capability(self, driver: Driver) -> None:
        manager = PluginManager(driver)
        assert manager.get(PluginKind.PERFORMANCE) is None

    @pytest.mark.asyncio
    async def test_start_is_idempotent(self, driver: Driver) -> None:
        manager = PluginManager(driver)

        first = await manager.start(PluginKind.PERFORMANCE)
        second = await manager.start("performance")

        assert first is second
        assert isinstance(manager.get(PluginKind.PERFORMANCE), PerformanceManager)

    @pytest.mark.asyncio
    async def test_on_step_tags_captured_messages(self, driver: Driver) -> None:
        manager = PluginManager(driver)
        await manager.start(PluginKind.BROWSER_CONSOLE)
        await manager.start(PluginKind.NETWORK)

        manager.on_step(Step(name="open", callback=ok))
        driver.page.fire("console", MockConsoleMessage("broken"))
        driver.page.fire("request", MockRequest("https://example.com/"))
        manager.on_step(Step(name="search", callback=ok))
        driver.page.fire("console", MockConsoleMessage("still broken"))

        output = await manager.output()

        assert [m.step for m in output.browserconsole] == [
            StepInfo(name="open", index=1),
            StepInfo(name="search", index=2),
        ]
        assert output.networkinfo[0].step == StepInfo(name="open", index=1)
        assert output.filmstrips is None

    @pytest.mark.asyncio
    async def test_output_extracts_filmstrips(self, driver: Driver) -> None:
        driver.client.trace_events = [
            {"name": "navigationStart", "ts": 100},
            screenshot_event(300),
        ]
        manager = PluginManager(driver)
        await manager.start(PluginKind.TRACE)

        output = await manager.output()

        assert [f.start_time for f in output.filmstrips] == [200]
        assert manager.get(PluginKind.TRACE) is None

    @pytest.mark.asyncio
    async def test_output_stops_page_plugins_when_trace_hangs(self, driver: Driver) -> None:
        driver.client.complete_trace = False
        manager = PluginManager(driver)
        await manager.start(PluginKind.BROWSER_CONSOLE)
        await manager.start(PluginKind.NETWORK)
        tracer = await manager.start(PluginKind.TRACE)
        tracer.complete_timeout = 0.01

        with pytest.raises(PluginError):
            await manager.output()

        assert manager.get(PluginKind.NETWORK) is None
        assert manager.get(PluginKind.BROWSER_CONSOLE) is None
        assert driver.page.listener_count("console") == 0
        assert driver.page.listener_count("request") == 0

    @pytest.mark.asyncio
    async def test_stop_unknown_capability(self, driver: Driver) -> None:
        manager = PluginManager(driver)
        assert await manager.stop(PluginKind.NETWORK) is None


class TestGathererRecording:
    """Tests for Gatherer.begin_recording with a fake driver."""

    @pytest.mark.asyncio
    async def test_browser_console_always_started(self, driver: Driver) -> None:
        manager = await Gatherer.begin_recording(driver, RunOptions())

        assert isinstance(manager.get(PluginKind.BROWSER_CONSOLE), BrowserConsole)
        assert manager.get(PluginKind.NETWORK) is None
        assert manager.get(PluginKind.PERFORMANCE) is None
        assert manager.get(PluginKind.TRACE) is None

    @pytest.mark.asyncio
    async def test_optional_plugins_follow_options(self, driver: Driver) -> None:
        manager = await Gatherer.begin_recording(
            driver, RunOptions(network=True, metrics=True, filmstrips=True)
        )

        assert isinstance(manager.get(PluginKind.NETWORK), NetworkManager)
        assert isinstance(manager.get(PluginKind.PERFORMANCE), PerformanceManager)
        assert isinstance(manager.get(PluginKind.TRACE), Tracing)

    @pytest.mark.asyncio
    async def test_dispose_closes_context(self) -> None:
        closed: list[bool] = []

        class Context:
            async def close(self) -> None:
                closed.append(True)

        driver = Driver(browser=object(), context=Context(), page=MockPage(), client=MockCDPSession())

        await Gatherer.dispose(driver)

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_context_closed_when_page_cannot_open(self, monkeypatch: pytest.MonkeyPatch) -> None:
        closed: list[bool] = []

        class Context:
            async def new_page(self) -> None:
                raise RuntimeError("target crashed")

            async def close(self) -> None:
                closed.append(True)

        class Browser:
            async def new_context(self) -> Context:
                return Context()

        monkeypatch.setattr(Gatherer, "browser", Browser())

        with pytest.raises(DriverError):
            await Gatherer.setup_driver(RunOptions())

        assert closed == [True]

    @pytest.mark.asyncio
    async def test_playwright_stopped_when_launch_fails(self, monkeypatch: pytest.MonkeyPatch) -> None:
        stopped: list[bool] = []

        class Chromium:
            async def launch(self, **kwargs: Any) -> None:
                raise RuntimeError("executable missing")

        class Playwright:
            chromium = Chromium()

            async def stop(self) -> None:
                stopped.append(True)

        class Starter:
            async def start(self) -> Playwright:
                return Playwright()

        monkeypatch.setattr(Gatherer, "browser", None)
        monkeypatch.setattr(Gatherer, "playwright", None)
        monkeypatch.setattr(gatherer_module, "async_playwright", lambda: Starter())

        with pytest.raises(DriverError):
            await Gatherer.setup_driver(RunOptions())

        assert stopped == [True]
        assert Gatherer.playwright is None
        assert Gatherer.browser is None
