"""Tests for the module-level registration API."""

from __future__ import annotations

import asyncio
import io
from typing import Any

import pytest

from synthqa import dsl
from synthqa.config import RunOptions
from synthqa.core.models import Journey, StepStatus
from synthqa.errors import JourneyValidationError
from synthqa.runner import HookType, Runner
from tests.conftest import MockGatherer, ok, wait_until


@pytest.fixture
def shared_runner(monkeypatch: pytest.MonkeyPatch, gatherer: MockGatherer) -> Runner:
    fresh = Runner(gatherer=gatherer)
    monkeypatch.setattr(dsl, "runner", fresh)
    return fresh


class TestRegistration:
    """Tests for journey/step/hook registration."""

    def test_journey_decorator(self, shared_runner: Runner) -> None:
        @dsl.journey("home")
        def home() -> None:
            pass

        assert isinstance(home, Journey)
        assert shared_runner.journeys == [home]
        assert shared_runner.current_journey is home

    def test_journey_direct_call(self, shared_runner: Runner) -> None:
        created = dsl.journey("home", ok)
        assert created.callback is ok
        assert shared_runner.journeys == [created]

    def test_duplicate_journey_rejected(self, shared_runner: Runner) -> None:
        dsl.journey("home", ok)
        with pytest.raises(JourneyValidationError):
            dsl.journey("home", ok)

    def test_duplicate_after_stripping_rejected(self, shared_runner: Runner) -> None:
        dsl.journey("a", ok)
        with pytest.raises(JourneyValidationError):
            dsl.journey("a ", ok)
        assert [j.name for j in shared_runner.journeys] == ["a"]

    def test_blank_journey_name_rejected(self, shared_runner: Runner) -> None:
        with pytest.raises(JourneyValidationError):
            dsl.journey("  ", ok)

    def test_hooks_attach_to_current_journey(self, shared_runner: Runner) -> None:
        created = dsl.journey("home", ok)

        def setup() -> None:
            pass

        def teardown() -> None:
            pass

        dsl.before(setup)
        dsl.after(teardown)

        assert created.hooks.before == [setup]
        assert created.hooks.after == [teardown]

    def test_run_hooks(self, shared_runner: Runner) -> None:
        dsl.before_all(ok)
        dsl.after_all(ok)
        assert shared_runner.hooks[HookType.BEFORE_ALL] == [ok]
        assert shared_runner.hooks[HookType.AFTER_ALL] == [ok]

    def test_step_outside_journey(self, shared_runner: Runner) -> None:
        with pytest.raises(JourneyValidationError):
            dsl.step("orphan", ok)


class TestRun:
    """Tests for dsl.run."""

    @pytest.mark.asyncio
    async def test_steps_registered_inside_callback(
        self, shared_runner: Runner, gatherer: MockGatherer
    ) -> None:
        visited: list[Any] = []

        @dsl.journey("search")
        def search(page: Any, params: dict[str, Any]) -> None:
            dsl.step("open", lambda: visited.append(params["url"]))
            dsl.step("search", lambda: page.goto(params["url"] + "?q=synthetics"))

        results = await dsl.run(
            RunOptions(outfd=io.StringIO(), params={"url": "https://example.com/"})
        )

        assert results["search"].status is StepStatus.SUCCEEDED
        assert visited == ["https://example.com/"]
        assert gatherer.drivers[0].page.url == "https://example.com/?q=synthetics"
        assert shared_runner.journeys == []

    @pytest.mark.asyncio
    async def test_second_run_leaves_browser_running(
        self, shared_runner: Runner, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        stops: list[bool] = []

        class SharedBrowser:
            @staticmethod
            async def stop() -> None:
                stops.append(shared_runner.active)

        monkeypatch.setattr(dsl, "Gatherer", SharedBrowser)
        gate = asyncio.Event()

        async def wait_for_gate() -> None:
            await gate.wait()

        @dsl.journey("slow")
        def slow() -> None:
            dsl.step("wait", wait_for_gate)

        first = asyncio.create_task(dsl.run(RunOptions(outfd=io.StringIO())))
        await wait_until(lambda: shared_runner.active and bool(slow.steps))

        second = await dsl.run(RunOptions(outfd=io.StringIO()))

        assert second == {}
        assert stops == []
        gate.set()
        results = await first
        assert results["slow"].status is StepStatus.SUCCEEDED
        assert stops == [False]
