"""Module-level registration API bound to a shared runner.

Journey files register journeys, steps and hooks through these functions
instead of building a Runner by hand::

    from synthqa.dsl import journey, step, before_all

    before_all(lambda: print("starting"))

    @journey("search docs")
    def search(page, params):
        step("open home", lambda: page.goto(params["url"]))
        step("search", lambda: page.fill("#q", "synthetics"))

``step``, ``before`` and ``after`` attach to the journey that was registered
last, so they must be called from inside a journey callback or right after
``journey()``.
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any, overload

from synthqa.config import RunOptions
from synthqa.core.gatherer import Gatherer
from synthqa.core.models import (
    HookCallback,
    Journey,
    JourneyCallback,
    JourneyHookType,
    RunResult,
    Step,
    StepCallback,
)
from synthqa.errors import JourneyValidationError
from synthqa.runner import HookType, Runner

runner = Runner()


def _current_journey(what: str) -> Journey:
    journey = runner.current_journey
    if journey is None:
        raise JourneyValidationError(
            message=f"{what} must be declared inside a journey",
            field="journey",
        )
    return journey


@overload
def journey(name: str) -> Callable[[JourneyCallback], Journey]: ...


@overload
def journey(name: str, callback: JourneyCallback) -> Journey: ...


def journey(name: str, callback: JourneyCallback | None = None) -> Any:
    """Register a journey on the shared runner.

    Usable directly, ``journey("name", fn)``, or as a decorator,
    ``@journey("name")``. Either way the Journey is returned.

    Raises:
        JourneyValidationError: If the name is empty or already registered.
    """

    def register(func: JourneyCallback) -> Journey:
        try:
            created = Journey(name=name, callback=func)
        except ValueError as e:
            raise JourneyValidationError(
                message=f"Invalid journey '{name}': {e}",
                field="journey",
                value=name,
            ) from e
        runner.add_journey(created)
        return created

    if callback is not None:
        return register(callback)
    return register


def step(name: str, callback: StepCallback) -> Step:
    """Register a step on the current journey."""
    return _current_journey("step()").add_step(name, callback)


def before(callback: HookCallback) -> None:
    """Register a hook run before the current journey's steps."""
    _current_journey("before()").add_hook(JourneyHookType.BEFORE, callback)


def after(callback: HookCallback) -> None:
    """Register a hook run after the current journey's steps."""
    _current_journey("after()").add_hook(JourneyHookType.AFTER, callback)


def before_all(callback: HookCallback) -> None:
    runner.add_hook(HookType.BEFORE_ALL, callback)


def after_all(callback: HookCallback) -> None:
    runner.add_hook(HookType.AFTER_ALL, callback)


async def run(options: RunOptions | None = None) -> RunResult:
    """Run every registered journey, then shut the shared browser down.

    While another run is in progress this returns an empty result and
    leaves the shared browser alone.
    """
    if runner.active:
        return {}
    try:
        return await runner.run(options)
    finally:
        await Gatherer.stop()
