"""Journey Runner - executes registered journeys and publishes their events.

The runner drives every journey through a fixed lifecycle::

    context -> journey:start -> before hooks -> steps -> after hooks -> journey:end

and wraps the journey loop with run-level ``beforeAll``/``afterAll`` hooks
and the ``start``/``end`` events. Journeys run one after another and steps
run strictly in sequence; once a step fails, the remaining steps of that
journey are reported as skipped.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import TYPE_CHECKING, Any

from synthqa.config import RunOptions
from synthqa.core.context import JourneyContext
from synthqa.core.events import (
    EndEvent,
    EventEmitter,
    EventType,
    JourneyEndEvent,
    JourneyRegisterEvent,
    JourneyStartEvent,
    Listener,
    StartEvent,
    StepEndEvent,
    StepStartEvent,
)
from synthqa.core.gatherer import Gatherer
from synthqa.core.hooks import call_with_supported_kwargs, maybe_await, run_hooks
from synthqa.core.models import (
    HookCallback,
    Journey,
    JourneyResult,
    RunResult,
    StepResult,
    StepStatus,
)
from synthqa.core.pause import ResumeSignal, StdinResumeSignal
from synthqa.errors import ErrorContext, HookError, JourneyValidationError, RunAbortedError
from synthqa.helpers import get_monotonic_time, get_timestamp
from synthqa.observability.logging import log_context
from synthqa.runner.steps import StepExecutor

if TYPE_CHECKING:
    from synthqa.reporters.base import BaseReporter

logger = logging.getLogger(__name__)


class HookType(str, Enum):
    """Run-scoped hook phases."""

    BEFORE_ALL = "beforeAll"
    AFTER_ALL = "afterAll"


class RunState(str, Enum):
    IDLE = "idle"
    ACTIVE = "active"


class Runner:
    """Executes registered journeys one at a time.

    Dependencies can be injected for testability: ``gatherer`` provides
    ``setup_driver``/``begin_recording``/``dispose``, ``resume_signal`` is
    awaited when ``pause_on_error`` is set, and ``step_executor`` runs
    individual steps.

    Example:
        >>> runner = Runner()
        >>> runner.add_journey(Journey(name="home", callback=register_steps))
        >>> runner.on(EventType.JOURNEY_END, lambda e: print(e.journey.name, e.status))
        >>> results = await runner.run(RunOptions(screenshots=True))
    """

    def __init__(
        self,
        gatherer: Any = Gatherer,
        resume_signal: ResumeSignal | None = None,
        step_executor: StepExecutor | None = None,
        event_emitter: EventEmitter | None = None,
    ) -> None:
        self.gatherer = gatherer
        self.resume_signal = resume_signal
        self.step_executor = step_executor or StepExecutor()
        self.events = event_emitter or EventEmitter()
        self.state = RunState.IDLE
        self.current_journey: Journey | None = None
        self.journeys: list[Journey] = []
        self.hooks: dict[HookType, list[HookCallback]] = {
            HookType.BEFORE_ALL: [],
            HookType.AFTER_ALL: [],
        }
        self.reporter: BaseReporter | None = None

    @property
    def active(self) -> bool:
        return self.state is RunState.ACTIVE

    def add_hook(self, kind: HookType | str, callback: HookCallback) -> None:
        self.hooks[HookType(kind)].append(callback)

    def add_journey(self, journey: Journey) -> None:
        """Queue ``journey`` for the next run and make it the current one.

        Raises:
            JourneyValidationError: If a journey with the same name is queued.
        """
        if any(queued.name == journey.name for queued in self.journeys):
            raise JourneyValidationError(
                message=f"Duplicate journey name '{journey.name}'",
                field="name",
                value=journey.name,
                context=ErrorContext(journey_name=journey.name),
            )
        self.journeys.append(journey)
        self.current_journey = journey

    def on(self, event: EventType | str, listener: Listener) -> None:
        self.events.on(event, listener)

    def off(self, event: EventType | str, listener: Listener) -> None:
        self.events.off(event, listener)

    def emit(self, event: EventType | str, payload: Any) -> None:
        logger.debug(f"Runner: emit> {EventType(event).value}")
        self.events.emit(event, payload)

    async def create_context(self, options: RunOptions) -> JourneyContext:
        """Acquire a driver and start recording on it."""
        start = get_monotonic_time()
        driver = await self.gatherer.setup_driver(options)
        try:
            plugin_manager = await self.gatherer.begin_recording(driver, options)
        except BaseException:
            await self.gatherer.dispose(driver)
            raise
        return JourneyContext(
            start=start,
            params=dict(options.params),
            driver=driver,
            plugin_manager=plugin_manager,
        )

    async def run_before_all_hook(self) -> None:
        logger.debug("Runner: beforeAll hooks")
        await run_hooks(self.hooks[HookType.BEFORE_ALL], phase=HookType.BEFORE_ALL.value)

    async def run_after_all_hook(self) -> None:
        logger.debug("Runner: afterAll hooks")
        await run_hooks(self.hooks[HookType.AFTER_ALL], phase=HookType.AFTER_ALL.value)

    async def run_before_hook(self, journey: Journey) -> None:
        logger.debug(f"Runner: before hooks for ({journey.name})")
        await run_hooks(journey.hooks.before, phase="before", journey_name=journey.name)

    async def run_after_hook(self, journey: Journey) -> None:
        logger.debug(f"Runner: after hooks for ({journey.name})")
        await run_hooks(journey.hooks.after, phase="after", journey_name=journey.name)

    async def run_step(
        self,
        journey: Journey,
        step: Any,
        context: JourneyContext,
        options: RunOptions,
    ) -> StepResult:
        with log_context(step=step.name):
            return await self.step_executor.run(step, context, options, journey_name=journey.name)

    async def run_steps(
        self,
        journey: Journey,
        context: JourneyContext,
        options: RunOptions,
    ) -> list[StepResult]:
        results: list[StepResult] = []
        skip_step = False
        # listeners receive the live journey; iterate what was registered
        for step in tuple(journey.steps):
            start = get_monotonic_time()
            self.emit(EventType.STEP_START, StepStartEvent(journey=journey, step=step))
            if skip_step:
                data = StepResult(status=StepStatus.SKIPPED)
            else:
                data = await self.run_step(journey, step, context, options)
                # skip the remaining steps once one fails
                if data.error is not None:
                    skip_step = True
            self.emit(
                EventType.STEP_END,
                StepEndEvent.from_result(journey, step, start, get_monotonic_time(), data),
            )
            if options.pause_on_error and data.error is not None:
                await self._wait_for_resume(journey, step.name)
            results.append(data)
        return results

    async def _wait_for_resume(self, journey: Journey, step_name: str) -> None:
        signal = self.resume_signal or StdinResumeSignal()
        logger.info(f"Paused after failing step '{step_name}' in journey '{journey.name}'")
        await signal.wait()

    async def register_journey(self, journey: Journey, context: JourneyContext) -> None:
        """Emit ``journey:start`` and let the journey callback register its steps."""
        self.current_journey = journey
        self.emit(
            EventType.JOURNEY_START,
            JourneyStartEvent(journey=journey, timestamp=get_timestamp(), params=context.params),
        )
        journey.reset_registration()
        available = {**context.driver.as_kwargs(), "params": context.params}
        await maybe_await(call_with_supported_kwargs(journey.callback, available))

    async def end_journey(
        self,
        journey: Journey,
        context: JourneyContext | None,
        result: JourneyResult,
        params: dict[str, Any],
    ) -> JourneyResult:
        """Collect plugin artifacts and emit ``journey:end``.

        Returns the final journey result, which turns failed when the plugin
        output cannot be gathered for an otherwise successful journey.
        """
        end = get_monotonic_time()
        start = context.start if context is not None else end
        filmstrips = networkinfo = browserconsole = None

        if context is not None:
            context.end = end
            try:
                output = await context.plugin_manager.output()
                filmstrips = output.filmstrips
                networkinfo = output.networkinfo
                browserconsole = output.browserconsole
            except Exception as e:
                logger.exception(f"Failed to gather plugin output for journey {journey.name}")
                if not result.failed:
                    result = JourneyResult(status=StepStatus.FAILED, error=e)

        self.emit(
            EventType.JOURNEY_END,
            JourneyEndEvent(
                journey=journey,
                status=result.status,
                error=result.error,
                params=params,
                start=start,
                end=end,
                filmstrips=filmstrips,
                networkinfo=networkinfo,
                browserconsole=browserconsole if result.failed else None,
            ),
        )
        return result

    async def run_journey(self, journey: Journey, options: RunOptions) -> JourneyResult:
        """Run one journey; failures of any stage end up in the result."""
        with log_context(journey=journey.name):
            logger.debug(f"Runner: start journey ({journey.name})")
            result = JourneyResult(status=StepStatus.SUCCEEDED)
            context: JourneyContext | None = None
            try:
                context = await self.create_context(options)
                await self.register_journey(journey, context)
                await self.run_before_hook(journey)
                step_results = await self.run_steps(journey, context, options)
                for step_result in step_results:
                    if step_result.failed:
                        result = JourneyResult(status=StepStatus.FAILED, error=step_result.error)
                await self.run_after_hook(journey)
            except Exception as e:
                logger.debug(f"Journey {journey.name} failed: {e!r}")
                result = JourneyResult(status=StepStatus.FAILED, error=e)
                if context is None:
                    # keep journey:start / journey:end paired for reporters
                    self.emit(
                        EventType.JOURNEY_START,
                        JourneyStartEvent(
                            journey=journey,
                            timestamp=get_timestamp(),
                            params=options.params,
                        ),
                    )
            finally:
                try:
                    result = await self.end_journey(journey, context, result, dict(options.params))
                finally:
                    if context is not None:
                        await self.gatherer.dispose(context.driver)
            logger.debug(f"Runner: end journey ({journey.name})")
            return result

    def _attach_reporter(self, options: RunOptions) -> None:
        from synthqa.reporters import resolve_reporter

        reporter_cls = resolve_reporter(options.reporter)
        self.reporter = reporter_cls(self, stream=options.outfd)

    async def run(self, options: RunOptions | None = None) -> RunResult:
        """Run every registered journey.

        Returns immediately with an empty result, emitting nothing, when a
        run is already in progress on this runner.

        Raises:
            RunAbortedError: If a ``beforeAll`` or ``afterAll`` hook failed.
                ``results`` holds the journey results collected so far.
        """
        result: RunResult = {}
        if self.active:
            return result
        self.state = RunState.ACTIVE
        options = options or RunOptions()
        hook_error: HookError | None = None

        try:
            logger.debug(f"Runner: run {len(self.journeys)} journeys")
            self._attach_reporter(options)
            self.emit(EventType.START, StartEvent(num_journeys=len(self.journeys)))
            try:
                await self.run_before_all_hook()
                for journey in list(self.journeys):
                    if options.dry_run:
                        self.emit(EventType.JOURNEY_REGISTER, JourneyRegisterEvent(journey=journey))
                        continue
                    if options.journey_name and journey.name != options.journey_name:
                        continue
                    result[journey.name] = await self.run_journey(journey, options)
                await self.run_after_all_hook()
            except HookError as e:
                logger.error(f"Run aborted: {e}")
                hook_error = e
            self.reset()
            self.emit(EventType.END, EndEvent())
        finally:
            self.state = RunState.IDLE

        if hook_error is not None:
            raise RunAbortedError(
                message=f"{hook_error.phase} hooks failed: {hook_error.cause}",
                results=result,
                hook_error=hook_error,
                context=ErrorContext(extra={"phase": hook_error.phase}),
            )
        return result

    def reset(self) -> None:
        logger.debug("Runner: reset")
        self.current_journey = None
        self.journeys = []
        self.state = RunState.IDLE


__all__ = ["HookType", "RunState", "Runner", "StepExecutor"]
