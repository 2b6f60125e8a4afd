"""Step executor - runs one step and classifies its outcome."""

from __future__ import annotations

import base64
import logging
from typing import TYPE_CHECKING, Any

from synthqa.core.hooks import invoke, maybe_await
from synthqa.core.models import Step, StepResult, StepStatus
from synthqa.errors import ErrorContext, PluginError
from synthqa.plugins.types import PluginKind

if TYPE_CHECKING:
    from synthqa.config import RunOptions
    from synthqa.core.context import JourneyContext

logger = logging.getLogger(__name__)

SCREENSHOT_OPTIONS = {"type": "jpeg", "quality": 80}


class UrlCapture:
    """One-shot listener recording the first navigation request of a step.

    The reported URL then reflects real navigation even when the page ends up
    on ``about:blank`` after a failed load.
    """

    def __init__(self, page: Any) -> None:
        self.page = page
        self.url: str | None = None
        self._attached = False

    def attach(self) -> None:
        self.page.on("request", self)
        self._attached = True

    def detach(self) -> None:
        if self._attached:
            self.page.remove_listener("request", self)
            self._attached = False

    def __call__(self, request: Any) -> None:
        if self.url is None and request.is_navigation_request():
            self.url = request.url
            self.detach()


class StepExecutor:
    """Runs a step's callback and captures URL, metrics and screenshot.

    Every exception raised by the callback, the metrics lookup or the
    screenshot capture is recorded on the returned StepResult; none escape.
    """

    async def run(
        self,
        step: Step,
        context: JourneyContext,
        options: RunOptions,
        journey_name: str | None = None,
    ) -> StepResult:
        logger.debug(f"Runner: start step ({step.name})")
        driver = context.driver
        plugin_manager = context.plugin_manager

        status = StepStatus.SUCCEEDED
        error: BaseException | None = None
        metrics: dict[str, float] | None = None
        screenshot: str | None = None

        capture = UrlCapture(driver.page)
        capture.attach()
        try:
            await maybe_await(plugin_manager.on_step(step))
            await invoke(step.callback)
            if options.metrics:
                metrics = await self._collect_metrics(context, step, journey_name)
        except Exception as e:
            status = StepStatus.FAILED
            error = e
            logger.debug(f"Step {step.name} failed: {e!r}")
        finally:
            capture.detach()

        url = capture.url
        try:
            if url is None:
                url = driver.page.url
            if options.screenshots:
                screenshot = await self._capture_screenshot(driver.page)
        except Exception as e:
            logger.debug(f"Finishing step {step.name} failed: {e!r}")
            if error is None:
                status = StepStatus.FAILED
                error = e

        logger.debug(f"Runner: end step ({step.name})")
        return StepResult(
            status=status,
            url=url,
            metrics=metrics,
            error=error,
            screenshot=screenshot,
        )

    async def _collect_metrics(
        self,
        context: JourneyContext,
        step: Step,
        journey_name: str | None,
    ) -> dict[str, float]:
        performance = context.plugin_manager.get(PluginKind.PERFORMANCE)
        if performance is None:
            raise PluginError(
                message="Metrics were requested but the performance plugin is not running",
                context=ErrorContext(journey_name=journey_name, step_name=step.name),
            )
        return await performance.get_metrics()

    async def _capture_screenshot(self, page: Any) -> str:
        await page.wait_for_load_state("load")
        image = await page.screenshot(**SCREENSHOT_OPTIONS)
        return base64.b64encode(image).decode("ascii")
