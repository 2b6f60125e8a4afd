"""SynthQA - synthetic monitoring journeys for the browser.

SynthQA runs user-defined journeys, ordered sequences of browser-driven
steps, against a Playwright-controlled Chromium and reports a timestamped
result for every step and journey.

Key Features:
    - Journey DSL: register journeys, steps and hooks from plain functions
    - Skip-on-failure: steps after the first failure are reported as skipped
    - Typed event stream consumed by reporters and your own listeners
    - Per-step metrics, screenshots, network timing and film strips

Example:
    >>> import asyncio
    >>> from synthqa import RunOptions, journey, run, step
    >>>
    >>> @journey("home page")
    ... def home(page, params):
    ...     step("open", lambda: page.goto(params["url"]))
    ...     step("title", lambda: page.wait_for_selector("h1"))
    >>>
    >>> results = asyncio.run(run(RunOptions(params={"url": "https://example.com"})))
    >>> results["home page"].status
    <StepStatus.SUCCEEDED: 'succeeded'>
"""

__version__ = "0.1.0"

from synthqa.config import RunOptions, SynthConfig, load_config
from synthqa.core.events import EventType
from synthqa.core.models import Journey, JourneyResult, Step, StepResult, StepStatus
from synthqa.dsl import after, after_all, before, before_all, journey, run, step
from synthqa.errors import (
    HookError,
    RunAbortedError,
    SynthQAError,
)
from synthqa.observability.logging import configure_logging
from synthqa.runner import Runner

__all__ = [
    "EventType",
    "HookError",
    "Journey",
    "JourneyResult",
    "RunAbortedError",
    "RunOptions",
    "Runner",
    "Step",
    "StepResult",
    "StepStatus",
    "SynthConfig",
    "SynthQAError",
    "__version__",
    "after",
    "after_all",
    "before",
    "before_all",
    "configure_logging",
    "journey",
    "load_config",
    "run",
    "step",
]
