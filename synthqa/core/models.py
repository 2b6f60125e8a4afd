"""Core domain models for SynthQA.

This module defines the building blocks of a synthetic-monitoring run:
- Step: A single named action inside a journey
- Journey: A named, ordered sequence of steps with its own before/after hooks
- StepResult / JourneyResult: Outcomes produced by the runner

Steps are registered lazily: a journey owns a callback that, when the runner
invokes it with the browser driver, calls ``add_step`` for each step.

Example:
    >>> from synthqa.core import Journey
    >>>
    >>> def login(page, params):
    ...     async def open_home():
    ...         await page.goto(params["url"])
    ...     journey.add_step("open home", open_home)
    >>>
    >>> journey = Journey(name="login", callback=login)
"""

from __future__ import annotations

from collections.abc import Callable
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, PrivateAttr, field_validator

from synthqa.errors import ErrorContext, StepValidationError

HookCallback = Callable[[], Any]
StepCallback = Callable[[], Any]
JourneyCallback = Callable[..., Any]


class StepStatus(str, Enum):
    """Outcome of a single step or a whole journey."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SKIPPED = "skipped"


class JourneyHookType(str, Enum):
    """Journey-scoped hook phases."""

    BEFORE = "before"
    AFTER = "after"


class Step(BaseModel):
    """A single named action within a journey.

    Attributes:
        name: Identifier of the step, unique within its journey.
        callback: Zero-argument callable (sync or async) performing the action.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    name: str = Field(..., min_length=1, description="Step name")
    callback: StepCallback = Field(..., description="Step action")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Step name cannot be empty or whitespace")
        return v.strip()

    @field_validator("callback", mode="before")
    @classmethod
    def validate_callback(cls, v: Any) -> StepCallback:
        if not callable(v):
            raise ValueError("Step callback must be callable")
        return v

    def __hash__(self) -> int:
        return hash(self.name)


class JourneyHooks(BaseModel):
    """Journey-scoped hook lists, run by the hook executor."""

    model_config = ConfigDict(arbitrary_types_allowed=True, extra="forbid")

    before: list[HookCallback] = Field(default_factory=list)
    after: list[HookCallback] = Field(default_factory=list)


class Journey(BaseModel):
    """A named, ordered sequence of steps plus its own before/after hooks.

    The step list is empty until the runner invokes ``callback`` during the
    registration phase of the journey.

    Attributes:
        name: Unique journey identifier.
        callback: Registration callable. Receives any of ``page``, ``context``,
            ``browser``, ``client`` and ``params`` that its signature declares.
        steps: Steps in registration order.
        hooks: Journey-scoped ``before``/``after`` hooks.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
    )

    name: str = Field(..., min_length=1, description="Journey identifier")
    callback: JourneyCallback = Field(..., description="Step registration callback")
    steps: list[Step] = Field(default_factory=list, description="Registered steps")
    hooks: JourneyHooks = Field(default_factory=JourneyHooks)

    _step_names: set[str] = PrivateAttr(default_factory=set)
    _declared_hooks: JourneyHooks | None = PrivateAttr(default=None)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Journey name cannot be empty or whitespace")
        return v.strip()

    @field_validator("callback", mode="before")
    @classmethod
    def validate_callback(cls, v: Any) -> JourneyCallback:
        if not callable(v):
            raise ValueError("Journey callback must be callable")
        return v

    def add_step(self, name: str, callback: StepCallback) -> Step:
        """Register a step at the end of this journey.

        Raises:
            StepValidationError: If a step with the same name already exists.
        """
        try:
            step = Step(name=name, callback=callback)
        except ValueError as e:
            raise StepValidationError(
                message=f"Invalid step '{name}': {e}",
                field="step",
                value=name,
                context=ErrorContext(journey_name=self.name, step_name=name),
            ) from e
        if step.name in self._step_names:
            raise StepValidationError(
                message=f"Duplicate step name '{step.name}'",
                field="name",
                value=step.name,
                context=ErrorContext(journey_name=self.name, step_name=step.name),
            )
        self._step_names.add(step.name)
        self.steps.append(step)
        return step

    def reset_registration(self) -> None:
        """Forget what an earlier registration pass added.

        Called before the callback runs, so running the same journey again
        registers its steps afresh. Hooks attached before the first pass
        are kept; hooks added by the callback itself are dropped.
        """
        if self._declared_hooks is None:
            self._declared_hooks = JourneyHooks(
                before=list(self.hooks.before),
                after=list(self.hooks.after),
            )
        self.hooks.before[:] = self._declared_hooks.before
        self.hooks.after[:] = self._declared_hooks.after
        self.steps.clear()
        self._step_names.clear()

    def add_hook(self, kind: JourneyHookType | str, callback: HookCallback) -> None:
        """Register a ``before`` or ``after`` hook for this journey."""
        kind = JourneyHookType(kind)
        getattr(self.hooks, kind.value).append(callback)

    def __hash__(self) -> int:
        return hash(self.name)


class StepResult(BaseModel):
    """Outcome of one step, produced once and never mutated.

    Attributes:
        status: succeeded, failed or skipped.
        url: First navigation URL seen during the step, or the page URL.
        metrics: Performance metrics snapshot when metrics were requested.
        error: The exception raised by the step, if it failed.
        screenshot: Base64 JPEG when screenshots were requested.
    """

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    status: StepStatus = StepStatus.SUCCEEDED
    url: str | None = None
    metrics: dict[str, float] | None = None
    error: BaseException | None = None
    screenshot: str | None = None

    @property
    def failed(self) -> bool:
        return self.status is StepStatus.FAILED


class JourneyResult(BaseModel):
    """Roll-up of a journey's step results."""

    model_config = ConfigDict(
        arbitrary_types_allowed=True,
        extra="forbid",
        frozen=True,
    )

    status: StepStatus = StepStatus.SUCCEEDED
    error: BaseException | None = None

    @property
    def failed(self) -> bool:
        return self.status is StepStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert result to dictionary for serialization."""
        return {
            "status": self.status.value,
            "error": str(self.error) if self.error is not None else None,
        }


RunResult = dict[str, JourneyResult]
