"""Exceptions raised by the SynthQA engine itself.

Exceptions raised by journey code (step callbacks, hooks) are recorded on
``StepResult``/``JourneyResult`` as they were raised. The classes below only
describe failures of the engine's own phases: definition checks, hook phases,
driver setup, plugins and reporters.

Every error carries an ``ErrorCode`` and an ``ErrorContext`` naming the
journey and step it belongs to, plus a few hints for the operator::

    try:
        await runner.run(options)
    except RunAbortedError as e:
        print(e.format_verbose())
        print(sorted(e.results))
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any

from synthqa.helpers import get_timestamp

if TYPE_CHECKING:
    from synthqa.core.models import RunResult

_CATEGORY_BY_PREFIX = {
    "2": "validation",
    "4": "journey",
    "6": "plugin",
}


class ErrorCode(Enum):
    """Error codes, grouped by hundreds.

    E2xx definition and configuration checks, E4xx journey and hook
    execution, E6xx plugins, reporters and the browser driver, E999 anything
    else.
    """

    VALIDATION_FAILED = "E201"
    INVALID_CONFIG = "E202"
    INVALID_JOURNEY = "E203"
    INVALID_STEP = "E204"

    JOURNEY_FAILED = "E401"
    HOOK_FAILED = "E402"
    RUN_ABORTED = "E403"

    PLUGIN_ERROR = "E601"
    REPORTER_ERROR = "E602"
    DRIVER_ERROR = "E603"

    UNKNOWN = "E999"

    @property
    def category(self) -> str:
        return _CATEGORY_BY_PREFIX.get(self.value[1], "unknown")


@dataclass
class ErrorContext:
    """Where in a run an error happened.

    ``timestamp`` is wall-clock microseconds, the unit used by step and
    journey results.
    """

    journey_name: str | None = None
    step_name: str | None = None
    extra: dict[str, Any] = field(default_factory=dict)
    timestamp: int = field(default_factory=get_timestamp)

    @property
    def location(self) -> str | None:
        if self.journey_name is None and self.step_name is None:
            return None
        if self.step_name is None:
            return f"journey '{self.journey_name}'"
        if self.journey_name is None:
            return f"step '{self.step_name}'"
        return f"journey '{self.journey_name}', step '{self.step_name}'"

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"timestamp": self.timestamp}
        if self.journey_name is not None:
            data["journey"] = self.journey_name
        if self.step_name is not None:
            data["step"] = self.step_name
        if self.extra:
            data["extra"] = dict(self.extra)
        return data


class SynthQAError(Exception):
    """Base class of every engine error.

    Subclasses set ``error_code``, a ``summary`` used when no message is
    given, and ``hints`` shown by :meth:`format_verbose`. Keyword arguments
    the constructor does not know are stored in ``context.extra``.
    """

    error_code: ErrorCode = ErrorCode.UNKNOWN
    summary: str = "An unexpected error occurred"
    hints: tuple[str, ...] = ()

    def __init__(
        self,
        message: str | None = None,
        error_code: ErrorCode | None = None,
        context: ErrorContext | None = None,
        cause: BaseException | None = None,
        recoverable: bool = True,
        suggestions: list[str] | None = None,
        **extra: Any,
    ) -> None:
        self.message = message or self.summary
        if error_code is not None:
            self.error_code = error_code
        self.context = context if context is not None else ErrorContext()
        self.context.extra.update(extra)
        self.cause = cause
        self.recoverable = recoverable
        self.suggestions = list(self.hints if suggestions is None else suggestions)
        super().__init__(self.message)
        if cause is not None:
            self.__cause__ = cause

    @property
    def code(self) -> str:
        return self.error_code.value

    def __str__(self) -> str:
        text = f"[{self.code}] {self.message}"
        location = self.context.location
        return text if location is None else f"{text} ({location})"

    def format_verbose(self) -> str:
        """Multi-line rendering for console output."""
        out = [str(self)]
        if self.cause is not None:
            out.append(f"  Caused by: {type(self.cause).__name__}: {self.cause}")
        if self.suggestions:
            out.append("  Hints:")
            out.extend(f"    * {hint}" for hint in self.suggestions)
        return "\n".join(out)

    def to_dict(self) -> dict[str, Any]:
        return {
            "error_code": self.code,
            "error_type": type(self).__name__,
            "category": self.error_code.category,
            "message": self.message,
            "recoverable": self.recoverable,
            "cause": None if self.cause is None else repr(self.cause),
            "context": self.context.to_dict(),
        }


class ValidationError(SynthQAError):
    """A definition or configuration value was rejected."""

    error_code = ErrorCode.VALIDATION_FAILED
    summary = "Validation failed"

    def __init__(
        self,
        message: str | None = None,
        field: str | None = None,
        value: Any = None,
        **kwargs: Any,
    ) -> None:
        self.field = field
        self.value = value
        kwargs.setdefault("recoverable", False)
        super().__init__(message, **kwargs)

    def __str__(self) -> str:
        text = super().__str__()
        return text if self.field is None else f"{text} (field: {self.field})"

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "field": self.field, "value": repr(self.value)}


class ConfigValidationError(ValidationError):
    error_code = ErrorCode.INVALID_CONFIG
    summary = "Invalid configuration"
    hints = (
        "Check synthqa.yaml for YAML syntax errors",
        "Environment overrides use the SYNTHQA_ prefix, e.g. SYNTHQA_METRICS=true",
    )


class JourneyValidationError(ValidationError):
    error_code = ErrorCode.INVALID_JOURNEY
    summary = "Invalid journey definition"
    hints = ("Journey names must be non-empty and unique within a run",)


class StepValidationError(ValidationError):
    error_code = ErrorCode.INVALID_STEP
    summary = "Invalid step definition"
    hints = (
        "Step names must be non-empty and unique within their journey",
        "Step callbacks take no arguments",
    )


class JourneyError(SynthQAError):
    error_code = ErrorCode.JOURNEY_FAILED
    summary = "Journey execution failed"


class HookError(JourneyError):
    """Hooks of one phase failed.

    The phase is one of ``before``, ``after``, ``beforeAll`` or ``afterAll``.
    Every hook of the phase settles before this is raised; ``errors`` keeps
    the failures in registration order and the first becomes ``cause``.
    """

    error_code = ErrorCode.HOOK_FAILED
    summary = "Hook execution failed"

    def __init__(
        self,
        message: str | None = None,
        phase: str | None = None,
        errors: list[BaseException] | None = None,
        **kwargs: Any,
    ) -> None:
        self.phase = phase
        self.errors = list(errors) if errors else []
        if self.errors and "cause" not in kwargs:
            kwargs["cause"] = self.errors[0]
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["phase"] = self.phase
        data["errors"] = [str(error) for error in self.errors]
        return data


class RunAbortedError(JourneyError):
    """A beforeAll or afterAll phase failed and the run stopped.

    ``results`` holds the journey results gathered up to that point.
    """

    error_code = ErrorCode.RUN_ABORTED
    summary = "Run aborted by a failing run-level hook"
    hints = ("Check the before_all/after_all hooks registered for this run",)

    def __init__(
        self,
        message: str | None = None,
        results: RunResult | None = None,
        hook_error: HookError | None = None,
        **kwargs: Any,
    ) -> None:
        self.results = dict(results) if results else {}
        self.hook_error = hook_error
        if hook_error is not None and "cause" not in kwargs:
            kwargs["cause"] = hook_error
        super().__init__(message, **kwargs)

    def to_dict(self) -> dict[str, Any]:
        return {**super().to_dict(), "journeys": list(self.results)}


class DriverError(SynthQAError):
    error_code = ErrorCode.DRIVER_ERROR
    summary = "Browser driver error"
    hints = (
        "Install the browser binaries with: playwright install chromium",
        "When connecting to a remote browser, check ws_endpoint",
    )


class PluginError(SynthQAError):
    error_code = ErrorCode.PLUGIN_ERROR
    summary = "Plugin execution failed"


class ReporterError(SynthQAError):
    error_code = ErrorCode.REPORTER_ERROR
    summary = "Reporter execution failed"
