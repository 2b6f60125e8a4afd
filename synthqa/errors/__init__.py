"""Error hierarchy for SynthQA."""

from synthqa.errors.base import (
    ConfigValidationError,
    DriverError,
    ErrorCode,
    ErrorContext,
    HookError,
    JourneyError,
    JourneyValidationError,
    PluginError,
    ReporterError,
    RunAbortedError,
    StepValidationError,
    SynthQAError,
    ValidationError,
)

__all__ = [
    "ConfigValidationError",
    "DriverError",
    "ErrorCode",
    "ErrorContext",
    "HookError",
    "JourneyError",
    "JourneyValidationError",
    "PluginError",
    "ReporterError",
    "RunAbortedError",
    "StepValidationError",
    "SynthQAError",
    "ValidationError",
]
