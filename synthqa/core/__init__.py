"""Core module exports."""

from synthqa.core.context import JourneyContext
from synthqa.core.events import EventEmitter, EventType
from synthqa.core.models import (
    Journey,
    JourneyHookType,
    JourneyResult,
    RunResult,
    Step,
    StepResult,
    StepStatus,
)
from synthqa.core.pause import EventResumeSignal, ResumeSignal, StdinResumeSignal

__all__ = [
    "EventEmitter",
    "EventResumeSignal",
    "EventType",
    "Journey",
    "JourneyContext",
    "JourneyHookType",
    "JourneyResult",
    "ResumeSignal",
    "RunResult",
    "StdinResumeSignal",
    "Step",
    "StepResult",
    "StepStatus",
]
