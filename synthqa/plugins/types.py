"""Plugin type definitions for SynthQA.

This module defines the capability tags the plugin manager is keyed by and
the artifact records plugins hand back at the end of a journey.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class PluginKind(str, Enum):
    """Capabilities a PluginManager can provide.

    - PERFORMANCE: Per-step performance metrics from the CDP Performance domain
    - TRACE: Chrome trace recording, used to extract film strips
    - NETWORK: Request/response timing for every network request
    - BROWSER_CONSOLE: Console warnings/errors and uncaught page errors
    """

    PERFORMANCE = "performance"
    TRACE = "trace"
    NETWORK = "network"
    BROWSER_CONSOLE = "browserconsole"


@dataclass(frozen=True)
class StepInfo:
    """Identity of the step that was running when an artifact was captured."""

    name: str
    index: int


@dataclass(frozen=True)
class FilmStrip:
    """A screenshot frame taken from the trace.

    Attributes:
        snapshot: Base64 JPEG image data.
        name: Trace event name.
        ts: Trace timestamp in microseconds.
        start_time: Microseconds since navigation start.
    """

    snapshot: str
    name: str
    ts: int
    start_time: int


@dataclass
class NetworkInfo:
    """Timing and status for one network request."""

    url: str
    method: str
    resource_type: str
    is_navigation_request: bool
    request_sent_time: float
    step: StepInfo | None = None
    status: int | None = None
    response_received_time: float | None = None
    load_end_time: float | None = None
    failure: str | None = None

    @property
    def duration_ms(self) -> float | None:
        if self.load_end_time is None:
            return None
        return (self.load_end_time - self.request_sent_time) * 1000.0


@dataclass(frozen=True)
class BrowserMessage:
    """A console message or uncaught page error."""

    text: str
    type: str
    timestamp: int
    step: StepInfo | None = None
    location: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class PluginOutput:
    """Artifacts collected by the plugin manager for one journey."""

    filmstrips: list[FilmStrip] | None = None
    networkinfo: list[NetworkInfo] | None = None
    browserconsole: list[BrowserMessage] | None = None
