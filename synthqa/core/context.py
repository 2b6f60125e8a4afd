"""Per-journey execution context."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from synthqa.core.gatherer import Driver
    from synthqa.plugins.manager import PluginManager


@dataclass
class JourneyContext:
    """Driver and plugin-manager handles owned by one journey execution.

    Created fresh for every journey and released (driver disposed) when the
    journey ends, whatever the outcome.
    """

    start: float
    driver: Driver
    plugin_manager: PluginManager
    params: dict[str, Any] = field(default_factory=dict)
    end: float | None = None
