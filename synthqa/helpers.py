"""Timing helpers shared by the runner, plugins and reporters."""

from __future__ import annotations

import time


def get_monotonic_time() -> float:
    """Seconds from a monotonic clock, used for start/end pairs."""
    return time.monotonic()


def get_timestamp() -> int:
    """Wall-clock time in microseconds since the epoch."""
    return time.time_ns() // 1000


def get_duration_ms(start: float, end: float) -> float:
    """Milliseconds between two monotonic readings."""
    return max(end - start, 0.0) * 1000.0
