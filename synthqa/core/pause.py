"""Resume signals for the pause-on-error debugging gate.

When ``pause_on_error`` is set, the runner awaits ``ResumeSignal.wait()``
after a failing step. The host decides where the resume comes from.
"""

from __future__ import annotations

import asyncio
import sys
from typing import IO, Protocol, runtime_checkable


@runtime_checkable
class ResumeSignal(Protocol):
    """Something the runner can wait on until an operator resumes it."""

    async def wait(self) -> None: ...


class StdinResumeSignal:
    """Resume when a line is read from ``stream`` (stdin by default)."""

    def __init__(self, stream: IO[str] | None = None) -> None:
        self.stream = stream or sys.stdin

    async def wait(self) -> None:
        loop = asyncio.get_running_loop()
        await loop.run_in_executor(None, self.stream.readline)


class EventResumeSignal:
    """Resume when ``resume()`` is called, e.g. from another task.

    Each ``wait()`` consumes one resume.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def resume(self) -> None:
        self._event.set()

    async def wait(self) -> None:
        await self._event.wait()
        self._event.clear()
