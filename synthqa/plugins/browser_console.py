"""Browser console capture.

Only warnings and errors are kept; uncaught page errors are recorded with
type ``error``.
"""

from __future__ import annotations

from typing import Any

from synthqa.helpers import get_timestamp
from synthqa.plugins.types import BrowserMessage, StepInfo

CAPTURED_TYPES = frozenset({"warning", "error"})


class BrowserConsole:
    def __init__(self, page: Any) -> None:
        self.page = page
        self.current_step: StepInfo | None = None
        self.messages: list[BrowserMessage] = []

    def start(self) -> None:
        self.page.on("console", self._on_console)
        self.page.on("pageerror", self._on_page_error)

    def stop(self) -> list[BrowserMessage]:
        self.page.remove_listener("console", self._on_console)
        self.page.remove_listener("pageerror", self._on_page_error)
        return list(self.messages)

    def _on_console(self, message: Any) -> None:
        if message.type not in CAPTURED_TYPES:
            return
        self.messages.append(
            BrowserMessage(
                text=message.text,
                type=message.type,
                timestamp=get_timestamp(),
                step=self.current_step,
                location=dict(message.location or {}),
            )
        )

    def _on_page_error(self, error: Any) -> None:
        self.messages.append(
            BrowserMessage(
                text=getattr(error, "message", None) or str(error),
                type="error",
                timestamp=get_timestamp(),
                step=self.current_step,
            )
        )
