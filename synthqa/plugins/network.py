"""Network request timing, tagged with the step that issued each request."""

from __future__ import annotations

from typing import Any

from synthqa.helpers import get_monotonic_time
from synthqa.plugins.types import NetworkInfo, StepInfo


class NetworkManager:
    """Listens to page request events and builds NetworkInfo entries."""

    def __init__(self, page: Any) -> None:
        self.page = page
        self.current_step: StepInfo | None = None
        self._entries: dict[int, NetworkInfo] = {}
        self._order: list[int] = []

    def start(self) -> None:
        self.page.on("request", self._on_request)
        self.page.on("response", self._on_response)
        self.page.on("requestfinished", self._on_finished)
        self.page.on("requestfailed", self._on_failed)

    def stop(self) -> list[NetworkInfo]:
        self.page.remove_listener("request", self._on_request)
        self.page.remove_listener("response", self._on_response)
        self.page.remove_listener("requestfinished", self._on_finished)
        self.page.remove_listener("requestfailed", self._on_failed)
        return [self._entries[key] for key in self._order]

    def _on_request(self, request: Any) -> None:
        key = id(request)
        self._entries[key] = NetworkInfo(
            url=request.url,
            method=request.method,
            resource_type=request.resource_type,
            is_navigation_request=request.is_navigation_request(),
            request_sent_time=get_monotonic_time(),
            step=self.current_step,
        )
        self._order.append(key)

    def _on_response(self, response: Any) -> None:
        entry = self._entries.get(id(response.request))
        if entry is not None:
            entry.status = response.status
            entry.response_received_time = get_monotonic_time()

    def _on_finished(self, request: Any) -> None:
        entry = self._entries.get(id(request))
        if entry is not None:
            entry.load_end_time = get_monotonic_time()

    def _on_failed(self, request: Any) -> None:
        entry = self._entries.get(id(request))
        if entry is not None:
            entry.load_end_time = get_monotonic_time()
            entry.failure = request.failure
