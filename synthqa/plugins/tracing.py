"""Chrome trace recording and film strip extraction.

The tracer records the ``disabled-by-default-devtools.screenshot`` category;
``filter_filmstrips`` turns the raw trace events into FilmStrip frames
relative to the first navigation.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any

from synthqa.errors import PluginError
from synthqa.plugins.types import FilmStrip

logger = logging.getLogger(__name__)

# Seconds to wait for Tracing.tracingComplete after Tracing.end.
TRACE_COMPLETE_TIMEOUT = 30.0

TRACE_CATEGORIES = [
    "-*",
    "devtools.timeline",
    "disabled-by-default-devtools.timeline",
    "disabled-by-default-devtools.screenshot",
    "blink.user_timing",
    "loading",
]


def filter_filmstrips(events: list[dict[str, Any]]) -> list[FilmStrip]:
    """Extract screenshot frames from raw trace events.

    ``start_time`` is measured from the first ``navigationStart`` mark, or
    from the first frame when the trace holds no navigation.
    """
    screenshots = [
        event
        for event in events
        if event.get("name") == "Screenshot" and event.get("args", {}).get("snapshot")
    ]
    if not screenshots:
        return []

    navigation_starts = [
        event.get("ts", 0) for event in events if event.get("name") == "navigationStart"
    ]
    origin = min(navigation_starts) if navigation_starts else min(e.get("ts", 0) for e in screenshots)

    return [
        FilmStrip(
            snapshot=event["args"]["snapshot"],
            name=event["name"],
            ts=int(event.get("ts", 0)),
            start_time=int(event.get("ts", 0)) - int(origin),
        )
        for event in sorted(screenshots, key=lambda e: e.get("ts", 0))
    ]


class Tracing:
    """Records a Chrome trace over a CDP session.

    Example:
        >>> tracer = Tracing()
        >>> await tracer.start(driver.client)
        >>> await driver.page.goto(url)
        >>> events = await tracer.stop(driver.client)
        >>> filmstrips = filter_filmstrips(events)
    """

    def __init__(self, complete_timeout: float = TRACE_COMPLETE_TIMEOUT) -> None:
        self.complete_timeout = complete_timeout
        self._events: list[dict[str, Any]] = []
        self._complete: asyncio.Future[None] | None = None

    def _on_data(self, params: dict[str, Any]) -> None:
        self._events.extend(params.get("value", []))

    def _on_complete(self, params: dict[str, Any]) -> None:
        if self._complete is not None and not self._complete.done():
            self._complete.set_result(None)

    async def start(self, client: Any) -> None:
        self._events = []
        self._complete = asyncio.get_running_loop().create_future()
        client.on("Tracing.dataCollected", self._on_data)
        client.on("Tracing.tracingComplete", self._on_complete)
        await client.send(
            "Tracing.start",
            {
                "traceConfig": {
                    "includedCategories": TRACE_CATEGORIES,
                    "recordMode": "recordAsMuchAsPossible",
                },
                "transferMode": "ReportEvents",
            },
        )

    async def stop(self, client: Any) -> list[dict[str, Any]]:
        """End the trace and return every collected event.

        Raises:
            PluginError: If the browser does not report the trace complete
                within ``complete_timeout`` seconds.
        """
        try:
            await client.send("Tracing.end")
            if self._complete is not None:
                await asyncio.wait_for(self._complete, timeout=self.complete_timeout)
        except asyncio.TimeoutError as e:
            raise PluginError(
                message=f"Trace did not complete within {self.complete_timeout}s",
                cause=e,
            ) from e
        finally:
            client.remove_listener("Tracing.dataCollected", self._on_data)
            client.remove_listener("Tracing.tracingComplete", self._on_complete)
            self._complete = None
        logger.debug(f"Collected {len(self._events)} trace events")
        return list(self._events)
