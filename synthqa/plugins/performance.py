"""Performance metrics collected through the CDP Performance domain."""

from __future__ import annotations

import logging
from typing import Any

logger = logging.getLogger(__name__)

SUPPORTED_METRICS = frozenset(
    {
        "Timestamp",
        "Documents",
        "Frames",
        "JSEventListeners",
        "Nodes",
        "LayoutCount",
        "RecalcStyleCount",
        "LayoutDuration",
        "RecalcStyleDuration",
        "ScriptDuration",
        "TaskDuration",
        "JSHeapUsedSize",
        "JSHeapTotalSize",
    }
)


class PerformanceManager:
    """Collects a metrics snapshot on demand.

    Example:
        >>> perf = PerformanceManager(driver.client)
        >>> await perf.start()
        >>> metrics = await perf.get_metrics()
        >>> metrics["TaskDuration"]
        0.083
    """

    def __init__(self, client: Any) -> None:
        self.client = client

    async def start(self) -> None:
        await self.client.send("Performance.enable")

    async def stop(self) -> None:
        await self.client.send("Performance.disable")

    async def get_metrics(self) -> dict[str, float]:
        """Return the supported metrics as a name -> value mapping."""
        response = await self.client.send("Performance.getMetrics")
        metrics: dict[str, float] = {}
        for metric in response.get("metrics", []):
            name = metric.get("name")
            if name in SUPPORTED_METRICS:
                metrics[name] = float(metric.get("value", 0))
        logger.debug(f"Collected {len(metrics)} performance metrics")
        return metrics
