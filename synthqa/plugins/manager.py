"""Plugin manager for SynthQA.

The plugin manager is created per journey by the gatherer. It owns the
plugins recording that journey and exposes them by capability, so the runner
never depends on a concrete plugin class.

Example:
    >>> manager = PluginManager(driver)
    >>> await manager.start(PluginKind.PERFORMANCE)
    >>> perf = manager.get(PluginKind.PERFORMANCE)
    >>> metrics = await perf.get_metrics() if perf else None
    >>>
    >>> # At journey end
    >>> output = await manager.output()
    >>> output.filmstrips, output.networkinfo, output.browserconsole
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from synthqa.errors import PluginError
from synthqa.plugins.browser_console import BrowserConsole
from synthqa.plugins.network import NetworkManager
from synthqa.plugins.performance import PerformanceManager
from synthqa.plugins.tracing import Tracing, filter_filmstrips
from synthqa.plugins.types import PluginKind, PluginOutput, StepInfo

if TYPE_CHECKING:
    from synthqa.core.gatherer import Driver
    from synthqa.core.models import Step

logger = logging.getLogger(__name__)


class PluginManager:
    """Capability registry for the plugins recording one journey.

    Attributes:
        driver: The driver the plugins are attached to.
    """

    def __init__(self, driver: Driver) -> None:
        self.driver = driver
        self._plugins: dict[PluginKind, Any] = {}
        self._step_index = 0

    async def start(self, kind: PluginKind | str) -> Any:
        """Create and start the plugin for ``kind``.

        Starting an already-running capability returns the existing plugin.
        """
        kind = PluginKind(kind)
        if kind in self._plugins:
            return self._plugins[kind]

        if kind is PluginKind.PERFORMANCE:
            plugin: Any = PerformanceManager(self.driver.client)
            await plugin.start()
        elif kind is PluginKind.TRACE:
            plugin = Tracing()
            await plugin.start(self.driver.client)
        elif kind is PluginKind.NETWORK:
            plugin = NetworkManager(self.driver.page)
            plugin.start()
        elif kind is PluginKind.BROWSER_CONSOLE:
            plugin = BrowserConsole(self.driver.page)
            plugin.start()
        else:
            raise PluginError(message=f"Unknown plugin kind: {kind}")

        self._plugins[kind] = plugin
        logger.debug(f"Started plugin: {kind.value}")
        return plugin

    async def stop(self, kind: PluginKind | str) -> Any:
        """Stop the plugin for ``kind`` and return what it collected."""
        kind = PluginKind(kind)
        plugin = self._plugins.pop(kind, None)
        if plugin is None:
            return None

        if kind is PluginKind.TRACE:
            return await plugin.stop(self.driver.client)
        if kind is PluginKind.PERFORMANCE:
            await plugin.stop()
            return None
        return plugin.stop()

    def get(self, kind: PluginKind | str) -> Any | None:
        """Return the running plugin for ``kind``, or None."""
        return self._plugins.get(PluginKind(kind))

    def on_step(self, step: Step) -> None:
        """Tag artifacts captured from now on with ``step``."""
        self._step_index += 1
        info = StepInfo(name=step.name, index=self._step_index)
        for kind in (PluginKind.NETWORK, PluginKind.BROWSER_CONSOLE):
            plugin = self._plugins.get(kind)
            if plugin is not None:
                plugin.current_step = info

    async def output(self) -> PluginOutput:
        """Stop every plugin that produces artifacts and collect its output.

        The page-level plugins are stopped even when stopping the trace
        raises; the trace error then propagates.
        """
        filmstrips = networkinfo = browserconsole = None
        try:
            if PluginKind.TRACE in self._plugins:
                events = await self.stop(PluginKind.TRACE)
                filmstrips = filter_filmstrips(events)
        finally:
            if PluginKind.NETWORK in self._plugins:
                networkinfo = await self.stop(PluginKind.NETWORK)
            if PluginKind.BROWSER_CONSOLE in self._plugins:
                browserconsole = await self.stop(PluginKind.BROWSER_CONSOLE)

        return PluginOutput(
            filmstrips=filmstrips,
            networkinfo=networkinfo,
            browserconsole=browserconsole,
        )
