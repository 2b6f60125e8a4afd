"""Browser driver lifecycle backed by Playwright.

One Chromium instance is shared by the whole run; every journey gets its own
browser context, page and CDP session, closed again by ``dispose``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from playwright.async_api import Browser, BrowserContext, CDPSession, Page, Playwright, async_playwright

from synthqa.errors import DriverError
from synthqa.plugins.manager import PluginManager
from synthqa.plugins.types import PluginKind

if TYPE_CHECKING:
    from synthqa.config import RunOptions

logger = logging.getLogger(__name__)


@dataclass
class Driver:
    """Handles a journey uses to drive the browser."""

    browser: Browser
    context: BrowserContext
    page: Page
    client: CDPSession

    def as_kwargs(self) -> dict[str, Any]:
        return {
            "browser": self.browser,
            "context": self.context,
            "page": self.page,
            "client": self.client,
        }


class Gatherer:
    """Creates and releases drivers; starts the plugins recording a journey."""

    playwright: Playwright | None = None
    browser: Browser | None = None

    @classmethod
    async def setup_driver(cls, options: RunOptions) -> Driver:
        """Open a fresh context, page and CDP session on the shared browser.

        Raises:
            DriverError: If the browser cannot be launched or connected to.
        """
        try:
            if cls.browser is None:
                cls.browser = await cls._launch(options)
            context = await cls.browser.new_context()
        except Exception as e:
            raise DriverError(message=f"Failed to set up browser driver: {e}", cause=e) from e

        try:
            page = await context.new_page()
            client = await context.new_cdp_session(page)
        except Exception as e:
            await context.close()
            raise DriverError(message=f"Failed to open a page: {e}", cause=e) from e

        return Driver(browser=cls.browser, context=context, page=page, client=client)

    @classmethod
    async def _launch(cls, options: RunOptions) -> Browser:
        playwright = await async_playwright().start()
        try:
            if options.ws_endpoint:
                logger.info(f"Connecting to browser at {options.ws_endpoint}")
                browser = await playwright.chromium.connect(options.ws_endpoint)
            else:
                browser = await playwright.chromium.launch(
                    headless=options.headless,
                    chromium_sandbox=options.sandbox,
                )
        except BaseException:
            await playwright.stop()
            raise
        cls.playwright = playwright
        return browser

    @staticmethod
    async def begin_recording(driver: Driver, options: RunOptions) -> PluginManager:
        """Start the plugins this run asked for on ``driver``."""
        plugin_manager = PluginManager(driver)
        await plugin_manager.start(PluginKind.BROWSER_CONSOLE)
        if options.network:
            await plugin_manager.start(PluginKind.NETWORK)
        if options.metrics:
            await plugin_manager.start(PluginKind.PERFORMANCE)
        if options.filmstrips:
            await plugin_manager.start(PluginKind.TRACE)
        return plugin_manager

    @staticmethod
    async def dispose(driver: Driver) -> None:
        await driver.context.close()

    @classmethod
    async def stop(cls) -> None:
        """Close the shared browser and Playwright."""
        if cls.browser is not None:
            await cls.browser.close()
            cls.browser = None
        if cls.playwright is not None:
            await cls.playwright.stop()
            cls.playwright = None
