"""
Browser session pool: one shared Chromium instance, recycled after a fixed
number of checks so long-running dev servers do not accumulate browser state.
"""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional, Sequence

from playwright.async_api import Browser, Page, Playwright, async_playwright

from .config import BROWSER_ARGS, MAX_BROWSER_REUSE


logger = logging.getLogger(__name__)

Launcher = Callable[[Sequence[str]], Awaitable[Browser]]


class SessionPool:
    def __init__(
        self,
        max_reuse: int = MAX_BROWSER_REUSE,
        launch_args: Sequence[str] = BROWSER_ARGS,
        headless: bool = True,
        launcher: Optional[Launcher] = None,
    ):
        if max_reuse < 1:
            raise ValueError("max_reuse must be at least 1")
        self.max_reuse = max_reuse
        self.launch_args = tuple(launch_args)
        self.headless = headless
        self._launcher = launcher
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None
        self.reuse_count = 0
        self.launches = 0
        self._lock: Optional[asyncio.Lock] = None

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    async def _launch(self) -> Browser:
        if self._launcher is not None:
            return await self._launcher(self.launch_args)
        if self._playwright is None:
            self._playwright = await async_playwright().start()
        return await self._playwright.chromium.launch(headless=self.headless, args=list(self.launch_args))

    async def _close_browser(self) -> None:
        browser, self._browser = self._browser, None
        self.reuse_count = 0
        if browser is None:
            return
        try:
            await browser.close()
        except Exception as exc:
            logger.debug("Ignoring error while closing browser: %s", exc)

    async def acquire(self) -> Page:
        # Created on first use so the lock belongs to the loop the checks run on.
        if self._lock is None:
            self._lock = asyncio.Lock()
        async with self._lock:
            if self._browser is not None and self.reuse_count < self.max_reuse:
                self.reuse_count += 1
            else:
                if self._browser is not None:
                    logger.info("Browser reached %d checks, relaunching", self.reuse_count)
                await self._close_browser()
                # Launch failures are fatal for the check; let them propagate.
                self._browser = await self._launch()
                self.launches += 1
                self.reuse_count = 1
            return await self._browser.new_page()

    async def close(self) -> None:
        await self._close_browser()
        playwright, self._playwright = self._playwright, None
        if playwright is not None:
            await playwright.stop()

    async def __aenter__(self) -> "SessionPool":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()
