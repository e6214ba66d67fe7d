import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Awaitable, Callable, Optional, Tuple

import httpx
from playwright.async_api import Browser, BrowserContext, Playwright

from backend.naverland.client import MOBILE_VIEWPORT, launch_browser, new_client
from backend.naverland.config import MOBILE_USER_AGENT, ScraperSettings
from backend.naverland.errors import SessionAcquireError

log = logging.getLogger("naverland")

BrowserLauncher = Callable[[ScraperSettings], Awaitable[Tuple[Optional[Playwright], Browser]]]


class BrowserSession:
    """
    The network/browser resources of one scraper instance.

    `acquire()` opens an httpx client and, when the rendered fallback is
    enabled, a headless Chromium. A second `acquire()` on a live session reuses
    it. `release()` tears everything down and is a no-op when nothing is live.
    Not safe to share between concurrent searches.
    """

    def __init__(
        self,
        settings: ScraperSettings,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        browser_launcher: Optional[BrowserLauncher] = None,
    ):
        self.settings = settings
        self._transport = transport
        self._launch = browser_launcher or launch_browser
        self._client: Optional[httpx.AsyncClient] = None
        self._playwright: Optional[Playwright] = None
        self._browser: Optional[Browser] = None

    @property
    def live(self) -> bool:
        return self._client is not None

    @property
    def client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError("session not acquired")
        return self._client

    @property
    def browser(self) -> Optional[Browser]:
        return self._browser

    async def acquire(self) -> None:
        if self.live:
            log.debug("session already live; reusing")
            return
        try:
            self._client = new_client(self.settings, transport=self._transport)
        except Exception as e:
            raise SessionAcquireError(f"could not create HTTP client: {e}") from e

        if self.settings.browser_fallback:
            try:
                self._playwright, self._browser = await self._launch(self.settings)
            except Exception as e:
                await self._client.aclose()
                self._client = None
                raise SessionAcquireError(f"could not launch browser: {e}") from e
        log.info("session acquired (browser=%s)", "on" if self._browser is not None else "off")

    async def release(self) -> None:
        if not self.live and self._browser is None:
            return
        client, browser, pw = self._client, self._browser, self._playwright
        self._client = self._browser = self._playwright = None
        try:
            if browser is not None:
                await browser.close()
        except Exception as e:
            log.warning("browser close failed: %s", e)
        try:
            if pw is not None:
                await pw.stop()
        except Exception as e:
            log.warning("playwright stop failed: %s", e)
        if client is not None:
            await client.aclose()
        log.info("session released")

    @asynccontextmanager
    async def region_context(self) -> AsyncIterator[BrowserContext]:
        """Isolated cookie/storage scope for one region; closed on exit."""
        if self._browser is None:
            raise RuntimeError("browser not available in this session")
        context = await self._browser.new_context(
            user_agent=MOBILE_USER_AGENT,
            viewport=MOBILE_VIEWPORT,
            locale="ko-KR",
            is_mobile=True,
            has_touch=True,
        )
        try:
            yield context
        finally:
            await context.close()
