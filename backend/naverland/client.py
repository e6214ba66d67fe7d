import logging
from typing import Any, Optional, Tuple

import httpx
from playwright.async_api import Browser, Playwright, async_playwright

from backend.naverland.config import (
    MOBILE_BASE,
    MOBILE_USER_AGENT,
    REQUEST_TIMEOUT_SECONDS,
    ScraperSettings,
)
from backend.naverland.errors import UpstreamError

CHROMIUM_ARGS = ["--no-sandbox", "--disable-setuid-sandbox"]

MOBILE_VIEWPORT = {"width": 390, "height": 844}


def new_client(settings: ScraperSettings, transport: Optional[httpx.AsyncBaseTransport] = None) -> httpx.AsyncClient:
    """
    Create a configured AsyncClient for the Naver Land mobile endpoints, with an
    optional proxy and debug logging. No retries: a failed call is reported and
    the search moves on.
    """
    if settings.http_debug:
        logging.getLogger("httpx").setLevel(logging.DEBUG)

    if transport is None:
        limits = httpx.Limits(max_keepalive_connections=5, max_connections=10)
        transport = httpx.AsyncHTTPTransport(limits=limits, proxy=settings.proxy)
    return httpx.AsyncClient(
        timeout=REQUEST_TIMEOUT_SECONDS,
        headers={
            "User-Agent": MOBILE_USER_AGENT,
            "Accept-Language": "ko-KR,ko;q=0.9,en-US;q=0.8",
            "Accept": "application/json, text/javascript, */*; q=0.01",
            "Referer": f"{MOBILE_BASE}/",
            "X-Requested-With": "XMLHttpRequest",
            "Cache-Control": "no-cache",
        },
        follow_redirects=True,
        http2=False,
        transport=transport,
    )


async def launch_browser(settings: ScraperSettings) -> Tuple[Playwright, Browser]:
    """Start Playwright and a headless Chromium. Caller owns both handles."""
    pw = await async_playwright().start()
    launch_kwargs = {"headless": settings.headless, "args": CHROMIUM_ARGS}
    if settings.proxy:
        launch_kwargs["proxy"] = {"server": settings.proxy}
    try:
        browser = await pw.chromium.launch(**launch_kwargs)
    except Exception:
        await pw.stop()
        raise
    return pw, browser


async def fetch_json(client: httpx.AsyncClient, url: str, params: Optional[dict] = None) -> Any:
    """
    GET a JSON document. Timeouts, transport errors, non-2xx statuses and
    non-JSON bodies all surface as UpstreamError.
    """
    try:
        r = await client.get(url, params=params)
        r.raise_for_status()
    except httpx.TimeoutException as e:
        raise UpstreamError(f"timeout after {REQUEST_TIMEOUT_SECONDS}s: {url}") from e
    except httpx.HTTPStatusError as e:
        raise UpstreamError(f"HTTP {e.response.status_code}: {url}") from e
    except httpx.HTTPError as e:
        raise UpstreamError(f"{type(e).__name__}: {e}") from e
    try:
        return r.json()
    except ValueError as e:
        raise UpstreamError(f"non-JSON payload from {url}") from e
