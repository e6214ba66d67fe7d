import asyncio
import logging
from typing import Any, List, Optional, Tuple

import httpx
from playwright.async_api import Error as PlaywrightError
from playwright.async_api import Page
from playwright.async_api import TimeoutError as PlaywrightTimeoutError

from backend.naverland.client import fetch_json
from backend.naverland.config import (
    ARTICLE_LIST_URL,
    MAX_RENDERED_ITEMS,
    REQUEST_DELAY_SECONDS,
    REQUEST_TIMEOUT_SECONDS,
)
from backend.naverland.errors import UpstreamError
from backend.naverland.parsing import ITEM_SELECTORS, parse_listing_html
from backend.naverland.regions import build_article_params, build_rooms_page_url
from backend.naverland.session import BrowserSession
from backend.py_models.property import SearchOptions
from backend.py_models.records import Location, Outcome, RawRecord, RenderedRecord, StructuredRecord

log = logging.getLogger("naverland")

TIMEOUT_MS = int(REQUEST_TIMEOUT_SECONDS * 1000)


class Throttle:
    """Keeps at least `delay` seconds between successive upstream lookups."""

    def __init__(self, delay: float = REQUEST_DELAY_SECONDS):
        self.delay = delay
        self._last: Optional[float] = None

    async def wait(self) -> None:
        loop = asyncio.get_running_loop()
        if self._last is not None:
            remaining = self.delay - (loop.time() - self._last)
            if remaining > 0:
                await asyncio.sleep(remaining)
        self._last = loop.time()


# --- primary: articleList JSON ----------------------------------------------

def parse_article_page(data: Any) -> Tuple[List[StructuredRecord], bool]:
    """
    Split one articleList payload into records and a has-more flag. Anything
    other than `{"code": "success", "body": [...]}` is an UpstreamError.
    """
    if not isinstance(data, dict):
        raise UpstreamError("article payload is not an object")
    code = data.get("code")
    if str(code).lower() != "success":
        raise UpstreamError(f"article payload status {code!r}")
    body = data.get("body")
    if body is None:
        body = []
    if not isinstance(body, list):
        raise UpstreamError("article payload body is not a list")
    records = [StructuredRecord(payload=it) for it in body if isinstance(it, dict)]
    more = bool(data.get("more") or data.get("hasMoreData"))
    return records, more


async def fetch_structured(
    client: httpx.AsyncClient,
    location: Location,
    options: SearchOptions,
    max_pages: int = 3,
) -> Outcome[List[StructuredRecord]]:
    records: List[StructuredRecord] = []
    for page in range(1, max_pages + 1):
        params = build_article_params(location, options, page=page)
        try:
            data = await fetch_json(client, ARTICLE_LIST_URL, params=params)
            page_records, more = parse_article_page(data)
        except UpstreamError as e:
            if page == 1:
                return Outcome.fail(str(e), value=[])
            log.warning("[%s] page %d failed, keeping %d record(s): %s", location.label, page, len(records), e)
            break
        records.extend(page_records)
        log.debug("[%s] articleList page %d: %d record(s), more=%s", location.label, page, len(page_records), more)
        if not more or not page_records or len(records) >= options.limit * 3:
            break
    return Outcome.ok(records, pages=page)


# --- fallback: rendered rooms page --------------------------------------------

async def _search_area(page: Page, name: str) -> None:
    """Type the district into the map search box and open the first suggestion."""
    try:
        await page.wait_for_selector('input[placeholder*="검색"]', timeout=10_000)
        await page.fill('input[placeholder*="검색"]', name)
        await page.keyboard.press("Enter")
        await page.wait_for_timeout(2000)
        first = await page.query_selector(".search_list li:first-child")
        if first:
            await first.click()
            await page.wait_for_timeout(3000)
    except PlaywrightTimeoutError:
        log.debug("[%s] search box not found; using map center", name)


async def _wait_for_listings(page: Page) -> bool:
    for sel in ITEM_SELECTORS:
        try:
            await page.wait_for_selector(sel, timeout=3000)
            return True
        except PlaywrightTimeoutError:
            continue
    return False


async def _progressive_scroll(page: Page, steps: int = 3, wait_ms: int = 1000) -> None:
    for _ in range(steps):
        await page.evaluate(
            "() => { const l = document.querySelector('.item_list'); if (l) l.scrollTop += 500; }"
        )
        await page.wait_for_timeout(wait_ms)


async def fetch_rendered(session: BrowserSession, location: Location, options: SearchOptions) -> Outcome[List[RenderedRecord]]:
    if session.browser is None:
        return Outcome.skip("browser fallback disabled", value=[])
    url = build_rooms_page_url(location, options)
    try:
        async with session.region_context() as context:
            page = await context.new_page()
            page.set_default_timeout(TIMEOUT_MS)
            await page.goto(url, wait_until="networkidle", timeout=TIMEOUT_MS)
            if location.kind == "area":
                await _search_area(page, location.label)
            if not await _wait_for_listings(page):
                log.debug("[%s] no listing nodes appeared", location.label)
            await _progressive_scroll(page)
            html = await page.content()
    except PlaywrightError as e:
        return Outcome.fail(f"render failed: {e}", value=[])

    parsed = parse_listing_html(html, limit=MAX_RENDERED_ITEMS)
    records = [o.value for o in parsed if o.succeeded]
    skipped = len(parsed) - len(records)
    if skipped:
        log.debug("[%s] %d rendered item(s) unreadable", location.label, skipped)
    return Outcome.ok(records)


# --- two-tier ------------------------------------------------------------------

async def fetch_listings(
    session: BrowserSession,
    location: Location,
    options: SearchOptions,
    max_pages: int = 3,
) -> Outcome[List[RawRecord]]:
    """
    Structured endpoint first; the rendered page only when that yields nothing.
    Always returns an Outcome, never raises for upstream trouble.
    """
    primary = await fetch_structured(session.client, location, options, max_pages=max_pages)
    if primary.succeeded and primary.value:
        return Outcome.ok(list(primary.value), strategy="structured")
    if not primary.succeeded:
        log.warning("[%s] structured fetch failed: %s", location.label, primary.reason)
    else:
        log.info("[%s] structured fetch returned nothing; trying rendered page", location.label)

    fallback = await fetch_rendered(session, location, options)
    if fallback.succeeded:
        return Outcome.ok(list(fallback.value), strategy="rendered")
    if primary.succeeded:
        # empty primary plus unusable fallback is still a clean zero
        return Outcome.ok([], strategy="none", fallback=fallback.reason)
    return Outcome.fail(f"{primary.reason}; fallback: {fallback.reason}", value=[])
