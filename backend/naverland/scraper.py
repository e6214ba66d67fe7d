import logging
from typing import AsyncIterator, List, Optional

import httpx

from backend.naverland.clusters import cluster_location, discover_clusters
from backend.naverland.config import ScraperSettings, load_settings
from backend.naverland.fetcher import Throttle, fetch_listings
from backend.naverland.normalize import normalize_all
from backend.naverland.pipeline import ResultSet
from backend.naverland.regions import resolve_area, resolve_bbox, select_mode
from backend.naverland.session import BrowserLauncher, BrowserSession
from backend.py_models.property import Property, SearchOptions
from backend.py_models.records import Location

log = logging.getLogger("naverland")


class NaverLandScraper:
    """
    Search Naver Land listings.

        async with NaverLandScraper() as scraper:
            props = await scraper.search(SearchOptions(areas=["마포구"]))

    One instance owns one session; run concurrent searches on separate
    instances. `search` acquires the session itself when none is live and then
    releases it before returning; a session opened with `init()` is left for
    the caller to `close()`.
    """

    def __init__(
        self,
        settings: Optional[ScraperSettings] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        browser_launcher: Optional[BrowserLauncher] = None,
    ):
        self.settings = settings or load_settings()
        self.session = BrowserSession(self.settings, transport=transport, browser_launcher=browser_launcher)
        self._throttle = Throttle()
        if self.settings.debug:
            log.setLevel(logging.DEBUG)

    async def init(self) -> None:
        await self.session.acquire()

    async def close(self) -> None:
        await self.session.release()

    async def __aenter__(self) -> "NaverLandScraper":
        await self.init()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    async def search(self, options: SearchOptions) -> List[Property]:
        owns_session = not self.session.live
        await self.session.acquire()
        try:
            return await self._search(options)
        finally:
            if owns_session:
                await self.session.release()

    async def _search(self, options: SearchOptions) -> List[Property]:
        results = ResultSet(options)
        mode = select_mode(self.settings, options)
        log.info("search: mode=%s areas=%s trade=%s limit=%d", mode, options.areas, options.trade_type.value, options.limit)

        async for location in self._locations(mode, options):
            await self._throttle.wait()
            outcome = await fetch_listings(self.session, location, options, max_pages=self.settings.max_pages)
            if not outcome.succeeded:
                log.warning("[%s] no records: %s", location.label, outcome.reason)
                continue
            props = normalize_all(outcome.value or [])
            added = results.extend(props)
            log.info(
                "[%s] %d raw → %d normalized → %d kept (%s)",
                location.label, len(outcome.value or []), len(props), added, outcome.meta.get("strategy"),
            )
            if results.full:
                log.info("limit %d reached; stopping early", options.limit)
                break

        if self.settings.debug:
            log.info("search summary: kept=%d rejected=%d duplicates=%d", len(results), results.rejected, results.duplicates)
        return results.results()

    async def _locations(self, mode: str, options: SearchOptions) -> AsyncIterator[Location]:
        if mode == "areas":
            for name in options.areas:
                res = resolve_area(name)
                if not res.succeeded:
                    log.warning("skip area: %s", res.reason)
                    continue
                yield res.value
            return

        box = resolve_bbox(self.settings.bbox)
        if not box.succeeded:
            log.warning("skip region: %s", box.reason)
            return
        found = await discover_clusters(self.session.client, box.value, options)
        if not found.succeeded:
            log.warning("cluster discovery failed: %s", found.reason)
            return
        for cluster in found.value:
            yield cluster_location(cluster)
