import json
from typing import Callable, Dict, List, Optional

import httpx
import pytest

from backend.naverland.config import ScraperSettings
from backend.naverland.fetcher import Throttle
from backend.naverland.scraper import NaverLandScraper

MAPO = "1144000000"
YONGSAN = "1117000000"


def article(atcl_no, flr="3/5", spc2="30", prc=1000, rent=50, name=None, **extra) -> dict:
    d = {
        "atclNo": str(atcl_no),
        "atclNm": name or f"매물 {atcl_no}",
        "flrInfo": flr,
        "spc1": "40",
        "spc2": spc2,
        "prc": prc,
        "rentPrc": rent,
        "atclFetrDesc": "역세권 풀옵션",
    }
    d.update(extra)
    return d


def article_page(items: List[dict], more: bool = False) -> dict:
    return {"code": "success", "hasMoreData": more, "more": more, "page": 1, "body": items}


class FakeUpstream:
    """
    Stand-in for m.land.naver.com. Article pages are keyed by cortarNo or lgeo
    and page number; every request is recorded.
    """

    def __init__(self, articles: Optional[Dict[str, List[dict]]] = None, clusters: Optional[List[dict]] = None):
        self.articles = articles or {}
        self.clusters = clusters
        self.requests: List[httpx.Request] = []
        self.fail_codes: Dict[str, int] = {}

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        params = request.url.params
        if request.url.path.endswith("/cluster/clusterList"):
            if self.clusters is None:
                return httpx.Response(500, text="boom")
            return httpx.Response(200, json={"code": "success", "data": {"ARTICLE": self.clusters}})
        if request.url.path.endswith("/cluster/ajax/articleList"):
            key = params.get("cortarNo") or params.get("lgeo") or ""
            if key in self.fail_codes:
                return httpx.Response(self.fail_codes[key], text="blocked")
            page = int(params.get("page", "1"))
            pages = self.articles.get(key, [])
            if isinstance(pages, list) and pages and isinstance(pages[0], list):
                items = pages[page - 1] if page <= len(pages) else []
                more = page < len(pages)
            else:
                items = pages if page == 1 else []
                more = False
            return httpx.Response(200, content=json.dumps(article_page(items, more)).encode(),
                                  headers={"content-type": "application/json"})
        return httpx.Response(404)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)

    def article_requests(self) -> List[httpx.Request]:
        return [r for r in self.requests if r.url.path.endswith("/articleList")]


# --- fake browser ---------------------------------------------------------------

class FakeKeyboard:
    async def press(self, key):
        return None


class FakePage:
    def __init__(self, html: str, log: list):
        self._html = html
        self._log = log
        self.keyboard = FakeKeyboard()

    def set_default_timeout(self, ms):
        pass

    async def goto(self, url, **kw):
        self._log.append(("goto", url))

    async def wait_for_selector(self, sel, timeout=None):
        return None

    async def fill(self, sel, value):
        self._log.append(("fill", value))

    async def wait_for_timeout(self, ms):
        return None

    async def query_selector(self, sel):
        return None

    async def evaluate(self, script):
        return None

    async def content(self):
        return self._html


class FakeContext:
    def __init__(self, browser):
        self.browser = browser
        self.closed = False

    async def new_page(self):
        return FakePage(self.browser.html, self.browser.log)

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self, html: str = "<html></html>"):
        self.html = html
        self.log: list = []
        self.contexts: List[FakeContext] = []
        self.closed = False

    async def new_context(self, **kw):
        ctx = FakeContext(self)
        self.contexts.append(ctx)
        return ctx

    async def close(self):
        self.closed = True


def fake_launcher(browser: FakeBrowser) -> Callable:
    async def _launch(settings):
        return None, browser
    return _launch


@pytest.fixture
def settings() -> ScraperSettings:
    return ScraperSettings(browser_fallback=False, max_pages=3)


@pytest.fixture
def make_scraper(settings):
    def _make(upstream: FakeUpstream, browser: Optional[FakeBrowser] = None, **overrides) -> NaverLandScraper:
        s = settings.model_copy(update=overrides)
        if browser is not None:
            s = s.model_copy(update={"browser_fallback": True})
        scraper = NaverLandScraper(
            settings=s,
            transport=upstream.transport(),
            browser_launcher=fake_launcher(browser) if browser is not None else None,
        )
        scraper._throttle = Throttle(0.0)
        return scraper
    return _make
