import os
from typing import Literal, Optional, Tuple

from pydantic import BaseModel, Field

# --- upstream ---------------------------------------------------------------
MOBILE_BASE = "https://m.land.naver.com"
DESKTOP_BASE = "https://new.land.naver.com"
ARTICLE_LIST_URL = f"{MOBILE_BASE}/cluster/ajax/articleList"
CLUSTER_LIST_URL = f"{MOBILE_BASE}/cluster/clusterList"
ROOMS_PAGE_URL = f"{DESKTOP_BASE}/rooms"
DETAIL_URL = f"{MOBILE_BASE}/article/info/{{id}}"

MOBILE_USER_AGENT = (
    "Mozilla/5.0 (iPhone; CPU iPhone OS 17_4 like Mac OS X) "
    "AppleWebKit/605.1.15 (KHTML, like Gecko) "
    "Version/17.4 Mobile/15E148 Safari/604.1"
)

# Every upstream call (HTTP request, navigation, selector wait) is bounded by this.
REQUEST_TIMEOUT_SECONDS = 15.0

# Spacing between successive location identifiers. Fixed on purpose.
REQUEST_DELAY_SECONDS = 0.3

MAX_CLUSTERS = 5
MAX_RENDERED_ITEMS = 30

# Han-river corridor: 영등포/마포/용산/성동/광진
DEFAULT_BBOX = "37.505,126.880,37.560,127.100"


def _env_flag(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def parse_bbox(raw: str) -> Tuple[float, float, float, float]:
    """
    Parse 'btm,lft,top,rgt' into floats. Raises ValueError on a malformed box
    (wrong arity, non-numeric, or inverted edges).
    """
    parts = [p.strip() for p in (raw or "").split(",")]
    if len(parts) != 4:
        raise ValueError(f"Expected 'btm,lft,top,rgt', got: {raw!r}")
    btm, lft, top, rgt = (float(p) for p in parts)
    if not (btm < top and lft < rgt):
        raise ValueError(f"Inverted bounding box: {raw!r}")
    return btm, lft, top, rgt


class ScraperSettings(BaseModel):
    region_mode: Literal["auto", "areas", "bbox"] = "auto"
    bbox: str = DEFAULT_BBOX
    max_pages: int = Field(3, ge=1)
    browser_fallback: bool = True
    headless: bool = True
    proxy: Optional[str] = None
    debug: bool = False
    http_debug: bool = False


def load_settings() -> ScraperSettings:
    """Build settings from NAVERLAND_* environment variables."""
    return ScraperSettings(
        region_mode=os.getenv("NAVERLAND_REGION_MODE", "auto").strip().lower() or "auto",
        bbox=os.getenv("NAVERLAND_BBOX", DEFAULT_BBOX),
        max_pages=int(os.getenv("NAVERLAND_MAX_PAGES", "3")),
        browser_fallback=_env_flag("NAVERLAND_BROWSER_FALLBACK", True),
        headless=_env_flag("NAVERLAND_HEADLESS", True),
        proxy=os.getenv("NAVERLAND_PROXY", "").strip() or None,
        debug=_env_flag("NAVERLAND_DEBUG", False),
        http_debug=_env_flag("HTTP_DEBUG", False),
    )
