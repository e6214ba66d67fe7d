# backend/naverland/parsing.py
import re
from typing import Iterable, Optional
from urllib.parse import urljoin

from bs4 import BeautifulSoup, Tag

from backend.naverland.config import DESKTOP_BASE, MAX_RENDERED_ITEMS
from backend.py_models.records import Outcome, RenderedRecord

__all__ = [
    "extract_numeric_token",
    "extract_size",
    "floor_label",
    "extract_floor",
    "parse_floor_number",
    "parse_price_manwon",
    "select_items",
    "parse_item",
    "parse_listing_html",
]

# --- number helpers ---------------------------------------------------------
AREA_UNITS = ("㎡", "m²", "m2")
PYEONG_UNITS = ("평",)
FLOOR_UNITS = ("층",)
SQM_PER_PYEONG = 3.3058

BASEMENT_MARKERS = ("반지하", "지하", "반지")
_floor_token = re.compile(r"(\d+)\s*층|반지하|지하|옥탑")
# "current/total층" as the rendered page prints it: "3/5층", "B1/5층", "고/15층"
_floor_ratio = re.compile(r"([Bb]?\d+|[저중고])\s*/\s*\d+\s*층")
_eok = re.compile(r"(\d[\d,]*)\s*억\s*(\d[\d,]*)?")
_plain_number = re.compile(r"\d[\d,]*(?:\.\d+)?")


def extract_numeric_token(text: Optional[str], unit_markers: Iterable[str]) -> Optional[float]:
    """
    Return the first number immediately followed (spaces allowed) by one of
    `unit_markers`, e.g. ("33.5㎡", ["㎡"]) → 33.5. None when nothing matches.
    """
    if not text:
        return None
    markers = [re.escape(m) for m in unit_markers if m]
    if not markers:
        return None
    m = re.search(r"(\d[\d,]*(?:\.\d+)?)\s*(?:" + "|".join(markers) + ")", text)
    if not m:
        return None
    try:
        return float(m.group(1).replace(",", ""))
    except ValueError:
        return None


def _fmt_number(x: float) -> str:
    return str(int(x)) if float(x).is_integer() else f"{x:.2f}".rstrip("0").rstrip(".")


def extract_size(text: Optional[str]) -> str:
    """Floor area in m² as text; 평 values are converted. '' when absent."""
    sqm = extract_numeric_token(text, AREA_UNITS)
    if sqm is not None:
        return _fmt_number(sqm)
    pyeong = extract_numeric_token(text, PYEONG_UNITS)
    if pyeong is not None:
        return _fmt_number(round(pyeong * SQM_PER_PYEONG, 2))
    return ""


def floor_label(current: str) -> str:
    """Label for the current-floor half of 'N/M': '3' → '3층', 'B1' → '지하1층', '저' → '저층'."""
    current = (current or "").strip()
    if current[:1] in ("B", "b"):
        return f"지하{int(current[1:])}층" if current[1:].isdigit() else "지하"
    if current.isdigit():
        return f"{int(current)}층"
    if current in ("저", "중", "고"):
        return f"{current}층"
    return ""


def extract_floor(text: Optional[str]) -> str:
    """
    Current floor as found in the text: '3층', '지하1층', '반지하', '지하' or
    '옥탑'. In 'current/total층' only the current floor counts. '' when absent.
    """
    if not text:
        return ""
    ratio = _floor_ratio.search(text)
    if ratio:
        return floor_label(ratio.group(1))
    m = _floor_token.search(text)
    if not m:
        return ""
    if m.group(1):
        return f"{int(m.group(1))}층"
    return m.group(0)


def parse_floor_number(text: Optional[str]) -> Optional[int]:
    if not text:
        return None
    n = extract_numeric_token(text, FLOOR_UNITS)
    return int(n) if n is not None else None


def parse_price_manwon(text: Optional[str]) -> Optional[float]:
    """
    Parse a Korean price in 만원 units: '1억' → 10000, '1억 5,000' → 15000,
    '500' → 500. None when no number is present.
    """
    if not text:
        return None
    t = str(text).strip()
    m = _eok.search(t)
    if m:
        total = float(m.group(1).replace(",", "")) * 10_000
        if m.group(2):
            total += float(m.group(2).replace(",", ""))
        return total
    m = _plain_number.search(t)
    if not m:
        return None
    try:
        return float(m.group(0).replace(",", ""))
    except ValueError:
        return None


# --- node text ----------------------------------------------------------------

def _node_text(node: Optional[Tag]) -> str:
    return node.get_text(" ", strip=True) if node is not None else ""


def _first_match(item: Tag, selectors: Iterable[str]) -> Optional[Tag]:
    """First node any of `selectors` finds inside `item`, tried in order."""
    return next((n for n in map(item.select_one, selectors) if n is not None), None)


# --- rendered listing page ----------------------------------------------------

ITEM_SELECTORS = [
    ".item_list .item",
    ".item_list--article .item",
    "ul.list_item > li",
    "[class*='article_list'] [class*='item']",
]


def select_items(root: Tag, limit: int = MAX_RENDERED_ITEMS) -> list[Tag]:
    """Listing nodes of the rendered rooms page, first matching skin wins, capped at `limit`."""
    if not isinstance(root, Tag):
        return []
    for sel in ITEM_SELECTORS:
        items = root.select(sel)
        if items:
            return items[:limit]
    return []


def parse_item(item: Tag) -> Outcome[RenderedRecord]:
    """
    Pull the raw text of one listing node. Interpretation (size, floor, price
    split) is left to the normalizer.
    """
    try:
        title_el = _first_match(item, [".item_title", ".text_item", ".item_title .text"])
        price_el = _first_match(item, [".price_line", ".item_price"])
        info_el = _first_match(item, [".info_area", ".item_info"])
        link_el = item.select_one("a[href]")
        img_el = item.select_one("img[src]")

        href = link_el.get("href") if link_el else ""
        record = RenderedRecord(
            title=_node_text(title_el),
            price_text=_node_text(price_el),
            info_text=_node_text(info_el),
            href=urljoin(DESKTOP_BASE + "/", href) if href else "",
            image_url=(img_el.get("src") or "") if img_el else "",
        )
    except (AttributeError, TypeError, ValueError) as e:
        return Outcome.skip(f"unreadable item: {e}")
    if not (record.title or record.price_text or record.info_text):
        return Outcome.skip("empty item")
    return Outcome.ok(record)


def parse_listing_html(html: str, limit: int = MAX_RENDERED_ITEMS) -> list[Outcome[RenderedRecord]]:
    soup = BeautifulSoup(html or "", "lxml")
    return [parse_item(it) for it in select_items(soup, limit=limit)]
