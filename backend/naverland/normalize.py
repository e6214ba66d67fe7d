import logging
import re
import secrets
from typing import Any, Dict, Iterable, List, Optional, Sequence

from backend.naverland.config import DETAIL_URL
from backend.naverland.errors import RecordError
from backend.naverland.parsing import extract_floor, extract_size, floor_label
from backend.py_models.property import Property
from backend.py_models.records import Outcome, RawRecord, RenderedRecord, StructuredRecord

log = logging.getLogger("naverland")

THUMB_BASE = "https://landthumb-phinf.pstatic.net"

# The mobile cluster API and the desktop complex API name the same things
# differently; first non-empty alias wins.
FIELD_ALIASES: Dict[str, Sequence[str]] = {
    "id": ("atclNo", "articleNo"),
    "title": ("atclNm", "articleName", "bildNm"),
    "deposit_text": ("hanPrc", "dealOrWarrantPrc"),
    "deposit_num": ("prc",),
    "rent": ("rentPrc",),
    "combined": ("prcInfo", "priceText"),
    "floor": ("flrInfo", "floorInfo"),
    "size": ("spc2", "area2", "spc1", "area1"),
    "address": ("exposureAddress", "address", "cortarNm"),
    "description": ("atclFetrDesc", "articleFeatureDesc"),
    "image": ("repImgUrl", "representativeImgUrl"),
    "tags": ("tagList",),
}

_TRADE_PREFIX = re.compile(r"^\s*(월세|전세|매매|단기임대)\s*")
_article_no = re.compile(r"articleNo=(\d+)")
_long_digits = re.compile(r"(\d{6,})")


def _local_id() -> str:
    """Random per-run token for records the upstream gave no id for."""
    return "local-" + secrets.token_hex(6)


def _field(payload: Dict[str, Any], name: str) -> Any:
    for key in FIELD_ALIASES[name]:
        v = payload.get(key)
        if v is not None and v != "" and v != []:
            return v
    return None


def _str(v: Any) -> str:
    if v is None:
        return ""
    return str(v).strip()


def format_manwon(amount: Optional[float]) -> str:
    """15000 → '1억 5,000', 10000 → '1억', 500 → '500'."""
    if amount is None:
        return ""
    amount = int(amount)
    if amount <= 0:
        return ""
    eok, rest = divmod(amount, 10_000)
    if eok and rest:
        return f"{eok}억 {rest:,}"
    if eok:
        return f"{eok}억"
    return f"{rest:,}"


def format_price(deposit: Optional[str], rent: Optional[str], combined: Optional[str] = "") -> str:
    """
    'deposit/rent' when both are present, the single component when only one
    is, otherwise whatever combined price text the source supplied ('' if none).
    """
    d = _str(deposit)
    r = _str(rent)
    if d and r:
        return f"{d}/{r}"
    if d or r:
        return d or r
    return _str(combined)


def _floor_from_info(flr: str) -> str:
    """'3/5' → '3층', 'B1/5' → '지하1층', '저/5' → '저층'. Already-suffixed text is kept."""
    if not flr:
        return ""
    current = flr.split("/")[0].strip()
    if not current:
        return ""
    return floor_label(current) or extract_floor(current) or current


def _image_url(v: Any) -> str:
    s = _str(v)
    if s.startswith("/"):
        return THUMB_BASE + s
    return s


def normalize_structured(record: StructuredRecord) -> Property:
    p = record.payload
    if not isinstance(p, dict):
        raise RecordError(f"payload is {type(p).__name__}, not an object")

    atcl_id = _str(_field(p, "id")) or _local_id()

    deposit = _str(_field(p, "deposit_text"))
    if not deposit:
        num = _field(p, "deposit_num")
        deposit = format_manwon(float(num)) if num is not None else ""
    rent_raw = _field(p, "rent")
    rent = _str(rent_raw) if rent_raw not in (None, 0, "0") else ""

    size = _field(p, "size")
    description = _str(_field(p, "description"))
    if not description:
        tags = _field(p, "tags")
        if isinstance(tags, list):
            description = ", ".join(_str(t) for t in tags if t)

    return Property(
        id=atcl_id,
        title=_str(_field(p, "title")),
        price=format_price(deposit, rent, _str(_field(p, "combined"))),
        deposit=deposit,
        monthly_rent=rent,
        size=_str(size),
        floor=_floor_from_info(_str(_field(p, "floor"))),
        address=_str(_field(p, "address")),
        description=description,
        link=DETAIL_URL.format(id=atcl_id) if not atcl_id.startswith("local-") else "",
        image_url=_image_url(_field(p, "image")),
        source="structured",
    )


def _rendered_id(href: str) -> str:
    for pattern in (_article_no, _long_digits):
        m = pattern.search(href or "")
        if m:
            return m.group(1)
    return _local_id()


def normalize_rendered(record: RenderedRecord) -> Property:
    price_text = _TRADE_PREFIX.sub("", record.price_text or "").strip()
    deposit = rent = ""
    if "/" in price_text:
        left, _, right = price_text.partition("/")
        deposit, rent = left.strip(), right.strip()

    info = record.info_text or ""
    return Property(
        id=_rendered_id(record.href),
        title=(record.title or "").strip(),
        price=format_price(deposit, rent, price_text),
        deposit=deposit,
        monthly_rent=rent,
        size=extract_size(info),
        floor=extract_floor(info),
        address="",
        description=info.strip(),
        link=record.href or "",
        image_url=record.image_url or "",
        source="rendered",
    )


def normalize(record: RawRecord) -> Outcome[Property]:
    """Convert one raw record; a malformed record becomes a skip, never an exception."""
    try:
        if isinstance(record, StructuredRecord):
            return Outcome.ok(normalize_structured(record))
        if isinstance(record, RenderedRecord):
            return Outcome.ok(normalize_rendered(record))
        raise RecordError(f"unknown record type: {type(record).__name__}")
    except (RecordError, KeyError, TypeError, ValueError, AttributeError) as e:
        return Outcome.skip(f"malformed record: {e}")


def normalize_all(records: Iterable) -> List[Property]:
    out: List[Property] = []
    dropped = 0
    for rec in records:
        res = normalize(rec)
        if res.succeeded:
            out.append(res.value)
        else:
            dropped += 1
            log.debug("drop record: %s", res.reason)
    if dropped:
        log.info("normalizer dropped %d malformed record(s)", dropped)
    return out
