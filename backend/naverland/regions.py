from typing import Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlencode

from backend.naverland.config import ROOMS_PAGE_URL, ScraperSettings, parse_bbox
from backend.naverland.errors import ResolutionError
from backend.py_models.property import SearchOptions, TradeType
from backend.py_models.records import Location, Outcome

# cortarNo (법정동 code) and map center for each Seoul district.
# Kept for explicit area requests; bounding-box clustering is the preferred
# way to cover a region since it needs no hand-maintained table.
AREA_CODES: Dict[str, Tuple[str, float, float]] = {
    "종로구": ("1111000000", 37.5735, 126.9790),
    "중구": ("1114000000", 37.5641, 126.9979),
    "용산구": ("1117000000", 37.5326, 126.9905),
    "성동구": ("1120000000", 37.5634, 127.0369),
    "광진구": ("1121500000", 37.5385, 127.0823),
    "동대문구": ("1123000000", 37.5744, 127.0396),
    "중랑구": ("1126000000", 37.6063, 127.0925),
    "성북구": ("1129000000", 37.5894, 127.0167),
    "강북구": ("1130500000", 37.6396, 127.0257),
    "도봉구": ("1132000000", 37.6688, 127.0471),
    "노원구": ("1135000000", 37.6542, 127.0568),
    "은평구": ("1138000000", 37.6027, 126.9291),
    "서대문구": ("1141000000", 37.5791, 126.9368),
    "마포구": ("1144000000", 37.5663, 126.9019),
    "양천구": ("1147000000", 37.5170, 126.8665),
    "강서구": ("1150000000", 37.5509, 126.8495),
    "구로구": ("1153000000", 37.4954, 126.8874),
    "금천구": ("1154500000", 37.4569, 126.8955),
    "영등포구": ("1156000000", 37.5264, 126.8962),
    "동작구": ("1159000000", 37.5124, 126.9393),
    "관악구": ("1162000000", 37.4784, 126.9516),
    "서초구": ("1165000000", 37.4837, 127.0324),
    "강남구": ("1168000000", 37.5172, 127.0473),
    "송파구": ("1171000000", 37.5145, 127.1059),
    "강동구": ("1174000000", 37.5301, 127.1238),
}

TRADE_CODES: Dict[TradeType, str] = {
    TradeType.RENT: "B2",
    TradeType.JEONSE: "B1",
    TradeType.ALL: "B1:B2",
}

ROOM_TYPE_CODES: Dict[str, str] = {
    "원룸": "OR",
    "투룸": "VL",
    "빌라": "VL",
    "오피스텔": "OPST",
    "아파트": "APT",
}
DEFAULT_ROOM_TYPES = "VL:OPST:OR"

AREA_ZOOM = 14


def _normalize_area_name(name: str) -> str:
    """'  용산 ' → '용산구'. Names already ending in 구 are returned stripped."""
    n = "".join((name or "").split())
    if n and not n.endswith("구"):
        n = n + "구"
    return n


def trade_code(trade_type: TradeType) -> str:
    return TRADE_CODES[TradeType(trade_type)]


def room_type_codes(room_types: Iterable[str]) -> str:
    """Map human room-type names to the rletTpCd list; unknown names are ignored."""
    codes: List[str] = []
    for rt in room_types or []:
        code = ROOM_TYPE_CODES.get((rt or "").strip())
        if code and code not in codes:
            codes.append(code)
    return ":".join(codes) or DEFAULT_ROOM_TYPES


def area_location(name: str) -> Location:
    key = _normalize_area_name(name)
    entry = AREA_CODES.get(key)
    if not entry:
        raise ResolutionError(f"unknown area: {name!r}")
    code, lat, lon = entry
    return Location(kind="area", code=code, label=key, lat=lat, lon=lon, zoom=AREA_ZOOM)


def bbox_bounds(raw: str) -> Tuple[float, float, float, float]:
    try:
        return parse_bbox(raw)
    except ValueError as e:
        raise ResolutionError(f"malformed bounding box: {e}") from e


def resolve_area(name: str) -> Outcome[Location]:
    """Unknown names are a skip, never an error."""
    try:
        return Outcome.ok(area_location(name))
    except ResolutionError as e:
        return Outcome.skip(str(e))


def resolve_bbox(raw: str) -> Outcome[Tuple[float, float, float, float]]:
    try:
        return Outcome.ok(bbox_bounds(raw))
    except ResolutionError as e:
        return Outcome.skip(str(e))


def select_mode(settings: ScraperSettings, options: SearchOptions) -> str:
    """
    'areas' or 'bbox' for this deployment/search. An empty `areas` always means
    the configured bounding box, whatever the mode.
    """
    if not options.areas or settings.region_mode == "bbox":
        return "bbox"
    return "areas"


def _drop_none(params: Dict[str, Optional[object]]) -> Dict[str, object]:
    return {k: v for k, v in params.items() if v is not None and v != ""}


def _fmt_num(x: Optional[float]) -> Optional[str]:
    if x is None:
        return None
    return str(int(x)) if float(x).is_integer() else str(x)


def build_article_params(location: Location, options: SearchOptions, page: int = 1) -> Dict[str, object]:
    """
    Query parameters for the articleList endpoint. Area and cluster identifiers
    go in different slots (cortarNo / lgeo); size and price bounds are passed
    along as upstream pre-filters, the authoritative filtering happens later.
    """
    params: Dict[str, Optional[object]] = {
        "rletTpCd": room_type_codes(options.room_types),
        "tradTpCd": trade_code(options.trade_type),
        "z": location.zoom,
        "lat": location.lat,
        "lon": location.lon,
        "cortarNo": location.code if location.kind == "area" else None,
        "lgeo": location.code if location.kind == "cluster" else None,
        "spcMin": _fmt_num(options.min_size),
        "spcMax": _fmt_num(options.max_size),
        "dprcMax": _fmt_num(options.max_deposit),
        "wprcMax": _fmt_num(options.max_rent),
        "sort": "rank",
        "page": page,
    }
    return _drop_none(params)


def build_cluster_params(bbox: Tuple[float, float, float, float], options: SearchOptions, zoom: int = 13) -> Dict[str, object]:
    btm, lft, top, rgt = bbox
    return _drop_none({
        "view": "atcl",
        "rletTpCd": room_type_codes(options.room_types),
        "tradTpCd": trade_code(options.trade_type),
        "z": zoom,
        "lat": round((btm + top) / 2, 6),
        "lon": round((lft + rgt) / 2, 6),
        "btm": btm,
        "lft": lft,
        "top": top,
        "rgt": rgt,
        "spcMin": _fmt_num(options.min_size),
        "spcMax": _fmt_num(options.max_size),
        "dprcMax": _fmt_num(options.max_deposit),
        "wprcMax": _fmt_num(options.max_rent),
    })


def build_rooms_page_url(location: Location, options: SearchOptions) -> str:
    """Desktop map page used by the rendered fallback."""
    lat = location.lat if location.lat is not None else 37.5
    lon = location.lon if location.lon is not None else 127.0
    params = {
        "ms": f"{lat},{lon},{location.zoom}",
        "a": room_type_codes(options.room_types),
        "e": "RETAIL",
        "b": trade_code(options.trade_type),
    }
    return ROOMS_PAGE_URL + "?" + urlencode(params, safe=",:")
