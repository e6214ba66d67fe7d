import logging
from typing import Iterable, List, Optional, Set

from backend.naverland.parsing import BASEMENT_MARKERS, parse_floor_number, parse_price_manwon
from backend.py_models.property import Property, SearchOptions

log = logging.getLogger("naverland")


def _to_float(s: Optional[str]) -> Optional[float]:
    try:
        return float(str(s).replace(",", "").strip())
    except (TypeError, ValueError):
        return None


def passes_size(p: Property, options: SearchOptions) -> bool:
    """Unparseable size passes; parsed size must sit inside [min_size, max_size]."""
    size = _to_float(p.size)
    if size is None:
        return True
    if options.min_size is not None and size < options.min_size:
        return False
    if options.max_size is not None and size > options.max_size:
        return False
    return True


def passes_floor(p: Property, options: SearchOptions) -> bool:
    floor_text = p.floor or ""
    # Basement wins over any number in the text ('지하1층').
    if any(m in floor_text for m in BASEMENT_MARKERS):
        return False
    n = parse_floor_number(floor_text)
    return n is None or n >= options.min_floor


def passes_price(p: Property, options: SearchOptions) -> bool:
    """Upper bounds on deposit / monthly rent in 만원; unparseable amounts pass."""
    if options.max_deposit is not None:
        deposit = parse_price_manwon(p.deposit or (p.price if "/" not in p.price else ""))
        if deposit is not None and deposit > options.max_deposit:
            return False
    if options.max_rent is not None:
        rent = parse_price_manwon(p.monthly_rent)
        if rent is not None and rent > options.max_rent:
            return False
    return True


def accept(p: Property, options: SearchOptions) -> bool:
    return passes_size(p, options) and passes_floor(p, options) and passes_price(p, options)


class ResultSet:
    """
    Accumulates filtered, de-duplicated properties in discovery order. The
    orchestrator feeds it region by region and stops once it is `full`.
    """

    def __init__(self, options: SearchOptions):
        self.options = options
        self._items: List[Property] = []
        self._seen: Set[str] = set()
        self.rejected = 0
        self.duplicates = 0

    def add(self, p: Property) -> bool:
        if p.id in self._seen:
            self.duplicates += 1
            return False
        if not accept(p, self.options):
            self.rejected += 1
            return False
        self._seen.add(p.id)
        self._items.append(p)
        return True

    def extend(self, props: Iterable[Property]) -> int:
        return sum(1 for p in props if self.add(p))

    @property
    def full(self) -> bool:
        return len(self._items) >= self.options.limit

    def __len__(self) -> int:
        return len(self._items)

    def results(self) -> List[Property]:
        return list(self._items[: self.options.limit])


def apply_pipeline(props: Iterable[Property], options: SearchOptions) -> List[Property]:
    """Size/floor/price filters, dedup by id (first wins), truncate to limit."""
    rs = ResultSet(options)
    rs.extend(props)
    log.debug("pipeline: kept=%d rejected=%d duplicates=%d", len(rs), rs.rejected, rs.duplicates)
    return rs.results()
