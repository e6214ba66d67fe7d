import asyncio
import csv
import json
import logging
import sys
from pathlib import Path

from backend.naverland.errors import SessionAcquireError
from backend.naverland.scraper import NaverLandScraper
from backend.py_models.property import Property, SearchOptions, TradeType

# Search the original bot ran for /hangang: small rooms along the Han river.
PRESETS = {
    "hangang": {
        "areas": ["용산구", "마포구", "성동구", "광진구", "영등포구"],
        "min_size": 26,   # ~8평
        "max_size": 43,   # ~13평
        "min_floor": 2,
        "trade_type": "all",
        "limit": 20,
    },
}

CSV_FIELDS = ["id", "title", "price", "deposit", "monthly_rent", "size", "floor", "address", "link", "source"]


def parse_args(argv=None):
    import argparse
    p = argparse.ArgumentParser(description="Search Naver Land rooms")
    p.add_argument("areas", nargs="*", help="District names (용산구 마포구 ...). Omit to search the configured bounding box")
    p.add_argument("--preset", choices=sorted(PRESETS), help="Start from a canned search; explicit flags override it")
    p.add_argument("--min-size", type=float, help="Minimum area in m²")
    p.add_argument("--max-size", type=float, help="Maximum area in m²")
    p.add_argument("--min-floor", type=int)
    p.add_argument("--room-type", action="append", dest="room_types", help="원룸, 투룸, 빌라, 오피스텔, 아파트 (repeatable)")
    p.add_argument("--trade", choices=[t.value for t in TradeType])
    p.add_argument("--max-deposit", type=float, help="Deposit cap in 만원")
    p.add_argument("--max-rent", type=float, help="Monthly rent cap in 만원")
    p.add_argument("--limit", type=int)
    p.add_argument("--output", help="Optional path to save results as .json or .csv")
    p.add_argument("--print-details", action="store_true", help="Print each property row to stdout")
    p.add_argument("--verbose", action="store_true", help="Enable verbose logging for the scraper")
    return p.parse_args(argv)


def build_options(args) -> SearchOptions:
    base = dict(PRESETS[args.preset]) if args.preset else {}
    overrides = {
        "areas": args.areas or None,
        "min_size": args.min_size,
        "max_size": args.max_size,
        "min_floor": args.min_floor,
        "room_types": args.room_types,
        "trade_type": args.trade,
        "max_deposit": args.max_deposit,
        "max_rent": args.max_rent,
        "limit": args.limit,
    }
    base.update({k: v for k, v in overrides.items() if v is not None})
    return SearchOptions(**base)


def format_row(i: int, p: Property) -> str:
    size = f"{p.size}㎡" if p.size else "--"
    line = f"{i}. {p.title or '매물'} | {p.price or 'N/A'} | {size} | {p.floor or '--'}"
    if p.link:
        line += f" | {p.link}"
    return line


def _write_json(rows: list[dict], path: Path) -> None:
    path.write_text(json.dumps(rows, indent=2, ensure_ascii=False), encoding="utf-8")


def _write_csv(rows: list[dict], path: Path) -> None:
    with path.open("w", newline="", encoding="utf-8") as f:
        writer = csv.DictWriter(f, fieldnames=CSV_FIELDS, extrasaction="ignore")
        writer.writeheader()
        writer.writerows(rows)


WRITERS = {".json": _write_json, ".csv": _write_csv}


def save_results(props: list[Property], out_path: str) -> int:
    """Write the run's properties as .json or .csv; returns the row count."""
    path = Path(out_path)
    write = WRITERS.get(path.suffix.lower())
    if write is None:
        raise ValueError(f"unsupported output format {path.suffix or out_path!r}; use .json or .csv")
    write([p.model_dump() for p in props], path)
    return len(props)


async def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s | %(levelname)s | %(message)s",
    )
    if args.verbose:
        logging.getLogger("naverland").setLevel(logging.DEBUG)

    options = build_options(args)
    label = ", ".join(options.areas) or "bounding box"
    print(f"🔍 Searching Naver Land for {label} ...")

    try:
        async with NaverLandScraper() as scraper:
            props = await scraper.search(options)
    except SessionAcquireError as e:
        print(f"❌ Could not start a browsing session: {e}")
        return 1

    if args.print_details:
        for i, p in enumerate(props, 1):
            print(format_row(i, p))

    if args.output:
        try:
            saved = save_results(props, args.output)
            print(f"Saved {saved} properties to {args.output}")
        except ValueError as e:
            print(f"[warn] {e}")

    print(f"\nCollected {len(props)} Property record(s).")
    return 0


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
