"""
FamilySpots CLI entrypoint.

This CLI is intended for quick local demos and debugging without a frontend.
It delegates all discovery logic to `familyspots.services.discover`.
"""

from __future__ import annotations

import argparse
import json
from typing import Any

from familyspots.catalog.source import build_source
from familyspots.config.settings import get_settings
from familyspots.core.geo import distance_km, format_distance
from familyspots.core.logging import configure_logging
from familyspots.domain.models import ActivityKind, DiscoverResult, Event, FilterCriteria
from familyspots.services.discover import city_counts, discover, featured


def _criteria_from_args(args: argparse.Namespace) -> FilterCriteria:
    """Build FilterCriteria from parsed flags (unset flags stay None)."""
    return FilterCriteria(
        indoor=True if args.indoor else None,
        outdoor=True if args.outdoor else None,
        free=True if args.free else None,
        min_age=args.min_age,
        max_age=args.max_age,
        max_distance=args.max_distance,
        category_id=args.category,
        start_date=getattr(args, "start_date", None),
        end_date=getattr(args, "end_date", None),
    )


def _print_listing(result: DiscoverResult) -> None:
    print(f"Generated at: {result.generated_at.isoformat()}")
    active = ", ".join(result.meta.get("active_filters") or []) or "none"
    print(f"{len(result.results)} of {result.total_candidates} {result.kind}s (filters: {active}; sort: {result.sort})")
    for i, item in enumerate(result.results, start=1):
        where = item.city or "-"
        dist = f"  {format_distance(item.distance)}" if item.distance is not None else ""
        ages = f"{item.age_min if item.age_min is not None else '?'}-{item.age_max if item.age_max is not None else '?'}y"
        price = "free" if item.is_free else "paid"
        line = f"{i:>2}. {item.name} ({where}){dist}  {ages}  {price}"
        if isinstance(item, Event):
            line += f"  starts {item.starts_at.isoformat()}"
        print(line)


def _cmd_list(kind: ActivityKind, args: argparse.Namespace) -> int:
    settings = get_settings()
    result = discover(
        kind,
        _criteria_from_args(args),
        lat=args.lat,
        lng=args.lng,
        sort=args.sort,
        limit=args.limit,
        query=args.query,
        settings=settings,
    )
    if args.json:
        print(json.dumps(result.model_dump(mode="json", by_alias=True), ensure_ascii=False, indent=2))
        return 0
    _print_listing(result)
    return 0


def _cmd_venues(args: argparse.Namespace) -> int:
    """Handle the `venues` subcommand."""
    return _cmd_list("venue", args)


def _cmd_events(args: argparse.Namespace) -> int:
    """Handle the `events` subcommand."""
    return _cmd_list("event", args)


def _cmd_featured(args: argparse.Namespace) -> int:
    kind: ActivityKind = "venue" if args.kind == "venues" else "event"
    results = featured(kind, lat=args.lat, lng=args.lng, limit=args.limit, settings=get_settings())
    if args.json:
        payload = {"kind": kind, "results": [r.model_dump(mode="json") for r in results]}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
        return 0
    for i, item in enumerate(results, start=1):
        dist = f"  {format_distance(item.distance)}" if item.distance is not None else ""
        print(f"{i:>2}. {item.name} ({item.city or '-'}){dist}")
    return 0


def _cmd_distance(args: argparse.Namespace) -> int:
    km = distance_km(args.lat1, args.lon1, args.lat2, args.lon2)
    if args.json:
        print(json.dumps({"km": km, "display": format_distance(km)}))
    else:
        print(format_distance(km))
    return 0


def _cmd_cities(args: argparse.Namespace) -> int:
    source = build_source(get_settings())
    try:
        counts = city_counts(source)
    finally:
        source.close()
    if args.json:
        print(json.dumps({"cities": counts}, ensure_ascii=False, indent=2))
        return 0
    for row in counts:
        print(f"{row['count']:>4}  {row['city']}")
    return 0


def _coordinate(limit: float):
    """argparse `type=` factory for a decimal-degree value within +/-`limit`."""

    def parse(text: str) -> float:
        try:
            value = float(text)
        except ValueError:
            raise argparse.ArgumentTypeError(f"not a number: {text!r}") from None
        if not -limit <= value <= limit:
            raise argparse.ArgumentTypeError(f"{value} is outside [-{limit:g}, {limit:g}]")
        return value

    return parse


_latitude = _coordinate(90)
_longitude = _coordinate(180)


def _add_filter_args(p: argparse.ArgumentParser) -> None:
    p.add_argument("--lat", type=_latitude, default=None, help="Your latitude (enables distance)")
    p.add_argument("--lng", type=_longitude, default=None, help="Your longitude (enables distance)")
    p.add_argument("--indoor", action="store_true")
    p.add_argument("--outdoor", action="store_true")
    p.add_argument("--free", action="store_true", help="Only free entries")
    p.add_argument("--min-age", dest="min_age", default=None, help="Youngest child's age ('0' = no bound)")
    p.add_argument("--max-age", dest="max_age", default=None, help="Oldest child's age ('12' = no bound)")
    p.add_argument("--max-distance", dest="max_distance", default=None, help="Radius in km (needs --lat/--lng)")
    p.add_argument("--category", default=None, help="Category id")
    p.add_argument("--query", "-q", default=None, help="Free-text match on name/city")
    p.add_argument("--sort", choices=["distance", "default"], default=None)
    p.add_argument("--limit", type=int, default=None)
    p.add_argument("--json", action="store_true", help="Output machine-readable JSON")


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the FamilySpots CLI."""
    parser = argparse.ArgumentParser(prog="familyspots")
    sub = parser.add_subparsers(dest="command", required=True)

    ven = sub.add_parser("venues", help="List venues matching filters, nearest first.")
    _add_filter_args(ven)
    ven.set_defaults(func=_cmd_venues)

    evt = sub.add_parser("events", help="List events matching filters, nearest first.")
    _add_filter_args(evt)
    evt.add_argument("--start-date", dest="start_date", default=None, help="ISO date/datetime (inclusive)")
    evt.add_argument("--end-date", dest="end_date", default=None, help="ISO date/datetime (inclusive)")
    evt.set_defaults(func=_cmd_events)

    feat = sub.add_parser("featured", help="Featured venues or upcoming featured events.")
    feat.add_argument("kind", choices=["venues", "events"])
    feat.add_argument("--lat", type=_latitude, default=None)
    feat.add_argument("--lng", type=_longitude, default=None)
    feat.add_argument("--limit", type=int, default=None)
    feat.add_argument("--json", action="store_true")
    feat.set_defaults(func=_cmd_featured)

    dist = sub.add_parser("distance", help="Great-circle distance between two coordinates.")
    dist.add_argument("lat1", type=_latitude)
    dist.add_argument("lon1", type=_longitude)
    dist.add_argument("lat2", type=_latitude)
    dist.add_argument("lon2", type=_longitude)
    dist.add_argument("--json", action="store_true")
    dist.set_defaults(func=_cmd_distance)

    cities = sub.add_parser("cities", help="Venue + event counts per city.")
    cities.add_argument("--json", action="store_true")
    cities.set_defaults(func=_cmd_cities)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m familyspots.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
