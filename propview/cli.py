"""propview command line: locator, path, sun, aurora, overlay and spot analysis."""

import argparse
import json
import sys
from datetime import datetime, timezone
from pathlib import Path

from .aurora import activity_label, oval_boundary
from .config import load_config
from .geo_utils import bearing_to_direction, calc_bearing, calc_distance_km, split_at_antimeridian
from .grid_overlay import visible_squares
from .locator import PRECISIONS, InvalidLocator, decode, encode, locator_bounds
from .logging_utils import configure_logging
from .models import Coordinate, to_plain
from .pskreporter import parse_reception_reports
from .solar import terminator_curve
from .worker import AggregationWorker


def _parse_time(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def cmd_grid(args, cfg) -> int:
    locator = args.locator or cfg["grid"]
    if not locator:
        sys.exit("No locator given and no grid in config")
    try:
        center = decode(locator)
        bounds = locator_bounds(locator)
    except InvalidLocator as e:
        sys.exit(f"Invalid locator: {e}")
    print(f"{locator.upper()}: {center.latitude:.4f}, {center.longitude:.4f}")
    print(f"  W {bounds.west:.4f}  S {bounds.south:.4f}  E {bounds.east:.4f}  N {bounds.north:.4f}")
    return 0


def cmd_locate(args, cfg) -> int:
    coord = Coordinate(args.lat, args.lon)
    if not coord.is_valid():
        sys.exit(f"Coordinate out of range: {args.lat}, {args.lon}")
    print(encode(coord, args.precision))
    return 0


def cmd_path(args, cfg) -> int:
    try:
        start = decode(args.start)
        end = decode(args.end)
    except InvalidLocator as e:
        sys.exit(f"Invalid locator: {e}")

    distance = calc_distance_km(start, end)
    bearing = calc_bearing(start, end)
    segments = split_at_antimeridian(start, end)

    print(f"{args.start.upper()} -> {args.end.upper()}")
    print(f"  Distance: {distance:.0f} km")
    print(f"  Bearing:  {bearing:.1f}° ({bearing_to_direction(bearing)})")
    print(f"  Segments: {len(segments)} ({', '.join(str(len(s)) for s in segments)} points)")
    return 0


def cmd_sun(args, cfg) -> int:
    instant = _parse_time(args.time)
    curve = terminator_curve(instant, args.step or cfg["terminator_step"])
    sub = curve.subsolar
    print(f"Time:        {instant.isoformat()}")
    print(f"Subsolar:    {sub.latitude:.2f}, {sub.longitude:.2f}")
    print(f"Declination: {curve.declination_deg:.2f}°")
    print(f"Night side:  {curve.night_side}")
    print(f"Terminator:  {len(curve.points)} points")
    return 0


def cmd_aurora(args, cfg) -> int:
    try:
        oval = oval_boundary(args.k_index)
    except ValueError as e:
        sys.exit(f"Invalid K-index: {e}")
    print(f"K={oval.k_index:g} ({activity_label(oval.k_index)}), radius {oval.radius_deg:g}°")
    print(f"  North: {len(oval.north)} points")
    print(f"  South: {len(oval.south)} points")
    return 0


def cmd_overlay(args, cfg) -> int:
    squares = visible_squares(
        args.west, args.east, args.zoom,
        viewport_south_lat=args.south,
        viewport_north_lat=args.north,
        field_zoom_max=cfg["field_zoom_max"],
    )
    level = squares[0].level if squares else "-"
    print(f"{len(squares)} {level} cells")
    for square in squares:
        print(f"  {square.locator:6} W {square.bounds.west:g} S {square.bounds.south:g}")
    return 0


def cmd_analyze(args, cfg) -> int:
    try:
        spots = json.loads(Path(args.spots).read_text())
    except (OSError, ValueError) as e:
        sys.exit(f"Could not read spots from {args.spots}: {e}")
    if isinstance(spots, dict):
        spots = spots.get("spots", [])

    with AggregationWorker(timeout=cfg["worker_timeout"], max_workers=cfg["max_workers"]) as worker:
        result = worker.process_all(spots)

    print(json.dumps(result, indent=2))
    return 0


def cmd_psk(args, cfg) -> int:
    try:
        xml_data = Path(args.xml).read_text()
    except OSError as e:
        sys.exit(f"Could not read {args.xml}: {e}")
    spots = parse_reception_reports(xml_data)
    print(json.dumps(to_plain(spots), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="propview", description="HF propagation map geometry and spot analysis")
    p.add_argument("--config", type=Path, help="Config file (default: search local/ then ~/.config/propview)")
    p.add_argument("--log-level", help="Override log level (DEBUG, INFO, WARNING...)")
    sub = p.add_subparsers(dest="command", required=True)

    s = sub.add_parser("grid", help="Decode a Maidenhead locator")
    s.add_argument("locator", nargs="?", help="Locator (default: grid from config)")
    s.set_defaults(func=cmd_grid)

    s = sub.add_parser("locate", help="Encode a coordinate as a locator")
    s.add_argument("lat", type=float)
    s.add_argument("lon", type=float)
    s.add_argument("--precision", choices=PRECISIONS.keys(), default="subsquare")
    s.set_defaults(func=cmd_locate)

    s = sub.add_parser("path", help="Great-circle path between two locators")
    s.add_argument("start")
    s.add_argument("end")
    s.set_defaults(func=cmd_path)

    s = sub.add_parser("sun", help="Subsolar point and terminator")
    s.add_argument("--time", help="UTC time, ISO-8601 (default: now)")
    s.add_argument("--step", type=float, help="Terminator sampling step in degrees")
    s.set_defaults(func=cmd_sun)

    s = sub.add_parser("aurora", help="Auroral oval for a K-index")
    s.add_argument("k_index", type=float)
    s.set_defaults(func=cmd_aurora)

    s = sub.add_parser("overlay", help="Grid cells visible in a viewport")
    s.add_argument("west", type=float)
    s.add_argument("east", type=float)
    s.add_argument("zoom", type=float)
    s.add_argument("--south", type=float, default=-90.0)
    s.add_argument("--north", type=float, default=90.0)
    s.set_defaults(func=cmd_overlay)

    s = sub.add_parser("analyze", help="Aggregate a JSON spot file")
    s.add_argument("spots", type=Path)
    s.set_defaults(func=cmd_analyze)

    s = sub.add_parser("psk", help="Convert a PSKReporter XML response to JSON spots")
    s.add_argument("xml", type=Path)
    s.set_defaults(func=cmd_psk)

    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    cfg = load_config(args.config)
    configure_logging(args.log_level or cfg["log_level"])
    return args.func(args, cfg)


if __name__ == "__main__":
    sys.exit(main())
