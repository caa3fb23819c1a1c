"""
LocationMap CLI entrypoint.

Quick local use without the web UI: measure a distance, geocode a start/destination
pair (optionally from the current position, optionally swapped) and write the map
to an HTML file, reverse-geocode a point, or run the web server.
"""

from __future__ import annotations

import argparse
import asyncio
import json
from pathlib import Path
from typing import Any

from locationmap.config.settings import get_settings
from locationmap.core.cache import FileCache
from locationmap.core.env import resolve_project_path
from locationmap.core.geo import distance_km, format_distance
from locationmap.core.logging import configure_logging
from locationmap.domain.models import Coordinate
from locationmap.ingestion.device_location import StaticDeviceLocation
from locationmap.ingestion.geocoding_client import GeocodingClient
from locationmap.render.map_scene import build_scene, render_html
from locationmap.view.location_view import LocationView


def parse_lat_lon(text: str) -> Coordinate:
    """Parse `LAT,LON` (decimal degrees) into a Coordinate."""
    parts = [p.strip() for p in text.split(",")]
    if len(parts) != 2:
        raise argparse.ArgumentTypeError(f"expected LAT,LON, got '{text}'")
    try:
        return Coordinate(lat=float(parts[0]), lon=float(parts[1]))
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f"invalid coordinate '{text}': {exc}") from exc


def build_geocoder() -> GeocodingClient:
    settings = get_settings()
    cache = FileCache(
        resolve_project_path(settings.cache.dir),
        enabled=settings.cache.enabled,
        default_ttl_seconds=settings.cache.default_ttl_seconds,
    )
    return GeocodingClient(settings, cache)


def _cmd_distance(args: argparse.Namespace) -> int:
    km = distance_km(args.from_, args.to)
    print(format_distance(km))
    return 0


async def _run_route(args: argparse.Namespace) -> tuple[LocationView, bool]:
    settings = get_settings()
    device = StaticDeviceLocation(coordinate=args.here) if args.here else None
    view = LocationView(settings.view, geocoder=build_geocoder(), device=device, alert=_print_alert)

    if args.start is not None:
        view.set_start_label(args.start)
    if args.destination is not None:
        view.set_destination_label(args.destination)

    resolved = True
    if args.start is not None or args.destination is not None:
        outcome = await view.search()
        resolved = outcome.start_resolved or outcome.destination_resolved
    if args.use_current_location:
        await view.use_device_location()
    if args.swap:
        view.swap()
    return view, resolved


def _print_alert(message: str) -> None:
    print(f"! {message}")


def _cmd_route(args: argparse.Namespace) -> int:
    """Handle the `route` subcommand."""
    settings = get_settings()
    view, resolved = asyncio.run(_run_route(args))
    state = view.snapshot()

    if args.html:
        scene = build_scene(state, settings.map)
        Path(args.html).write_text(render_html(scene), encoding="utf-8")

    if args.json:
        payload = {**state.model_dump(mode="json"), "distance_text": state.distance_text}
        print(json.dumps(payload, ensure_ascii=False, indent=2))
    else:
        for role, place in (("start", state.start), ("destination", state.destination)):
            c = place.coordinate
            where = f"{c.lat:.4f},{c.lon:.4f}" if c else "unresolved"
            print(f"{role:>11}: {place.label} ({where})")
        if state.distance_text:
            print(state.distance_text)
        if args.html:
            print(f"map: {args.html}")
    return 0 if resolved else 1


def _cmd_reverse(args: argparse.Namespace) -> int:
    label = asyncio.run(build_geocoder().reverse(args.point))
    if label is None:
        print("No place found.")
        return 1
    print(label)
    return 0


def _cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run("locationmap.api.app:app", host=args.host, port=int(args.port), reload=bool(args.reload))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argparse parser for the LocationMap CLI."""
    parser = argparse.ArgumentParser(prog="locationmap")
    sub = parser.add_subparsers(dest="command", required=True)

    dist = sub.add_parser("distance", help="Great-circle distance between two points.")
    dist.add_argument("--from", dest="from_", required=True, type=parse_lat_lon, metavar="LAT,LON")
    dist.add_argument("--to", required=True, type=parse_lat_lon, metavar="LAT,LON")
    dist.set_defaults(func=_cmd_distance)

    route = sub.add_parser(
        "route",
        help="Geocode start/destination, print the distance and optionally write the map.",
    )
    route.add_argument("--start", type=str, default=None, help="Start place name (default from config)")
    route.add_argument("--destination", type=str, default=None, help="Destination place name")
    route.add_argument(
        "--use-current-location",
        action="store_true",
        help="Replace the start with the position given by --here",
    )
    route.add_argument("--here", type=parse_lat_lon, default=None, metavar="LAT,LON")
    route.add_argument("--swap", action="store_true", help="Swap start and destination at the end")
    route.add_argument("--html", type=str, default=None, help="Write the rendered map to this file")
    route.add_argument("--json", action="store_true", help="Output machine-readable JSON")
    route.set_defaults(func=_cmd_route)

    rev = sub.add_parser("reverse", help="Reverse-geocode a point into '<place>, <pin>'.")
    rev.add_argument("point", type=parse_lat_lon, metavar="LAT,LON")
    rev.set_defaults(func=_cmd_reverse)

    serve = sub.add_parser("serve", help="Run the web UI + API with uvicorn.")
    serve.add_argument("--host", default="127.0.0.1")
    serve.add_argument("--port", type=int, default=8000)
    serve.add_argument("--reload", action="store_true")
    serve.set_defaults(func=_cmd_serve)
    return parser


def main(argv: list[str] | None = None) -> int:
    """CLI entrypoint callable used by `python -m locationmap.cli`."""
    configure_logging()
    parser = build_parser()
    args = parser.parse_args(argv)
    func: Any = getattr(args, "func")
    return int(func(args))


if __name__ == "__main__":
    raise SystemExit(main())
