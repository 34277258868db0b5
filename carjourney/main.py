import argparse
import logging
import webbrowser
from dataclasses import replace
from pathlib import Path

from .MapView import build_map
from .SimulationState import SimulationState
from .config import load_settings, parse_latlon
from .console import setup_logging
from .local_osrm import DirectionsError, fetch_route
from .realtime_runner import run

logger = logging.getLogger(__name__)


def write_static_map(settings, path: Path, open_browser: bool = True) -> bool:
    """Fetch the route once and save it as a folium page, like the old demo script."""
    try:
        route = fetch_route(settings.origin, settings.dest,
                            base_url=settings.osrm_base_url,
                            timeout=settings.osrm_timeout_s)
    except DirectionsError as e:
        logger.warning("no route: %s", e)
        return False

    state = SimulationState().with_route(route)
    build_map(state, center=settings.origin).save(str(path))
    logger.info("map written to %s", path)
    if open_browser:
        webbrowser.open(path.resolve().as_uri())
    return True


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="carjourney",
        description="Animate a car along a driving route on a live map.",
    )
    p.add_argument("--env-file", default=None, help="dotenv file to load (default: .env lookup)")
    p.add_argument("--host", default=None)
    p.add_argument("--port", type=int, default=None)
    p.add_argument("--origin", type=parse_latlon, default=None, metavar="LAT,LON")
    p.add_argument("--dest", type=parse_latlon, default=None, metavar="LAT,LON")
    p.add_argument("--no-browser", action="store_true", help="don't open the map page")
    p.add_argument("--static-map", type=Path, default=None, metavar="PATH",
                   help="fetch the route once, write a static HTML map and exit")
    p.add_argument("-v", "--verbose", action="store_true")
    return p


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    settings = load_settings(args.env_file)
    overrides = {k: v for k, v in {
        "host": args.host,
        "port": args.port,
        "origin": args.origin,
        "dest": args.dest,
    }.items() if v is not None}
    settings = replace(settings, **overrides)

    if args.static_map is not None:
        return 0 if write_static_map(settings, args.static_map, not args.no_browser) else 1

    run(settings, open_browser=not args.no_browser)
    return 0
