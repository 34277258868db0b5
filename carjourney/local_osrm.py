import asyncio
import logging
from functools import partial
from typing import Any, Dict, List

import polyline
import requests

from .Route import Route, LatLon
from .geo import cum_array

logger = logging.getLogger(__name__)

OSRM_PUBLIC = "https://router.project-osrm.org"


class DirectionsError(Exception):
    """Route request failed or OSRM returned no usable route."""


def route_url(base_url: str, start: LatLon, dest: LatLon, profile: str = "driving") -> str:
    a_lat, a_lon = start
    b_lat, b_lon = dest

    # OSRM wants lon,lat
    coords = f"{a_lon},{a_lat};{b_lon},{b_lat}"
    return (
        f"{base_url.rstrip('/')}/route/v1/{profile}/{coords}"
        "?overview=full&geometries=polyline&annotations=true&steps=false"
    )


def parse_route(data: Dict[str, Any], start: LatLon, dest: LatLon, profile: str = "driving") -> Route:
    if data.get("code") != "Ok":
        raise DirectionsError(f"OSRM error: {data.get('message', data.get('code', 'unknown'))}")

    routes = data.get("routes") or []
    if not routes:
        raise DirectionsError("OSRM returned no routes")

    # first candidate only
    route = routes[0]
    geometry_latlon: List[LatLon] = [tuple(p) for p in polyline.decode(route["geometry"])]
    if not geometry_latlon:
        raise DirectionsError("OSRM route has empty geometry")

    seg_dist: List[float] = []
    seg_time: List[float] = []
    for leg in route.get("legs", []):
        ann = leg.get("annotation") or {}
        seg_dist.extend(ann.get("distance", []))
        seg_time.extend(ann.get("duration", []))

    if len(seg_dist) != len(geometry_latlon) - 1 or len(seg_time) != len(seg_dist):
        logger.debug("annotation length mismatch (%d segments, %d points), dropping",
                     len(seg_dist), len(geometry_latlon))
        seg_dist, seg_time = [], []

    return Route(
        geometry_latlon=geometry_latlon,
        start=start,
        dest=dest,
        dist=float(route.get("distance", 0.0)),
        duration=float(route.get("duration", 0.0)),
        profile=profile,
        seg_dist_m=seg_dist,
        cum_dist_m=cum_array(seg_dist) if seg_dist else [],
        duration_list=seg_time,
        cum_time_s=cum_array(seg_time) if seg_time else [],
    )


def fetch_route(start: LatLon,
                dest: LatLon,
                base_url: str = OSRM_PUBLIC,
                profile: str = "driving",
                timeout: float = 10.0) -> Route:
    """
    Single OSRM /route call, no retry.
    Raises DirectionsError for transport errors, HTTP errors, non-Ok codes and empty results.
    """
    url = route_url(base_url, start, dest, profile)
    logger.debug("GET %s", url)

    try:
        r = requests.get(url, timeout=timeout)
        r.raise_for_status()
        data = r.json()
    except requests.RequestException as e:
        raise DirectionsError(f"route request failed: {e}") from e
    except ValueError as e:
        raise DirectionsError(f"invalid JSON from OSRM: {e}") from e

    route = parse_route(data, start, dest, profile)
    logger.info("route %s -> %s: %d points, %.0f m, %.0f s",
                start, dest, len(route), route.dist, route.duration)
    return route


async def fetch_route_async(start: LatLon, dest: LatLon, **kwargs) -> Route:
    # blocking requests call goes to the default executor, the result comes back on the loop thread
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, partial(fetch_route, start, dest, **kwargs))
