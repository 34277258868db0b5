import math
from typing import List

from .Route import LatLon


def cum_array(values: List[float]) -> List[float]:
    cum = [0.0]
    s = 0.0
    for v in values:
        s += v
        cum.append(s)
    return cum


def bearing(a: LatLon, b: LatLon) -> float:
    """
    Initial great-circle bearing from a to b in degrees, 0 = north, clockwise.
    Always in [0, 360). a == b gives 0.0 (atan2(0, 0)).
    """
    lat1, lon1 = map(math.radians, a)
    lat2, lon2 = map(math.radians, b)
    dlon = lon2 - lon1

    y = math.sin(dlon) * math.cos(lat2)
    x = math.cos(lat1) * math.sin(lat2) - math.sin(lat1) * math.cos(lat2) * math.cos(dlon)
    deg = math.degrees(math.atan2(y, x))
    if deg < 0.0:
        deg += 360.0
    # -tiny + 360 rounds to 360.0 in float
    return deg % 360.0
