from dataclasses import dataclass, field
from typing import List, Tuple

LatLon = Tuple[float, float]  # (lat, lon)


@dataclass(frozen=True)
class Route:
    """
    A driving route as returned by the directions service.
    geometry_latlon: polyline points for map + indexing
    seg_dist_m / duration_list: per segment i -> i+1 (empty if OSRM sent no annotations)
    cum_dist_m / cum_time_s: cumulative from start to geometry point i
    """
    geometry_latlon: List[LatLon]
    start: LatLon
    dest: LatLon
    dist: float = 0.0
    duration: float = 0.0
    profile: str = "driving"
    seg_dist_m: List[float] = field(default_factory=list)
    cum_dist_m: List[float] = field(default_factory=list)
    duration_list: List[float] = field(default_factory=list)
    cum_time_s: List[float] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.geometry_latlon)

    def __getitem__(self, i: int) -> LatLon:
        return self.geometry_latlon[i]

    def bounds(self) -> Tuple[LatLon, LatLon]:
        """South-west and north-east corners, for framing the map."""
        if not self.geometry_latlon:
            raise ValueError("geometry_latlon is empty")
        lats = [p[0] for p in self.geometry_latlon]
        lons = [p[1] for p in self.geometry_latlon]
        return (min(lats), min(lons)), (max(lats), max(lons))
