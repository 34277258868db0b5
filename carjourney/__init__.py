from .Route import Route, LatLon
from .SimulationState import SimulationState, advance, heading
from .geo import bearing
from .local_osrm import DirectionsError, fetch_route, fetch_route_async
from .JourneySimulation import JourneySimulation, JourneyResult

__all__ = [
    "Route",
    "LatLon",
    "SimulationState",
    "advance",
    "heading",
    "bearing",
    "DirectionsError",
    "fetch_route",
    "fetch_route_async",
    "JourneySimulation",
    "JourneyResult",
]
