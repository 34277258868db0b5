from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional

from .Route import Route, LatLon
from .SimulationState import SimulationState, advance, heading
from .local_osrm import DirectionsError

logger = logging.getLogger(__name__)

RouteFetcher = Callable[[LatLon, LatLon], Awaitable[Route]]
StateListener = Callable[["SimulationState"], None]


@dataclass(frozen=True)
class JourneyResult:
    route: Optional[Route] = None
    error: Optional[DirectionsError] = None

    @property
    def ok(self) -> bool:
        return self.route is not None


@dataclass
class JourneySimulation:
    """
    Owns the SimulationState. Every write goes through this object and runs on the
    event loop thread: ticks, location updates and route-fetch completions.
    """
    origin: LatLon
    dest: LatLon
    fetch: RouteFetcher
    journey_id: str = field(default_factory=lambda: str(uuid.uuid4()))
    state: SimulationState = field(default_factory=SimulationState)
    listeners: List[StateListener] = field(default_factory=list)

    def subscribe(self, listener: StateListener) -> None:
        self.listeners.append(listener)

    def _set(self, new_state: SimulationState) -> None:
        if new_state is self.state:
            return
        self.state = new_state
        for listener in self.listeners:
            listener(new_state)

    def tick(self) -> SimulationState:
        self._set(advance(self.state))
        return self.state

    def on_location(self, coordinate: LatLon) -> SimulationState:
        # device position first, then one step along the route
        self._set(self.state.with_location(coordinate))
        return self.tick()

    def install_route(self, route: Route) -> None:
        self._set(self.state.with_route(route))

    async def start_journey(self) -> JourneyResult:
        # no cancellation: if two fetches overlap, the last one to finish wins
        try:
            route = await self.fetch(self.origin, self.dest)
        except DirectionsError as e:
            return JourneyResult(error=e)

        self.install_route(route)
        logger.info("journey %s: route with %d points installed", self.journey_id[:8], len(route))
        return JourneyResult(route=route)

    def snapshot(self) -> Dict[str, Any]:
        s = self.state
        return {
            "type": "position",
            "journey_id": self.journey_id,
            "idx": s.idx,
            "current": {"lat": s.current[0], "lon": s.current[1]} if s.current else None,
            "heading": heading(s),
            "done": s.done,
        }

    def route_frame(self) -> Optional[Dict[str, Any]]:
        route = self.state.route
        if route is None:
            return None
        sw, ne = route.bounds()
        return {
            "type": "route",
            "journey_id": self.journey_id,
            "geometry": [list(p) for p in route.geometry_latlon],
            "bounds": [list(sw), list(ne)],
            "dist_m": route.dist,
            "duration_s": route.duration,
        }
