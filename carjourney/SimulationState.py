from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Optional

from .Route import Route, LatLon
from .geo import bearing


@dataclass(frozen=True)
class SimulationState:
    route: Optional[Route] = None
    current: Optional[LatLon] = None
    idx: int = 0

    @property
    def done(self) -> bool:
        return self.route is not None and self.idx + 1 >= len(self.route)

    def with_route(self, route: Route) -> SimulationState:
        # a new route is a fresh journey: back to the first point
        return SimulationState(
            route=route,
            current=route[0] if len(route) else None,
            idx=0,
        )

    def with_location(self, coordinate: LatLon) -> SimulationState:
        return replace(self, current=coordinate)


def advance(state: SimulationState) -> SimulationState:
    """One tick: step to the next route point, or no-op at the end / without a route."""
    if state.route is None:
        return state

    next_idx = state.idx + 1
    if next_idx >= len(state.route):
        return state

    return replace(state, idx=next_idx, current=state.route[next_idx])


def heading(state: SimulationState) -> Optional[float]:
    """Bearing from the current coordinate toward the next route point, if any."""
    if state.route is None or state.current is None:
        return None

    next_idx = state.idx + 1
    if next_idx >= len(state.route):
        return None

    return bearing(state.current, state.route[next_idx])
