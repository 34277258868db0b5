from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Callable, List, Optional, Protocol, TYPE_CHECKING

from .Route import LatLon

if TYPE_CHECKING:
    from .JourneySimulation import JourneySimulation

logger = logging.getLogger(__name__)


class Authorization(Enum):
    NOT_DETERMINED = auto()
    RESTRICTED = auto()
    DENIED = auto()
    AUTHORIZED_WHEN_IN_USE = auto()
    AUTHORIZED_ALWAYS = auto()


class LocationErrorKind(Enum):
    DENIED = auto()
    UNAVAILABLE = auto()
    TIMEOUT = auto()
    UNKNOWN = auto()


@dataclass(frozen=True)
class LocationUpdate:
    coordinate: LatLon
    timestamp: float = field(default_factory=time.time)


@dataclass(frozen=True)
class LocationError:
    kind: LocationErrorKind
    description: str = ""


UpdateHandler = Callable[[LocationUpdate], None]
ErrorHandler = Callable[[LocationError], None]
AuthHandler = Callable[[Authorization], None]


class LocationService(Protocol):
    def authorization_status(self) -> Authorization: ...
    def request_when_in_use_authorization(self) -> None: ...
    def request_always_authorization(self) -> None: ...
    def start_updating_location(self) -> None: ...
    def subscribe(self, on_update: UpdateHandler, on_error: ErrorHandler,
                  on_authorization: Optional[AuthHandler] = None) -> None: ...


# W3C GeolocationPositionError codes
BROWSER_ERROR_CODES = {
    1: LocationErrorKind.DENIED,
    2: LocationErrorKind.UNAVAILABLE,
    3: LocationErrorKind.TIMEOUT,
}

BROWSER_PERMISSION_STATES = {
    "prompt": Authorization.NOT_DETERMINED,
    "denied": Authorization.DENIED,
    "granted": Authorization.AUTHORIZED_WHEN_IN_USE,
}


class BrowserLocationService:
    """
    Location service fed by the map page (navigator.geolocation -> POST /location).
    Positions are only delivered after start_updating_location().
    """

    def __init__(self, status: Authorization = Authorization.NOT_DETERMINED):
        self.status = status
        self.updating = False
        self.authorization_requested = False
        self._on_update: List[UpdateHandler] = []
        self._on_error: List[ErrorHandler] = []
        self._on_auth: List[AuthHandler] = []

    def authorization_status(self) -> Authorization:
        return self.status

    def request_when_in_use_authorization(self) -> None:
        # the page asks the user itself; we only remember that we want it
        self.authorization_requested = True

    def request_always_authorization(self) -> None:
        self.authorization_requested = True

    def start_updating_location(self) -> None:
        self.updating = True

    def subscribe(self, on_update: UpdateHandler, on_error: ErrorHandler,
                  on_authorization: Optional[AuthHandler] = None) -> None:
        self._on_update.append(on_update)
        self._on_error.append(on_error)
        if on_authorization is not None:
            self._on_auth.append(on_authorization)

    # --- called from the HTTP layer ---

    def report_permission(self, state: str) -> Authorization:
        new_status = BROWSER_PERMISSION_STATES.get(state)
        if new_status is None:
            raise ValueError(f"unknown permission state: {state!r}")
        changed = new_status != self.status
        self.status = new_status
        if changed:
            for h in self._on_auth:
                h(new_status)
        return new_status

    def report_position(self, lat: float, lon: float, timestamp: Optional[float] = None) -> bool:
        if not self.updating:
            return False
        update = LocationUpdate((lat, lon), timestamp if timestamp is not None else time.time())
        for h in self._on_update:
            h(update)
        return True

    def report_error(self, code: int, message: str = "") -> LocationError:
        err = LocationError(BROWSER_ERROR_CODES.get(code, LocationErrorKind.UNKNOWN), message)
        for h in self._on_error:
            h(err)
        return err


class LocationBridge:
    """Connects a LocationService to the journey simulation. Pure pass-through."""

    def __init__(self, service: LocationService, simulation: JourneySimulation):
        self.service = service
        self.simulation = simulation
        self.last_error: Optional[LocationError] = None
        service.subscribe(self.handle_update, self.handle_error, self.handle_authorization)

    def activate(self) -> Authorization:
        status = self.service.authorization_status()
        if status in (Authorization.NOT_DETERMINED, Authorization.RESTRICTED, Authorization.DENIED):
            self.service.request_when_in_use_authorization()
            self.service.request_always_authorization()
        elif status in (Authorization.AUTHORIZED_WHEN_IN_USE, Authorization.AUTHORIZED_ALWAYS):
            self.service.start_updating_location()
        return status

    def handle_authorization(self, status: Authorization) -> None:
        logger.debug("location authorization now %s", status.name)
        self.activate()

    def handle_update(self, update: LocationUpdate) -> None:
        self.simulation.on_location(update.coordinate)

    def handle_error(self, error: LocationError) -> None:
        self.last_error = error
        if error.kind is LocationErrorKind.DENIED:
            logger.warning("Location services denied")
        else:
            logger.error("Location manager error: %s", error.description or error.kind.name)
