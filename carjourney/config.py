import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv

from .Route import LatLon

# Example .env:
# OSRM_BASE_URL=http://localhost:5000
# JOURNEY_ORIGIN=23.0710,72.5181
# JOURNEY_DEST=23.2599,77.4126

DEFAULT_ORIGIN: LatLon = (23.0710, 72.5181)  # Ahmedabad
DEFAULT_DEST: LatLon = (23.2599, 77.4126)    # Bhopal


@dataclass(frozen=True)
class Settings:
    osrm_base_url: str = "https://router.project-osrm.org"
    osrm_timeout_s: float = 10.0
    origin: LatLon = DEFAULT_ORIGIN
    dest: LatLon = DEFAULT_DEST
    tick_interval_s: float = 1.0
    host: str = "127.0.0.1"
    port: int = 8000


def parse_latlon(value: str) -> LatLon:
    parts = [p.strip() for p in value.split(",")]
    if len(parts) != 2:
        raise ValueError(f"expected 'lat,lon', got {value!r}")
    lat, lon = float(parts[0]), float(parts[1])
    if not -90.0 <= lat <= 90.0 or not -180.0 <= lon <= 180.0:
        raise ValueError(f"coordinate out of range: {value!r}")
    return lat, lon


def _positive(name: str, value: float) -> float:
    if value <= 0:
        raise ValueError(f"{name} must be > 0, got {value}")
    return value


def load_settings(env_file: Optional[str] = None) -> Settings:
    load_dotenv(env_file)
    d = Settings()

    origin = os.getenv("JOURNEY_ORIGIN")
    dest = os.getenv("JOURNEY_DEST")
    return Settings(
        osrm_base_url=os.getenv("OSRM_BASE_URL", d.osrm_base_url),
        osrm_timeout_s=_positive("OSRM_TIMEOUT_S", float(os.getenv("OSRM_TIMEOUT_S", d.osrm_timeout_s))),
        origin=parse_latlon(origin) if origin else d.origin,
        dest=parse_latlon(dest) if dest else d.dest,
        tick_interval_s=_positive("TICK_INTERVAL_S", float(os.getenv("TICK_INTERVAL_S", d.tick_interval_s))),
        host=os.getenv("HOST", d.host),
        port=int(os.getenv("PORT", d.port)),
    )
