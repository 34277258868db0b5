from typing import NamedTuple, Optional

import folium
from branca.element import MacroElement
from jinja2 import Template

from .Route import LatLon
from .SimulationState import SimulationState, heading

# top-down car, nose pointing north so a CSS rotation by the bearing faces it along the route
CAR_SVG = (
    '<svg xmlns="http://www.w3.org/2000/svg" width="28" height="28" viewBox="0 0 28 28">'
    '<rect x="8" y="2" width="12" height="24" rx="4" fill="#d62728" stroke="#222"/>'
    '<rect x="10" y="6" width="8" height="5" rx="1" fill="#9ecae1"/>'
    '<rect x="10" y="18" width="8" height="4" rx="1" fill="#9ecae1"/>'
    '</svg>'
)

# span of the region shown around the car, degrees
FOLLOW_SPAN_DEG = 0.01


class Marker(NamedTuple):
    location: LatLon
    heading: Optional[float]


def car_marker(state: SimulationState) -> Optional[Marker]:
    if state.current is None:
        return None
    return Marker(state.current, heading(state))


def car_icon(deg: Optional[float]) -> folium.DivIcon:
    rotation = deg if deg is not None else 0.0
    return folium.DivIcon(
        html=f'<div style="transform: rotate({rotation:.1f}deg); width: 28px; height: 28px;">{CAR_SVG}</div>',
        icon_size=(28, 28),
        icon_anchor=(14, 14),
    )


def build_map(state: SimulationState, center: LatLon, zoom_start: int = 12) -> folium.Map:
    """One route polyline, one car marker, framed on the car (or the route when there is no car yet)."""
    m = folium.Map(location=center, zoom_start=zoom_start)

    route = state.route
    if route is not None:
        folium.PolyLine(route.geometry_latlon, color="blue", weight=5, opacity=0.8,
                        tooltip="Route").add_to(m)
        folium.Marker(route.start, tooltip="Start", icon=folium.Icon(color="green")).add_to(m)
        folium.Marker(route.dest, tooltip="End", icon=folium.Icon(color="red")).add_to(m)

    marker = car_marker(state)
    if marker is not None:
        tip = f"heading {marker.heading:.0f}°" if marker.heading is not None else "arrived"
        folium.Marker(marker.location, tooltip=tip, icon=car_icon(marker.heading)).add_to(m)
        lat, lon = marker.location
        half = FOLLOW_SPAN_DEG / 2
        m.fit_bounds([(lat - half, lon - half), (lat + half, lon + half)])
    elif route is not None:
        m.fit_bounds(list(route.bounds()))

    return m


class LiveJourney(MacroElement):
    """Start Journey button plus the websocket client that redraws route and car."""

    _template = Template("""
        {% macro html(this, kwargs) %}
        <button id="start-journey"
                style="position: fixed; bottom: 24px; left: 50%; transform: translateX(-50%);
                       z-index: 1000; padding: 10px 20px; font-size: 16px;">
            Start Journey
        </button>
        {% endmacro %}

        {% macro script(this, kwargs) %}
        (function () {
            var map = {{ this._parent.get_name() }};
            var carSvg = {{ this.car_svg|tojson }};
            var routeLine = null;
            var car = null;

            function carIcon(deg) {
                return L.divIcon({
                    className: "",
                    html: '<div style="transform: rotate(' + deg + 'deg); width: 28px; height: 28px;">' + carSvg + '</div>',
                    iconSize: [28, 28],
                    iconAnchor: [14, 14]
                });
            }

            function onRoute(frame) {
                if (routeLine) { map.removeLayer(routeLine); }
                routeLine = L.polyline(frame.geometry, {color: "blue", weight: 5, opacity: 0.8}).addTo(map);
                map.fitBounds(frame.bounds);
            }

            function onPosition(frame) {
                // marker is replaced, never moved
                if (car) { map.removeLayer(car); car = null; }
                if (!frame.current) { return; }
                var at = [frame.current.lat, frame.current.lon];
                var deg = frame.heading === null ? 0 : frame.heading;
                car = L.marker(at, {icon: carIcon(deg)}).addTo(map);
                map.setView(at, {{ this.follow_zoom }});
            }

            function postLocation(body) {
                return fetch("/location", {
                    method: "POST",
                    headers: {"Content-Type": "application/json"},
                    body: JSON.stringify(body)
                });
            }

            var scheme = window.location.protocol === "https:" ? "wss://" : "ws://";
            var ws = new WebSocket(scheme + window.location.host + "/ws");
            ws.onmessage = function (msg) {
                var frame = JSON.parse(msg.data);
                if (frame.type === "route") { onRoute(frame); }
                else if (frame.type === "position") { onPosition(frame); }
            };

            document.getElementById("start-journey").addEventListener("click", function () {
                fetch("/start_journey", {method: "POST"});
            });

            if (navigator.permissions) {
                navigator.permissions.query({name: "geolocation"}).then(function (p) {
                    postLocation({permission: p.state});
                    p.onchange = function () { postLocation({permission: p.state}); };
                });
            }
            if (navigator.geolocation) {
                navigator.geolocation.watchPosition(
                    function (pos) {
                        // a fix means the user granted access; say so first or the fix is dropped
                        postLocation({permission: "granted"}).then(function () {
                            return postLocation({lat: pos.coords.latitude, lon: pos.coords.longitude,
                                                 timestamp: pos.timestamp / 1000.0});
                        });
                    },
                    function (err) { postLocation({error: {code: err.code, message: err.message}}); }
                );
            }
        })();
        {% endmacro %}
    """)

    def __init__(self, follow_zoom: int = 15):
        super().__init__()
        self._name = "LiveJourney"
        self.car_svg = CAR_SVG
        self.follow_zoom = follow_zoom


def build_live_page(center: LatLon, zoom_start: int = 7) -> str:
    # route and car arrive over the websocket
    m = folium.Map(location=center, zoom_start=zoom_start)
    LiveJourney().add_to(m)
    return m.get_root().render()
