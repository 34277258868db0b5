import folium

from carjourney.MapView import Marker, build_live_page, build_map, car_marker
from carjourney.Route import Route
from carjourney.SimulationState import SimulationState, advance

ROUTE = Route(
    geometry_latlon=[(0.0, 0.0), (0.0, 0.01), (0.01, 0.01)],
    start=(0.0, 0.0),
    dest=(0.01, 0.01),
)


def test_no_marker_without_position():
    assert car_marker(SimulationState()) is None


def test_marker_follows_heading():
    s = SimulationState().with_route(ROUTE)
    m = car_marker(s)
    assert isinstance(m, Marker)
    assert m.location == (0.0, 0.0)
    assert round(m.heading) == 90

    m = car_marker(advance(s))
    assert round(m.heading) == 0

    # end of route: no next point, no heading
    assert car_marker(advance(advance(s))).heading is None


def test_build_map_draws_one_route_and_one_car():
    s = SimulationState().with_route(ROUTE)
    m = build_map(s, center=(0.0, 0.0))
    assert isinstance(m, folium.Map)

    html = m.get_root().render()
    assert html.count("L.polyline(") == 1
    assert "rotate(90.0deg)" in html


def test_build_map_empty_state():
    html = build_map(SimulationState(), center=(23.07, 72.51)).get_root().render()
    assert "L.polyline(" not in html


def test_live_page_has_button_and_socket():
    html = build_live_page((23.07, 72.51))
    assert "Start Journey" in html
    assert '"/ws"' in html
    assert "/start_journey" in html
    assert "/location" in html


def test_live_page_grants_before_first_fix():
    html = build_live_page((23.07, 72.51))
    grant = html.index('postLocation({permission: "granted"}).then(')
    fix = html.index("lat: pos.coords.latitude")
    assert grant < fix
