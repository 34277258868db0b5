import asyncio

import polyline
import pytest
import requests

from carjourney import local_osrm
from carjourney.local_osrm import DirectionsError, fetch_route, fetch_route_async, parse_route, route_url

START = (23.0710, 72.5181)
DEST = (23.2599, 77.4126)
POINTS = [(23.0710, 72.5181), (23.1, 73.0), (23.2, 75.0), (23.2599, 77.4126)]


def osrm_body(points=POINTS, n_routes=1, annotations=True):
    routes = []
    for i in range(n_routes):
        pts = points if i == 0 else list(reversed(points))
        leg = {"distance": 500000.0, "duration": 25000.0}
        if annotations:
            leg["annotation"] = {
                "distance": [1000.0 * (j + 1) for j in range(len(pts) - 1)],
                "duration": [10.0 * (j + 1) for j in range(len(pts) - 1)],
            }
        routes.append({
            "geometry": polyline.encode(pts),
            "distance": 500000.0 + i,
            "duration": 25000.0 + i,
            "legs": [leg],
        })
    return {"code": "Ok", "routes": routes}


class FakeResponse:
    def __init__(self, body, status=200):
        self.body = body
        self.status_code = status

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self):
        return self.body


@pytest.fixture
def fake_get(monkeypatch):
    calls = []

    def install(response=None, exc=None):
        def _get(url, timeout=None):
            calls.append((url, timeout))
            if exc is not None:
                raise exc
            return response
        monkeypatch.setattr(local_osrm.requests, "get", _get)
        return calls

    return install


def test_route_url_uses_lon_lat_order():
    url = route_url("http://localhost:5000/", START, DEST)
    assert url.startswith("http://localhost:5000/route/v1/driving/72.5181,23.071;77.4126,23.2599?")
    assert "overview=full" in url
    assert "annotations=true" in url


def test_parse_picks_first_route():
    route = parse_route(osrm_body(n_routes=3), START, DEST)
    assert route.dist == 500000.0
    assert route.geometry_latlon == POINTS
    assert route.start == START and route.dest == DEST
    assert route.profile == "driving"


def test_parse_keeps_annotations():
    route = parse_route(osrm_body(), START, DEST)
    assert route.seg_dist_m == [1000.0, 2000.0, 3000.0]
    assert route.cum_dist_m == [0.0, 1000.0, 3000.0, 6000.0]
    assert route.cum_time_s[-1] == 60.0
    assert len(route.cum_time_s) == len(route)


def test_parse_drops_mismatched_annotations():
    body = osrm_body()
    body["routes"][0]["legs"][0]["annotation"]["distance"].append(1.0)
    route = parse_route(body, START, DEST)
    assert route.seg_dist_m == []
    assert route.cum_time_s == []
    assert len(route) == len(POINTS)


def test_parse_without_annotations():
    route = parse_route(osrm_body(annotations=False), START, DEST)
    assert route.duration_list == []
    assert len(route) == 4


@pytest.mark.parametrize("body", [
    {"code": "NoRoute", "message": "Impossible route between points"},
    {"code": "Ok", "routes": []},
    {"code": "Ok"},
])
def test_parse_rejects_unusable_responses(body):
    with pytest.raises(DirectionsError):
        parse_route(body, START, DEST)


def test_fetch_route_ok(fake_get):
    calls = fake_get(FakeResponse(osrm_body()))
    route = fetch_route(START, DEST, base_url="http://osrm.test", timeout=3.0)

    assert len(route) == 4
    assert calls[0][0].startswith("http://osrm.test/route/v1/driving/")
    assert calls[0][1] == 3.0


def test_fetch_route_http_error(fake_get):
    calls = fake_get(FakeResponse({}, status=503))
    with pytest.raises(DirectionsError):
        fetch_route(START, DEST, base_url="http://osrm.test")
    # no retry
    assert len(calls) == 1


def test_fetch_route_transport_error(fake_get):
    fake_get(exc=requests.ConnectionError("refused"))
    with pytest.raises(DirectionsError, match="route request failed"):
        fetch_route(START, DEST, base_url="http://osrm.test")


def test_fetch_route_async(fake_get):
    fake_get(FakeResponse(osrm_body()))
    route = asyncio.run(fetch_route_async(START, DEST, base_url="http://osrm.test"))
    assert route.geometry_latlon[0] == START
