import asyncio
import logging
import webbrowser
from functools import partial
from typing import Optional

from aiohttp import web, WSMsgType

from .JourneySimulation import JourneySimulation
from .MapView import build_live_page
from .SimulationState import SimulationState
from .config import Settings
from .local_osrm import fetch_route_async
from .location import BrowserLocationService, LocationBridge
from .ws_bus import setup_bus, publish_nowait, send_status, broadcaster

logger = logging.getLogger(__name__)


def create_simulation(settings: Settings) -> JourneySimulation:
    return JourneySimulation(
        origin=settings.origin,
        dest=settings.dest,
        fetch=partial(fetch_route_async,
                      base_url=settings.osrm_base_url,
                      timeout=settings.osrm_timeout_s),
    )


def make_state_publisher(app: web.Application):
    sim: JourneySimulation = app["simulation"]
    last_route = {"route": sim.state.route}

    def on_state(state: SimulationState) -> None:
        # new route first so the page draws the line before the car
        if state.route is not last_route["route"]:
            last_route["route"] = state.route
            frame = sim.route_frame()
            if frame is not None:
                publish_nowait(app, frame)
        publish_nowait(app, sim.snapshot())

    return on_state


async def tick_loop(app: web.Application) -> None:
    sim: JourneySimulation = app["simulation"]
    interval = app["settings"].tick_interval_s
    while True:
        await asyncio.sleep(interval)
        sim.tick()


async def background_tasks(app: web.Application):
    tasks = [
        asyncio.create_task(broadcaster(app)),
        asyncio.create_task(tick_loop(app)),
    ]
    yield
    for t in tasks:
        t.cancel()
    for t in tasks:
        try:
            await t
        except asyncio.CancelledError:
            pass


# -------------------------
# handlers
# -------------------------
async def index(request: web.Request) -> web.Response:
    settings: Settings = request.app["settings"]
    page = build_live_page(settings.origin)
    return web.Response(text=page, content_type="text/html",
                        headers={"Cache-Control": "no-store"})


async def start_journey(request: web.Request) -> web.Response:
    app = request.app
    sim: JourneySimulation = app["simulation"]

    await send_status(app, "requested")
    result = await sim.start_journey()
    if not result.ok:
        logger.warning("journey not started: %s", result.error)
        await send_status(app, "failed", error=str(result.error))
        return web.json_response({"ok": False, "error": str(result.error)}, status=502)

    await send_status(app, "started", points=len(result.route))
    return web.json_response({
        "ok": True,
        "points": len(result.route),
        "dist_m": result.route.dist,
        "duration_s": result.route.duration,
    })


async def location(request: web.Request) -> web.Response:
    service: BrowserLocationService = request.app["location"]

    try:
        payload = await request.json()
        if not isinstance(payload, dict):
            raise ValueError("expected a JSON object")

        if "permission" in payload:
            status = service.report_permission(str(payload["permission"]))
            return web.json_response({"authorization": status.name})

        if "error" in payload:
            err = payload["error"] or {}
            if not isinstance(err, dict):
                raise ValueError("error must be an object")
            e = service.report_error(int(err.get("code", 0)), str(err.get("message", "")))
            return web.json_response({"error_kind": e.kind.name})

        ts = payload.get("timestamp")
        delivered = service.report_position(float(payload["lat"]), float(payload["lon"]),
                                            float(ts) if ts is not None else None)
        return web.json_response({"delivered": delivered})

    except (ValueError, KeyError, TypeError) as e:
        return web.json_response({"error": str(e)}, status=400)


async def state(request: web.Request) -> web.Response:
    return web.json_response(request.app["simulation"].snapshot())


async def ws_handler(request: web.Request) -> web.WebSocketResponse:
    app = request.app
    sim: JourneySimulation = app["simulation"]

    ws = web.WebSocketResponse(heartbeat=30.0)
    await ws.prepare(request)

    try:
        # catch a (re)loaded page up with the current journey before live frames
        frame = sim.route_frame()
        if frame is not None:
            await ws.send_json(frame)
        await ws.send_json(sim.snapshot())

        app["subscribers"].add(ws)
        logger.debug("ws subscriber connected (%d total)", len(app["subscribers"]))

        async for msg in ws:
            if msg.type == WSMsgType.ERROR:
                logger.debug("ws closed with exception %s", ws.exception())
    finally:
        app["subscribers"].discard(ws)

    return ws


def create_app(settings: Settings,
               simulation: Optional[JourneySimulation] = None,
               location_service: Optional[BrowserLocationService] = None,
               open_browser: bool = False) -> web.Application:
    app = web.Application()
    app["settings"] = settings
    app["simulation"] = simulation if simulation is not None else create_simulation(settings)
    app["location"] = location_service if location_service is not None else BrowserLocationService()
    setup_bus(app)

    app["simulation"].subscribe(make_state_publisher(app))
    app["location_bridge"] = LocationBridge(app["location"], app["simulation"])
    app["location_bridge"].activate()

    app.router.add_get("/", index)
    app.router.add_post("/start_journey", start_journey)
    app.router.add_post("/location", location)
    app.router.add_get("/state", state)
    app.router.add_get("/ws", ws_handler)
    app.cleanup_ctx.append(background_tasks)

    if open_browser:
        async def _open(app_: web.Application) -> None:
            # on_startup runs before the socket is bound
            url = f"http://{settings.host}:{settings.port}/"
            asyncio.get_running_loop().call_later(0.5, webbrowser.open, url)
        app.on_startup.append(_open)

    return app


def run(settings: Settings, open_browser: bool = True) -> None:
    app = create_app(settings, open_browser=open_browser)
    logger.info("serving on http://%s:%d/ (origin %s, dest %s)",
                settings.host, settings.port, settings.origin, settings.dest)
    web.run_app(app, host=settings.host, port=settings.port, print=None)
