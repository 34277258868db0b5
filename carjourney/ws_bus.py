import asyncio
import logging
from typing import Any, Dict, Set

from aiohttp import web

logger = logging.getLogger(__name__)


def setup_bus(app: web.Application, maxsize: int = 32) -> None:
    app["subscribers"] = set()
    app["pub_q"] = asyncio.Queue(maxsize=maxsize)


def publish_nowait(app: web.Application, event: Dict[str, Any]) -> None:
    q: asyncio.Queue = app["pub_q"]

    # keep only latest event if queue is full
    if q.full():
        try:
            q.get_nowait()
            q.task_done()
        except asyncio.QueueEmpty:
            pass

    q.put_nowait(event)


async def publish(app: web.Application, event: Dict[str, Any]) -> None:
    publish_nowait(app, event)


async def send_status(app: web.Application, status: str, **extra) -> None:
    event = {"type": "status", "status": status}
    event.update(extra)
    await publish(app, event)


async def broadcaster(app: web.Application) -> None:
    subs: Set[web.WebSocketResponse] = app["subscribers"]
    q: asyncio.Queue = app["pub_q"]

    while True:
        event = await q.get()
        try:
            for ws in list(subs):
                if ws.closed:
                    subs.discard(ws)
                    continue
                try:
                    await ws.send_json(event)
                except ConnectionResetError:
                    logger.debug("subscriber went away")
                    subs.discard(ws)
        finally:
            q.task_done()
