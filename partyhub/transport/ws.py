# partyhub/transport/ws.py
from __future__ import annotations

import ipaddress
import json
import logging
import uuid
from typing import Any, Optional
from urllib.parse import urlparse

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from partyhub.settings import get_settings
from partyhub.domain.common.events import dump
from partyhub.domain.hub.handlers import handle_hub_disconnect
from partyhub.domain.pong.handlers import handle_pong_disconnect
from partyhub.transport.dispatcher import dispatch_hub_message, dispatch_pong_message
from partyhub.transport.protocols import OutError

logger = logging.getLogger(__name__)

pong_router = APIRouter()
hub_router = APIRouter()


def _is_private_ip(host: str) -> bool:
    """Return True if host is a private IP (192.168.x.x, 10.x.x.x, 172.16-31.x.x)."""
    try:
        ip = ipaddress.ip_address(host)
        return ip.is_private
    except ValueError:
        return False


async def _check_origin_or_close(websocket: WebSocket) -> bool:
    settings = get_settings()
    allowed = {o.strip() for o in settings.WS_ALLOWED_ORIGINS.split(",") if o.strip()}

    origin = websocket.headers.get("origin")
    if origin is None or origin in allowed:
        return True
    if settings.WS_ALLOW_LAN_ORIGINS and _is_private_ip(urlparse(origin).hostname or ""):
        return True
    logger.info("rejected websocket origin %s", origin)
    await websocket.close(code=1008)
    return False


def _new_conn_id() -> str:
    return uuid.uuid4().hex[:10]


async def _receive(websocket: WebSocket) -> Optional[Any]:
    """
    Next JSON message, or None after replying BAD_MESSAGE to non-JSON text.
    """
    text = await websocket.receive_text()
    try:
        return json.loads(text)
    except ValueError:
        err = OutError(code="BAD_MESSAGE", message="Message must be JSON").model_dump()
        await websocket.send_json(err)
        return None


async def _deliver(wsman, websocket: WebSocket, to_sender, to_others) -> None:
    # unicast
    for e in to_sender:
        await websocket.send_json(e)
    # targeted or broadcast
    for e in to_others:
        await wsman.deliver(e)


@pong_router.websocket("/ws/pong")
async def ws_pong(websocket: WebSocket):
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    conn_id = _new_conn_id()
    wsman = websocket.app.state.wsman
    await wsman.add(conn_id, websocket)
    logger.debug("pong connection %s opened", conn_id)

    try:
        while True:
            raw = await _receive(websocket)
            if raw is None:
                continue
            to_sender, to_room = await dispatch_pong_message(app=websocket.app, conn_id=conn_id, raw=raw)
            await _deliver(wsman, websocket, to_sender, to_room)

    except WebSocketDisconnect:
        _, to_room = await handle_pong_disconnect(app=websocket.app, conn_id=conn_id)
        await wsman.remove(conn_id)
        for e in dump(to_room):
            await wsman.deliver(e)

    finally:
        await wsman.remove(conn_id)
        logger.debug("pong connection %s closed", conn_id)


@hub_router.websocket("/ws/hub")
async def ws_hub(websocket: WebSocket):
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    conn_id = _new_conn_id()
    wsman = websocket.app.state.wsman
    await wsman.add(conn_id, websocket)
    logger.debug("hub connection %s opened", conn_id)

    try:
        while True:
            raw = await _receive(websocket)
            if raw is None:
                continue
            to_sender, to_all = await dispatch_hub_message(app=websocket.app, conn_id=conn_id, raw=raw)
            await _deliver(wsman, websocket, to_sender, to_all)

    except WebSocketDisconnect:
        _, to_all = await handle_hub_disconnect(app=websocket.app, conn_id=conn_id)
        await wsman.remove(conn_id)
        for e in dump(to_all):
            await wsman.deliver(e)

    finally:
        await wsman.remove(conn_id)
        logger.debug("hub connection %s closed", conn_id)
