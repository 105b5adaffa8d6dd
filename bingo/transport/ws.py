# bingo/transport/ws.py
from __future__ import annotations

import ipaddress
import uuid
from urllib.parse import urlparse

import structlog
from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from redis.exceptions import RedisError

from bingo.deps.auth import websocket_user_id
from bingo.domain.lifecycle.handlers import games_list
from bingo.settings import get_settings
from bingo.transport.dispatcher import dispatch_message
from bingo.transport.protocols import OutError, OutHello
from bingo.transport.ws_manager import LOBBY

logger = structlog.get_logger()

router = APIRouter()


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
    if origin is not None:
        if origin in allowed:
            return True
        if settings.WS_ALLOW_LAN_ORIGINS:
            o = urlparse(origin)
            host = o.hostname or ""
            port = o.port
            if _is_private_ip(host) and port == 5173:
                return True
        logger.info("websocket origin rejected", origin=origin)
        await websocket.close(code=1008)
        return False
    return True


async def push_lobby(app) -> None:
    """Send the current games list to every /ws-lobby subscriber."""
    try:
        event = await games_list(app)
    except RedisError as e:
        logger.error("lobby refresh failed", error=str(e))
        return
    await app.state.wsman.broadcast(LOBBY, event.model_dump())


@router.websocket("/ws-lobby")
async def ws_lobby(websocket: WebSocket):
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    conn_id = uuid.uuid4().hex[:10]
    uid = websocket_user_id(websocket)
    wsman = websocket.app.state.wsman
    await wsman.add(LOBBY, conn_id, uid, websocket)

    try:
        while True:
            try:
                await websocket.send_json((await games_list(websocket.app)).model_dump())
            except RedisError as e:
                logger.error("backend error", channel=LOBBY, error=str(e))
                await websocket.send_json(
                    OutError(code="BACKEND_ERROR", message="Storage is unavailable, try again").model_dump()
                )
            # any message from the client asks for a fresh list
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        await wsman.remove(LOBBY, conn_id)


@router.websocket("/ws/{game_id}")
async def ws_game(websocket: WebSocket, game_id: str):
    if not await _check_origin_or_close(websocket):
        return

    await websocket.accept()

    conn_id = uuid.uuid4().hex[:10]
    uid = websocket_user_id(websocket)
    app = websocket.app
    wsman = app.state.wsman
    await wsman.add(game_id, conn_id, uid, websocket)
    await websocket.send_json(OutHello(uid=uid, game_id=game_id).model_dump())
    logger.debug("websocket connected", game_id=game_id, uid=uid, conn_id=conn_id)

    try:
        to_sender, _ = await dispatch_message(app=app, game_id=game_id, uid=uid, raw={"type": "snapshot"})
        for e in to_sender:
            await websocket.send_json(e)

        while True:
            try:
                raw = await websocket.receive_json()
            except ValueError:
                await websocket.send_json(OutError(code="BAD_MESSAGE", message="Invalid JSON").model_dump())
                continue

            to_sender, to_room = await dispatch_message(app=app, game_id=game_id, uid=uid, raw=raw)

            # unicast
            for e in to_sender:
                await websocket.send_json(e)

            # broadcast (exclude sender to avoid duplicates)
            for e in to_room:
                await wsman.broadcast(game_id, e, exclude_conn=conn_id)

            if to_room:
                await push_lobby(app)

    except WebSocketDisconnect:
        logger.debug("websocket disconnected", game_id=game_id, uid=uid, conn_id=conn_id)
    finally:
        await wsman.remove(game_id, conn_id)
