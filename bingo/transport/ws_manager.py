# bingo/transport/ws_manager.py
from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Dict, Optional

import structlog
from fastapi import WebSocket

logger = structlog.get_logger()

# Subscribers of /ws-lobby share this channel name; game ids are hex so they never collide
LOBBY = "lobby"


@dataclass
class Conn:
    conn_id: str
    uid: str
    ws: WebSocket


class WSManager:
    """
    In-memory connection registry.
    - channel (game id or LOBBY) -> conn_id -> websocket
    Transport-only: no Redis, no domain rules.
    """
    def __init__(self) -> None:
        self._channels: Dict[str, Dict[str, Conn]] = {}
        self._lock = asyncio.Lock()

    async def add(self, channel: str, conn_id: str, uid: str, ws: WebSocket) -> None:
        async with self._lock:
            self._channels.setdefault(channel, {})[conn_id] = Conn(conn_id=conn_id, uid=uid, ws=ws)

    async def remove(self, channel: str, conn_id: str) -> None:
        async with self._lock:
            conns = self._channels.get(channel)
            if not conns:
                return
            conns.pop(conn_id, None)
            if not conns:
                self._channels.pop(channel, None)

    async def broadcast(self, channel: str, event: dict, exclude_conn: Optional[str] = None) -> None:
        # copy conns under lock, send outside lock
        async with self._lock:
            conns = list(self._channels.get(channel, {}).values())

        for c in conns:
            if exclude_conn and c.conn_id == exclude_conn:
                continue
            try:
                await c.ws.send_json(event)
            except Exception as e:
                # dead socket; ws.py removes it on disconnect
                logger.debug("send failed", channel=channel, conn_id=c.conn_id, error=str(e))

    async def close_channel(self, channel: str, code: int = 4004) -> None:
        """Close every socket subscribed to a channel (the game was deleted)."""
        async with self._lock:
            conns = list(self._channels.pop(channel, {}).values())
        for c in conns:
            try:
                await c.ws.close(code=code)
            except Exception as e:
                logger.debug("close failed", channel=channel, conn_id=c.conn_id, error=str(e))
