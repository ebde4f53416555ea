# partyhub/transport/ws_manager.py
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Dict, Iterable, Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)


@dataclass
class Conn:
    conn_id: str
    ws: WebSocket


class WSManager:
    """
    In-memory connection registry for one service.
    - conn_id -> websocket
    Transport-only: rooms and players live in the domain stores.
    """
    def __init__(self) -> None:
        self._conns: Dict[str, Conn] = {}
        self._lock = asyncio.Lock()

    async def add(self, conn_id: str, ws: WebSocket) -> None:
        async with self._lock:
            self._conns[conn_id] = Conn(conn_id=conn_id, ws=ws)

    async def remove(self, conn_id: str) -> None:
        async with self._lock:
            self._conns.pop(conn_id, None)

    async def send_to(self, conn_id: str, event: dict) -> None:
        async with self._lock:
            conn = self._conns.get(conn_id)
        if conn is None:
            return
        await self._send(conn, event)

    async def send_many(self, conn_ids: Iterable[str], event: dict) -> None:
        async with self._lock:
            conns = [self._conns[c] for c in conn_ids if c in self._conns]
        for c in conns:
            await self._send(c, event)

    async def broadcast(self, event: dict, exclude: Optional[str] = None) -> None:
        # copy conns under lock, send outside lock
        async with self._lock:
            conns = list(self._conns.values())

        for c in conns:
            if exclude and c.conn_id == exclude:
                continue
            await self._send(c, event)

    async def deliver(self, event: dict, exclude: Optional[str] = None) -> None:
        """
        Route a handler event: `targets` picks recipients, otherwise everyone.
        """
        if "targets" in event:
            targets = event.get("targets") or []
            payload = {k: v for k, v in event.items() if k != "targets"}
            await self.send_many(targets, payload)
            return
        await self.broadcast(event, exclude=exclude)

    async def close(self, conn_id: str, code: int = 4000) -> None:
        """
        Close one websocket and remove it from the registry.
        """
        async with self._lock:
            conn = self._conns.get(conn_id)
        if conn is None:
            return
        try:
            await conn.ws.close(code=code)
        except Exception:
            logger.debug("close failed for %s", conn_id)
        await self.remove(conn_id)

    async def size(self) -> int:
        async with self._lock:
            return len(self._conns)

    async def _send(self, conn: Conn, event: dict) -> None:
        try:
            await conn.ws.send_json(event)
        except Exception:
            # dead socket; ws.py cleans up on disconnect
            logger.debug("send failed for %s", conn.conn_id)
