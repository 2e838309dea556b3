"""WebSocket real-time broadcasting.

In-process only: every open socket receives every ChangeEvent. A client that
connects after a broadcast misses it (no replay).
"""
from __future__ import annotations
from typing import Set
from fastapi import WebSocket
import asyncio
import logging
from schemas.catalog import ChangeEvent

logger = logging.getLogger(__name__)

class ConnectionManager:
    def __init__(self) -> None:
        self._conns: Set[WebSocket] = set()
        self._lock = asyncio.Lock()

    @property
    def connection_count(self) -> int:
        return len(self._conns)

    async def connect(self, websocket: WebSocket):
        await websocket.accept()
        await self.register(websocket)

    async def register(self, websocket: WebSocket):
        async with self._lock:
            self._conns.add(websocket)

    async def unregister(self, websocket: WebSocket):
        async with self._lock:
            self._conns.discard(websocket)

    async def broadcast(self, event: ChangeEvent):
        message = event.to_message()
        # Snapshot without holding lock during network sends
        async with self._lock:
            targets = list(self._conns)
        if not targets:
            return
        dead: list[WebSocket] = []
        for ws in targets:
            try:
                await ws.send_json(message)
            except Exception as e:
                logger.info("Dropping websocket after failed send: %s", e)
                dead.append(ws)
        if dead:
            async with self._lock:
                for d in dead:
                    self._conns.discard(d)

manager = ConnectionManager()
